"""
Repository discovery for coderoom.

Walks a directory tree and reports every directory that directly contains
a .git directory. The walk is blocking filesystem I/O.
"""

import logging
import os
from pathlib import Path
from typing import Iterable, List, Optional, Set, Union

logger = logging.getLogger(__name__)

GIT_DIR_NAME = '.git'


def discover_git_repos(
    root: Union[str, Path],
    max_depth: Optional[int] = None,
    ignore_dir_names: Iterable[str] = (),
) -> List[str]:
    """
    Find repository roots under root.

    Symbolic links are not followed. A directory named in ignore_dir_names
    is never descended into, and neither is a .git directory. Unreadable
    entries are skipped.

    Args:
        root: Directory to walk
        max_depth: Deepest level to visit, counting root's children as 1
                   (None = unlimited)
        ignore_dir_names: Directory names to skip entirely

    Returns:
        Repository root paths, deduplicated and sorted
    """
    root = str(root)
    if not os.path.isdir(root):
        logger.debug(f"Scan root is not a directory: {root}")
        return []

    ignore = set(ignore_dir_names)
    repos: Set[str] = set()
    base_depth = root.rstrip(os.sep).count(os.sep)

    def on_error(error: OSError) -> None:
        logger.debug(f"Skipping unreadable entry: {error}")

    for dirpath, dirnames, _ in os.walk(root, onerror=on_error, followlinks=False):
        depth = dirpath.rstrip(os.sep).count(os.sep) - base_depth

        # Children of dirpath sit at depth + 1
        if max_depth is not None and depth + 1 > max_depth:
            dirnames[:] = []
            continue

        if GIT_DIR_NAME in dirnames:
            repos.add(dirpath)

        dirnames[:] = sorted(
            d for d in dirnames
            if d != GIT_DIR_NAME and d not in ignore
        )

    return sorted(repos)
