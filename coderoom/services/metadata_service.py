"""
Metadata extraction for coderoom.

Turns a repository root into a RepoMeta. Extraction never fails a scan:
anything that cannot be read degrades to None, but the canonical path and
name always come from the filesystem path alone.
"""

import logging
import os
import time
from pathlib import Path
from typing import Optional, Union

from ..domain.repository import RepoMeta
from ..exceptions import RepositoryOpenError
from ..infra.git_client import GitClient

logger = logging.getLogger(__name__)

README_CANDIDATES = ('README.md', 'Readme.md', 'README.MD', 'README')
README_MAX_LINES = 10
README_MAX_CHARS = 280


def canonical_path(path: Union[str, Path]) -> str:
    """Resolve symlinks; fall back to the input when resolution fails."""
    try:
        return str(Path(path).resolve(strict=True))
    except (OSError, RuntimeError):
        return str(path)


def repo_name(path: str) -> str:
    """Final path segment, or the whole path when there is none."""
    name = os.path.basename(path.rstrip(os.sep))
    return name or path


def read_readme_excerpt(repo_root: Union[str, Path]) -> Optional[str]:
    """
    One-line excerpt of the repository README.

    The first existing candidate file is read as UTF-8; blank lines are dropped and
    the first ten remaining lines are joined with spaces, then cut to 280
    characters.

    Returns:
        The excerpt, or None if no README could be read or decoded
    """
    root = Path(repo_root)
    try:
        readme = next((root / n for n in README_CANDIDATES if (root / n).exists()), None)
        if readme is None:
            return None
        text = readme.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        logger.debug(f"Cannot read README in {root}: {e}")
        return None

    lines = [line for line in text.splitlines() if line.strip()]
    return ' '.join(lines[:README_MAX_LINES])[:README_MAX_CHARS]


def read_repo_metadata(
    repo_root: Union[str, Path],
    git_client: Optional[GitClient] = None,
    now: Optional[int] = None,
) -> RepoMeta:
    """
    Extract summary metadata for one repository root.

    Args:
        repo_root: Directory containing .git
        git_client: Git client (creates default if None)
        now: Scan timestamp in epoch seconds (defaults to the current time)

    Returns:
        RepoMeta with every field that could be read
    """
    git = git_client or GitClient()
    path = canonical_path(repo_root)

    default_branch = None
    last_commit_ts = None
    origin_url = None

    try:
        repo = git.open(path)
    except RepositoryOpenError as e:
        logger.debug(f"Indexing without git metadata: {e}")
        repo = None

    if repo is not None:
        try:
            origin_url = repo.origin_url()
        except Exception as e:
            logger.debug(f"Cannot read remotes of {path}: {e}")
        try:
            default_branch = repo.head_branch()
            last_commit_ts = repo.head_commit_time()
        except Exception as e:
            logger.debug(f"Cannot read HEAD of {path}: {e}")

    return RepoMeta(
        path=path,
        name=repo_name(path),
        default_branch=default_branch,
        last_commit_ts=last_commit_ts,
        last_scan_ts=int(time.time()) if now is None else now,
        readme_excerpt=read_readme_excerpt(path),
        origin_url=origin_url,
    )
