"""
Index orchestration for coderoom.

Ties the scanner, the metadata extractor, the commit index builder and
the database together. Every function here blocks; an embedding async
server must run them in a worker thread.
"""

import logging
import os
from dataclasses import dataclass, asdict, field
from typing import Any, Callable, Dict, Iterable, List, Optional

from ..database import (
    Database,
    list_repo_paths,
    prune_under_root,
    record_access,
    replace_commit_index,
    resolve_repo_path,
    transaction,
    upsert_repo,
)
from ..exceptions import NotFoundError
from ..infra.git_client import GitClient
from ..scanner import discover_git_repos
from .commit_index_service import (
    build_commit_index,
    clamp_branches_limit,
    clamp_commits_per_branch,
)
from .metadata_service import canonical_path, read_repo_metadata

logger = logging.getLogger(__name__)

# Called with the path of each repository as it is processed
ProgressCallback = Callable[[str], None]


@dataclass
class ScanResult:
    """Outcome of scanning one or more roots."""
    roots: List[str] = field(default_factory=list)
    indexed: int = 0
    pruned: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class CommitIndexResult:
    """Outcome of a commit index rebuild."""
    repos: int = 0
    skipped: int = 0
    branches: int = 0
    commits: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def scan_root(
    db: Database,
    root: str,
    max_depth: Optional[int] = None,
    ignore_dir_names: Iterable[str] = (),
    prune: bool = False,
    git_client: Optional[GitClient] = None,
    progress: Optional[ProgressCallback] = None,
) -> ScanResult:
    """
    Index every repository found under root.

    Args:
        db: Database connection
        root: Directory to scan (canonicalized first)
        max_depth: Maximum directory depth below root (None = unbounded)
        ignore_dir_names: Directory names never descended into
        prune: Also remove indexed repositories under root that were not found
        git_client: Git client (creates default if None)
        progress: Called with each repository path

    Returns:
        ScanResult for this root
    """
    git = git_client or GitClient()
    root = canonical_path(os.path.expanduser(root))
    found = discover_git_repos(root, max_depth=max_depth, ignore_dir_names=ignore_dir_names)
    logger.debug(f"Found {len(found)} repositories under {root}")

    kept = set()
    for repo_root in found:
        meta = read_repo_metadata(repo_root, git_client=git)
        # Each upsert commits on its own; git reads run outside any transaction
        with transaction(db):
            upsert_repo(db, meta)
        kept.add(meta.path)
        if progress:
            progress(meta.path)

    result = ScanResult(roots=[root], indexed=len(found))
    if prune:
        result.pruned = prune_under_root(db, root, kept)
    return result


def scan_roots(
    db: Database,
    roots: Iterable[str],
    max_depth: Optional[int] = None,
    ignore_dir_names: Iterable[str] = (),
    prune: bool = False,
    git_client: Optional[GitClient] = None,
    progress: Optional[ProgressCallback] = None,
) -> ScanResult:
    """Scan several roots and add up the results."""
    ignore = tuple(ignore_dir_names)
    total = ScanResult()
    for root in roots:
        result = scan_root(
            db, root,
            max_depth=max_depth,
            ignore_dir_names=ignore,
            prune=prune,
            git_client=git_client,
            progress=progress,
        )
        total.roots.extend(result.roots)
        total.indexed += result.indexed
        total.pruned += result.pruned
    return total


def rebuild_commit_index(
    db: Database,
    targets: Optional[Iterable[str]] = None,
    branches_limit: int = 10,
    commits_per_branch: int = 50,
    git_client: Optional[GitClient] = None,
    progress: Optional[ProgressCallback] = None,
) -> CommitIndexResult:
    """
    Rebuild the commit index of the given repositories.

    Targets whose path no longer exists are skipped. A repository that
    exists but cannot be read as git aborts the rebuild; repositories
    already done keep their new index.

    Args:
        db: Database connection
        targets: Indexed repository paths (None = every indexed repository)
        branches_limit: Branches kept per repository (clamped to 1..200)
        commits_per_branch: Commits kept per branch (clamped to 1..500)
        git_client: Git client (creates default if None)
        progress: Called with each repository path

    Returns:
        CommitIndexResult with totals

    Raises:
        NotFoundError: A target is not indexed
        GitError: A target cannot be read
    """
    git = git_client or GitClient()
    branches_limit = clamp_branches_limit(branches_limit)
    commits_per_branch = clamp_commits_per_branch(commits_per_branch)
    paths = list_repo_paths(db) if targets is None else list(targets)

    result = CommitIndexResult()
    for path in paths:
        if not os.path.exists(path):
            logger.debug(f"Skipping commit index for missing path {path}")
            result.skipped += 1
            continue

        tips, commits = build_commit_index(
            path, branches_limit, commits_per_branch, git_client=git
        )
        replace_commit_index(db, path, tips, commits)
        result.repos += 1
        result.branches += len(tips)
        result.commits += len(commits)
        if progress:
            progress(path)

    logger.info(
        f"Commit index: {result.repos} repos, {result.branches} branches, "
        f"{result.commits} commits ({result.skipped} skipped)"
    )
    return result


def open_repo(db: Database, text: str, now: Optional[int] = None) -> str:
    """
    Resolve user input to an indexed repository and record the access.

    Returns:
        The repository path

    Raises:
        NotFoundError: Nothing in the index matches
    """
    path = resolve_repo_path(db, text)
    if path is None:
        raise NotFoundError(f"repository matching {text!r}")
    record_access(db, path, now=now)
    return path
