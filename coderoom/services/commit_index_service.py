"""
Commit index building and live history reads for coderoom.

build_commit_index picks the most recently active branches of a
repository and walks a bounded slice of history for each. The other
functions serve read-only browsing of a repository that is not limited
to what the index holds.

Everything here blocks on the git object model; callers in an event loop
must run these in a worker thread.
"""

import logging
from itertools import islice
from typing import List, Optional, Tuple

from ..database.query_builder import clamp_paging
from ..domain.commit import (
    BranchTip,
    CommitRecord,
    BranchRef,
    CommitSummary,
    CommitPage,
    CommitDetail,
)
from ..infra.git_client import GitClient, commit_author, commit_summary

logger = logging.getLogger(__name__)

MIN_BRANCHES, MAX_BRANCHES = 1, 200
MIN_COMMITS_PER_BRANCH, MAX_COMMITS_PER_BRANCH = 1, 500


def clamp_branches_limit(value: int) -> int:
    """Clamp a branch count to 1..200."""
    return max(MIN_BRANCHES, min(MAX_BRANCHES, int(value)))


def clamp_commits_per_branch(value: int) -> int:
    """Clamp a per-branch commit count to 1..500."""
    return max(MIN_COMMITS_PER_BRANCH, min(MAX_COMMITS_PER_BRANCH, int(value)))


def build_commit_index(
    repo_root: str,
    branches_limit: int,
    commits_per_branch: int,
    git_client: Optional[GitClient] = None,
) -> Tuple[List[BranchTip], List[CommitRecord]]:
    """
    Build the commit index for one repository.

    Branches are ordered by tip commit time, newest first; ties go to the
    branch name, then the ref name, in ascending order. At most
    branches_limit branches are kept, and every kept branch is returned as
    a tip even if its walk yields nothing. Each kept branch contributes at
    most commits_per_branch commits, newest first. A commit reachable from
    several kept branches appears once per branch.

    Args:
        repo_root: Repository path
        branches_limit: Maximum branches to keep (at least 1)
        commits_per_branch: Maximum commits per branch (at least 1)
        git_client: Git client (creates default if None)

    Returns:
        (branch tips, commit records)

    Raises:
        RepositoryOpenError: The repository cannot be opened
    """
    git = git_client or GitClient()
    repo = git.open(repo_root)

    candidates = []
    for kind, name, refname, tip_oid in repo.branches():
        candidates.append((kind, name, refname, tip_oid, repo.commit_time(tip_oid)))

    candidates.sort(key=lambda c: (-(c[4] or 0), c[1], c[2]))
    candidates = candidates[:max(branches_limit, 1)]

    tips = [
        BranchTip(kind=kind, name=name, refname=refname, tip_time=tip_time)
        for kind, name, refname, _, tip_time in candidates
    ]

    limit = max(commits_per_branch, 1)
    commits: List[CommitRecord] = []
    for kind, name, refname, tip_oid, _ in candidates:
        if tip_oid is None:
            continue
        for commit in islice(repo.walk(tip_oid), limit):
            author, email = commit_author(commit)
            message = commit.message or None
            commits.append(CommitRecord(
                refname=refname,
                branch_kind=kind,
                branch_name=name,
                oid=str(commit.id),
                time=commit.commit_time,
                author=author,
                email=email,
                summary=commit_summary(message),
                message=message,
            ))

    logger.debug(f"Commit index for {repo_root}: {len(tips)} branches, {len(commits)} commits")
    return tips, commits


def list_branches(repo_root: str, git_client: Optional[GitClient] = None) -> List[BranchRef]:
    """
    All branches of a repository, local before remote, each sorted by name.

    Raises:
        RepositoryOpenError: The repository cannot be opened
    """
    git = git_client or GitClient()
    repo = git.open(repo_root)

    seen = set()
    result = []
    for kind, name, refname, _ in sorted(repo.branches(), key=lambda b: (b[0], b[1])):
        if refname in seen:
            continue
        seen.add(refname)
        result.append(BranchRef(kind=kind, name=name, refname=refname))
    return result


def list_commits(
    repo_root: str,
    refname: str,
    page: int = 1,
    per_page: int = 50,
    git_client: Optional[GitClient] = None,
) -> CommitPage:
    """
    A page of history reachable from refname, newest first.

    Only as much history as the requested page needs is walked.

    Raises:
        RepositoryOpenError: The repository cannot be opened
        RefNotFoundError: refname does not resolve to a commit
    """
    page, per_page = clamp_paging(page, per_page)
    offset = (page - 1) * per_page

    git = git_client or GitClient()
    repo = git.open(repo_root)
    start = repo.resolve(refname)

    # One extra commit tells us whether another page exists
    window = list(islice(repo.walk(start), offset, offset + per_page + 1))
    has_more = len(window) > per_page

    items = []
    for commit in window[:per_page]:
        author, email = commit_author(commit)
        items.append(CommitSummary(
            oid=str(commit.id),
            summary=commit_summary(commit.message) or '',
            author=author or '',
            email=email or '',
            time=commit.commit_time,
        ))
    return CommitPage(page=page, per_page=per_page, has_more=has_more, items=items)


def commit_detail(repo_root: str, oid: str, git_client: Optional[GitClient] = None) -> CommitDetail:
    """
    Full details of one commit.

    Raises:
        RepositoryOpenError: The repository cannot be opened
        CommitNotFoundError: oid is malformed or unknown
    """
    git = git_client or GitClient()
    repo = git.open(repo_root)
    commit = repo.get_commit(oid)
    author, email = commit_author(commit)
    return CommitDetail(
        oid=str(commit.id),
        summary=commit_summary(commit.message) or '',
        message=commit.message or '',
        author=author or '',
        email=email or '',
        time=commit.commit_time,
        parents=tuple(str(p) for p in commit.parent_ids),
    )
