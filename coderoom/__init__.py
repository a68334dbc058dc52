"""
coderoom - A local, offline index of git repositories.

coderoom finds repositories under directory roots, stores summary
metadata and user tags in SQLite, and keeps a bounded commit index for
searching recent history across every repository.

Quick Start:
    from coderoom.database import Database, search_repos, search_commits
    from coderoom.services import scan_root, rebuild_commit_index

    with Database() as db:
        scan_root(db, "~/src", prune=True)
        rebuild_commit_index(db, branches_limit=10, commits_per_branch=50)

        for item in search_repos(db, "parser").items:
            print(item.repo.name, item.repo.path)

        for hit in search_commits(db, "fix race").items:
            print(hit.repo_name, hit.branch_name, hit.summary)

Domain Objects:
    RepoMeta / RepoRow - A repository as scanned and as indexed
    BranchTip / CommitRecord - Rows of the commit index
    CommitHit - A commit search result

Services:
    scan_root / scan_roots - Discover and index repositories
    rebuild_commit_index - Refresh the commit index
    list_branches / list_commits / commit_detail - Live history reads
"""

__version__ = "0.1.0"

# Domain objects
from .domain import (
    RepoMeta,
    RepoRow,
    RepoWithTags,
    TagCount,
    Paged,
    BranchTip,
    CommitRecord,
    CommitHit,
    BranchRef,
    CommitSummary,
    CommitPage,
    CommitDetail,
)

# Errors
from .exceptions import (
    CoderoomError,
    NotFoundError,
    ConfigError,
    GitError,
    RepositoryOpenError,
    RefNotFoundError,
    CommitNotFoundError,
)

# Scanning
from .scanner import discover_git_repos

__all__ = [
    # Version
    "__version__",
    # Domain objects
    "RepoMeta",
    "RepoRow",
    "RepoWithTags",
    "TagCount",
    "Paged",
    "BranchTip",
    "CommitRecord",
    "CommitHit",
    "BranchRef",
    "CommitSummary",
    "CommitPage",
    "CommitDetail",
    # Errors
    "CoderoomError",
    "NotFoundError",
    "ConfigError",
    "GitError",
    "RepositoryOpenError",
    "RefNotFoundError",
    "CommitNotFoundError",
    # Scanning
    "discover_git_repos",
]
