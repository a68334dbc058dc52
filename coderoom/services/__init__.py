"""
Service layer for coderoom.

Contains the operations that orchestrate git access and the index:
- metadata_service: RepoMeta extraction for one repository root
- commit_index_service: Commit index building and live history reads
- index_service: Scanning roots, rebuilding the commit index, opening repos

Services are the primary API for commands to use.
"""

from .metadata_service import read_repo_metadata, read_readme_excerpt, canonical_path
from .commit_index_service import (
    build_commit_index,
    list_branches,
    list_commits,
    commit_detail,
    clamp_branches_limit,
    clamp_commits_per_branch,
)
from .index_service import (
    ScanResult,
    CommitIndexResult,
    scan_root,
    scan_roots,
    rebuild_commit_index,
    open_repo,
)

__all__ = [
    'read_repo_metadata',
    'read_readme_excerpt',
    'canonical_path',
    'build_commit_index',
    'list_branches',
    'list_commits',
    'commit_detail',
    'clamp_branches_limit',
    'clamp_commits_per_branch',
    'ScanResult',
    'CommitIndexResult',
    'scan_root',
    'scan_roots',
    'rebuild_commit_index',
    'open_repo',
]
