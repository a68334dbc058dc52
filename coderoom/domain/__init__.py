"""
Domain layer for coderoom.

Contains pure domain objects with no I/O or side effects:
- RepoMeta / RepoRow: a repository as scanned and as indexed
- BranchTip / CommitRecord: rows of the commit index
- CommitHit: a commit search result

These objects are immutable and provide serialization methods
for JSONL output.
"""

from .repository import RepoMeta, RepoRow, RepoWithTags, TagCount, Paged
from .commit import (
    LOCAL,
    REMOTE,
    BranchTip,
    CommitRecord,
    CommitHit,
    BranchRef,
    CommitSummary,
    CommitPage,
    CommitDetail,
)

__all__ = [
    'RepoMeta',
    'RepoRow',
    'RepoWithTags',
    'TagCount',
    'Paged',
    'LOCAL',
    'REMOTE',
    'BranchTip',
    'CommitRecord',
    'CommitHit',
    'BranchRef',
    'CommitSummary',
    'CommitPage',
    'CommitDetail',
]
