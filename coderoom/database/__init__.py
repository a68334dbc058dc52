"""
Database module for coderoom.

Provides SQLite-based persistence for the repository index: one row per
repository, user tags, and the per-repository commit index.

Key components:
- connection: Database connection management
- schema: Table definitions and schema versioning
- repository: Repository upsert, listing, search and pruning
- tags: Tag operations
- commits: Commit index replacement and search
- query_builder: Search predicates and pagination
"""

from .connection import (
    get_connection,
    get_db_path,
    Database,
    get_database_info,
    reset_database,
    transaction,
)
from .schema import CURRENT_VERSION, ensure_schema
from .query_builder import (
    RepoSearchFields,
    CommitSearchFields,
    clamp_paging,
    like_pattern,
    DEFAULT_PER_PAGE,
    MAX_PER_PAGE,
)
from .repository import (
    upsert_repo,
    get_repo_by_path,
    get_repo_id,
    get_repo_count,
    list_repo_paths,
    list_repos,
    search_repos,
    matched_fields,
    resolve_repo_path,
    record_access,
    delete_repo_by_path,
    prune_missing_paths,
    prune_under_root,
)
from .tags import (
    add_tag,
    remove_tag,
    list_tags,
    list_tags_with_counts,
    list_repo_tags,
    prune_orphan_tags,
)
from .commits import (
    replace_commit_index,
    search_commits,
    list_branch_tips,
    commit_index_stats,
    make_snippet,
)

__all__ = [
    # Connection
    'get_connection',
    'get_db_path',
    'Database',
    'get_database_info',
    'reset_database',
    'transaction',
    # Schema
    'ensure_schema',
    'CURRENT_VERSION',
    # Queries
    'RepoSearchFields',
    'CommitSearchFields',
    'clamp_paging',
    'like_pattern',
    'DEFAULT_PER_PAGE',
    'MAX_PER_PAGE',
    # Repository
    'upsert_repo',
    'get_repo_by_path',
    'get_repo_id',
    'get_repo_count',
    'list_repo_paths',
    'list_repos',
    'search_repos',
    'matched_fields',
    'resolve_repo_path',
    'record_access',
    'delete_repo_by_path',
    'prune_missing_paths',
    'prune_under_root',
    # Tags
    'add_tag',
    'remove_tag',
    'list_tags',
    'list_tags_with_counts',
    'list_repo_tags',
    'prune_orphan_tags',
    # Commits
    'replace_commit_index',
    'search_commits',
    'list_branch_tips',
    'commit_index_stats',
    'make_snippet',
]
