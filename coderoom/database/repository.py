"""
Repository database operations for coderoom.

Provides upsert, paginated listing and search, lookup, access recording
and pruning for the repos table.
"""

import logging
import os
import time
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set, Tuple

from ..domain.repository import RepoMeta, RepoRow, RepoWithTags, Paged
from .connection import Database, transaction
from .query_builder import (
    DEFAULT_PER_PAGE,
    REPO_FIELD_MATCHERS,
    RepoSearchFields,
    build_predicate,
    clamp_paging,
    like_pattern,
)
from .tags import prune_orphan_tags

logger = logging.getLogger(__name__)

REPO_COLUMNS = (
    "r.id, r.path, r.name, r.default_branch, r.last_commit_ts, r.last_scan_ts,"
    " r.readme_excerpt, r.origin_url, r.last_access_ts"
)

ORDER_BY_NAME = "ORDER BY r.name ASC, r.id ASC"
# Never-accessed repositories sort after every accessed one
ORDER_BY_RECENT = "ORDER BY r.last_access_ts IS NULL, r.last_access_ts DESC, r.name ASC, r.id ASC"


def upsert_repo(db: Database, meta: RepoMeta) -> None:
    """
    Insert or update a repository keyed by path.

    Every scanned field is overwritten on conflict. The access time, tags
    and commit index of an existing row are kept.
    """
    db.execute(
        """
        INSERT INTO repos (path, name, default_branch, last_commit_ts, last_scan_ts,
                           readme_excerpt, origin_url)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(path) DO UPDATE SET
            name = excluded.name,
            default_branch = excluded.default_branch,
            last_commit_ts = excluded.last_commit_ts,
            last_scan_ts = excluded.last_scan_ts,
            readme_excerpt = excluded.readme_excerpt,
            origin_url = excluded.origin_url
        """,
        (
            meta.path,
            meta.name,
            meta.default_branch,
            meta.last_commit_ts,
            meta.last_scan_ts,
            meta.readme_excerpt,
            meta.origin_url,
        )
    )


def get_repo_by_path(db: Database, path: str) -> Optional[RepoRow]:
    """Get repository by exact path."""
    db.execute(f"SELECT {REPO_COLUMNS} FROM repos r WHERE r.path = ?", (path,))
    row = db.fetchone()
    return RepoRow.from_record(row) if row else None


def get_repo_id(db: Database, path: str) -> Optional[int]:
    db.execute("SELECT id FROM repos WHERE path = ?", (path,))
    row = db.fetchone()
    return row['id'] if row else None


def get_repo_count(db: Database) -> int:
    """Get total number of repositories."""
    db.execute("SELECT COUNT(*) FROM repos")
    row = db.fetchone()
    return row[0] if row else 0


def list_repo_paths(db: Database) -> List[str]:
    """All indexed paths in name order."""
    db.execute("SELECT r.path FROM repos r " + ORDER_BY_NAME)
    return [row['path'] for row in db.fetchall()]


def _tags_by_repo(db: Database, repo_ids: Iterable[int]) -> Dict[int, Tuple[str, ...]]:
    ids = list(repo_ids)
    if not ids:
        return {}
    placeholders = ', '.join('?' for _ in ids)
    db.execute(
        f"""
        SELECT rt.repo_id, t.name
        FROM repo_tags rt
        JOIN tags t ON t.id = rt.tag_id
        WHERE rt.repo_id IN ({placeholders})
        ORDER BY t.name ASC
        """,
        tuple(ids)
    )
    result: Dict[int, List[str]] = {}
    for row in db.fetchall():
        result.setdefault(row['repo_id'], []).append(row['name'])
    return {repo_id: tuple(names) for repo_id, names in result.items()}


def _paged_repos(
    db: Database,
    where: str,
    params: tuple,
    order: str,
    page: int,
    per_page: int,
) -> Paged[RepoWithTags]:
    """Run the count and the page query for one filter predicate."""
    page, per_page = clamp_paging(page, per_page)
    offset = (page - 1) * per_page

    db.execute(f"SELECT COUNT(*) FROM repos r WHERE {where}", params)
    total = db.fetchone()[0]

    db.execute(
        f"SELECT {REPO_COLUMNS} FROM repos r WHERE {where} {order} LIMIT ? OFFSET ?",
        params + (per_page, offset)
    )
    rows = [RepoRow.from_record(row) for row in db.fetchall()]
    tags = _tags_by_repo(db, (row.id for row in rows))

    return Paged(
        total=total,
        page=page,
        per_page=per_page,
        items=[RepoWithTags(repo=row, tags=tags.get(row.id, ())) for row in rows],
    )


def list_repos(
    db: Database,
    tag: Optional[str] = None,
    recent: bool = False,
    page: int = 1,
    per_page: int = DEFAULT_PER_PAGE,
) -> Paged[RepoWithTags]:
    """
    List indexed repositories one page at a time.

    Args:
        db: Database connection
        tag: Only repositories carrying exactly this tag
        recent: Most recently opened first (never opened last), then by name
        page: 1-based page number (clamped to >= 1)
        per_page: Page size (clamped to 1..200)

    Returns:
        The page plus the total number of matching repositories
    """
    if tag is not None:
        where = (
            "EXISTS (SELECT 1 FROM repo_tags frt JOIN tags ft ON ft.id = frt.tag_id"
            " WHERE frt.repo_id = r.id AND ft.name = ?)"
        )
        params: tuple = (tag,)
    else:
        where, params = "1", ()

    order = ORDER_BY_RECENT if recent else ORDER_BY_NAME
    return _paged_repos(db, where, params, order, page, per_page)


def search_repos(
    db: Database,
    query: str,
    fields: Optional[RepoSearchFields] = None,
    page: int = 1,
    per_page: int = DEFAULT_PER_PAGE,
) -> Paged[RepoWithTags]:
    """
    Substring search over repository name, path, README excerpt and tags.

    Matching follows SQLite's LIKE, which ignores case for ASCII letters.
    Results are ordered by name.

    Args:
        db: Database connection
        query: Text to look for
        fields: Which fields to search (none enabled means all)
        page: 1-based page number (clamped to >= 1)
        per_page: Page size (clamped to 1..200)

    Returns:
        The page plus the total number of matching repositories
    """
    fields = fields or RepoSearchFields()
    where, params = build_predicate(REPO_FIELD_MATCHERS, fields.enabled(), query)
    return _paged_repos(db, where, params, ORDER_BY_NAME, page, per_page)


def matched_fields(
    item: RepoWithTags,
    query: str,
    fields: Optional[RepoSearchFields] = None,
) -> List[str]:
    """
    Which enabled fields of a search result contain the query.

    Comparison ignores case. Returns ['repo'] when nothing matches
    locally (e.g. non-ASCII case folding that LIKE did not apply).
    """
    fields = fields or RepoSearchFields()
    enabled = fields.enabled()
    needle = query.lower()
    repo = item.repo

    matched = []
    if 'name' in enabled and needle in repo.name.lower():
        matched.append('name')
    if 'path' in enabled and needle in repo.path.lower():
        matched.append('path')
    if 'readme' in enabled and repo.readme_excerpt and needle in repo.readme_excerpt.lower():
        matched.append('readme')
    if 'tags' in enabled and any(needle in t.lower() for t in item.tags):
        matched.append('tag')
    return matched or ['repo']


def resolve_repo_path(db: Database, text: str) -> Optional[str]:
    """
    Turn user input into an indexed repository path.

    An absolute path has its symlinks resolved, the same way scanned paths
    are, and must then match exactly. Anything else is a substring of a name
    or path; the first match by name wins.

    Returns:
        The indexed path, or None
    """
    if os.path.isabs(text):
        candidate = os.path.realpath(text)
        db.execute("SELECT path FROM repos WHERE path = ?", (candidate,))
        row = db.fetchone()
        return row['path'] if row else None

    pattern = like_pattern(text)
    db.execute(
        "SELECT r.path FROM repos r"
        " WHERE r.name LIKE ? ESCAPE '\\' OR r.path LIKE ? ESCAPE '\\' "
        + ORDER_BY_NAME + " LIMIT 1",
        (pattern, pattern)
    )
    row = db.fetchone()
    return row['path'] if row else None


def record_access(db: Database, path: str, now: Optional[int] = None) -> bool:
    """
    Set the last-access time of a repository to now.

    Unindexed paths are ignored.

    Returns:
        True if a row was updated
    """
    ts = int(time.time()) if now is None else now
    db.execute("UPDATE repos SET last_access_ts = ? WHERE path = ?", (ts, path))
    return db.rowcount > 0


def delete_repo_by_path(db: Database, path: str) -> bool:
    """Delete a repository by path. Tags links and commit index go with it."""
    db.execute("DELETE FROM repos WHERE path = ?", (path,))
    return db.rowcount > 0


def prune_missing_paths(db: Database) -> int:
    """
    Remove repos from database that no longer exist on disk.

    Returns:
        Number of repos removed
    """
    db.execute("SELECT path FROM repos")
    missing = [row['path'] for row in db.fetchall() if not Path(row['path']).exists()]

    removed = 0
    with transaction(db):
        for path in missing:
            if delete_repo_by_path(db, path):
                removed += 1
        orphans = prune_orphan_tags(db)
    logger.info(f"Pruned {removed} missing repos, {orphans} orphan tags")
    return removed


def prune_under_root(db: Database, root: str, keep: Set[str]) -> int:
    """
    Remove repos under root that a fresh scan of root did not find.

    Only paths strictly below root (root plus a separator) are considered,
    so repositories under other roots, or under a sibling such as
    '/src/app2' when pruning '/src/app', are never touched.

    Args:
        db: Database connection
        root: Canonical scan root
        keep: Paths discovered by the scan

    Returns:
        Number of repos removed
    """
    prefix = root.rstrip(os.sep) + os.sep
    db.execute(
        "SELECT path FROM repos WHERE substr(path, 1, ?) = ?",
        (len(prefix), prefix)
    )
    stale = [
        row['path'] for row in db.fetchall()
        if row['path'].startswith(prefix) and row['path'] not in keep
    ]

    removed = 0
    with transaction(db):
        for path in stale:
            if delete_repo_by_path(db, path):
                removed += 1
        orphans = prune_orphan_tags(db)
    logger.info(f"Pruned {removed} repos under {root}, {orphans} orphan tags")
    return removed
