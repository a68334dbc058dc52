"""
Commit index storage and search for coderoom.

The commit index of a repository is a derived cache: it is only ever
replaced as a whole, inside one transaction, so readers see either the
previous index or the new one.
"""

import logging
from typing import Dict, List, Optional, Sequence

from ..domain.commit import BranchTip, CommitRecord, CommitHit
from ..domain.repository import Paged
from ..exceptions import NotFoundError
from .connection import Database, transaction
from .query_builder import (
    COMMIT_FIELD_MATCHERS,
    DEFAULT_PER_PAGE,
    CommitSearchFields,
    build_predicate,
    clamp_paging,
    like_pattern,
)

logger = logging.getLogger(__name__)

SNIPPET_RADIUS = 60
ELLIPSIS = '…'


def replace_commit_index(
    db: Database,
    repo_path: str,
    tips: Sequence[BranchTip],
    commits: Sequence[CommitRecord],
) -> None:
    """
    Replace the stored branch tips and commits of one repository.

    Any failure rolls the whole replacement back and the previous index
    stays in place.

    Raises:
        NotFoundError: The path is not indexed
    """
    db.execute("SELECT id FROM repos WHERE path = ?", (repo_path,))
    row = db.fetchone()
    if row is None:
        raise NotFoundError(f"repository {repo_path}")
    repo_id = row['id']

    with transaction(db):
        db.execute("DELETE FROM branch_tips WHERE repo_id = ?", (repo_id,))
        db.execute("DELETE FROM commits WHERE repo_id = ?", (repo_id,))
        db.executemany(
            "INSERT INTO branch_tips (repo_id, kind, name, refname, tip_time) VALUES (?, ?, ?, ?, ?)",
            [(repo_id, t.kind, t.name, t.refname, t.tip_time) for t in tips]
        )
        db.executemany(
            """
            INSERT INTO commits (repo_id, refname, branch_kind, branch_name, oid, time,
                                 author, email, summary, message)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (repo_id, c.refname, c.branch_kind, c.branch_name, c.oid, c.time,
                 c.author, c.email, c.summary, c.message)
                for c in commits
            ]
        )

    logger.debug(f"Stored commit index for {repo_path}: {len(tips)} branches, {len(commits)} commits")


def search_commits(
    db: Database,
    query: str,
    branch: Optional[str] = None,
    fields: Optional[CommitSearchFields] = None,
    page: int = 1,
    per_page: int = DEFAULT_PER_PAGE,
) -> Paged[CommitHit]:
    """
    Substring search over indexed commit summaries and messages.

    Args:
        db: Database connection
        query: Text to look for
        branch: Only commits whose branch name or ref name contains this
        fields: Which fields to search (none enabled means all)
        page: 1-based page number (clamped to >= 1)
        per_page: Page size (clamped to 1..200)

    Returns:
        Newest commits first, commits without a time last
    """
    fields = fields or CommitSearchFields()
    page, per_page = clamp_paging(page, per_page)
    offset = (page - 1) * per_page

    where, params = build_predicate(COMMIT_FIELD_MATCHERS, fields.enabled(), query)
    if branch is not None:
        pattern = like_pattern(branch)
        where += " AND (c.branch_name LIKE ? ESCAPE '\\' OR c.refname LIKE ? ESCAPE '\\')"
        params += (pattern, pattern)

    db.execute(
        f"SELECT COUNT(*) FROM commits c JOIN repos r ON r.id = c.repo_id WHERE {where}",
        params
    )
    total = db.fetchone()[0]

    db.execute(
        f"""
        SELECT r.name AS repo_name, r.path AS repo_path,
               c.branch_kind, c.branch_name, c.refname, c.oid, c.time,
               c.author, c.summary, c.message
        FROM commits c
        JOIN repos r ON r.id = c.repo_id
        WHERE {where}
        ORDER BY c.time IS NULL, c.time DESC, c.id ASC
        LIMIT ? OFFSET ?
        """,
        params + (per_page, offset)
    )
    items = [
        CommitHit(
            repo_name=row['repo_name'],
            repo_path=row['repo_path'],
            branch_kind=row['branch_kind'],
            branch_name=row['branch_name'],
            refname=row['refname'],
            oid=row['oid'],
            time=row['time'],
            author=row['author'],
            summary=row['summary'],
            message=row['message'],
        )
        for row in db.fetchall()
    ]
    return Paged(total=total, page=page, per_page=per_page, items=items)


def list_branch_tips(db: Database, repo_path: str) -> List[BranchTip]:
    """
    Stored branch tips of one repository, newest tip first.

    Raises:
        NotFoundError: The path is not indexed
    """
    db.execute("SELECT id FROM repos WHERE path = ?", (repo_path,))
    row = db.fetchone()
    if row is None:
        raise NotFoundError(f"repository {repo_path}")

    db.execute(
        """
        SELECT kind, name, refname, tip_time
        FROM branch_tips
        WHERE repo_id = ?
        ORDER BY tip_time IS NULL, tip_time DESC, name ASC, refname ASC
        """,
        (row['id'],)
    )
    return [
        BranchTip(kind=r['kind'], name=r['name'], refname=r['refname'], tip_time=r['tip_time'])
        for r in db.fetchall()
    ]


def commit_index_stats(db: Database) -> Dict[str, int]:
    """Counts of repositories with a commit index, branch tips and commits."""
    db.execute("SELECT COUNT(DISTINCT repo_id) FROM branch_tips")
    repos = db.fetchone()[0]
    db.execute("SELECT COUNT(*) FROM branch_tips")
    branches = db.fetchone()[0]
    db.execute("SELECT COUNT(*) FROM commits")
    commits = db.fetchone()[0]
    return {'repos': repos, 'branches': branches, 'commits': commits}


def make_snippet(
    summary: Optional[str],
    message: Optional[str],
    query: str,
    radius: int = SNIPPET_RADIUS,
) -> Optional[str]:
    """
    Excerpt around the first case-insensitive match of query.

    The summary is tried before the message. Up to radius characters are
    kept either side of the match; a cut side is marked with an ellipsis.

    Returns:
        The excerpt, or None if neither text contains the query
    """
    needle = query.lower()
    if not needle:
        return None

    for text in (summary, message):
        if not text:
            continue
        pos = text.lower().find(needle)
        if pos < 0:
            continue
        start = max(0, pos - radius)
        end = min(len(text), pos + len(needle) + radius)
        snippet = text[start:end]
        if start > 0:
            snippet = ELLIPSIS + snippet
        if end < len(text):
            snippet += ELLIPSIS
        return snippet
    return None
