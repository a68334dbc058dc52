"""
Tag operations for coderoom.

Tags are user labels shared between repositories. A tag exists only
while at least one repository carries it.
"""

import logging
from typing import List

from ..domain.repository import TagCount
from ..exceptions import NotFoundError
from .connection import Database

logger = logging.getLogger(__name__)


def normalize_tag(name: str) -> str:
    """Strip surrounding whitespace; an empty result is rejected."""
    tag = name.strip()
    if not tag:
        raise ValueError("Tag name cannot be empty")
    return tag


def _repo_id_or_raise(db: Database, path: str) -> int:
    db.execute("SELECT id FROM repos WHERE path = ?", (path,))
    row = db.fetchone()
    if row is None:
        raise NotFoundError(f"repository {path}")
    return row['id']


def _ensure_tag(db: Database, tag: str) -> int:
    db.execute("INSERT OR IGNORE INTO tags (name) VALUES (?)", (tag,))
    db.execute("SELECT id FROM tags WHERE name = ?", (tag,))
    return db.fetchone()['id']


def add_tag(db: Database, path: str, name: str) -> bool:
    """
    Attach a tag to an indexed repository.

    Args:
        db: Database connection
        path: Indexed repository path
        name: Tag name (surrounding whitespace is stripped)

    Returns:
        True if the link is new, False if the repository already had it

    Raises:
        ValueError: The tag name is empty
        NotFoundError: The path is not indexed
    """
    tag = normalize_tag(name)
    repo_id = _repo_id_or_raise(db, path)
    tag_id = _ensure_tag(db, tag)
    db.execute(
        "INSERT OR IGNORE INTO repo_tags (repo_id, tag_id) VALUES (?, ?)",
        (repo_id, tag_id)
    )
    added = db.rowcount > 0
    if added:
        logger.debug(f"Tagged {path} with {tag}")
    return added


def remove_tag(db: Database, path: str, name: str) -> bool:
    """
    Detach a tag from a repository.

    Removing a tag the repository does not carry is not an error. The tag
    itself is deleted once no repository carries it.

    Returns:
        True if a link was removed

    Raises:
        ValueError: The tag name is empty
        NotFoundError: The path is not indexed
    """
    tag = normalize_tag(name)
    repo_id = _repo_id_or_raise(db, path)
    db.execute(
        """
        DELETE FROM repo_tags
        WHERE repo_id = ? AND tag_id = (SELECT id FROM tags WHERE name = ?)
        """,
        (repo_id, tag)
    )
    removed = db.rowcount > 0
    prune_orphan_tags(db)
    return removed


def list_tags(db: Database) -> List[str]:
    """All tag names, alphabetically."""
    db.execute("SELECT name FROM tags ORDER BY name ASC")
    return [row['name'] for row in db.fetchall()]


def list_tags_with_counts(db: Database) -> List[TagCount]:
    """Tags in use with the number of repositories carrying each."""
    db.execute(
        """
        SELECT t.name, COUNT(rt.repo_id) AS count
        FROM tags t
        JOIN repo_tags rt ON rt.tag_id = t.id
        GROUP BY t.id
        HAVING COUNT(rt.repo_id) > 0
        ORDER BY t.name ASC
        """
    )
    return [TagCount(name=row['name'], count=row['count']) for row in db.fetchall()]


def list_repo_tags(db: Database, path: str) -> List[str]:
    """
    Tags of one repository, alphabetically.

    Raises:
        NotFoundError: The path is not indexed
    """
    repo_id = _repo_id_or_raise(db, path)
    db.execute(
        """
        SELECT t.name
        FROM tags t
        JOIN repo_tags rt ON rt.tag_id = t.id
        WHERE rt.repo_id = ?
        ORDER BY t.name ASC
        """,
        (repo_id,)
    )
    return [row['name'] for row in db.fetchall()]


def prune_orphan_tags(db: Database) -> int:
    """
    Delete tags no repository carries.

    Returns:
        Number of tags deleted
    """
    db.execute(
        "DELETE FROM tags WHERE id NOT IN (SELECT DISTINCT tag_id FROM repo_tags)"
    )
    return db.rowcount
