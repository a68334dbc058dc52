"""
Search predicate and pagination helpers for coderoom.

A search is a substring match against a set of named fields. Each field
has a SQL matcher; the enabled matchers are OR'd into one WHERE clause
that both the COUNT query and the page query share, so the total always
agrees with the items.

Rule: when no field is enabled, every field is searched. A query never
searches zero fields.
"""

from dataclasses import dataclass, fields as dataclass_fields
from typing import Dict, List, Tuple

DEFAULT_PER_PAGE = 25
MAX_PER_PAGE = 200

LIKE_ESCAPE = '\\'

# Field name -> SQL condition; '?' is the LIKE pattern
REPO_FIELD_MATCHERS: Dict[str, str] = {
    'name': "r.name LIKE ? ESCAPE '\\'",
    'path': "r.path LIKE ? ESCAPE '\\'",
    'readme': "COALESCE(r.readme_excerpt, '') LIKE ? ESCAPE '\\'",
    'tags': (
        "EXISTS (SELECT 1 FROM repo_tags mrt JOIN tags mt ON mt.id = mrt.tag_id"
        " WHERE mrt.repo_id = r.id AND mt.name LIKE ? ESCAPE '\\')"
    ),
}

COMMIT_FIELD_MATCHERS: Dict[str, str] = {
    'summary': "COALESCE(c.summary, '') LIKE ? ESCAPE '\\'",
    'message': "COALESCE(c.message, '') LIKE ? ESCAPE '\\'",
}


class FieldFlags:
    """Mixin for boolean field toggles with the all-false-means-all rule."""

    def enabled(self) -> List[str]:
        """Names of the fields to search, never empty."""
        names = [f.name for f in dataclass_fields(self)]
        chosen = [n for n in names if getattr(self, n)]
        return chosen or names


@dataclass(frozen=True)
class RepoSearchFields(FieldFlags):
    """Which repository fields a search looks at."""
    name: bool = True
    path: bool = True
    readme: bool = True
    tags: bool = True


@dataclass(frozen=True)
class CommitSearchFields(FieldFlags):
    """Which commit fields a search looks at."""
    summary: bool = True
    message: bool = True


def clamp_paging(page: int, per_page: int) -> Tuple[int, int]:
    """Page is at least 1; per_page is within 1..200."""
    return max(1, int(page)), max(1, min(MAX_PER_PAGE, int(per_page)))


def like_pattern(text: str) -> str:
    """Substring LIKE pattern matching text literally."""
    escaped = (
        text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace('%', LIKE_ESCAPE + '%')
        .replace('_', LIKE_ESCAPE + '_')
    )
    return f"%{escaped}%"


def build_predicate(
    matchers: Dict[str, str],
    enabled: List[str],
    text: str,
) -> Tuple[str, tuple]:
    """
    OR together the matchers for the enabled fields.

    Returns:
        (SQL condition wrapped in parentheses, parameters)
    """
    pattern = like_pattern(text)
    parts = [matchers[name] for name in enabled]
    return '(' + ' OR '.join(parts) + ')', tuple(pattern for _ in parts)
