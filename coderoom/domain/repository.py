"""
Repository domain objects for coderoom.

RepoMeta is what a scan produces for one repository root; RepoRow is what
the index stores for it. Both are immutable and serializable for JSONL
output.
"""

from dataclasses import dataclass, field, asdict
from typing import Optional, Dict, Any, Tuple, Generic, TypeVar, List

T = TypeVar('T')


@dataclass(frozen=True)
class RepoMeta:
    """
    Metadata extracted from one repository root during a scan.

    The path is canonical (symlinks resolved) and is the identity of the
    repository in the index. VCS-derived fields are None when the
    repository could not be opened or the value does not exist.
    """
    path: str
    name: str
    last_scan_ts: int
    default_branch: Optional[str] = None
    last_commit_ts: Optional[int] = None
    readme_excerpt: Optional[str] = None
    origin_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class RepoRow:
    """An indexed repository as stored in the repos table."""
    id: int
    path: str
    name: str
    last_scan_ts: int
    default_branch: Optional[str] = None
    last_commit_ts: Optional[int] = None
    readme_excerpt: Optional[str] = None
    origin_url: Optional[str] = None
    last_access_ts: Optional[int] = None

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> 'RepoRow':
        """Build from a database row (sqlite3.Row or dict)."""
        return cls(
            id=record['id'],
            path=record['path'],
            name=record['name'],
            last_scan_ts=record['last_scan_ts'],
            default_branch=record['default_branch'],
            last_commit_ts=record['last_commit_ts'],
            readme_excerpt=record['readme_excerpt'],
            origin_url=record['origin_url'],
            last_access_ts=record['last_access_ts'],
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class RepoWithTags:
    """An indexed repository together with its tag names."""
    repo: RepoRow
    tags: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        result = self.repo.to_dict()
        result['tags'] = list(self.tags)
        return result


@dataclass(frozen=True)
class TagCount:
    """A tag name and the number of repositories it labels."""
    name: str
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name, 'count': self.count}


@dataclass(frozen=True)
class Paged(Generic[T]):
    """
    One page of a paginated query.

    total is the size of the full filtered result set, independent of
    which page was requested.
    """
    total: int
    page: int
    per_page: int
    items: List[T] = field(default_factory=list)

    @property
    def pages(self) -> int:
        """Number of pages needed to show all results."""
        return (self.total + self.per_page - 1) // self.per_page if self.total else 0

    def to_dict(self, include_items: bool = True) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            'total': self.total,
            'page': self.page,
            'per_page': self.per_page,
            'pages': self.pages,
        }
        if include_items:
            result['items'] = [item.to_dict() for item in self.items]
        return result
