"""
Commit index domain objects for coderoom.

BranchTip and CommitRecord are the rows of the commit index, a derived
cache that is always replaced wholesale per repository. The remaining
types describe live, read-only views of repository history.
"""

from dataclasses import dataclass, asdict, field
from typing import Optional, Dict, Any, Tuple, List

LOCAL = 'local'
REMOTE = 'remote'


@dataclass(frozen=True)
class BranchTip:
    """A branch retained in the commit index and the time of its tip commit."""
    kind: str
    name: str
    refname: str
    tip_time: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class CommitRecord:
    """
    One commit as seen from one branch.

    The same oid may appear once per branch that reaches it; the branch
    is part of what a commit search shows.
    """
    refname: str
    branch_kind: str
    branch_name: str
    oid: str
    time: Optional[int] = None
    author: Optional[str] = None
    email: Optional[str] = None
    summary: Optional[str] = None
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class CommitHit:
    """A commit search result joined with its repository identity."""
    repo_name: str
    repo_path: str
    branch_kind: str
    branch_name: str
    refname: str
    oid: str
    time: Optional[int] = None
    author: Optional[str] = None
    summary: Optional[str] = None
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class BranchRef:
    """A branch reference as listed live from a repository."""
    kind: str
    name: str
    refname: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class CommitSummary:
    """One line of a live history listing."""
    oid: str
    summary: str
    author: str
    email: str
    time: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class CommitPage:
    """A page of live history, with a flag telling whether more follows."""
    page: int
    per_page: int
    has_more: bool
    items: List[CommitSummary] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'page': self.page,
            'per_page': self.per_page,
            'has_more': self.has_more,
            'items': [c.to_dict() for c in self.items],
        }


@dataclass(frozen=True)
class CommitDetail:
    """Full details of a single commit."""
    oid: str
    summary: str
    message: str
    author: str
    email: str
    time: int
    parents: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        result['parents'] = list(self.parents)
        return result
