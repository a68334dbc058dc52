"""
Git client infrastructure for coderoom.

Provides a read-only abstraction over the git object model (pygit2).
All repository reads go through this client, making them:
- Easy to mock for testing
- Consistent in error handling
- Isolated from business logic

Every call here blocks on disk I/O.
"""

import logging
from pathlib import Path
from typing import Optional, List, Iterator, Tuple, Union

import pygit2
from pygit2.enums import RepositoryOpenFlag, SortMode

from ..domain.commit import LOCAL, REMOTE
from ..exceptions import RepositoryOpenError, RefNotFoundError, CommitNotFoundError

logger = logging.getLogger(__name__)

# (kind, short name, full ref name, tip oid or None)
BranchEntry = Tuple[str, str, str, Optional[pygit2.Oid]]


def is_head_pointer(name: str) -> bool:
    """True for symbolic remote HEAD refs such as 'origin/HEAD'."""
    return name == 'HEAD' or name.endswith('/HEAD')


def commit_summary(message: Optional[str]) -> Optional[str]:
    """
    First paragraph of a commit message folded onto one line.

    Returns None for an empty message.
    """
    if not message:
        return None
    lines = []
    for line in message.strip().splitlines():
        if not line.strip():
            break
        lines.append(line.strip())
    summary = ' '.join(lines)
    return summary or None


class GitRepo:
    """
    An open repository.

    Owns the pygit2.Repository and exposes the handful of facts coderoom
    reads: remotes, HEAD, branches, commits and history walks.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = str(path)
        try:
            self._repo = pygit2.Repository(self.path, flags=RepositoryOpenFlag.NO_SEARCH)
        except (pygit2.GitError, KeyError, ValueError, OSError) as e:
            raise RepositoryOpenError(self.path, str(e)) from e

    @property
    def repo(self) -> pygit2.Repository:
        return self._repo

    # Remotes

    def remote_names(self) -> List[str]:
        """Remote names in the backend's enumeration order."""
        return [remote.name for remote in self._repo.remotes]

    def remote_url(self, name: str) -> Optional[str]:
        try:
            return self._repo.remotes[name].url
        except (KeyError, ValueError, pygit2.GitError):
            return None

    def origin_url(self) -> Optional[str]:
        """
        URL of the 'origin' remote, falling back to the first remote
        (in enumeration order) that has a URL.
        """
        url = self.remote_url('origin')
        if url:
            return url
        for name in self.remote_names():
            url = self.remote_url(name)
            if url:
                return url
        return None

    # HEAD

    def head_branch(self) -> Optional[str]:
        """Short name of the branch HEAD points at, None if unborn or detached."""
        if self._repo.head_is_unborn or self._repo.head_is_detached:
            return None
        return self._repo.head.shorthand

    def head_commit_time(self) -> Optional[int]:
        if self._repo.head_is_unborn:
            return None
        commit = self._repo.head.peel(pygit2.Commit)
        return commit.commit_time

    # Branches

    def branches(self) -> List[BranchEntry]:
        """
        Local then remote branches, skipping symbolic remote HEAD pointers.

        The tip oid is None when the branch target cannot be resolved.
        """
        result: List[BranchEntry] = []
        for kind, collection in ((LOCAL, self._repo.branches.local),
                                 (REMOTE, self._repo.branches.remote)):
            for name in collection:
                if kind == REMOTE and is_head_pointer(name):
                    continue
                try:
                    branch = collection[name]
                except (KeyError, pygit2.GitError):
                    logger.debug(f"Skipping unreadable branch {name} in {self.path}")
                    continue
                result.append((kind, name, branch.name, self._branch_target(branch)))
        return result

    def _branch_target(self, branch: pygit2.Branch) -> Optional[pygit2.Oid]:
        try:
            return branch.resolve().target
        except (KeyError, pygit2.GitError):
            return None

    # Commits

    def commit_time(self, oid: Optional[pygit2.Oid]) -> Optional[int]:
        """Commit time of oid, None when it does not resolve to a commit."""
        if oid is None:
            return None
        try:
            obj = self._repo.get(oid)
        except (ValueError, pygit2.GitError):
            return None
        if isinstance(obj, pygit2.Commit):
            return obj.commit_time
        return None

    def get_commit(self, oid: str) -> pygit2.Commit:
        """Look up a commit by its hex id."""
        try:
            obj = self._repo.get(oid)
        except (ValueError, TypeError, pygit2.GitError) as e:
            raise CommitNotFoundError(oid) from e
        if not isinstance(obj, pygit2.Commit):
            raise CommitNotFoundError(oid)
        return obj

    def resolve(self, refname: str) -> pygit2.Oid:
        """Resolve a ref name or revspec to a commit id."""
        try:
            obj = self._repo.revparse_single(refname)
            commit = obj.peel(pygit2.Commit)
        except (KeyError, ValueError, pygit2.GitError) as e:
            raise RefNotFoundError(refname) from e
        return commit.id

    def walk(self, start: pygit2.Oid) -> Iterator[pygit2.Commit]:
        """
        Lazily walk history from start, most recent commit first.

        Callers stop iterating when they have enough.
        """
        return iter(self._repo.walk(start, SortMode.TIME))


class GitClient:
    """
    Factory for open repositories.

    Services take a GitClient so tests can substitute one that hands out
    fakes instead of real repositories.

    Example:
        client = GitClient()
        repo = client.open("/path/to/repo")
        print(repo.head_branch())
    """

    def open(self, path: Union[str, Path]) -> GitRepo:
        """Open a repository, raising RepositoryOpenError on failure."""
        return GitRepo(path)

    def is_git_repo(self, path: Union[str, Path]) -> bool:
        """Check if path directly contains a .git entry."""
        return (Path(path) / '.git').exists()


def commit_author(commit: pygit2.Commit) -> Tuple[Optional[str], Optional[str]]:
    """
    (name, email) of a commit's author.

    pygit2 raises while decoding malformed author lines; those become
    (None, None).
    """
    try:
        sig = commit.author
        return sig.name or None, sig.email or None
    except (ValueError, LookupError, pygit2.GitError):
        return None, None
