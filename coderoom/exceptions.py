"""
Exception types raised by the coderoom core.

Transient conditions (unreadable directory entries, missing READMEs,
repositories that cannot be opened during a scan) are never raised; they
show up as absent data. Everything here aborts the operation that raised it.
"""


class CoderoomError(Exception):
    """Base error for coderoom operations."""
    pass


class NotFoundError(CoderoomError):
    """A repository path is not in the index, or nothing matched a lookup."""

    def __init__(self, what: str) -> None:
        super().__init__(f"Not found: {what}")
        self.what = what


class ConfigError(CoderoomError):
    """Configuration could not be written or holds an unusable value."""
    pass


class GitError(CoderoomError):
    """Base error for reading repository history."""
    pass


class RepositoryOpenError(GitError):
    """Path could not be opened as a git repository."""

    def __init__(self, path: str, reason: str = "") -> None:
        message = f"Cannot open repository: {path}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)
        self.path = path


class RefNotFoundError(GitError):
    """Reference name could not be resolved to a commit."""

    def __init__(self, ref: str) -> None:
        super().__init__(f"Reference not found: {ref}")
        self.ref = ref


class CommitNotFoundError(GitError):
    """Commit id is malformed or does not exist in the repository."""

    def __init__(self, oid: str) -> None:
        super().__init__(f"Commit not found: {oid}")
        self.oid = oid
