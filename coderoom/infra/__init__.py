"""
Infrastructure layer for coderoom.

Contains abstractions for external systems:
- GitClient / GitRepo: read-only access to the git object model

These provide clean interfaces that can be mocked for testing.
"""

from .git_client import GitClient, GitRepo, commit_author, commit_summary, is_head_pointer

__all__ = [
    'GitClient',
    'GitRepo',
    'commit_author',
    'commit_summary',
    'is_head_pointer',
]
