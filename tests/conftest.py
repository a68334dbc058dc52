"""
Shared fixtures for coderoom tests.

Every test gets its own config file and database path through the
CODEROOM_CONFIG and CODEROOM_DB environment variables, so nothing touches
the real ~/.coderoom directory.
"""

from pathlib import Path
from typing import List, Optional

import pygit2
import pytest

from coderoom.database import Database

AUTHOR_NAME = "Test Author"
AUTHOR_EMAIL = "author@example.com"


class RepoBuilder:
    """Builds real git repositories with commits at fixed times."""

    def __init__(self, path: Path, initial_head: str = 'main'):
        path.mkdir(parents=True, exist_ok=True)
        self.path = path
        self.repo = pygit2.init_repository(str(path), initial_head=initial_head)

    def commit(
        self,
        message: str,
        when: int,
        ref: str = 'HEAD',
        parents: Optional[List[pygit2.Oid]] = None,
        filename: str = 'file.txt',
        content: Optional[str] = None,
    ) -> pygit2.Oid:
        """Write filename and commit it; parents default to the current HEAD."""
        (self.path / filename).write_text(content if content is not None else message)
        self.repo.index.add(filename)
        self.repo.index.write()
        tree = self.repo.index.write_tree()
        sig = pygit2.Signature(AUTHOR_NAME, AUTHOR_EMAIL, when, 0)
        if parents is None:
            parents = [] if self.repo.head_is_unborn else [self.repo.head.target]
        return self.repo.create_commit(ref, sig, sig, message, tree, parents)

    def branch(self, name: str, oid: pygit2.Oid) -> None:
        self.repo.create_reference(f'refs/heads/{name}', oid)

    def remote_branch(self, remote: str, name: str, oid: pygit2.Oid) -> None:
        self.repo.create_reference(f'refs/remotes/{remote}/{name}', oid)

    def remote_head(self, remote: str, target: str) -> None:
        """Symbolic refs/remotes/<remote>/HEAD pointing at another remote branch."""
        self.repo.create_reference(
            f'refs/remotes/{remote}/HEAD', f'refs/remotes/{remote}/{target}'
        )

    def add_remote(self, name: str, url: str) -> None:
        self.repo.remotes.create(name, url)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Point config and database at per-test files."""
    config_path = tmp_path / 'coderoom-home' / 'config.toml'
    db_path = tmp_path / 'coderoom-home' / 'coderoom.db'
    monkeypatch.setenv('CODEROOM_CONFIG', str(config_path))
    monkeypatch.setenv('CODEROOM_DB', str(db_path))
    return {'config': config_path, 'db': db_path}


@pytest.fixture
def repo_builder():
    """The RepoBuilder class; call it with a directory path."""
    return RepoBuilder


@pytest.fixture
def db(tmp_path):
    """An open Database on a fresh file."""
    with Database(db_path=tmp_path / 'test.db') as database:
        yield database
