"""
Tag management commands for coderoom.

Tags live in the database only. A tag disappears once the last
repository carrying it is untagged or pruned.
"""

from typing import Optional

import click

from ..cli_utils import standard_command, add_common_options
from ..config import load_config
from ..database import (
    Database,
    add_tag,
    remove_tag,
    list_tags_with_counts,
    list_repo_tags,
    resolve_repo_path,
)
from ..exceptions import NotFoundError
from ..render import render_tags_table, render_list


def _resolve(db: Database, repo: str) -> str:
    path = resolve_repo_path(db, repo)
    if path is None:
        raise NotFoundError(f"repository matching {repo!r}")
    return path


@click.group('tag')
def tag_cmd():
    """Manage repository tags."""
    pass


@tag_cmd.command('add')
@click.option('--repo', required=True, help='Repository path or name substring')
@click.argument('tag')
@standard_command
def tag_add(repo: str, tag: str):
    """
    Add TAG to a repository.

    \b
    Examples:
        coderoom tag add --repo ~/src/parser work
    """
    config = load_config()
    with Database(config=config) as db:
        path = _resolve(db, repo)
        added = add_tag(db, path, tag)
    return {'path': path, 'tag': tag.strip(), 'added': added}


@tag_cmd.command('remove')
@click.option('--repo', required=True, help='Repository path or name substring')
@click.argument('tag')
@standard_command
def tag_remove(repo: str, tag: str):
    """Remove TAG from a repository."""
    config = load_config()
    with Database(config=config) as db:
        path = _resolve(db, repo)
        removed = remove_tag(db, path, tag)
    return {'path': path, 'tag': tag.strip(), 'removed': removed}


@tag_cmd.command('list')
@click.option('--repo', help='Only the tags of this repository')
@add_common_options('pretty')
@standard_command
def tag_list(repo: Optional[str], pretty: bool):
    """
    List tags with their repository counts, or the tags of one repository.
    """
    config = load_config()
    with Database(config=config) as db:
        if repo:
            path = _resolve(db, repo)
            names = list_repo_tags(db, path)
            if pretty:
                render_list(names, title=f"Tags of {path}")
                return None
            return [{'path': path, 'tag': name} for name in names]

        counts = list_tags_with_counts(db)

    if pretty:
        render_tags_table(counts)
        return None
    return [t.to_dict() for t in counts]
