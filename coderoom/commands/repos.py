"""
Repository listing, search and open commands for coderoom.
"""

from typing import Optional

import click

from ..cli_utils import standard_command, add_common_options
from ..config import load_config
from ..database import (
    Database,
    RepoSearchFields,
    list_repos,
    search_repos,
    matched_fields,
)
from ..render import render_repos_table
from ..services.index_service import open_repo


@click.command('list')
@click.option('--tag', help='Only repositories carrying this tag')
@click.option('--recent', is_flag=True, help='Most recently opened first')
@add_common_options('page', 'per_page', 'pretty')
@standard_command
def list_handler(tag: Optional[str], recent: bool, page: int, per_page: int, pretty: bool):
    """
    List indexed repositories.

    Output is one JSON object per repository; the last line holds the
    paging totals.

    \b
    Examples:
        coderoom list
        coderoom list --tag work --recent --pretty
        coderoom list --page 2 --per-page 50
    """
    config = load_config()
    with Database(config=config) as db:
        paged = list_repos(db, tag=tag, recent=recent, page=page, per_page=per_page)

    if pretty:
        render_repos_table(paged, title=f"Repositories tagged {tag}" if tag else "Repositories")
        return None

    def generate():
        for item in paged.items:
            yield item.to_dict()
        yield paged.to_dict(include_items=False)
    return generate()


@click.command('search')
@click.argument('query')
@click.option('--in-name', is_flag=True, help='Search repository names')
@click.option('--in-path', is_flag=True, help='Search repository paths')
@click.option('--in-readme', is_flag=True, help='Search README excerpts')
@click.option('--in-tags', is_flag=True, help='Search tag names')
@add_common_options('page', 'per_page', 'pretty')
@standard_command
def search_handler(
    query: str,
    in_name: bool,
    in_path: bool,
    in_readme: bool,
    in_tags: bool,
    page: int,
    per_page: int,
    pretty: bool,
):
    """
    Search repositories by name, path, README excerpt and tags.

    Without any --in-* flag every field is searched.

    \b
    Examples:
        coderoom search parser
        coderoom search rust --in-tags --in-readme --pretty
    """
    fields = RepoSearchFields(name=in_name, path=in_path, readme=in_readme, tags=in_tags)
    config = load_config()
    with Database(config=config) as db:
        paged = search_repos(db, query, fields=fields, page=page, per_page=per_page)

    if pretty:
        render_repos_table(paged, title=f"Search: {query}", query=query, fields=fields)
        return None

    def generate():
        for item in paged.items:
            record = item.to_dict()
            record['matched'] = matched_fields(item, query, fields)
            yield record
        yield paged.to_dict(include_items=False)
    return generate()


@click.command('open')
@click.argument('repo')
@standard_command
def open_handler(repo: str):
    """
    Record an access to a repository and print its path.

    REPO is an indexed path or a substring of a repository name. Meant for
    shell integration, e.g. cd "$(coderoom open myproject)".
    """
    config = load_config()
    with Database(config=config) as db:
        path = open_repo(db, repo)

    click.echo(path)
    return None
