#!/usr/bin/env python3

import click

from coderoom.commands.init import init_handler, info_handler
from coderoom.commands.scan import scan_handler, scan_all_handler, prune_handler
from coderoom.commands.repos import list_handler, search_handler, open_handler
from coderoom.commands.tag import tag_cmd
from coderoom.commands.config import roots_cmd, ignores_cmd
from coderoom.commands.commits import (
    commit_index_handler,
    commit_search_handler,
    branches_handler,
    commits_handler,
    show_handler,
)


@click.group()
@click.version_option(package_name='coderoom')
def cli():
    """coderoom - Local, offline index of your git repositories.

    Scans directory trees for repositories, keeps their metadata and your
    tags in a SQLite database, and searches repositories and commits.
    Output is JSONL unless --pretty is given.
    """
    pass


# Index maintenance
cli.add_command(init_handler, name='init')
cli.add_command(info_handler, name='info')
cli.add_command(scan_handler, name='scan')
cli.add_command(scan_all_handler, name='scan-all')
cli.add_command(prune_handler, name='prune')

# Repositories
cli.add_command(list_handler, name='list')
cli.add_command(search_handler, name='search')
cli.add_command(open_handler, name='open')

# Command groups
cli.add_command(tag_cmd)
cli.add_command(roots_cmd)
cli.add_command(ignores_cmd)

# Commits
cli.add_command(commit_index_handler, name='commit-index')
cli.add_command(commit_search_handler, name='commit-search')
cli.add_command(branches_handler, name='branches')
cli.add_command(commits_handler, name='commits')
cli.add_command(show_handler, name='show')


def main():
    cli()

if __name__ == "__main__":
    main()
