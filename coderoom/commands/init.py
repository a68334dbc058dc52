"""
Init and info commands for coderoom.
"""

import click

from ..cli_utils import standard_command, add_common_options
from ..config import load_config, save_config, get_config_path, get_roots
from ..database import (
    Database,
    get_db_path,
    get_database_info,
    reset_database,
    commit_index_stats,
)
from ..render import render_key_values


@click.command('init')
@click.option('--reset', is_flag=True, help='Delete the existing index first (tags included)')
@standard_command
def init_handler(reset: bool):
    """
    Create the configuration file and the index database.

    Running it again is harmless; existing settings and data are kept
    unless --reset is given.
    """
    config_path = get_config_path()
    config = load_config()
    if not config_path.exists():
        save_config(config)

    if reset:
        click.confirm("This deletes all indexed repositories and tags. Continue?", abort=True)
        reset_database(config)
    else:
        with Database(config=config):
            pass

    result = {
        'config': str(config_path),
        'database': str(get_db_path(config)),
        'roots': get_roots(config),
    }
    if not result['roots']:
        click.echo("Tip: run 'coderoom scan --root DIR' to index repositories.", err=True)
    return result


@click.command('info')
@add_common_options('pretty')
@standard_command
def info_handler(pretty: bool):
    """Show database location, size and counts."""
    config = load_config()
    info = get_database_info(config)
    if info['exists']:
        with Database(config=config, read_only=True) as db:
            info['indexed_commit_repos'] = commit_index_stats(db)['repos']

    if pretty:
        render_key_values(info, title="Database")
        return None
    return info
