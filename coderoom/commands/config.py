"""
Configuration commands for coderoom: scan roots and ignored directory names.
"""

import click

from ..cli_utils import standard_command, add_common_options
from ..config import (
    load_config,
    get_roots,
    add_root,
    remove_root,
    get_ignore_dir_names,
    add_ignore_dir_name,
    remove_ignore_dir_name,
    reset_ignore_dir_names,
)
from ..render import render_list


@click.group('roots')
def roots_cmd():
    """Manage the directories scanned by 'scan-all'."""
    pass


@roots_cmd.command('list')
@add_common_options('pretty')
@standard_command
def roots_list(pretty: bool):
    """List configured roots."""
    roots = get_roots(load_config())
    if pretty:
        render_list(roots, title="Roots")
        return None
    return [{'root': r} for r in roots]


@roots_cmd.command('add')
@click.argument('root', type=click.Path(exists=True, file_okay=False))
@standard_command
def roots_add(root: str):
    """Add ROOT to the configured roots."""
    canonical, added = add_root(root)
    return {'root': canonical, 'added': added}


@roots_cmd.command('remove')
@click.argument('root')
@standard_command
def roots_remove(root: str):
    """Remove ROOT from the configured roots. Indexed repos are kept."""
    canonical, removed = remove_root(root)
    return {'root': canonical, 'removed': removed}


@click.group('ignores')
def ignores_cmd():
    """Manage directory names the scanner skips."""
    pass


@ignores_cmd.command('list')
@add_common_options('pretty')
@standard_command
def ignores_list(pretty: bool):
    """List ignored directory names."""
    names = get_ignore_dir_names(load_config())
    if pretty:
        render_list(names, title="Ignored directory names")
        return None
    return [{'name': n} for n in names]


@ignores_cmd.command('add')
@click.argument('name')
@standard_command
def ignores_add(name: str):
    """
    Skip directories called NAME while scanning.

    \b
    Examples:
        coderoom ignores add .cargo_home
    """
    added = add_ignore_dir_name(name)
    return {'name': name.strip(), 'added': added}


@ignores_cmd.command('remove')
@click.argument('name')
@standard_command
def ignores_remove(name: str):
    """Stop skipping directories called NAME."""
    removed = remove_ignore_dir_name(name)
    return {'name': name.strip(), 'removed': removed}


@ignores_cmd.command('reset')
@standard_command
def ignores_reset():
    """Restore the default ignore list."""
    return [{'name': n} for n in reset_ignore_dir_names()]
