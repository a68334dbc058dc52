"""
Scan commands for coderoom.

Populates the SQLite database with repository metadata. Scans are
incremental: repositories are upserted by path and nothing outside the
scanned roots is touched.
"""

from typing import Optional

import click

from ..cli_utils import standard_command, add_common_options
from ..config import (
    load_config,
    add_root,
    get_roots,
    get_ignore_dir_names,
)
from ..database import Database, get_repo_count, prune_missing_paths
from ..exit_codes import NoRootsConfiguredError
from ..render import render_key_values
from ..services.index_service import scan_roots, ScanResult


def _run_scan(config, roots, max_depth, prune, pretty) -> ScanResult:
    ignore = get_ignore_dir_names(config)
    with Database(config=config) as db:
        if pretty:
            from rich.progress import Progress, SpinnerColumn, TextColumn
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                TextColumn("{task.completed} repos"),
            ) as progress:
                task = progress.add_task("Scanning...", total=None)
                result = scan_roots(
                    db, roots,
                    max_depth=max_depth,
                    ignore_dir_names=ignore,
                    prune=prune,
                    progress=lambda _path: progress.update(task, advance=1),
                )
        else:
            result = scan_roots(db, roots, max_depth=max_depth, ignore_dir_names=ignore, prune=prune)
    return result


@click.command('scan')
@click.option('--root', required=True, type=click.Path(exists=True, file_okay=False),
              help='Directory to scan for git repositories')
@click.option('--max-depth', type=click.IntRange(min=0), help='Maximum directory depth below the root')
@click.option('--prune', is_flag=True, help='Remove indexed repos under the root that were not found')
@add_common_options('pretty')
@standard_command
def scan_handler(root: str, max_depth: Optional[int], prune: bool, pretty: bool):
    """
    Scan one root directory and index every repository under it.

    The root is remembered in the configuration for 'scan-all'.

    \b
    Examples:
        coderoom scan --root ~/src
        coderoom scan --root ~/src --max-depth 3 --prune
    """
    config = load_config()
    canonical, _ = add_root(root)
    result = _run_scan(config, [canonical], max_depth, prune, pretty)

    if pretty:
        render_key_values(result.to_dict(), title="Scan")
        return None
    return result.to_dict()


@click.command('scan-all')
@click.option('--max-depth', type=click.IntRange(min=0), help='Maximum directory depth below each root')
@click.option('--prune', is_flag=True, help='Remove indexed repos under each root that were not found')
@add_common_options('pretty')
@standard_command
def scan_all_handler(max_depth: Optional[int], prune: bool, pretty: bool):
    """
    Scan every configured root.

    \b
    Examples:
        coderoom scan-all
        coderoom scan-all --prune --pretty
    """
    config = load_config()
    roots = get_roots(config)
    if not roots:
        raise NoRootsConfiguredError()

    result = _run_scan(config, roots, max_depth, prune, pretty)

    if pretty:
        render_key_values(result.to_dict(), title="Scan")
        return None
    return result.to_dict()


@click.command('prune')
@add_common_options('pretty')
@standard_command
def prune_handler(pretty: bool):
    """Remove indexed repositories whose path no longer exists."""
    config = load_config()
    with Database(config=config) as db:
        removed = prune_missing_paths(db)
        remaining = get_repo_count(db)

    stats = {'pruned': removed, 'total_repos': remaining}
    if pretty:
        render_key_values(stats, title="Prune")
        return None
    return stats
