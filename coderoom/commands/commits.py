"""
Commit index and history commands for coderoom.

'commit-index' and 'commit-search' work on the stored commit index.
'branches', 'commits' and 'show' read a repository's history live.
"""

from typing import Optional

import click

from ..cli_utils import standard_command, add_common_options
from ..config import load_config, set_commit_index_limits
from ..database import (
    Database,
    CommitSearchFields,
    search_commits,
    resolve_repo_path,
    make_snippet,
)
from ..exceptions import NotFoundError
from ..render import (
    render_key_values,
    render_commit_hits_table,
    render_branches_table,
    render_commits_table,
    render_commit_detail,
)
from ..services.commit_index_service import (
    clamp_branches_limit,
    clamp_commits_per_branch,
    list_branches,
    list_commits,
    commit_detail,
)
from ..services.index_service import rebuild_commit_index


def _resolve(config, repo: str) -> str:
    with Database(config=config) as db:
        path = resolve_repo_path(db, repo)
    if path is None:
        raise NotFoundError(f"repository matching {repo!r}")
    return path


@click.command('commit-index')
@click.option('--all', 'all_repos', is_flag=True, help='Rebuild for every indexed repository (default)')
@click.option('--repo', help='Rebuild for one repository (path or name substring)')
@click.option('--branches', type=int, help='Most recent branches to keep per repository (1-200, saved)')
@click.option('--commits-per-branch', type=int, help='Commits to keep per branch (1-500, saved)')
@add_common_options('pretty')
@standard_command
def commit_index_handler(
    all_repos: bool,
    repo: Optional[str],
    branches: Optional[int],
    commits_per_branch: Optional[int],
    pretty: bool,
):
    """
    Build or rebuild the commit index used by 'commit-search'.

    \b
    Examples:
        coderoom commit-index
        coderoom commit-index --repo parser --branches 5
        coderoom commit-index --commits-per-branch 200 --pretty
    """
    if branches is not None:
        branches = clamp_branches_limit(branches)
    if commits_per_branch is not None:
        commits_per_branch = clamp_commits_per_branch(commits_per_branch)
    branches_limit, per_branch = set_commit_index_limits(branches, commits_per_branch)

    config = load_config()
    targets = None
    if repo and not all_repos:
        targets = [_resolve(config, repo)]

    with Database(config=config) as db:
        if pretty:
            from rich.progress import Progress, SpinnerColumn, TextColumn
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                TextColumn("{task.completed} repos"),
            ) as progress:
                task = progress.add_task("Indexing commits...", total=None)
                result = rebuild_commit_index(
                    db, targets,
                    branches_limit=branches_limit,
                    commits_per_branch=per_branch,
                    progress=lambda _path: progress.update(task, advance=1),
                )
        else:
            result = rebuild_commit_index(
                db, targets, branches_limit=branches_limit, commits_per_branch=per_branch
            )

    stats = result.to_dict()
    stats['branches_limit'] = clamp_branches_limit(branches_limit)
    stats['commits_per_branch'] = clamp_commits_per_branch(per_branch)
    if pretty:
        render_key_values(stats, title="Commit index")
        return None
    return stats


@click.command('commit-search')
@click.argument('query')
@click.option('--branch', help='Only commits on branches whose name contains this')
@click.option('--in-summary', is_flag=True, help='Search commit summaries')
@click.option('--in-message', is_flag=True, help='Search full commit messages')
@add_common_options('page', 'per_page', 'pretty')
@standard_command
def commit_search_handler(
    query: str,
    branch: Optional[str],
    in_summary: bool,
    in_message: bool,
    page: int,
    per_page: int,
    pretty: bool,
):
    """
    Search indexed commits across all repositories.

    Without --in-summary or --in-message both are searched.

    \b
    Examples:
        coderoom commit-search "fix race"
        coderoom commit-search timeout --branch release --pretty
    """
    fields = CommitSearchFields(summary=in_summary, message=in_message)
    config = load_config()
    with Database(config=config) as db:
        paged = search_commits(db, query, branch=branch, fields=fields, page=page, per_page=per_page)

    if pretty:
        render_commit_hits_table(paged, query)
        return None

    def generate():
        for hit in paged.items:
            record = hit.to_dict()
            record['snippet'] = make_snippet(hit.summary, hit.message, query)
            yield record
        yield paged.to_dict(include_items=False)
    return generate()


@click.command('branches')
@click.argument('repo')
@add_common_options('pretty')
@standard_command
def branches_handler(repo: str, pretty: bool):
    """List the local and remote branches of REPO."""
    path = _resolve(load_config(), repo)
    branches = list_branches(path)
    if pretty:
        render_branches_table(branches)
        return None
    return [b.to_dict() for b in branches]


@click.command('commits')
@click.argument('repo')
@click.argument('ref')
@click.option('--page', type=int, default=1, show_default=True, help='Page number (1-based)')
@click.option('--per-page', type=int, default=50, show_default=True, help='Commits per page (max 200)')
@add_common_options('pretty')
@standard_command
def commits_handler(repo: str, ref: str, page: int, per_page: int, pretty: bool):
    """
    Show history of REF in REPO, newest first.

    \b
    Examples:
        coderoom commits parser refs/heads/main
        coderoom commits parser origin/dev --page 2
    """
    path = _resolve(load_config(), repo)
    result = list_commits(path, ref, page=page, per_page=per_page)
    if pretty:
        render_commits_table(result)
        return None
    return result.to_dict()


@click.command('show')
@click.argument('repo')
@click.argument('oid')
@add_common_options('pretty')
@standard_command
def show_handler(repo: str, oid: str, pretty: bool):
    """Show one commit of REPO in full."""
    path = _resolve(load_config(), repo)
    detail = commit_detail(path, oid)
    if pretty:
        render_commit_detail(detail)
        return None
    return detail.to_dict()
