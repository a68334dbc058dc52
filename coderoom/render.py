"""
Rendering functions for coderoom output.

This module handles all pretty-printing and table formatting.
Core functions return data, this module makes it human-readable.
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from rich import box
from rich.console import Console
from rich.table import Table

from .database import matched_fields, make_snippet, RepoSearchFields
from .domain import (
    BranchRef,
    CommitDetail,
    CommitHit,
    CommitPage,
    Paged,
    RepoWithTags,
    TagCount,
)

console = Console()


def format_ts(ts: Optional[int]) -> str:
    """Epoch seconds as local time, or an empty string."""
    if ts is None:
        return ""
    return datetime.fromtimestamp(ts).strftime("%Y-%m-%d %H:%M")


def _table(title: Optional[str] = None) -> Table:
    return Table(
        title=title,
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )


def _page_footer(paged: Paged) -> None:
    console.print(
        f"[dim]Page {paged.page}/{max(paged.pages, 1)} "
        f"({paged.total} total, {paged.per_page} per page)[/dim]"
    )


def render_table(headers: List[str], rows: List[List[str]], title: Optional[str] = None) -> None:
    """
    Render a generic table with the given headers and rows.

    Args:
        headers: List of column headers
        rows: List of rows, where each row is a list of values
        title: Optional table title
    """
    if not rows:
        console.print("[yellow]No data to display.[/yellow]")
        return

    table = _table(title)
    for header in headers:
        table.add_column(header)
    for row in rows:
        table.add_row(*[str(val) for val in row])

    console.print(table)


def render_key_values(values: Dict[str, Any], title: Optional[str] = None) -> None:
    """Render a dictionary as a two-column table."""
    render_table(["Key", "Value"], [[k, "" if v is None else v] for k, v in values.items()], title)


def render_repos_table(
    paged: Paged[RepoWithTags],
    title: str = "Repositories",
    query: Optional[str] = None,
    fields: Optional[RepoSearchFields] = None,
) -> None:
    """
    Render a page of repositories.

    With a query, a column shows which fields matched it.
    """
    if not paged.items:
        console.print("[yellow]No repositories found.[/yellow]")
        return

    table = _table(title)
    table.add_column("Name", style="cyan")
    table.add_column("Branch", style="green")
    table.add_column("Last commit")
    table.add_column("Tags", style="blue")
    if query is not None:
        table.add_column("Matched", style="yellow")
    table.add_column("Path", style="dim")

    for item in paged.items:
        repo = item.repo
        row = [
            repo.name,
            repo.default_branch or "",
            format_ts(repo.last_commit_ts),
            ", ".join(item.tags),
        ]
        if query is not None:
            row.append(", ".join(matched_fields(item, query, fields)))
        row.append(repo.path)
        table.add_row(*row)

    console.print(table)
    _page_footer(paged)


def render_tags_table(tags: Iterable[TagCount]) -> None:
    """Render tags with their repository counts."""
    rows = [[t.name, t.count] for t in tags]
    if not rows:
        console.print("[yellow]No tags.[/yellow]")
        return
    render_table(["Tag", "Repos"], rows, title="Tags")


def render_commit_hits_table(paged: Paged[CommitHit], query: str) -> None:
    """Render a page of commit search results with a snippet around the match."""
    if not paged.items:
        console.print("[yellow]No commits found.[/yellow]")
        return

    table = _table("Commits")
    table.add_column("Time")
    table.add_column("Repository", style="cyan")
    table.add_column("Branch", style="green")
    table.add_column("Commit", style="yellow")
    table.add_column("Author")
    table.add_column("Match")

    for hit in paged.items:
        snippet = make_snippet(hit.summary, hit.message, query) or hit.summary or ""
        table.add_row(
            format_ts(hit.time),
            hit.repo_name,
            f"{hit.branch_kind}:{hit.branch_name}",
            hit.oid[:10],
            hit.author or "",
            snippet,
        )

    console.print(table)
    _page_footer(paged)


def render_branches_table(branches: List[BranchRef]) -> None:
    """Render the branches of a repository."""
    render_table(
        ["Kind", "Branch", "Ref"],
        [[b.kind, b.name, b.refname] for b in branches],
        title="Branches",
    )


def render_commits_table(page: CommitPage) -> None:
    """Render a page of live history."""
    if not page.items:
        console.print("[yellow]No commits.[/yellow]")
        return

    table = _table("History")
    table.add_column("Commit", style="yellow")
    table.add_column("Time")
    table.add_column("Author")
    table.add_column("Summary")
    for c in page.items:
        table.add_row(c.oid[:10], format_ts(c.time), c.author, c.summary)

    console.print(table)
    more = ", more follow" if page.has_more else ""
    console.print(f"[dim]Page {page.page} ({page.per_page} per page{more})[/dim]")


def render_commit_detail(detail: CommitDetail) -> None:
    """Render one commit in full."""
    console.print(f"[bold yellow]commit {detail.oid}[/bold yellow]")
    for parent in detail.parents:
        console.print(f"[dim]parent {parent}[/dim]")
    console.print(f"Author: {detail.author} <{detail.email}>")
    console.print(f"Date:   {format_ts(detail.time)}")
    console.print()
    console.print(detail.message.rstrip(), markup=False, highlight=False)


def render_list(values: List[str], title: str) -> None:
    """Render a single-column list."""
    render_table([title], [[v] for v in values])
