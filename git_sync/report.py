"""Summary of the commits pulled into each repository."""

from rich.console import Console
from rich.markup import escape

from .git_ops import ManagedRepository


def print_change_report(repositories: list[ManagedRepository], console: Console) -> int:
    """
    Print the commits pulled into each repository.

    Repositories without changes are left out. Returns the number of
    repositories printed.
    """
    printed = 0
    for repo in repositories:
        if not repo.changes:
            continue
        if printed:
            console.print()
        console.print(f"[bold]{escape(repo.name)}[/bold]")
        for commit in repo.changes:
            console.print(
                f"  • {escape(commit.subject)} [dim]({escape(commit.author)})[/dim]"
            )
        printed += 1
    return printed
