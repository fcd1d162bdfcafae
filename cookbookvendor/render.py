"""
Rendering functions for cookbookvendor output.

This module handles all pretty-printing and table formatting.
Commands return data, this module makes it human-readable.
"""

from rich.table import Table
from rich.console import Console
from rich import box
from typing import List, Dict, Any

console = Console()

STATUS_STYLES = {
    "installed": "green",
    "up_to_date": "dim",
    "conflict": "bold red",
}


def render_install_table(results: List[Dict[str, Any]]) -> None:
    """
    Render install results as a pretty table.

    Args:
        results: InstallResult dictionaries
    """
    if not results:
        console.print("[yellow]Nothing installed.[/yellow]")
        return

    table = Table(
        title="Cookbook Install",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )

    table.add_column("Cookbook", style="cyan")
    table.add_column("Source", style="blue")
    table.add_column("Ref")
    table.add_column("SHA", style="dim")
    table.add_column("Status")
    table.add_column("Path", style="dim")

    for result in results:
        status = result.get('status', '')
        style = STATUS_STYLES.get(status, "")
        status_text = f"[{style}]{status}[/{style}]" if style else status

        ref = result.get('ref', '')
        if result.get('ref_kind'):
            ref = f"{ref} ({result['ref_kind']})"

        table.add_row(
            result.get('package', ''),
            f"{result.get('owner', '')}/{result.get('repo', '')}",
            ref,
            (result.get('sha') or '')[:10],
            status_text,
            result.get('path', '')
        )

    console.print(table)

    conflicted = [r for r in results if r.get('status') == 'conflict']
    for result in conflicted:
        console.print(
            f"\n[bold red]Merge conflicts in {result['package']}:[/bold red] "
            f"{', '.join(result.get('conflicts', [])) or 'see git status'}"
        )
        if result.get('vendor_branch'):
            console.print(
                f"[yellow]Run `git merge {result['vendor_branch']}` in "
                f"{result.get('root', '')} and resolve them manually.[/yellow]"
            )
