# region Docstring
"""
clipwatch.cli
The `clipdeck` command line.
Overview:
- `watch` runs the capture pipeline until Ctrl-C.
- `list` and `search` show the history (search uses the query syntax
    `tag:`, `-tag:`, `type:`, `has:ocr`, `pinned:` plus free text).
- `pin`, `unpin`, `tag`, `untag`, `delete` and `clear` change entries.
- `copy` puts an entry back on the clipboard; `export` writes the history as
    JSON records.
Design Notes:
- Service errors (ClipdeckError) are printed in red and exit with code 1.
"""
# endregion
# region Imports
import asyncio
import json
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

import typer
from rich.console import Console
from rich.table import Table
from rich.text import Text

from clipcore.constants import APP_NAME
from clipcore.models.history import ClipEntry, EntryPatch
from clipcore.models.search import RankedEntry
from clipcore.search import display_text
from clipservices import ClipdeckError

from .logger import configure_logging
from .services import Services, Watcher, build_services

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(name=APP_NAME, help="Clipboard history manager.", no_args_is_help=True)


# endregion
# region Helpers
@app.callback()
def main(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Override CLIPDECK_LOG_LEVEL for this run."
    ),
) -> None:
    configure_logging(level=log_level)


@contextmanager
def open_services() -> Iterator[Services]:
    """Build the services for one command and report service errors."""
    services: Optional[Services] = None
    try:
        services = build_services()
        yield services
    except ClipdeckError as e:
        err_console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1)
    finally:
        if services is not None:
            services.close()


def _require(services: Services, entry_id: int) -> ClipEntry:
    entry = services.store.get(entry_id)
    if entry is None:
        err_console.print(f"[bold red]Error:[/bold red] No entry with id {entry_id}.")
        raise typer.Exit(code=1)
    return entry


def _preview(result: RankedEntry) -> Text:
    text = Text(result.display)
    for start, end in result.highlight_ranges():
        text.stylize("bold yellow", start, end + 1)
    return text


def _table(results: List[RankedEntry], show_score: bool = False) -> Table:
    table = Table(show_lines=False)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Type")
    table.add_column("Pin")
    table.add_column("Tags", style="magenta")
    table.add_column("Source", style="dim")
    table.add_column("Captured", style="dim", no_wrap=True)
    if show_score:
        table.add_column("Score", justify="right")
    table.add_column("Content")
    for result in results:
        entry = result.entry
        row = [
            str(entry.id),
            entry.type if not entry.is_image else f"image {entry.dimensions or ''}".strip(),
            "*" if entry.pinned else "",
            ", ".join(entry.tags),
            Text(entry.source.label if entry.source else ""),
            entry.ts.strftime("%Y-%m-%d %H:%M:%S"),
        ]
        if show_score:
            row.append(f"{result.score:.2f}")
        row.append(_preview(result))
        table.add_row(*row)
    return table


# endregion
# region Commands
@app.command(name="watch", help="Capture clipboard changes until Ctrl-C.")
def watch() -> None:
    with open_services() as services:
        watcher = Watcher(services)
        console.print(
            f"[bold green]Watching the clipboard[/bold green] ({len(services.store)} entries). Ctrl-C to stop."
        )
        try:
            asyncio.run(watcher.run())
        except KeyboardInterrupt:
            pass
        console.print("[bold green]Stopped.[/bold green]")


@app.command(name="list", help="Show the history, pinned first then newest first.")
def list_entries(
    limit: int = typer.Option(20, "--limit", "-n", min=1, help="Maximum rows shown."),
) -> None:
    with open_services() as services:
        entries = services.store.list()[:limit]
        if not entries:
            console.print("[yellow]History is empty.[/yellow]")
            return
        results = [
            RankedEntry(entry=entry, score=1.0, display=display_text(entry), mode="all")
            for entry in entries
        ]
        console.print(_table(results))


@app.command(name="search", help="Search the history.")
def search_entries(
    query: List[str] = typer.Argument(..., help="Query tokens, e.g. tag:work report"),
    mode: Optional[str] = typer.Option(None, "--mode", "-m", help="'exact' or 'fuzzy'."),
    threshold: Optional[float] = typer.Option(
        None, "--threshold", "-t", help="Fuzzy threshold, clamped to [0.1, 0.9]."
    ),
    limit: int = typer.Option(20, "--limit", "-n", min=1, help="Maximum rows shown."),
) -> None:
    with open_services() as services:
        results = services.search.search(
            services.store.list(), " ".join(query), mode=mode, threshold=threshold
        )
        if not results:
            console.print("[yellow]No matches.[/yellow]")
            return
        console.print(_table(results[:limit], show_score=True))


@app.command(name="pin", help="Pin an entry.")
def pin(entry_id: int = typer.Argument(..., help="Entry id.")) -> None:
    with open_services() as services:
        _require(services, entry_id)
        services.store.update(entry_id, EntryPatch(pinned=True))
        console.print(f"[green]Pinned {entry_id}.[/green]")


@app.command(name="unpin", help="Unpin an entry.")
def unpin(entry_id: int = typer.Argument(..., help="Entry id.")) -> None:
    with open_services() as services:
        _require(services, entry_id)
        services.store.update(entry_id, EntryPatch(pinned=False))
        console.print(f"[green]Unpinned {entry_id}.[/green]")


@app.command(name="tag", help="Add tags to an entry.")
def tag(
    entry_id: int = typer.Argument(..., help="Entry id."),
    tags: List[str] = typer.Argument(..., help="Tags to add."),
) -> None:
    with open_services() as services:
        entry = _require(services, entry_id)
        services.store.update(entry_id, EntryPatch(tags=[*entry.tags, *tags]))
        console.print(f"[green]Tagged {entry_id}.[/green]")


@app.command(name="untag", help="Remove tags from an entry.")
def untag(
    entry_id: int = typer.Argument(..., help="Entry id."),
    tags: List[str] = typer.Argument(..., help="Tags to remove."),
) -> None:
    with open_services() as services:
        entry = _require(services, entry_id)
        drop = {t.strip().lower() for t in tags}
        services.store.update(
            entry_id, EntryPatch(tags=[t for t in entry.tags if t not in drop])
        )
        console.print(f"[green]Updated tags of {entry_id}.[/green]")


@app.command(name="delete", help="Delete an entry (and its image file).")
def delete(entry_id: int = typer.Argument(..., help="Entry id.")) -> None:
    with open_services() as services:
        _require(services, entry_id)
        services.store.remove(entry_id)
        console.print(f"[green]Deleted {entry_id}.[/green]")


@app.command(name="clear", help="Delete the whole history.")
def clear(
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
) -> None:
    with open_services() as services:
        if not yes and not typer.confirm(f"Delete all {len(services.store)} entries?"):
            raise typer.Abort()
        services.store.clear()
        console.print("[green]History cleared.[/green]")


@app.command(name="copy", help="Put an entry back on the clipboard.")
def copy(entry_id: int = typer.Argument(..., help="Entry id.")) -> None:
    with open_services() as services:
        entry = _require(services, entry_id)
        if entry.is_image:
            services.clipboard.write_image(Path(entry.file_path))
        else:
            services.clipboard.write_text(entry.text)
        console.print(f"[green]Copied {entry_id} to the clipboard.[/green]")


@app.command(name="export", help="Write the history as JSON records.")
def export(path: Path = typer.Argument(..., help="Destination JSON file.")) -> None:
    with open_services() as services:
        records = [entry.to_record() for entry in services.store.list()]
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(records, indent=2, ensure_ascii=False), encoding="utf-8")
        console.print(f"[green]Exported {len(records)} entries to {path}.[/green]")


# endregion
__all__ = ["app"]
