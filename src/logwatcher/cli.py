from __future__ import annotations
import io
import json
import logging
import time
from datetime import datetime
from typing import Optional
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from .checkpoint import Checkpoint, load_checkpoint, resume_position, save_checkpoint
from .config import FollowConfig, load_config
from .errors import NoStateError, StatError, WatcherError
from .sink import LogSink, NullSink
from .snapshot import take_snapshot
from .sources.file_follow import follow_file
from .watcher import Watcher

app = typer.Typer(help="logwatcher - follow log files across rotation and truncation")
console = Console()
err_console = Console(stderr=True)


def _make_sink(debug: bool) -> LogSink:
    if not debug:
        return NullSink()
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )
    return logging.getLogger("logwatcher")


@app.command()
def count(
    file: str = typer.Option(..., "--file", "-f", help="Path to a log file"),
    debug: bool = typer.Option(False, "--debug", help="Print watcher diagnostics"),
):
    """
    Read the file once through a watcher and print how many lines it holds.
    """
    watcher = Watcher.from_options(file, log_sink=_make_sink(debug))
    reader = io.BufferedReader(watcher)
    try:
        n = sum(1 for _ in reader)
    except WatcherError as e:
        console.print(f"[bold red]Error:[/bold red] {e}", style="red")
        raise typer.Exit(1)
    finally:
        reader.close()
    print(n)


@app.command()
def stat(
    file: str = typer.Option(..., "--file", "-f", help="Path to a log file"),
    json_out: bool = typer.Option(False, "--json", help="Output JSON instead of a table"),
):
    """
    Show the identity and size of a log file, as a checkpoint would record it.
    """
    try:
        snap = take_snapshot(file)
    except StatError as e:
        console.print(f"[bold red]Error:[/bold red] {e}", style="red")
        raise typer.Exit(1)

    if json_out:
        print(json.dumps(snap.to_dict(), ensure_ascii=False, indent=2))
        raise typer.Exit(0)

    table = Table(title=file)
    table.add_column("Field")
    table.add_column("Value", justify="right")
    table.add_row("Device", str(snap.device_id))
    table.add_row("Inode", str(snap.inode))
    table.add_row("Size", f"{snap.size:,}")
    table.add_row("Modified", datetime.fromtimestamp(snap.mtime).isoformat(sep=" ", timespec="seconds"))
    console.print(table)


def _resolve_follow_config(
    file: Optional[str],
    config: Optional[str],
    from_end: bool,
    start_position: Optional[int],
    poll_interval: Optional[float],
    checkpoint: Optional[str],
) -> FollowConfig:
    if config:
        cfg = load_config(config)
    elif file:
        cfg = FollowConfig(filename=file)
    else:
        raise ValueError("Either --file or --config is required")

    # command line wins over the config file
    if file:
        cfg.filename = file
    if from_end:
        cfg.from_end = True
    if start_position is not None:
        if start_position < 0:
            raise ValueError(f"--start-position must be >= 0, got {start_position}")
        cfg.start_position = start_position
    if poll_interval is not None:
        if poll_interval <= 0:
            raise ValueError(f"--poll must be > 0, got {poll_interval}")
        cfg.poll_interval = poll_interval
    if checkpoint:
        cfg.checkpoint = checkpoint
    return cfg


@app.command()
def follow(
    file: Optional[str] = typer.Option(None, "--file", "-f", help="Path to a log file to follow"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to a follow YAML config"),
    from_end: bool = typer.Option(False, "--from-end", help="Only show lines written from now on"),
    start_position: Optional[int] = typer.Option(None, "--start-position", help="Byte offset to start at"),
    poll_interval: Optional[float] = typer.Option(None, "--poll", help="Polling interval seconds"),
    checkpoint: Optional[str] = typer.Option(None, "--checkpoint", help="YAML file to resume from and save progress to"),
    json_out: bool = typer.Option(False, "--json", help="Output JSON lines"),
    once: bool = typer.Option(False, "--once", help="Stop after reaching the current end of file"),
    debug: bool = typer.Option(False, "--debug", help="Print watcher diagnostics"),
):
    """
    Print lines appended to a log file, following rotation and truncation.
    """
    try:
        cfg = _resolve_follow_config(file, config, from_end, start_position, poll_interval, checkpoint)
        saved = load_checkpoint(cfg.checkpoint) if cfg.checkpoint else None
    except FileNotFoundError as e:
        console.print(f"[bold red]Error:[/bold red] {e}", style="red")
        raise typer.Exit(1)
    except ValueError as e:
        console.print(f"[bold red]Configuration Error:[/bold red] {e}", style="red")
        raise typer.Exit(1)

    start = cfg.start_position
    if saved is not None:
        try:
            resumed = resume_position(saved, take_snapshot(cfg.filename))
        except StatError:
            resumed = 0
        if resumed:
            start = resumed
            cfg.from_end = False

    def _save(watcher: Watcher, position: int) -> None:
        if not cfg.checkpoint:
            return
        try:
            cp = Checkpoint(cfg.filename, watcher.device_id(), watcher.inode(), position)
        except NoStateError:
            return
        save_checkpoint(cfg.checkpoint, cp)

    passes = {"n": 0}

    def _stop() -> bool:
        passes["n"] += 1
        return passes["n"] > 1

    if not json_out:
        err_console.print(f"[green]Following[/green] {cfg.filename}  (Ctrl+C to stop)")

    try:
        for line_no, line in follow_file(
            cfg.filename,
            start_position=start,
            from_end=cfg.from_end,
            poll_interval=cfg.poll_interval,
            buffer_size=cfg.buffer_size,
            log_sink=_make_sink(debug),
            on_drain=_save,
            sleep=(lambda _: None) if once else time.sleep,
            stop=_stop if once else None,
        ):
            text = line.rstrip("\n")
            if json_out:
                print(json.dumps({"line_no": line_no, "line": text}, ensure_ascii=False))
            else:
                console.print(text, markup=False, highlight=False, soft_wrap=True)
    except WatcherError as e:
        console.print(f"[bold red]Error:[/bold red] {e}", style="red")
        raise typer.Exit(1)
    except KeyboardInterrupt:
        err_console.print("[yellow]Stopped.[/yellow]")


if __name__ == "__main__":
    app()
