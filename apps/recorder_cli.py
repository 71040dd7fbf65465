from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from config.paths import Paths, resolve_paths
from config.settings import RecorderSettings, RetentionPolicy, load_settings
from core.errors import SettingsError
from core.events import dispatch, read_events
from recording import retention
from recording.session_controller import SessionController
from sdk.host import LocalHost
from sdk.registry import default_registry


app = typer.Typer(add_completion=False, no_args_is_help=True)


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load(settings_path: Optional[Path]) -> RecorderSettings:
    if settings_path is None:
        return RecorderSettings()
    try:
        return load_settings(settings_path)
    except SettingsError as exc:
        typer.echo(f"[gamerecorder] invalid settings: {exc}", err=True)
        raise typer.Exit(code=2)


def _paths(root: Optional[Path]) -> Paths:
    if root is None:
        return resolve_paths()
    paths = Paths.under(root)
    paths.ensure_all()
    return paths


@app.command("check-settings")
def check_settings(
    settings_path: Path = typer.Argument(..., help="JSON settings file to validate"),
) -> None:
    """Validate a settings file and print the normalised values."""
    settings = _load(settings_path)
    typer.echo(settings.model_dump_json(indent=2))


@app.command()
def sweep(
    root: Optional[Path] = typer.Option(None, help="Folder holding RecordedGames/ (default: env or cwd)"),
    policy: RetentionPolicy = typer.Option(RetentionPolicy.ONE_WEEK, help="Retention tier"),
    log_level: str = typer.Option("INFO", "--log-level"),
) -> None:
    """Delete recorded games older than the retention tier."""
    _setup_logging(log_level)
    paths = _paths(root)
    deleted = retention.sweep(paths.output_root, policy)
    typer.echo(f"[gamerecorder] deleted {len(deleted)} old game(s) from {paths.output_root}")


@app.command()
def replay(
    script: Path = typer.Argument(..., help="JSONL file of host events"),
    settings_path: Optional[Path] = typer.Option(None, "--settings", help="JSON settings file"),
    root: Optional[Path] = typer.Option(None, help="Folder holding RecordedGames/ (default: env or cwd)"),
    mode: str = typer.Option("Ranked", help="Initial host game mode"),
    log_level: str = typer.Option("INFO", "--log-level"),
) -> None:
    """Drive a recorder through a scripted game using stub capture."""
    _setup_logging(log_level)
    settings = _load(settings_path)
    paths = _paths(root)

    registry = default_registry()
    controller = SessionController(
        settings,
        paths,
        registry.create("capture.stub"),
        hotkey=registry.create("hotkey.stub"),
    )
    host = LocalHost(mode=mode)
    controller.attach(host)

    count = 0
    try:
        for event in read_events(script):
            dispatch(controller, host, event)
            count += 1
    finally:
        controller.detach()

    typer.echo(f"[gamerecorder] replayed {count} event(s) into {paths.output_root}")
    for entry in sorted(p.name for p in paths.output_root.iterdir() if p.is_dir()):
        typer.echo(f"  {entry}")


if __name__ == "__main__":
    app()
