"""CLI entry point for botfleet."""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer

from botfleet import __version__
from botfleet.cli.render import OutputSink, SinkSwitch, create_output
from botfleet.config import Settings, load_settings
from botfleet.errors import ConfigurationError
from botfleet.logging_utils import configure_logging
from botfleet.sessions.base import Session
from botfleet.sessions.orchestrator import SessionOrchestrator
from botfleet.sessions.wechaty import WechatyConfig, WechatySession

app = typer.Typer(
    name="botfleet",
    help="Run a fleet of chat bot sessions with an interactive console.",
    add_completion=False,
)


def ensure_cache_dir(path: Path, output: OutputSink) -> None:
    if path.exists():
        return
    output.log(f"Folder {path} does not exist, creating...")
    path.mkdir(parents=True)


def build_sessions(settings: Settings) -> list[Session]:
    config = WechatyConfig(
        cache_dir=settings.cache_dir,
        puppet=settings.puppet,
        token=settings.puppet_token,
        endpoint=settings.puppet_endpoint,
    )
    return [WechatySession(session_id, config) for session_id in settings.session_ids()]


async def _serve(settings: Settings, output: SinkSwitch) -> None:
    orchestrator = SessionOrchestrator(
        build_sessions(settings),
        primary_index=settings.primary_index,
        output=output,
        trigger=settings.compiled_trigger(),
        reply_template=settings.reply_template,
    )
    await orchestrator.run()


@app.command()
def run(
    sessions: int | None = typer.Option(None, "--sessions", "-n", help="Number of sessions"),
    primary: int | None = typer.Option(None, "--primary", "-p", help="Index of the console session"),
    cache_dir: Path | None = typer.Option(None, "--cache-dir", help="Session cache directory"),  # noqa: B008
    log_level: str | None = typer.Option(None, "--log-level", help="Log level"),
) -> None:
    """Start every session and attach the console to the primary one."""

    output = create_output()
    try:
        settings = load_settings(
            sessions=sessions,
            primary_index=primary,
            cache_dir=cache_dir,
            log_level=log_level,
        )
    except ConfigurationError as exc:
        output.error(str(exc))
        raise typer.Exit(1) from exc

    configure_logging(output, level=settings.log_level)
    ensure_cache_dir(settings.cache_dir, output)
    asyncio.run(_serve(settings, output))


@app.command()
def version() -> None:
    """Show the installed version."""
    typer.echo(__version__)
