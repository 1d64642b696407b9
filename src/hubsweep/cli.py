# src/hubsweep/cli.py
"""hubsweep Command Line Interface.

Entry point for the hubsweep CLI tool.
"""

from __future__ import annotations

import asyncio
import json
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Literal

import typer
from pydantic import ValidationError

from hubsweep import __version__
from hubsweep.contracts import RunResult, ScanAbortedError

if TYPE_CHECKING:
    from hubsweep.core.config import HubsweepSettings
    from hubsweep.core.store import StoreDB
    from hubsweep.engine import JobRunner, JobScheduler

__all__ = ["app"]


app = typer.Typer(
    name="hubsweep",
    help="hubsweep: resumable re-validation of hub messages.",
    no_args_is_help=True,
)

checkpoint_app = typer.Typer(help="Inspect or reset the stored checkpoint.")
app.add_typer(checkpoint_app, name="checkpoint")


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"hubsweep version {__version__}")
        raise typer.Exit()


def _load_dotenv(env_file: Path | None = None) -> bool:
    """Load environment variables from .env file.

    Args:
        env_file: Explicit path to .env file. If None, searches for .env
                 in current directory and parent directories.

    Returns:
        True if .env was found and loaded, False otherwise.

    Raises:
        typer.Exit: If explicit env_file path doesn't exist.
    """
    from dotenv import load_dotenv

    if env_file is not None:
        if not env_file.exists():
            typer.secho(
                f"Error: .env file not found: {env_file}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(1)
        return load_dotenv(env_file, override=False)

    return load_dotenv(override=False)  # Don't override existing env vars


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    no_dotenv: bool = typer.Option(
        False,
        "--no-dotenv",
        help="Skip loading .env file.",
    ),
    env_file: Path | None = typer.Option(
        None,
        "--env-file",
        help="Path to .env file (skips automatic search).",
        exists=False,  # Existence checked in _load_dotenv for a better message
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose/debug logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """hubsweep: resumable re-validation of hub messages."""
    from hubsweep.core.logging import configure_logging

    configure_logging(json_output=json_logs, level="DEBUG" if verbose else "INFO")

    if not no_dotenv:
        _load_dotenv(env_file=env_file)
    elif env_file is not None:
        typer.secho(
            "Warning: --env-file ignored because --no-dotenv is set.",
            fg=typer.colors.YELLOW,
            err=True,
        )


def _load_settings_or_exit(settings_path: Path) -> HubsweepSettings:
    from hubsweep.core.config import load_settings

    try:
        return load_settings(settings_path)
    except FileNotFoundError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from None
    except ValidationError as e:
        typer.secho("Configuration errors:", fg=typer.colors.RED, err=True)
        for error in e.errors():
            loc = ".".join(str(part) for part in error["loc"])
            typer.echo(f"  - {loc}: {error['msg']}", err=True)
        raise typer.Exit(1) from None


def _build_runner_or_exit(settings: HubsweepSettings, db: StoreDB) -> JobRunner:
    from hubsweep.cli_helpers import build_hub_services, build_runner

    try:
        services = build_hub_services(settings)
    except (ValueError, ImportError, AttributeError, TypeError) as e:
        typer.secho(f"Error: cannot build hub services: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from None

    return build_runner(settings, services, db)


def _format_result(result: RunResult, output_format: Literal["console", "json"]) -> str:
    if output_format == "json":
        return json.dumps(
            {
                "status": str(result.status),
                "messages_checked": result.messages_checked,
                "fids_checked": result.fids_checked,
                "revoked": result.revoked,
                "errors": result.errors,
                "timed_out_fids": list(result.timed_out_fids),
                "duration_ms": result.duration_ms,
                "resumed_from_fid": result.resumed_from_fid,
            }
        )
    lines = [
        f"Run {result.status}",
        f"  fids checked:     {result.fids_checked}",
        f"  messages checked: {result.messages_checked}",
        f"  revoked:          {result.revoked}",
        f"  errors:           {result.errors}",
    ]
    if result.timed_out_fids:
        lines.append(f"  timed out fids:   {len(result.timed_out_fids)}")
    if result.resumed_from_fid:
        lines.append(f"  resumed from fid: {result.resumed_from_fid}")
    lines.append(f"  duration:         {result.duration_ms / 1000:.1f}s")
    return "\n".join(lines)


@app.command()
def run(
    settings: Path = typer.Option(
        ...,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
    output_format: Literal["console", "json"] = typer.Option(
        "console",
        "--format",
        "-f",
        help="Output format: 'console' (human-readable) or 'json' (structured JSON).",
    ),
) -> None:
    """Run one full sweep now, resuming from the stored checkpoint."""
    from hubsweep.core.store import StoreDB

    settings_config = _load_settings_or_exit(settings)

    with StoreDB(settings_config.database.url, echo=settings_config.database.echo) as db:
        runner = _build_runner_or_exit(settings_config, db)
        try:
            result = asyncio.run(runner.run())
        except ScanAbortedError as e:
            typer.secho(f"Run aborted: {e}", fg=typer.colors.RED, err=True)
            raise typer.Exit(1) from None
        except Exception as e:
            typer.secho(f"Run aborted: {type(e).__name__}: {e}", fg=typer.colors.RED, err=True)
            raise typer.Exit(1) from None

    typer.echo(_format_result(result, output_format))


@app.command()
def schedule(
    settings: Path = typer.Option(
        ...,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
    cron: str | None = typer.Option(
        None,
        "--cron",
        help="Override job.cron (5-field cron, UTC).",
    ),
) -> None:
    """Run the sweep on its recurring schedule until interrupted."""
    from hubsweep.core.store import StoreDB
    from hubsweep.engine import JobScheduler

    settings_config = _load_settings_or_exit(settings)

    with StoreDB(settings_config.database.url, echo=settings_config.database.echo) as db:
        scheduler = JobScheduler(_build_runner_or_exit(settings_config, db))
        _serve_until_interrupted(scheduler, cron or settings_config.job.cron)


def _serve_until_interrupted(scheduler: JobScheduler, cron: str) -> None:
    async def serve() -> None:
        try:
            scheduler.start(cron)
        except ValueError as e:
            typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
            raise typer.Exit(1) from None
        typer.echo(f"Scheduler {scheduler.status()} ({scheduler.cron}). Press Ctrl+C to stop.")
        try:
            await asyncio.Event().wait()
        finally:
            scheduler.stop()

    try:
        asyncio.run(serve())
    except KeyboardInterrupt:
        typer.echo("Scheduler stopped.")


@checkpoint_app.command("show")
def checkpoint_show(
    settings: Path = typer.Option(
        ...,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output as JSON.",
    ),
) -> None:
    """Show the stored checkpoint for the configured job."""
    from hubsweep.core.checkpoint import CheckpointStore
    from hubsweep.core.keys import from_farcaster_time
    from hubsweep.core.store import StoreDB

    settings_config = _load_settings_or_exit(settings)
    with StoreDB(settings_config.database.url) as db:
        checkpoint = CheckpointStore(db, settings_config.job.name).get()

    if json_output:
        typer.echo(json.dumps({"job_name": settings_config.job.name, **checkpoint.to_dict()}))
        return

    typer.echo(f"Job: {settings_config.job.name}")
    typer.echo(f"  last_job_timestamp: {checkpoint.last_job_timestamp}")
    if checkpoint.last_job_timestamp:
        watermark = datetime.fromtimestamp(from_farcaster_time(checkpoint.last_job_timestamp) / 1000, UTC)
        typer.echo(f"    ({watermark.isoformat()})")
    typer.echo(f"  last_fid:           {checkpoint.last_fid}")
    if not checkpoint.has_resume_point:
        typer.echo("  (no resume point: next run starts from the first fid)")


@checkpoint_app.command("reset")
def checkpoint_reset(
    settings: Path = typer.Option(
        ...,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Skip confirmation prompt.",
    ),
) -> None:
    """Delete the stored checkpoint. The next run rescans every fid in full."""
    from hubsweep.core.checkpoint import CheckpointStore
    from hubsweep.core.store import StoreDB

    settings_config = _load_settings_or_exit(settings)
    if not yes:
        typer.confirm(
            f"Reset checkpoint for job '{settings_config.job.name}'? The next run will sweep every fid.",
            abort=True,
        )

    with StoreDB(settings_config.database.url) as db:
        existed = CheckpointStore(db, settings_config.job.name).reset()

    if existed:
        typer.echo(f"Checkpoint for job '{settings_config.job.name}' reset.")
    else:
        typer.echo(f"No checkpoint stored for job '{settings_config.job.name}'.")
