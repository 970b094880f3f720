"""CLI entry point: bundlekit.

Subcommands:
    bundlekit build              # full build; mode from BUNDLEKIT_BUILD_MODE / NODE_ENV
    bundlekit licenses -o x.json # license gate only
    bundlekit prune              # print the pruned package descriptor
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click
from dotenv import load_dotenv

from bundlekit.core.config import BuildConfig
from bundlekit.core.logging import setup_logging
from bundlekit.engines.license_aggregator import LicenseAggregator, write_summary
from bundlekit.exceptions import BuildError, ConfigError, LicenseError
from bundlekit.orchestrator import BuildOrchestrator


def _project_root() -> Path:
    return Path(os.environ.get("BUNDLEKIT_PROJECT_ROOT") or Path.cwd())


def _load_config() -> BuildConfig:
    try:
        return BuildConfig.load(_project_root())
    except BuildError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
def main(verbose: bool) -> None:
    """bundlekit: assemble a desktop app bundle with a license gate."""
    load_dotenv(_project_root() / ".env")
    try:
        setup_logging("DEBUG" if verbose else None)
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


_STATUS_ICONS = {
    "completed": "+",
    "failed": "!",
    "skipped": "-",
    "running": "~",
    "pending": ".",
}


def _print_summary(summary: dict) -> None:
    click.echo(f"\nBuild summary (total: {summary['total_duration']}s):", err=True)
    for p in summary["phases"]:
        status_icon = _STATUS_ICONS.get(p["status"], "?")
        duration = f" ({p['duration']}s)" if p["duration"] else ""
        detail = f" - {p['detail']}" if p["detail"] else ""
        click.echo(f"  [{status_icon}] {p['phase']}{duration}{detail}", err=True)


@main.command("build")
def build() -> None:
    """Build the application bundle."""
    config = _load_config()
    click.echo(f"Building for {config.mode.value}…", err=True)

    orchestrator = None
    try:
        orchestrator = BuildOrchestrator(config)
        result = orchestrator.build()
    except (BuildError, OSError) as e:
        if orchestrator is not None:
            _print_summary(orchestrator.progress.get_summary())
        click.echo(f"Error: {e}", err=True)
        if isinstance(e, LicenseError):
            click.echo("Error updating the license dump. This is fatal for a production build.", err=True)
        sys.exit(1)

    if result.license_error:
        click.echo(f"Warning: {result.license_error}", err=True)
    _print_summary(result.phases)
    if result.app_paths:
        click.echo(f"Built to {', '.join(str(p) for p in result.app_paths)}")


@main.command("licenses")
@click.option("-o", "--output", type=click.Path(dir_okay=False), default=None,
              help="Write the license report here")
def licenses(output: str | None) -> None:
    """Run the license gate without building."""
    config = _load_config()
    try:
        summary = LicenseAggregator.from_config(config).aggregate(config.app_dir)
    except (BuildError, OSError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if output:
        write_summary(summary, Path(output))
        click.echo(f"License report written to {output}")
    click.echo(f"{len(summary)} entries, all approved.")


@main.command("prune")
def prune_cmd() -> None:
    """Print the pruned package descriptor as JSON."""
    config = _load_config()
    try:
        _, descriptor = BuildOrchestrator(config).prune_manifest()
    except BuildError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(json.dumps(descriptor, indent=2))


if __name__ == "__main__":
    main()
