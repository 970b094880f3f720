"""External tool invocation (dependency installer, packager)."""

from __future__ import annotations

import os
import subprocess
from pathlib import Path
from typing import Sequence

import structlog

from bundlekit.exceptions import ConfigError, PackagingError

log = structlog.get_logger("bundlekit.tools")


def run_command(command: Sequence[str], cwd: Path) -> str:
    """Run *command* in *cwd* and return its stdout.

    Raises :class:`PackagingError` on a non-zero exit or a missing executable.
    """
    cmd = list(command)
    log.info("tools.run", command=" ".join(cmd), cwd=str(cwd))
    try:
        proc = subprocess.run(
            cmd,
            cwd=cwd,
            env=os.environ.copy(),
            capture_output=True,
            text=True,
        )
    except FileNotFoundError as e:
        raise PackagingError(cmd, 127, str(e)) from e
    if proc.returncode != 0:
        raise PackagingError(cmd, proc.returncode, proc.stderr)
    return proc.stdout


def format_command(template: Sequence[str], **values: str) -> list[str]:
    """Fill ``{placeholder}`` fields in each argument of *template*."""
    try:
        return [arg.format(**values) for arg in template]
    except KeyError as e:
        raise ConfigError(f"unknown placeholder {e} in command {list(template)}") from e
