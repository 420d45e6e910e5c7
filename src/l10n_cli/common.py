"""Subprocess helper shared by the CLI commands."""

from __future__ import annotations

import shlex
import subprocess
from collections.abc import Mapping, Sequence

import typer


def run(command: Sequence[str], *, env: Mapping[str, str] | None = None) -> None:
    """Echo and run ``command``; a non-zero exit becomes the CLI's exit code."""

    typer.secho(f"$ {shlex.join(command)}", err=True, dim=True)
    returncode = subprocess.call(list(command), env=dict(env) if env is not None else None)
    if returncode:
        raise typer.Exit(code=returncode)
