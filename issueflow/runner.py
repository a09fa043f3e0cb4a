"""Thin synchronous wrapper around subprocess for git, gh, docker, aws and the editor."""

import os
import subprocess
from collections.abc import Mapping
from pathlib import Path

from issueflow.errors import CommandError


def _environ(env: Mapping[str, str] | None) -> dict[str, str] | None:
    if not env:
        return None
    return {**os.environ, **env}


def run(
    args: list[str],
    *,
    cwd: Path | str | None = None,
    env: Mapping[str, str] | None = None,
) -> str:
    """Run args and return stripped stdout. Raises CommandError on a non-zero exit.

    Values in ``env`` are layered over the current environment; use it for
    secrets so they never show up in the argument list.
    """
    try:
        result = subprocess.run(args, cwd=cwd, env=_environ(env), capture_output=True, text=True)
    except FileNotFoundError as exc:
        raise CommandError(args, 127, f"{args[0]} not found on PATH") from exc
    if result.returncode != 0:
        raise CommandError(args, result.returncode, result.stderr or "")
    return (result.stdout or "").strip()


def succeeds(args: list[str], *, cwd: Path | str | None = None) -> bool:
    """Return True if args exits 0. Used for existence probes before a mutation."""
    try:
        result = subprocess.run(args, cwd=cwd, capture_output=True, text=True)
    except FileNotFoundError:
        return False
    return result.returncode == 0


def spawn(args: list[str], *, cwd: Path | str | None = None) -> int:
    """Start args without waiting for it. Returns the child PID."""
    try:
        proc = subprocess.Popen(args, cwd=cwd, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
    except FileNotFoundError as exc:
        raise CommandError(args, 127, f"{args[0]} not found on PATH") from exc
    return proc.pid
