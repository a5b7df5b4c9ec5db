"""Run command - create or update the release for the current tag."""

from __future__ import annotations

import typer

from ghr.cli.commands._helpers import fail_run
from ghr.cli.context import build_context
from ghr.core.result import Err
from ghr.services.action import run_action


def run(
    max_workers: int | None = typer.Option(
        None,
        "--max-workers",
        min=1,
        help="Maximum number of concurrent asset uploads.",
    ),
) -> None:
    """Create or update a GitHub release and upload matching files.

    Inputs are read from GITHUB_* and INPUT_* environment variables, the way
    a GitHub Actions step receives them.
    """
    ctx = build_context(upload_workers=max_workers)
    result = run_action(ctx.config, ctx.releaser, ctx.console, ctx.outputs)
    if isinstance(result, Err):
        fail_run(result.error, ctx)
