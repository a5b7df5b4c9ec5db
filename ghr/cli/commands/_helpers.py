"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

import typer

from ghr.core.errors import ErrorCode
from ghr.github.errors import ReleaseError, ReleaseErrorKind
from ghr.output.console import Style

if TYPE_CHECKING:
    from ghr.cli.context import CLIContext


_EXIT_CODES: dict[ReleaseErrorKind, ErrorCode] = {
    "not_found": ErrorCode.NETWORK_ERROR,
    "conflict": ErrorCode.NETWORK_ERROR,
    "http_error": ErrorCode.NETWORK_ERROR,
    "invalid_response": ErrorCode.NETWORK_ERROR,
    "upload_failed": ErrorCode.NETWORK_ERROR,
    "invalid_input": ErrorCode.USER_ERROR,
    "missing_tag": ErrorCode.USER_ERROR,
    "unmatched_files": ErrorCode.USER_ERROR,
    "io_error": ErrorCode.IO_ERROR,
}


def exit_code_for(error: ReleaseError) -> ErrorCode:
    return _EXIT_CODES.get(error.kind, ErrorCode.USER_ERROR)


def fail_run(error: ReleaseError, ctx: CLIContext) -> NoReturn:
    """Report ``error`` as the run's single failure and exit.

    The console gets the message and hint; the Actions runner gets one
    ``::error::`` annotation carrying the message.
    """
    ctx.console.error(error.message)
    if error.hint:
        ctx.console.print(f"hint: {error.hint}", Style.DIM)
    ctx.outputs.fail(error.message)
    raise typer.Exit(code=int(exit_code_for(error)))
