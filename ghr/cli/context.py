from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

import typer

from ghr.core.config import ActionConfig, load_action_config
from ghr.core.errors import ErrorCode
from ghr.core.result import Err
from ghr.github.http import RealHttpClient
from ghr.github.releaser import GitHubReleaser, Releaser
from ghr.output.actions import ActionOutputs, GitHubActionsOutputs
from ghr.output.console import ConsoleProtocol, RichConsole


@dataclass(frozen=True, slots=True)
class CLIContext:
    config: ActionConfig
    releaser: Releaser
    console: ConsoleProtocol
    outputs: ActionOutputs


def build_context(
    env: Mapping[str, str] | None = None,
    *,
    upload_workers: int | None = None,
) -> CLIContext:
    env = os.environ if env is None else env
    console = RichConsole(no_color=env.get("NO_COLOR") is not None)
    outputs = GitHubActionsOutputs(env, echo=typer.echo)

    config_result = load_action_config(env, upload_workers=upload_workers)
    if isinstance(config_result, Err):
        console.error(config_result.error.message)
        outputs.fail(config_result.error.message)
        raise typer.Exit(code=int(ErrorCode.CONFIG_ERROR))

    config = config_result.value
    http = RealHttpClient(config.token, console=console)
    releaser = GitHubReleaser(http, api_url=config.api_url, console=console)

    return CLIContext(
        config=config,
        releaser=releaser,
        console=console,
        outputs=outputs,
    )
