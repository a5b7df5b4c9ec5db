"""Step outputs and failure reporting for GitHub Actions.

Outputs are appended to the file named by ``GITHUB_OUTPUT``. Older runners
without that file get the legacy ``::set-output`` workflow command.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

__all__ = [
    "ActionOutputs",
    "GitHubActionsOutputs",
    "MockActionOutputs",
    "escape_command_data",
]


class ActionOutputs(Protocol):
    def set_output(self, name: str, value: str) -> None: ...

    def fail(self, message: str) -> None: ...


def escape_command_data(value: str) -> str:
    """Escape a value embedded in a ``::command::`` line."""
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


class GitHubActionsOutputs:
    """Writes outputs the way the Actions runner expects them."""

    def __init__(
        self,
        env: Mapping[str, str],
        *,
        echo: Callable[[str], None] = print,
    ) -> None:
        output_file = env.get("GITHUB_OUTPUT", "").strip()
        self._output_path = Path(output_file) if output_file else None
        self._echo = echo

    def set_output(self, name: str, value: str) -> None:
        if self._output_path is None:
            self._echo(f"::set-output name={name}::{escape_command_data(value)}")
            return

        if "\n" in value:
            delimiter = f"ghadelimiter_{uuid.uuid4()}"
            entry = f"{name}<<{delimiter}\n{value}\n{delimiter}\n"
        else:
            entry = f"{name}={value}\n"
        with self._output_path.open("a", encoding="utf-8") as handle:
            handle.write(entry)

    def fail(self, message: str) -> None:
        self._echo(f"::error::{escape_command_data(message)}")


def _empty_outputs() -> dict[str, str]:
    return {}


def _empty_failures() -> list[str]:
    return []


@dataclass
class MockActionOutputs:
    """Captures outputs and failures for tests."""

    outputs: dict[str, str] = field(default_factory=_empty_outputs)
    failures: list[str] = field(default_factory=_empty_failures)

    def set_output(self, name: str, value: str) -> None:
        self.outputs[name] = value

    def fail(self, message: str) -> None:
        self.failures.append(message)
