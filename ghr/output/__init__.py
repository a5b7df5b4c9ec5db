"""Output abstraction layer."""

from .actions import ActionOutputs, GitHubActionsOutputs, MockActionOutputs
from .console import (
    ConsoleProtocol,
    MockConsole,
    RichConsole,
    Style,
)

__all__ = [
    "ActionOutputs",
    "ConsoleProtocol",
    "GitHubActionsOutputs",
    "MockActionOutputs",
    "MockConsole",
    "RichConsole",
    "Style",
]
