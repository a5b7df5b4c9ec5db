"""Core domain types and logic."""

from .config import ActionConfig, ConfigError, ReleaseConfig, load_action_config
from .errors import ErrorCode
from .paging import find_first
from .result import Err, Ok, Result, is_err, is_ok

__all__ = [
    # config
    "ActionConfig",
    "ConfigError",
    "ReleaseConfig",
    "load_action_config",
    # errors
    "ErrorCode",
    # paging
    "find_first",
    # result
    "Err",
    "Ok",
    "Result",
    "is_err",
    "is_ok",
]
