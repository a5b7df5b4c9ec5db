"""Typed configuration loaded from the CI environment.

GitHub Actions passes repository context as ``GITHUB_*`` variables and step
inputs as ``INPUT_*`` variables. This module turns them into frozen
dataclasses once per run.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from .result import Err, Ok, Result

__all__ = [
    "ActionConfig",
    "ConfigError",
    "ReleaseConfig",
    "TAG_REF_PREFIX",
    "DEFAULT_API_URL",
    "DEFAULT_UPLOAD_WORKERS",
    "env_flag",
    "is_tag",
    "load_action_config",
    "parse_input_files",
]

TAG_REF_PREFIX = "refs/tags/"
DEFAULT_API_URL = "https://api.github.com"
DEFAULT_UPLOAD_WORKERS = 4


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when the environment cannot be turned into a config."""

    message: str
    variable: str | None = None


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    """What the release should look like after this run."""

    repository: str  # owner/name
    ref: str
    tag_name: str | None = None
    name: str | None = None
    body: str | None = None
    draft: bool = False
    prerelease: bool = False
    draft_until_assets_uploaded: bool = False

    @property
    def tag(self) -> str:
        """Explicit tag override, else the ref without its tag prefix."""
        return self.tag_name or self.ref.removeprefix(TAG_REF_PREFIX)

    @property
    def owner(self) -> str:
        return self.repository.split("/")[0]

    @property
    def repo(self) -> str:
        return self.repository.split("/")[1]

    @property
    def display_name(self) -> str:
        return self.name or self.tag


@dataclass(frozen=True, slots=True)
class ActionConfig:
    """Everything one ``ghr run`` needs."""

    token: str
    release: ReleaseConfig
    files: tuple[str, ...] = ()
    fail_on_unmatched_files: bool = False
    api_url: str = DEFAULT_API_URL
    upload_workers: int = DEFAULT_UPLOAD_WORKERS


def is_tag(ref: str) -> bool:
    return ref.startswith(TAG_REF_PREFIX)


def env_flag(env: Mapping[str, str], name: str) -> bool:
    """Return True only for a literal ``true`` (any case)."""
    return env.get(name, "").strip().lower() == "true"


def _env_str(env: Mapping[str, str], name: str) -> str | None:
    value = env.get(name, "").strip()
    return value or None


def parse_input_files(text: str | None) -> tuple[str, ...]:
    """Split a ``files`` input on newlines and commas."""
    if not text:
        return ()
    patterns: list[str] = []
    for line in text.splitlines():
        for item in line.split(","):
            item = item.strip()
            if item:
                patterns.append(item)
    return tuple(patterns)


def _read_body_path(path_str: str) -> Result[str | None, ConfigError]:
    path = Path(path_str)
    try:
        return Ok(path.read_text(encoding="utf-8") or None)
    except FileNotFoundError:
        return Err(ConfigError(f"Body file not found: {path}", variable="INPUT_BODY_PATH"))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", variable="INPUT_BODY_PATH"))
    except (OSError, UnicodeDecodeError) as e:
        return Err(ConfigError(f"Error reading body file: {e}", variable="INPUT_BODY_PATH"))


def load_action_config(
    env: Mapping[str, str],
    *,
    upload_workers: int | None = None,
) -> Result[ActionConfig, ConfigError]:
    """Build the run configuration from environment variables.

    Args:
        env: Usually ``os.environ``.
        upload_workers: Overrides the default upload concurrency.

    Returns:
        Ok(ActionConfig) on success, Err(ConfigError) naming the bad variable.
    """
    repository = _env_str(env, "GITHUB_REPOSITORY")
    if repository is None:
        return Err(ConfigError("GITHUB_REPOSITORY is required", variable="GITHUB_REPOSITORY"))
    parts = repository.split("/")
    if len(parts) != 2 or not all(parts):
        return Err(
            ConfigError(
                f"GITHUB_REPOSITORY must look like owner/name: {repository}",
                variable="GITHUB_REPOSITORY",
            )
        )

    token = _env_str(env, "GITHUB_TOKEN")
    if token is None:
        return Err(ConfigError("GITHUB_TOKEN is required", variable="GITHUB_TOKEN"))

    body = env.get("INPUT_BODY") or None
    body_path = _env_str(env, "INPUT_BODY_PATH")
    if body_path is not None:
        read = _read_body_path(body_path)
        if isinstance(read, Err):
            return read
        body = read.value or body

    workers = upload_workers if upload_workers is not None else DEFAULT_UPLOAD_WORKERS
    if workers < 1:
        return Err(ConfigError(f"upload workers must be at least 1, got {workers}"))

    release = ReleaseConfig(
        repository=repository,
        ref=env.get("GITHUB_REF", "").strip(),
        tag_name=_env_str(env, "INPUT_TAG_NAME"),
        name=_env_str(env, "INPUT_NAME"),
        body=body,
        draft=env_flag(env, "INPUT_DRAFT"),
        prerelease=env_flag(env, "INPUT_PRERELEASE"),
        draft_until_assets_uploaded=env_flag(env, "INPUT_DRAFT_UNTIL_ASSETS_UPLOADED"),
    )
    return Ok(
        ActionConfig(
            token=token,
            release=release,
            files=parse_input_files(env.get("INPUT_FILES")),
            fail_on_unmatched_files=env_flag(env, "INPUT_FAIL_ON_UNMATCHED_FILES"),
            api_url=(_env_str(env, "GITHUB_API_URL") or DEFAULT_API_URL).rstrip("/"),
            upload_workers=workers,
        )
    )
