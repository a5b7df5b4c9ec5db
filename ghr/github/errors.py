from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ReleaseErrorKind = Literal[
    "not_found",
    "conflict",
    "http_error",
    "invalid_response",
    "invalid_input",
    "missing_tag",
    "unmatched_files",
    "io_error",
    "upload_failed",
]


@dataclass(frozen=True, slots=True)
class ReleaseError:
    kind: ReleaseErrorKind
    message: str
    hint: str | None = None
    # HTTP status when the error came from the API
    status: int | None = None
