"""Release workflow services."""

from .action import ActionResult, check_inputs, run_action
from .assets import asset, mime_or_default, upload, upload_all
from .release import merge_body, publish_release, release

__all__ = [
    "ActionResult",
    "asset",
    "check_inputs",
    "merge_body",
    "mime_or_default",
    "publish_release",
    "release",
    "run_action",
    "upload",
    "upload_all",
]
