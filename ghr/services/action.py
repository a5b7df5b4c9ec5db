"""End-to-end release run: validate inputs, release, upload, publish, report."""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path

from ghr.core.config import ActionConfig, is_tag
from ghr.core.result import Err, Ok, Result
from ghr.github.errors import ReleaseError
from ghr.github.releaser import Release, Releaser, UploadedAsset
from ghr.output.actions import ActionOutputs
from ghr.output.console import ConsoleProtocol
from ghr.platform.files import paths, unmatched_patterns
from ghr.services.assets import upload_all
from ghr.services.release import publish_release, release

__all__ = ["ActionResult", "check_inputs", "run_action"]


@dataclass(frozen=True, slots=True)
class ActionResult:
    release: Release
    assets: tuple[UploadedAsset, ...] = ()
    published: bool = False


def check_inputs(
    config: ActionConfig,
    console: ConsoleProtocol,
    *,
    root: Path | None = None,
) -> Result[None, ReleaseError]:
    """Checks that must pass before any API call is made."""
    if not config.release.tag_name and not is_tag(config.release.ref):
        return Err(
            ReleaseError(
                kind="missing_tag",
                message="GitHub Releases requires a tag",
                hint="push a tag or set the tag_name input",
            )
        )

    if config.files:
        unmatched = unmatched_patterns(config.files, root=root)
        for pattern in unmatched:
            console.warning(f"Pattern '{pattern}' does not match any files.")
        if unmatched and config.fail_on_unmatched_files:
            return Err(
                ReleaseError(
                    kind="unmatched_files",
                    message="There were unmatched files",
                    hint=", ".join(unmatched),
                )
            )
    return Ok(None)


def run_action(
    config: ActionConfig,
    releaser: Releaser,
    console: ConsoleProtocol,
    outputs: ActionOutputs,
    *,
    root: Path | None = None,
) -> Result[ActionResult, ReleaseError]:
    """Run one release.

    With ``draft_until_assets_uploaded`` the release is kept as a draft while
    assets upload and published afterwards, unless a draft was requested.
    Outputs are only written once every upload has settled.
    """
    checked = check_inputs(config, console, root=root)
    if isinstance(checked, Err):
        return checked

    desired = config.release
    initial = desired
    if desired.draft_until_assets_uploaded:
        console.info("Marking release as draft until all assets are uploaded")
        initial = replace(desired, draft=True)

    released = release(initial, releaser, console)
    if isinstance(released, Err):
        return released
    rel = released.value

    uploaded: list[UploadedAsset] = []
    if config.files:
        files = paths(config.files, root=root)
        if not files:
            console.warning(f"{', '.join(config.files)} does not include valid file(s).")
        result = upload_all(releaser, rel, files, console, max_workers=config.upload_workers)
        if isinstance(result, Err):
            return result
        uploaded = result.value

    published = False
    if desired.draft_until_assets_uploaded and not desired.draft:
        console.info("Publishing draft release")
        publish = publish_release(desired, rel.id, releaser)
        if isinstance(publish, Err):
            return publish
        rel = publish.value
        published = True

    console.success(f"Release ready at {rel.html_url}")
    outputs.set_output("url", rel.html_url)
    outputs.set_output("upload_url", rel.upload_url)
    return Ok(ActionResult(release=rel, assets=tuple(uploaded), published=published))
