"""Find-or-create of the release for a tag.

A run first looks for an existing release and appends to it. Only when none
exists does it create one. Two pipeline runs for the same tag can both miss
the lookup and race on create; the loser sees a conflict and starts over,
which then finds the winner's release and updates it.
"""

from __future__ import annotations

from time import sleep

from ghr.core.config import ReleaseConfig
from ghr.core.result import Err, Ok, Result
from ghr.github.errors import ReleaseError
from ghr.github.releaser import Release, Releaser
from ghr.github.timeouts import CREATE_RETRY_ATTEMPTS, CREATE_RETRY_DELAY_SECONDS
from ghr.output.console import ConsoleProtocol

__all__ = ["merge_body", "publish_release", "release"]


def merge_body(existing: str | None, new: str | None) -> str:
    """Release notes are appended to, never replaced."""
    return f"{existing or ''}\n{new or ''}"


def _update_existing(
    config: ReleaseConfig,
    existing: Release,
    releaser: Releaser,
) -> Result[Release, ReleaseError]:
    return releaser.update_release(
        config.owner,
        config.repo,
        existing.id,
        tag_name=config.tag,
        target_commitish=existing.target_commitish,
        name=config.display_name,
        body=merge_body(existing.body, config.body),
        draft=config.draft,
        prerelease=config.prerelease,
    )


def _attempt(
    config: ReleaseConfig,
    releaser: Releaser,
    console: ConsoleProtocol,
) -> Result[Release, ReleaseError] | None:
    """One find/update/create pass. ``None`` means create lost a race."""
    tag = config.tag
    found = releaser.find_release(config.owner, config.repo, tag, config.draft)
    if isinstance(found, Ok):
        return _update_existing(config, found.value, releaser)

    if found.error.kind != "not_found":
        console.warning(
            f"Unexpected error fetching GitHub release for tag {config.ref or tag}: "
            f"{found.error.message}"
        )
        return found

    console.info(f"Creating new GitHub release for tag {tag}...")
    created = releaser.create_release(
        config.owner,
        config.repo,
        tag_name=tag,
        name=config.display_name,
        body=config.body,
        draft=config.draft,
        prerelease=config.prerelease,
    )
    if isinstance(created, Err) and created.error.kind == "conflict":
        console.warning(
            f"GitHub release failed with status: {created.error.status}, retrying..."
        )
        return None
    return created


def release(
    config: ReleaseConfig,
    releaser: Releaser,
    console: ConsoleProtocol,
    *,
    max_attempts: int = CREATE_RETRY_ATTEMPTS,
    retry_delay: float = CREATE_RETRY_DELAY_SECONDS,
) -> Result[Release, ReleaseError]:
    """Update the release for ``config.tag``, creating it if missing.

    Args:
        config: Desired release state. Tag and repository are re-derived on
            every attempt.
        releaser: Release API.
        console: Progress output.
        max_attempts: Upper bound on find/create passes when creates keep
            conflicting.
        retry_delay: Base delay between passes; grows linearly per attempt.

    Returns:
        Ok with the created or updated release, or Err. A ``conflict`` error
        means every attempt lost the create race.
    """
    attempts = max(1, max_attempts)
    for attempt in range(1, attempts + 1):
        outcome = _attempt(config, releaser, console)
        if outcome is not None:
            return outcome
        if attempt < attempts:
            sleep(retry_delay * attempt)

    return Err(
        ReleaseError(
            kind="conflict",
            message=f"release {config.tag} kept conflicting after {attempts} attempts",
            hint="another run may be creating and deleting the same tag",
        )
    )


def publish_release(
    config: ReleaseConfig,
    release_id: int,
    releaser: Releaser,
) -> Result[Release, ReleaseError]:
    """Flip a draft release to published. Nothing else is changed."""
    return releaser.update_release(config.owner, config.repo, release_id, draft=False)
