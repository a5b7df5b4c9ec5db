"""In-memory ``Releaser`` for tests.

Mirrors the API behaviours the release workflow relies on: drafts are
invisible to tag lookup, creating a tag that already exists conflicts, and
listing is paginated newest first.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from dataclasses import dataclass, replace

from ghr.core.paging import find_first
from ghr.core.result import Err, Ok, Result
from ghr.github.errors import ReleaseError
from ghr.github.releaser import Release, ReleaseAsset, UploadedAsset

__all__ = ["InMemoryReleaser", "ReleaserCall"]


@dataclass(frozen=True, slots=True)
class ReleaserCall:
    op: str
    tag: str | None = None
    release_id: int | None = None
    fields: tuple[tuple[str, object], ...] = ()

    def field(self, name: str) -> object:
        return dict(self.fields).get(name)


class InMemoryReleaser:
    """Fake release store with call recording.

    Attributes:
        calls: Every operation in call order.
        before_create: Hook run at the start of each create, e.g. to let a
            competing run create the same tag first.
        fail_uploads: Asset names whose upload fails with an HTTP error.
    """

    def __init__(
        self,
        *,
        owner: str = "octo",
        repo: str = "widgets",
        page_size: int = 100,
    ) -> None:
        self.owner = owner
        self.repo = repo
        self.page_size = page_size
        self.releases: list[Release] = []
        self.assets: dict[int, list[UploadedAsset]] = {}
        self.calls: list[ReleaserCall] = []
        self.pages_fetched = 0
        self.before_create: Callable[[InMemoryReleaser, str], None] | None = None
        self.fail_uploads: set[str] = set()
        self._next_id = 1
        self._lock = threading.RLock()

    # Setup helpers

    def add(
        self,
        tag: str,
        *,
        body: str | None = None,
        draft: bool = False,
        prerelease: bool = False,
        target_commitish: str | None = "main",
        name: str | None = None,
    ) -> Release:
        """Store a release directly, without recording a call."""
        with self._lock:
            release_id = self._next_id
            self._next_id += 1
        release = Release(
            id=release_id,
            upload_url=f"https://uploads.example.test/{release_id}/assets{{?name,label}}",
            html_url=(
                f"https://example.test/{self.owner}/{self.repo}/releases/"
                f"{'untagged-' + str(release_id) if draft else 'tag/' + tag}"
            ),
            tag_name=tag,
            body=body,
            target_commitish=target_commitish,
            name=name or tag,
            draft=draft,
            prerelease=prerelease,
        )
        # Newest first, like the API listing.
        with self._lock:
            self.releases.insert(0, release)
        return release

    def with_tag(self, tag: str) -> list[Release]:
        return [r for r in self.releases if r.tag_name == tag]

    def ops(self) -> list[str]:
        return [c.op for c in self.calls]

    def _record(self, call: ReleaserCall) -> None:
        with self._lock:
            self.calls.append(call)

    def _not_found(self, tag: str) -> Err[ReleaseError]:
        return Err(ReleaseError(kind="not_found", message=f"release {tag}: not found", status=404))

    # Releaser protocol

    def get_release_by_tag(self, owner: str, repo: str, tag: str) -> Result[Release, ReleaseError]:
        self._record(ReleaserCall(op="get_release_by_tag", tag=tag))
        for release in self.releases:
            if release.tag_name == tag and not release.draft:
                return Ok(release)
        return self._not_found(tag)

    def find_release(
        self, owner: str, repo: str, tag: str, draft: bool
    ) -> Result[Release, ReleaseError]:
        self._record(ReleaserCall(op="find_release", tag=tag, fields=(("draft", draft),)))
        if not draft:
            return self.get_release_by_tag(owner, repo, tag)
        found = find_first(self.all_releases(owner, repo), lambda r: r.tag_name == tag)
        if isinstance(found, Err):
            return found
        if found.value is None:
            return self._not_found(tag)
        return Ok(found.value)

    def create_release(
        self,
        owner: str,
        repo: str,
        *,
        tag_name: str,
        name: str,
        body: str | None,
        draft: bool | None,
        prerelease: bool | None,
    ) -> Result[Release, ReleaseError]:
        if self.before_create is not None:
            self.before_create(self, tag_name)
        self._record(
            ReleaserCall(
                op="create_release",
                tag=tag_name,
                fields=(
                    ("name", name),
                    ("body", body),
                    ("draft", draft),
                    ("prerelease", prerelease),
                ),
            )
        )
        with self._lock:
            if self.with_tag(tag_name):
                return Err(
                    ReleaseError(
                        kind="conflict",
                        message=f"create release {tag_name}: release already exists",
                        status=422,
                    )
                )
            return Ok(
                self.add(
                    tag_name,
                    body=body,
                    draft=bool(draft),
                    prerelease=bool(prerelease),
                    name=name,
                )
            )

    def update_release(
        self,
        owner: str,
        repo: str,
        release_id: int,
        *,
        tag_name: str | None = None,
        target_commitish: str | None = None,
        name: str | None = None,
        body: str | None = None,
        draft: bool | None = None,
        prerelease: bool | None = None,
    ) -> Result[Release, ReleaseError]:
        changes: dict[str, object] = {
            k: v
            for k, v in (
                ("tag_name", tag_name),
                ("target_commitish", target_commitish),
                ("name", name),
                ("body", body),
                ("draft", draft),
                ("prerelease", prerelease),
            )
            if v is not None
        }
        self._record(
            ReleaserCall(
                op="update_release", release_id=release_id, fields=tuple(sorted(changes.items()))
            )
        )
        for i, release in enumerate(self.releases):
            if release.id != release_id:
                continue
            updated = replace(release, **changes)  # type: ignore[arg-type]
            if release.draft and not updated.draft:
                updated = replace(
                    updated,
                    html_url=(
                        f"https://example.test/{self.owner}/{self.repo}/releases/tag/"
                        f"{updated.tag_name}"
                    ),
                )
            self.releases[i] = updated
            return Ok(updated)
        return Err(
            ReleaseError(kind="not_found", message=f"release {release_id}: not found", status=404)
        )

    def all_releases(self, owner: str, repo: str) -> Iterator[Result[list[Release], ReleaseError]]:
        self._record(ReleaserCall(op="all_releases"))
        for start in range(0, len(self.releases), self.page_size):
            self.pages_fetched += 1
            yield Ok(list(self.releases[start : start + self.page_size]))

    def upload_asset(
        self, upload_url: str, asset: ReleaseAsset
    ) -> Result[UploadedAsset, ReleaseError]:
        self._record(ReleaserCall(op="upload_asset", fields=(("name", asset.name),)))
        if asset.name in self.fail_uploads:
            return Err(
                ReleaseError(
                    kind="http_error",
                    message=f"upload {asset.name} failed: HTTP 500",
                    status=500,
                )
            )
        release_id = int(upload_url.split("/")[3])
        with self._lock:
            bucket = self.assets.setdefault(release_id, [])
            uploaded = UploadedAsset(
                id=release_id * 1000 + len(bucket) + 1,
                name=asset.name,
                size=asset.size,
                browser_download_url=f"https://example.test/download/{asset.name}",
            )
            bucket.append(uploaded)
        return Ok(uploaded)
