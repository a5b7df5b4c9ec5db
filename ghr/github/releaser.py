"""Release API access.

``Releaser`` is the seam between the release workflow and GitHub. The
workflow only depends on the protocol, so tests substitute an in-memory
implementation and production uses ``GitHubReleaser`` over an ``HttpClient``.
"""

from __future__ import annotations

import json
import urllib.parse
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Protocol

from ghr.core.paging import find_first
from ghr.core.result import Err, Ok, Result
from ghr.core.structured import as_obj_list, as_str_dict, get_bool, get_int, get_str
from ghr.github.errors import ReleaseError
from ghr.github.http import HttpClient, HttpError
from ghr.github.timeouts import RELEASES_PER_PAGE
from ghr.output.console import ConsoleProtocol

__all__ = [
    "GitHubReleaser",
    "Release",
    "ReleaseAsset",
    "Releaser",
    "UploadedAsset",
    "asset_upload_url",
    "release_error",
]


@dataclass(frozen=True, slots=True)
class Release:
    """Projection of a release as returned by the API."""

    id: int
    upload_url: str
    html_url: str
    tag_name: str
    body: str | None = None
    target_commitish: str | None = None
    name: str | None = None
    draft: bool = False
    prerelease: bool = False


@dataclass(frozen=True, slots=True)
class ReleaseAsset:
    """A local file ready to be attached to a release."""

    name: str
    mime: str
    size: int
    file: bytes


@dataclass(frozen=True, slots=True)
class UploadedAsset:
    id: int
    name: str
    size: int
    browser_download_url: str | None


class Releaser(Protocol):
    def get_release_by_tag(self, owner: str, repo: str, tag: str) -> Result[Release, ReleaseError]:
        """Published release for ``tag``. Drafts are never returned."""
        ...

    def find_release(
        self, owner: str, repo: str, tag: str, draft: bool
    ) -> Result[Release, ReleaseError]:
        """Release for ``tag``, scanning the release list when ``draft`` is set."""
        ...

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
    ) -> Result[Release, ReleaseError]: ...

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
        """Partial update; ``None`` fields are left unchanged."""
        ...

    def all_releases(self, owner: str, repo: str) -> Iterator[Result[list[Release], ReleaseError]]:
        """Lazily fetched pages of releases, newest first."""
        ...

    def upload_asset(
        self, upload_url: str, asset: ReleaseAsset
    ) -> Result[UploadedAsset, ReleaseError]: ...


def _is_conflict(error: HttpError) -> bool:
    if error.status == 409:
        return True
    return error.status == 422 and "already_exists" in error.body


def _api_message(error: HttpError) -> str:
    body = as_str_dict(_loads_or_none(error.body))
    if body is not None:
        message = get_str(body, "message")
        if message:
            return f"HTTP {error.status}: {message}"
    return str(error)


def _loads_or_none(raw: str) -> object:
    try:
        return json.loads(raw)
    except ValueError:
        return None


def release_error(error: HttpError, *, action: str) -> ReleaseError:
    """Classify an HTTP failure for the release workflow."""
    if error.status == 404:
        return ReleaseError(
            kind="not_found", message=f"{action}: not found", hint=error.url, status=404
        )
    if _is_conflict(error):
        return ReleaseError(
            kind="conflict",
            message=f"{action}: release already exists",
            hint=error.url,
            status=error.status,
        )
    return ReleaseError(
        kind="http_error",
        message=f"{action} failed: {_api_message(error)}",
        hint=error.url,
        status=error.status or None,
    )


def _parse_release(obj: object) -> Release | None:
    data = as_str_dict(obj)
    if data is None:
        return None
    release_id = get_int(data, "id")
    upload_url = get_str(data, "upload_url")
    html_url = get_str(data, "html_url")
    tag_name = get_str(data, "tag_name")
    if release_id is None or upload_url is None or html_url is None or tag_name is None:
        return None
    return Release(
        id=release_id,
        upload_url=upload_url,
        html_url=html_url,
        tag_name=tag_name,
        body=get_str(data, "body"),
        target_commitish=get_str(data, "target_commitish"),
        name=get_str(data, "name"),
        draft=get_bool(data, "draft") or False,
        prerelease=get_bool(data, "prerelease") or False,
    )


def _parse_uploaded(obj: object) -> UploadedAsset | None:
    data = as_str_dict(obj)
    if data is None:
        return None
    asset_id = get_int(data, "id")
    name = get_str(data, "name")
    if asset_id is None or name is None:
        return None
    return UploadedAsset(
        id=asset_id,
        name=name,
        size=get_int(data, "size") or 0,
        browser_download_url=get_str(data, "browser_download_url"),
    )


def asset_upload_url(upload_url: str, name: str) -> str:
    """Expand an ``upload_url`` template such as ``.../assets{?name,label}``."""
    base = upload_url.split("{", 1)[0]
    return f"{base}?{urllib.parse.urlencode({'name': name})}"


def _without_none(**fields: object) -> dict[str, object]:
    return {k: v for k, v in fields.items() if v is not None}


class GitHubReleaser:
    """``Releaser`` backed by the GitHub REST API."""

    def __init__(
        self,
        http: HttpClient,
        *,
        api_url: str = "https://api.github.com",
        console: ConsoleProtocol | None = None,
    ) -> None:
        self._http = http
        self._api_url = api_url.rstrip("/")
        self._console = console

    def _releases_url(self, owner: str, repo: str) -> str:
        return f"{self._api_url}/repos/{owner}/{repo}/releases"

    def _info(self, message: str) -> None:
        if self._console is not None:
            self._console.info(message)

    def _release_call(
        self,
        method: str,
        url: str,
        payload: dict[str, object] | None,
        *,
        action: str,
    ) -> Result[Release, ReleaseError]:
        result = self._http.request_json(method, url, payload)
        if isinstance(result, Err):
            return Err(release_error(result.error, action=action))
        release = _parse_release(result.value.data)
        if release is None:
            return Err(
                ReleaseError(
                    kind="invalid_response",
                    message=f"{action}: unexpected release payload",
                    hint=url,
                )
            )
        return Ok(release)

    def get_release_by_tag(self, owner: str, repo: str, tag: str) -> Result[Release, ReleaseError]:
        quoted = urllib.parse.quote(tag, safe="")
        return self._release_call(
            "GET",
            f"{self._releases_url(owner, repo)}/tags/{quoted}",
            None,
            action=f"get release {tag}",
        )

    def find_release(
        self, owner: str, repo: str, tag: str, draft: bool
    ) -> Result[Release, ReleaseError]:
        if not draft:
            self._info(f"Looking for non-draft release with tag: {tag}")
            return self.get_release_by_tag(owner, repo, tag)

        # Drafts are not addressable by tag; scan the full list instead.
        self._info(f"Looking for draft release with tag: {tag}")
        found = find_first(self.all_releases(owner, repo), lambda r: r.tag_name == tag)
        if isinstance(found, Err):
            return found
        if found.value is None:
            return Err(
                ReleaseError(
                    kind="not_found",
                    message=f"find release {tag}: not found",
                    hint=f"{owner}/{repo}",
                    status=404,
                )
            )
        self._info(f"Found draft release: {found.value.tag_name}")
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
        payload = _without_none(
            tag_name=tag_name,
            name=name,
            body=body,
            draft=draft,
            prerelease=prerelease,
        )
        return self._release_call(
            "POST", self._releases_url(owner, repo), payload, action=f"create release {tag_name}"
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
        payload = _without_none(
            tag_name=tag_name,
            target_commitish=target_commitish,
            name=name,
            body=body,
            draft=draft,
            prerelease=prerelease,
        )
        return self._release_call(
            "PATCH",
            f"{self._releases_url(owner, repo)}/{release_id}",
            payload,
            action=f"update release {release_id}",
        )

    def all_releases(self, owner: str, repo: str) -> Iterator[Result[list[Release], ReleaseError]]:
        url: str | None = f"{self._releases_url(owner, repo)}?per_page={RELEASES_PER_PAGE}"
        while url is not None:
            result = self._http.request_json("GET", url)
            if isinstance(result, Err):
                yield Err(release_error(result.error, action="list releases"))
                return

            items = as_obj_list(result.value.data)
            if items is None:
                yield Err(
                    ReleaseError(
                        kind="invalid_response",
                        message="list releases: expected a JSON array",
                        hint=url,
                    )
                )
                return

            page: list[Release] = []
            for item in items:
                release = _parse_release(item)
                if release is not None:
                    page.append(release)
            yield Ok(page)
            url = result.value.next_url

    def upload_asset(
        self, upload_url: str, asset: ReleaseAsset
    ) -> Result[UploadedAsset, ReleaseError]:
        url = asset_upload_url(upload_url, asset.name)
        result = self._http.upload(url, asset.file, asset.mime)
        if isinstance(result, Err):
            return Err(release_error(result.error, action=f"upload {asset.name}"))
        uploaded = _parse_uploaded(result.value.data)
        if uploaded is None:
            return Err(
                ReleaseError(
                    kind="invalid_response",
                    message=f"upload {asset.name}: unexpected asset payload",
                    hint=url,
                )
            )
        return Ok(uploaded)
