"""Tests for ghr.github.releaser - GitHubReleaser over a mocked API."""

from __future__ import annotations

from typing import Any

import pytest

from ghr.core.result import Err, Ok
from ghr.github.http import HttpError, MockHttpClient
from ghr.github.releaser import (
    GitHubReleaser,
    ReleaseAsset,
    asset_upload_url,
    release_error,
)
from ghr.output.console import MockConsole

API = "https://api.example.test"
RELEASES = f"{API}/repos/octo/widgets/releases"
LIST_URL = f"{RELEASES}?per_page=100"


def _release(release_id: int, tag: str, **extra: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": release_id,
        "upload_url": (
            f"https://uploads.example.test/repos/octo/widgets/releases/{release_id}"
            "/assets{?name,label}"
        ),
        "html_url": f"https://example.test/octo/widgets/releases/tag/{tag}",
        "tag_name": tag,
        "body": "notes",
        "target_commitish": "main",
        "draft": False,
        "prerelease": False,
    }
    data.update(extra)
    return data


@pytest.fixture
def http() -> MockHttpClient:
    return MockHttpClient()


@pytest.fixture
def releaser(http: MockHttpClient) -> GitHubReleaser:
    return GitHubReleaser(http, api_url=API, console=MockConsole())


class TestGetReleaseByTag:
    def test_found(self, http: MockHttpClient, releaser: GitHubReleaser) -> None:
        http.add("GET", f"{RELEASES}/tags/v1.0.0", _release(1, "v1.0.0"))

        result = releaser.get_release_by_tag("octo", "widgets", "v1.0.0")

        assert isinstance(result, Ok)
        assert result.value.id == 1
        assert result.value.target_commitish == "main"

    def test_missing_is_not_found(self, releaser: GitHubReleaser) -> None:
        result = releaser.get_release_by_tag("octo", "widgets", "v404")

        assert isinstance(result, Err)
        assert result.error.kind == "not_found"
        assert result.error.status == 404

    def test_tag_is_url_quoted(self, http: MockHttpClient, releaser: GitHubReleaser) -> None:
        http.add("GET", f"{RELEASES}/tags/release%2F1.0", _release(3, "release/1.0"))

        result = releaser.get_release_by_tag("octo", "widgets", "release/1.0")

        assert isinstance(result, Ok)

    def test_malformed_payload(self, http: MockHttpClient, releaser: GitHubReleaser) -> None:
        http.add("GET", f"{RELEASES}/tags/v1", {"id": "nope"})

        result = releaser.get_release_by_tag("octo", "widgets", "v1")

        assert isinstance(result, Err)
        assert result.error.kind == "invalid_response"


class TestFindRelease:
    def test_non_draft_never_enumerates(
        self, http: MockHttpClient, releaser: GitHubReleaser
    ) -> None:
        http.add("GET", f"{RELEASES}/tags/v1", _release(1, "v1"))

        result = releaser.find_release("octo", "widgets", "v1", draft=False)

        assert isinstance(result, Ok)
        assert [c.url for c in http.calls] == [f"{RELEASES}/tags/v1"]

    def test_draft_found_by_enumeration(
        self, http: MockHttpClient, releaser: GitHubReleaser
    ) -> None:
        page2 = f"{RELEASES}?per_page=100&page=2"
        http.add(
            "GET",
            LIST_URL,
            [_release(9, "v9"), _release(8, "v8")],
            headers={"link": f'<{page2}>; rel="next"'},
        )
        http.add("GET", page2, [_release(2, "v2", draft=True), _release(1, "v1")])

        result = releaser.find_release("octo", "widgets", "v2", draft=True)

        assert isinstance(result, Ok)
        assert result.value.id == 2
        assert result.value.draft is True
        assert all("/tags/" not in c.url for c in http.calls)

    def test_draft_scan_stops_at_first_match(
        self, http: MockHttpClient, releaser: GitHubReleaser
    ) -> None:
        page2 = f"{RELEASES}?per_page=100&page=2"
        http.add(
            "GET",
            LIST_URL,
            [_release(5, "v5", draft=True)],
            headers={"link": f'<{page2}>; rel="next"'},
        )
        http.add("GET", page2, [_release(4, "v4")])

        result = releaser.find_release("octo", "widgets", "v5", draft=True)

        assert isinstance(result, Ok)
        assert [c.url for c in http.calls] == [LIST_URL]

    def test_draft_scan_exhausted_is_not_found(
        self, http: MockHttpClient, releaser: GitHubReleaser
    ) -> None:
        http.add("GET", LIST_URL, [_release(1, "v1")])

        result = releaser.find_release("octo", "widgets", "v2", draft=True)

        assert isinstance(result, Err)
        assert result.error.kind == "not_found"
        assert [c.url for c in http.calls] == [LIST_URL]

    def test_draft_scan_propagates_list_error(
        self, http: MockHttpClient, releaser: GitHubReleaser
    ) -> None:
        http.add("GET", LIST_URL, HttpError(url=LIST_URL, status=500, message="Server Error"))

        result = releaser.find_release("octo", "widgets", "v2", draft=True)

        assert isinstance(result, Err)
        assert result.error.kind == "http_error"
        assert result.error.status == 500


class TestCreateAndUpdate:
    def test_create_payload_omits_none(
        self, http: MockHttpClient, releaser: GitHubReleaser
    ) -> None:
        http.add("POST", RELEASES, _release(1, "v1"), status=201)

        result = releaser.create_release(
            "octo", "widgets", tag_name="v1", name="v1", body=None, draft=True, prerelease=False
        )

        assert isinstance(result, Ok)
        assert http.calls[0].payload == {
            "tag_name": "v1",
            "name": "v1",
            "draft": True,
            "prerelease": False,
        }

    def test_create_conflict(self, http: MockHttpClient, releaser: GitHubReleaser) -> None:
        body = (
            '{"message":"Validation Failed",'
            '"errors":[{"resource":"Release","code":"already_exists","field":"tag_name"}]}'
        )
        error = HttpError(url=RELEASES, status=422, message="Unprocessable", body=body)
        http.add("POST", RELEASES, error)

        result = releaser.create_release(
            "octo", "widgets", tag_name="v1", name="v1", body="b", draft=False, prerelease=False
        )

        assert isinstance(result, Err)
        assert result.error.kind == "conflict"
        assert result.error.status == 422

    def test_update_is_partial(self, http: MockHttpClient, releaser: GitHubReleaser) -> None:
        http.add("PATCH", f"{RELEASES}/7", _release(7, "v7"))

        result = releaser.update_release("octo", "widgets", 7, draft=False)

        assert isinstance(result, Ok)
        assert http.calls[0].method == "PATCH"
        assert http.calls[0].payload == {"draft": False}


class TestAllReleases:
    def test_is_lazy(self, http: MockHttpClient, releaser: GitHubReleaser) -> None:
        http.add("GET", LIST_URL, [_release(1, "v1")])

        pages = releaser.all_releases("octo", "widgets")

        assert http.calls == []
        first = next(pages)
        assert isinstance(first, Ok)
        assert [r.tag_name for r in first.value] == ["v1"]
        assert list(pages) == []

    def test_restartable_per_call(self, http: MockHttpClient, releaser: GitHubReleaser) -> None:
        http.add("GET", LIST_URL, [_release(1, "v1")])

        assert len(list(releaser.all_releases("octo", "widgets"))) == 1
        assert len(list(releaser.all_releases("octo", "widgets"))) == 1
        assert len(http.calls) == 2

    def test_non_list_payload(self, http: MockHttpClient, releaser: GitHubReleaser) -> None:
        http.add("GET", LIST_URL, {"message": "weird"})

        pages = list(releaser.all_releases("octo", "widgets"))

        assert len(pages) == 1
        assert isinstance(pages[0], Err)
        assert pages[0].error.kind == "invalid_response"


class TestUploadAsset:
    def test_upload(self, http: MockHttpClient, releaser: GitHubReleaser) -> None:
        template = "https://uploads.example.test/repos/octo/widgets/releases/1/assets{?name,label}"
        url = "https://uploads.example.test/repos/octo/widgets/releases/1/assets?name=app+1.zip"
        http.add("POST", url, {"id": 11, "name": "app 1.zip", "size": 2}, status=201)
        asset = ReleaseAsset(name="app 1.zip", mime="application/zip", size=2, file=b"PK")

        result = releaser.upload_asset(template, asset)

        assert isinstance(result, Ok)
        assert result.value.id == 11
        assert http.calls[0].content == b"PK"
        assert http.calls[0].content_type == "application/zip"

    def test_upload_failure(self, releaser: GitHubReleaser) -> None:
        asset = ReleaseAsset(name="a.bin", mime="application/octet-stream", size=1, file=b"x")

        result = releaser.upload_asset("https://uploads.example.test/none{?name}", asset)

        assert isinstance(result, Err)
        assert result.error.kind == "not_found"


def test_asset_upload_url_expands_template() -> None:
    assert (
        asset_upload_url("https://u.test/releases/1/assets{?name,label}", "a b.zip")
        == "https://u.test/releases/1/assets?name=a+b.zip"
    )


def test_release_error_uses_api_message() -> None:
    error = HttpError(
        url="https://api.example.test/x",
        status=403,
        message="Forbidden",
        body='{"message": "Resource not accessible by integration"}',
    )
    classified = release_error(error, action="create release v1")
    assert classified.kind == "http_error"
    assert classified.message == (
        "create release v1 failed: HTTP 403: Resource not accessible by integration"
    )
