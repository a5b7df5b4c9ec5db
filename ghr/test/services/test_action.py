"""Tests for ghr.services.action - the end-to-end run."""

from __future__ import annotations

import importlib
from pathlib import Path

import pytest

from ghr.core.config import ActionConfig, ReleaseConfig
from ghr.core.result import Err, Ok
from ghr.github.memory import InMemoryReleaser
from ghr.output.actions import MockActionOutputs
from ghr.output.console import MockConsole
from ghr.services.action import check_inputs, run_action

release_mod = importlib.import_module("ghr.services.release")


@pytest.fixture(autouse=True)
def _no_sleep(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(release_mod, "sleep", lambda seconds: None)


def _config(
    *,
    files: tuple[str, ...] = (),
    fail_on_unmatched_files: bool = False,
    **release_fields: object,
) -> ActionConfig:
    fields: dict[str, object] = {"repository": "octo/widgets", "ref": "refs/tags/v2.0.0"}
    fields.update(release_fields)
    return ActionConfig(
        token="t",
        release=ReleaseConfig(**fields),  # type: ignore[arg-type]
        files=files,
        fail_on_unmatched_files=fail_on_unmatched_files,
    )


def _dist(root: Path, *names: str) -> None:
    (root / "dist").mkdir(exist_ok=True)
    for name in names:
        (root / "dist" / name).write_bytes(b"data")


class TestCheckInputs:
    def test_requires_tag(self) -> None:
        config = _config(ref="refs/heads/main")
        result = check_inputs(config, MockConsole())
        assert isinstance(result, Err)
        assert result.error.kind == "missing_tag"
        assert result.error.message == "GitHub Releases requires a tag"

    def test_tag_override_allows_branch_ref(self) -> None:
        config = _config(ref="refs/heads/main", tag_name="nightly")
        assert check_inputs(config, MockConsole()) == Ok(None)

    def test_unmatched_pattern_warns(self, tmp_path: Path) -> None:
        console = MockConsole()
        result = check_inputs(_config(files=("dist/*.bin",)), console, root=tmp_path)
        assert result == Ok(None)
        assert console.find("Pattern 'dist/*.bin' does not match any files.")

    def test_unmatched_pattern_strict_is_fatal(self, tmp_path: Path) -> None:
        console = MockConsole()
        config = _config(files=("dist/*.bin",), fail_on_unmatched_files=True)
        result = check_inputs(config, console, root=tmp_path)
        assert isinstance(result, Err)
        assert result.error.kind == "unmatched_files"
        assert result.error.message == "There were unmatched files"


def test_strict_unmatched_fails_before_any_api_call(tmp_path: Path) -> None:
    releaser = InMemoryReleaser()
    outputs = MockActionOutputs()
    config = _config(files=("dist/*.bin",), fail_on_unmatched_files=True)

    result = run_action(config, releaser, MockConsole(), outputs, root=tmp_path)

    assert isinstance(result, Err)
    assert releaser.calls == []
    assert outputs.outputs == {}


def test_unmatched_without_strict_still_releases(tmp_path: Path) -> None:
    releaser = InMemoryReleaser()
    console = MockConsole()

    result = run_action(
        _config(files=("dist/*.bin",)), releaser, console, MockActionOutputs(), root=tmp_path
    )

    assert isinstance(result, Ok)
    assert console.find("does not include valid file(s)")
    assert len(releaser.with_tag("v2.0.0")) == 1


def test_release_uploads_and_reports_outputs(tmp_path: Path) -> None:
    _dist(tmp_path, "app.zip", "app.tar.gz")
    releaser = InMemoryReleaser()
    outputs = MockActionOutputs()
    console = MockConsole()

    result = run_action(
        _config(files=("dist/*",), body="notes"), releaser, console, outputs, root=tmp_path
    )

    assert isinstance(result, Ok)
    rel = result.value.release
    assert sorted(a.name for a in result.value.assets) == ["app.tar.gz", "app.zip"]
    assert result.value.published is False
    assert outputs.outputs == {"url": rel.html_url, "upload_url": rel.upload_url}
    assert console.find(f"Release ready at {rel.html_url}")


def test_draft_until_uploaded_publishes_after_uploads(tmp_path: Path) -> None:
    _dist(tmp_path, "a.bin", "b.bin", "c.bin")
    releaser = InMemoryReleaser()
    outputs = MockActionOutputs()

    result = run_action(
        _config(files=("dist/*.bin",), draft=False, draft_until_assets_uploaded=True),
        releaser,
        MockConsole(),
        outputs,
        root=tmp_path,
    )

    assert isinstance(result, Ok)
    ops = releaser.ops()
    assert ops[:4] == ["find_release", "all_releases", "create_release", "upload_asset"]
    assert ops.count("upload_asset") == 3
    assert ops[-1] == "update_release"
    assert ops.count("update_release") == 1
    create = releaser.calls[2]
    assert create.field("draft") is True
    assert releaser.calls[-1].fields == (("draft", False),)
    assert result.value.published is True
    assert result.value.release.draft is False
    assert "untagged" not in outputs.outputs["url"]


def test_draft_until_uploaded_updates_existing_as_draft(tmp_path: Path) -> None:
    _dist(tmp_path, "a.bin")
    releaser = InMemoryReleaser()
    existing = releaser.add("v2.0.0", body="old", draft=True)

    result = run_action(
        _config(files=("dist/*.bin",), draft_until_assets_uploaded=True, body="new"),
        releaser,
        MockConsole(),
        MockActionOutputs(),
        root=tmp_path,
    )

    assert isinstance(result, Ok)
    assert releaser.ops() == [
        "find_release",
        "all_releases",
        "update_release",
        "upload_asset",
        "update_release",
    ]
    assert releaser.calls[2].field("draft") is True
    assert releaser.calls[2].field("body") == "old\nnew"
    assert result.value.release.id == existing.id


def test_draft_requested_is_never_published(tmp_path: Path) -> None:
    _dist(tmp_path, "a.bin")
    releaser = InMemoryReleaser()

    result = run_action(
        _config(files=("dist/*.bin",), draft=True, draft_until_assets_uploaded=True),
        releaser,
        MockConsole(),
        MockActionOutputs(),
        root=tmp_path,
    )

    assert isinstance(result, Ok)
    assert "update_release" not in releaser.ops()
    assert result.value.published is False
    assert result.value.release.draft is True


def test_failed_upload_fails_run_and_skips_publish(tmp_path: Path) -> None:
    _dist(tmp_path, "good.bin", "bad.bin")
    releaser = InMemoryReleaser()
    releaser.fail_uploads = {"bad.bin"}
    outputs = MockActionOutputs()

    result = run_action(
        _config(files=("dist/*.bin",), draft_until_assets_uploaded=True),
        releaser,
        MockConsole(),
        outputs,
        root=tmp_path,
    )

    assert isinstance(result, Err)
    assert result.error.kind == "upload_failed"
    assert "update_release" not in releaser.ops()
    assert outputs.outputs == {}
    assert releaser.with_tag("v2.0.0")[0].draft is True
