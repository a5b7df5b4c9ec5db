"""Release asset uploads."""

from __future__ import annotations

import mimetypes
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from ghr.core.config import DEFAULT_UPLOAD_WORKERS
from ghr.core.result import Err, Ok, Result
from ghr.github.errors import ReleaseError
from ghr.github.releaser import Release, ReleaseAsset, Releaser, UploadedAsset
from ghr.output.console import ConsoleProtocol

__all__ = ["DEFAULT_MIME", "asset", "mime_or_default", "upload", "upload_all"]

DEFAULT_MIME = "application/octet-stream"

# Compressed files are served as their wrapper, so app.tar.gz is gzip rather than tar.
_ENCODING_MIMES = {
    "gzip": "application/gzip",
    "xz": "application/x-xz",
    "bzip2": "application/x-bzip2",
    "br": "application/x-brotli",
    "compress": "application/x-compress",
}


def mime_or_default(path: Path | str) -> str:
    mime, encoding = mimetypes.guess_type(str(path))
    if encoding is not None:
        return _ENCODING_MIMES.get(encoding, DEFAULT_MIME)
    return mime or DEFAULT_MIME


def asset(path: Path) -> Result[ReleaseAsset, ReleaseError]:
    """Read ``path`` into an uploadable asset."""
    try:
        content = path.read_bytes()
        size = path.stat().st_size
    except OSError as e:
        return Err(
            ReleaseError(
                kind="io_error",
                message=f"cannot read asset {path}: {e.strerror or e}",
                hint=str(path),
            )
        )
    return Ok(ReleaseAsset(name=path.name, mime=mime_or_default(path), size=size, file=content))


def upload(
    releaser: Releaser,
    release: Release,
    path: Path,
    console: ConsoleProtocol,
) -> Result[UploadedAsset, ReleaseError]:
    """Upload one file to ``release``. No retry: failures are returned."""
    loaded = asset(path)
    if isinstance(loaded, Err):
        return loaded
    console.info(f"Uploading {loaded.value.name}...")
    return releaser.upload_asset(release.upload_url, loaded.value)


def upload_all(
    releaser: Releaser,
    release: Release,
    paths: Sequence[Path],
    console: ConsoleProtocol,
    *,
    max_workers: int = DEFAULT_UPLOAD_WORKERS,
) -> Result[list[UploadedAsset], ReleaseError]:
    """Upload ``paths`` concurrently and wait for every upload to settle.

    Returns:
        Ok with uploaded assets in input order, or a single ``upload_failed``
        error listing every file that failed. Uploads that succeeded are left
        in place.
    """
    if not paths:
        return Ok([])

    workers = max(1, min(max_workers, len(paths)))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [executor.submit(upload, releaser, release, p, console) for p in paths]
        results = [f.result() for f in futures]

    uploaded: list[UploadedAsset] = []
    failures: list[str] = []
    for path, result in zip(paths, results, strict=True):
        if isinstance(result, Err):
            failures.append(f"{path.name}: {result.error.message}")
        else:
            uploaded.append(result.value)

    if failures:
        return Err(
            ReleaseError(
                kind="upload_failed",
                message=f"{len(failures)} of {len(paths)} asset uploads failed",
                hint="; ".join(failures),
            )
        )
    return Ok(uploaded)
