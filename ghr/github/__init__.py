"""GitHub release API client."""

from .errors import ReleaseError
from .http import HttpClient, HttpError, HttpResponse, MockHttpClient, RealHttpClient
from .releaser import GitHubReleaser, Release, ReleaseAsset, Releaser, UploadedAsset

__all__ = [
    "GitHubReleaser",
    "HttpClient",
    "HttpError",
    "HttpResponse",
    "MockHttpClient",
    "RealHttpClient",
    "Release",
    "ReleaseAsset",
    "ReleaseError",
    "Releaser",
    "UploadedAsset",
]
