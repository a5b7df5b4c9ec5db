"""HTTP client abstraction for the GitHub REST API.

This module provides:
- HttpClient: Protocol for JSON requests and raw uploads (injectable for tests)
- RealHttpClient: Real implementation using urllib, with one retry on rate limits
- MockHttpClient: Scripted implementation for testing
"""

from __future__ import annotations

import json
import re
import ssl
import urllib.error
import urllib.request
from collections import deque
from collections.abc import Mapping
from dataclasses import dataclass, field
from email.message import Message
from time import sleep, time
from typing import Protocol, runtime_checkable

from ghr import __version__
from ghr.core.result import Err, Ok, Result
from ghr.github.timeouts import (
    HTTP_TIMEOUT_SECONDS,
    RATE_LIMIT_DEFAULT_DELAY_SECONDS,
    RATE_LIMIT_MAX_DELAY_SECONDS,
    RATE_LIMIT_RETRIES,
    UPLOAD_TIMEOUT_SECONDS,
)
from ghr.output.console import ConsoleProtocol

__all__ = [
    "HttpClient",
    "HttpCall",
    "HttpError",
    "HttpResponse",
    "MockHttpClient",
    "RealHttpClient",
    "next_link",
]

_LINK_NEXT_RE = re.compile(r'<([^>]+)>\s*;\s*rel="next"')


def _empty_headers() -> dict[str, str]:
    return {}


@dataclass(frozen=True, slots=True)
class HttpError:
    """HTTP error details.

    Attributes:
        url: The URL that failed
        status: HTTP status code (0 for network errors)
        message: Human-readable error message
        body: Raw response body, when the server sent one
    """

    url: str
    status: int
    message: str
    body: str = ""

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"


@dataclass(frozen=True, slots=True)
class HttpResponse:
    status: int
    data: object
    # Header names are lower-cased.
    headers: Mapping[str, str] = field(default_factory=_empty_headers)

    @property
    def next_url(self) -> str | None:
        return next_link(self.headers.get("link"))


def next_link(header: str | None) -> str | None:
    """Extract the ``rel="next"`` target from a ``Link`` header."""
    if not header:
        return None
    m = _LINK_NEXT_RE.search(header)
    return m.group(1) if m else None


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for HTTP operations against the API."""

    def request_json(
        self,
        method: str,
        url: str,
        payload: Mapping[str, object] | None = None,
    ) -> Result[HttpResponse, HttpError]:
        """Send a request with an optional JSON body and decode the JSON reply."""
        ...

    def upload(
        self,
        url: str,
        content: bytes,
        content_type: str,
    ) -> Result[HttpResponse, HttpError]:
        """POST raw bytes and decode the JSON reply."""
        ...


def _lower_headers(headers: Message | None) -> dict[str, str]:
    if headers is None:
        return {}
    return {k.lower(): v for k, v in headers.items()}


def _is_rate_limited(status: int, headers: Mapping[str, str]) -> bool:
    if status == 429:
        return True
    if status != 403:
        return False
    return headers.get("x-ratelimit-remaining") == "0" or "retry-after" in headers


def _rate_limit_delay(headers: Mapping[str, str]) -> float:
    retry_after = headers.get("retry-after")
    if retry_after is not None:
        try:
            return min(max(float(retry_after), 0.0), RATE_LIMIT_MAX_DELAY_SECONDS)
        except ValueError:
            pass
    reset = headers.get("x-ratelimit-reset")
    if reset is not None:
        try:
            return min(max(float(reset) - time(), 0.0), RATE_LIMIT_MAX_DELAY_SECONDS)
        except ValueError:
            pass
    return RATE_LIMIT_DEFAULT_DELAY_SECONDS


def _decode_json(url: str, status: int, raw: bytes) -> Result[object, HttpError]:
    if not raw.strip():
        return Ok(None)
    try:
        data: object = json.loads(raw.decode("utf-8"))
        return Ok(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        return Err(HttpError(url=url, status=status, message=f"JSON parse error: {e}"))


class RealHttpClient:
    """Real HTTP client using urllib.

    Handles:
    - Bearer token authentication
    - JSON request and response bodies
    - A single retry when the API reports a rate limit
    """

    def __init__(
        self,
        token: str,
        *,
        console: ConsoleProtocol | None = None,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        upload_timeout: float = UPLOAD_TIMEOUT_SECONDS,
        user_agent: str = f"ghr/{__version__}",
    ) -> None:
        self._token = token
        self._console = console
        self.timeout = timeout
        self.upload_timeout = upload_timeout
        self.user_agent = user_agent
        # Use system certificates
        self._ssl_context = ssl.create_default_context()

    def _headers(self, content_type: str | None) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self._token}",
            "User-Agent": self.user_agent,
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if content_type is not None:
            headers["Content-Type"] = content_type
        return headers

    def _send(
        self,
        method: str,
        url: str,
        data: bytes | None,
        content_type: str | None,
        timeout: float,
    ) -> Result[HttpResponse, HttpError]:
        retries = 0
        while True:
            req = urllib.request.Request(
                url,
                data=data,
                headers=self._headers(content_type),
                method=method,
            )
            try:
                with urllib.request.urlopen(
                    req,
                    timeout=timeout,
                    context=self._ssl_context,
                ) as response:
                    raw = response.read()
                    status = response.status
                    headers = _lower_headers(response.headers)
            except urllib.error.HTTPError as e:
                headers = _lower_headers(e.headers)
                if _is_rate_limited(e.code, headers) and retries < RATE_LIMIT_RETRIES:
                    retries += 1
                    delay = _rate_limit_delay(headers)
                    if self._console is not None:
                        self._console.warning(
                            f"Request quota exhausted for request {method} {url}; "
                            f"retrying after {delay:.0f} seconds"
                        )
                    e.close()
                    sleep(delay)
                    continue
                with e:
                    body = e.read().decode("utf-8", errors="replace")
                return Err(HttpError(url=url, status=e.code, message=str(e.reason), body=body))
            except urllib.error.URLError as e:
                return Err(HttpError(url=url, status=0, message=str(e.reason)))
            except TimeoutError:
                return Err(HttpError(url=url, status=0, message="Request timed out"))
            except ValueError as e:
                return Err(HttpError(url=url, status=0, message=str(e)))
            except OSError as e:
                return Err(HttpError(url=url, status=0, message=str(e)))

            decoded = _decode_json(url, status, raw)
            if isinstance(decoded, Err):
                return decoded
            return Ok(HttpResponse(status=status, data=decoded.value, headers=headers))

    def request_json(
        self,
        method: str,
        url: str,
        payload: Mapping[str, object] | None = None,
    ) -> Result[HttpResponse, HttpError]:
        data = None if payload is None else json.dumps(payload).encode("utf-8")
        content_type = None if payload is None else "application/json; charset=utf-8"
        return self._send(method, url, data, content_type, self.timeout)

    def upload(
        self,
        url: str,
        content: bytes,
        content_type: str,
    ) -> Result[HttpResponse, HttpError]:
        # urllib sets Content-Length from the bytes body.
        return self._send("POST", url, content, content_type, self.upload_timeout)


@dataclass(frozen=True, slots=True)
class HttpCall:
    """One request seen by MockHttpClient."""

    method: str
    url: str
    payload: Mapping[str, object] | None = None
    content: bytes | None = None
    content_type: str | None = None


class MockHttpClient:
    """Mock HTTP client for testing.

    Responses are queued per (method, url) and consumed in order; the last
    queued response for a route is reused once the queue runs dry.

    Usage:
        client = MockHttpClient()
        client.add("GET", "https://api.github.com/repos/o/r/releases/tags/v1", {"id": 1})
        result = client.request_json("GET", "https://api.github.com/repos/o/r/releases/tags/v1")
    """

    def __init__(self) -> None:
        self._routes: dict[tuple[str, str], deque[HttpResponse | HttpError]] = {}
        self.calls: list[HttpCall] = []

    def add(
        self,
        method: str,
        url: str,
        response: object | HttpResponse | HttpError,
        *,
        status: int = 200,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        """Queue a response. Plain objects are wrapped as a JSON body."""
        if not isinstance(response, (HttpResponse, HttpError)):
            response = HttpResponse(status=status, data=response, headers=dict(headers or {}))
        self._routes.setdefault((method, url), deque()).append(response)

    def _reply(self, method: str, url: str) -> Result[HttpResponse, HttpError]:
        queue = self._routes.get((method, url))
        if not queue:
            return Err(HttpError(url=url, status=404, message="Not Found (mock)"))
        response = queue.popleft() if len(queue) > 1 else queue[0]
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)

    def request_json(
        self,
        method: str,
        url: str,
        payload: Mapping[str, object] | None = None,
    ) -> Result[HttpResponse, HttpError]:
        self.calls.append(HttpCall(method=method, url=url, payload=payload))
        return self._reply(method, url)

    def upload(
        self,
        url: str,
        content: bytes,
        content_type: str,
    ) -> Result[HttpResponse, HttpError]:
        self.calls.append(
            HttpCall(method="POST", url=url, content=content, content_type=content_type)
        )
        return self._reply("POST", url)

    def calls_to(self, method: str, url_prefix: str = "") -> list[HttpCall]:
        return [c for c in self.calls if c.method == method and c.url.startswith(url_prefix)]
