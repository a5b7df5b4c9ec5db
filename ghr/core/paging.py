"""Search over lazily fetched pages."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from typing import TypeVar

from .result import Err, Ok, Result

__all__ = ["find_first"]

T = TypeVar("T")
E = TypeVar("E")


def find_first(
    pages: Iterable[Result[Sequence[T], E]],
    predicate: Callable[[T], bool],
) -> Result[T | None, E]:
    """Return the first item matching ``predicate`` across ``pages``.

    Pages are pulled one at a time and iteration stops at the first page that
    contains a match, so later pages are never fetched. A failed page ends the
    search with that error. ``Ok(None)`` means every page was scanned.
    """
    for page in pages:
        if isinstance(page, Err):
            return page
        for item in page.value:
            if predicate(item):
                return Ok(item)
    return Ok(None)
