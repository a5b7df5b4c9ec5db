"""Platform helpers."""

from .files import expand_pattern, paths, unmatched_patterns

__all__ = ["expand_pattern", "paths", "unmatched_patterns"]
