"""Crawl tags attached to every log record emitted inside a `tagged()` block.

The crawl engine tags its lines with the player being explored and the
match being fetched. Tags live in a contextvar, so concurrent tasks never
see each other's values.
"""
from __future__ import annotations

import contextvars
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Tuple

Tags = Tuple[Tuple[str, str], ...]

_tags: contextvars.ContextVar[Tags] = contextvars.ContextVar("crawl_tags", default=())

# puuids are 78 characters; a prefix is enough to grep for
_MAX_WIDTH = {"puuid": 12}


def _render(key: str, value: Any) -> str:
    text = str(value)
    width = _MAX_WIDTH.get(key)
    return text[:width] if width else text


def current_tags() -> Dict[str, str]:
    return dict(_tags.get())


@contextmanager
def tagged(**values: Any) -> Iterator[Dict[str, str]]:
    """Add tags for the duration of the block. None values are ignored, inner blocks win."""
    merged = dict(_tags.get())
    merged.update({k: _render(k, v) for k, v in values.items() if v is not None})
    token = _tags.set(tuple(sorted(merged.items())))
    try:
        yield merged
    finally:
        _tags.reset(token)
