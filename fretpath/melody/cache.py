"""Bounded FIFO caches for derived melodies.

Entries are treated as immutable; the oldest insertion is evicted first.
Caches are plain objects owned by their caller, never module state.
"""

from __future__ import annotations

import hashlib
import json
import logging
from collections import OrderedDict
from typing import Any, Hashable


logger = logging.getLogger(__name__)


class MelodyCache:
    """Insertion-ordered cache holding at most *limit* entries.

    Args:
        limit: Maximum number of entries (>= 1).
    """

    def __init__(self, limit: int) -> None:
        if limit < 1:
            raise ValueError(f"Cache limit must be >= 1, got {limit}")
        self.limit = limit
        self._entries: OrderedDict[Hashable, Any] = OrderedDict()

    def get(self, key: Hashable) -> Any | None:
        return self._entries.get(key)

    def put(self, key: Hashable, value: Any) -> None:
        if key not in self._entries and len(self._entries) >= self.limit:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Evicted cache entry %r", evicted)
        self._entries[key] = value

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


def melody_content_signature(events: list[dict[str, Any]]) -> str:
    """Stable digest of the events' placement-relevant content.

    Covers each event's ``bar_index`` and ``column`` plus every note's
    label, string and fret.
    """
    content = [
        {
            "bar_index": event.get("bar_index"),
            "column": event.get("column"),
            "notes": [[n.get("note"), n.get("string"), n.get("fret")] for n in event.get("notes", [])],
        }
        for event in events
    ]
    payload = json.dumps(content, sort_keys=True, ensure_ascii=False, default=str)
    return hashlib.sha1(payload.encode("utf-8")).hexdigest()
