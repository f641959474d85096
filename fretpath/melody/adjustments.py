"""Practice adjustments — memoised transpose and string-shift views of a melody.

A melody is a dict with at least ``id`` and ``events``. Derived melodies
are shallow copies with new ``events``; the caller must not mutate them,
since identical requests return the identical cached object.
"""

from __future__ import annotations

import logging
from typing import Any

from ..tab_engine.candidate_index import DEFAULT_MAX_FRET, CandidateIndex, build_candidate_index
from ..tab_engine.cost_model import FretboardCostModel
from ..tab_engine.instrument import Instrument
from .cache import MelodyCache, melody_content_signature
from .string_shift import normalize_string_shift, shift_strings
from .transposition import normalize_transpose_semitones, transpose_events


logger = logging.getLogger(__name__)

TRANSPOSE_CACHE_LIMIT: int = 32
STRING_SHIFT_CACHE_LIMIT: int = 48


class PracticeAdjuster:
    """Caller-owned caches for transposed / string-shifted melodies.

    Args:
        max_fret: Highest usable fret for every derived melody.
        cost_model: Scoring model passed to transposition.
        transpose_cache_limit: Entries kept for transposed melodies.
        string_shift_cache_limit: Entries kept for shifted melodies.
    """

    def __init__(
        self,
        max_fret: int = DEFAULT_MAX_FRET,
        cost_model: FretboardCostModel | None = None,
        transpose_cache_limit: int = TRANSPOSE_CACHE_LIMIT,
        string_shift_cache_limit: int = STRING_SHIFT_CACHE_LIMIT,
    ) -> None:
        if max_fret < 0:
            raise ValueError(f"max_fret must be >= 0, got {max_fret}")
        self.max_fret = max_fret
        self.cost_model = cost_model
        self._transposed = MelodyCache(transpose_cache_limit)
        self._shifted = MelodyCache(string_shift_cache_limit)
        self._indexes: dict[tuple[str, int], CandidateIndex] = {}

    def candidate_index(self, instrument: Instrument, max_fret: int | None = None) -> CandidateIndex:
        """Index for *instrument*, built once per ``(name, max_fret)``."""
        frets = self.max_fret if max_fret is None else max_fret
        key = (instrument.name, frets)
        index = self._indexes.get(key)
        if index is None:
            index = build_candidate_index(instrument, frets)
            self._indexes[key] = index
        return index

    def _cache_key(self, melody: dict[str, Any], offset: int, instrument: Instrument) -> tuple:
        return (
            instrument.name,
            melody.get("id"),
            offset,
            len(melody["events"]),
            melody_content_signature(melody["events"]),
        )

    def with_transpose(self, melody: dict[str, Any], semitones: Any, instrument: Instrument) -> dict[str, Any]:
        """*melody* transposed by *semitones*; the input itself for 0."""
        offset = normalize_transpose_semitones(semitones)
        if offset == 0:
            return melody

        key = self._cache_key(melody, offset, instrument)
        cached = self._transposed.get(key)
        if cached is not None:
            logger.debug("Transpose cache hit for melody %r", melody.get("id"))
            return cached

        transposed = dict(melody)
        transposed["events"] = transpose_events(
            melody["events"],
            offset,
            instrument,
            max_fret=self.max_fret,
            cost_model=self.cost_model,
            candidate_index=self.candidate_index(instrument),
        )
        self._transposed.put(key, transposed)
        return transposed

    def with_string_shift(self, melody: dict[str, Any], offset: Any, instrument: Instrument) -> dict[str, Any]:
        """*melody* moved *offset* strings; the input itself if 0 or infeasible."""
        normalized = normalize_string_shift(offset, instrument)
        if normalized == 0:
            return melody

        key = self._cache_key(melody, normalized, instrument)
        cached = self._shifted.get(key)
        if cached is not None:
            logger.debug("String-shift cache hit for melody %r", melody.get("id"))
            return cached

        result = shift_strings(
            melody["events"],
            normalized,
            instrument,
            max_fret=self.max_fret,
            candidate_index=self.candidate_index(instrument),
        )
        if not result["feasible"]:
            return melody

        shifted = dict(melody)
        shifted["events"] = result["events"]
        self._shifted.put(key, shifted)
        return shifted

    def with_practice_adjustments(
        self,
        melody: dict[str, Any],
        semitones: Any,
        string_offset: Any,
        instrument: Instrument,
    ) -> dict[str, Any]:
        """Transpose first, then shift strings."""
        transposed = self.with_transpose(melody, semitones, instrument)
        return self.with_string_shift(transposed, string_offset, instrument)

    def clear(self) -> None:
        self._transposed.clear()
        self._shifted.clear()
        self._indexes.clear()
