"""Candidate Index — every (string, fret) that produces each pitch.

Built once per ``(instrument, max_fret)`` and never mutated afterwards,
so a single index can be shared by concurrent resolutions.

Candidate lists are ordered by fret, then by string index.
"""

from __future__ import annotations

import logging
from collections import defaultdict

from .instrument import Instrument
from .models import PositionCandidate


logger = logging.getLogger(__name__)

DEFAULT_MAX_FRET: int = 24


def _candidate_order(candidate: PositionCandidate) -> tuple[int, int]:
    return (candidate.fret, candidate.string_index)


class CandidateIndex:
    """Read-only lookup from pitch (or pitch class) to playable positions.

    Use :func:`build_candidate_index` rather than constructing directly.
    """

    def __init__(self, by_pitch: dict[int, tuple[PositionCandidate, ...]], max_fret: int) -> None:
        self.max_fret = max_fret
        self._by_pitch = dict(by_pitch)

        grouped: dict[int, list[PositionCandidate]] = defaultdict(list)
        pitches: dict[int, list[int]] = defaultdict(list)
        for pitch, candidates in self._by_pitch.items():
            grouped[pitch % 12].extend(candidates)
            pitches[pitch % 12].append(pitch)

        self._by_pitch_class: dict[int, tuple[PositionCandidate, ...]] = {
            pc: tuple(sorted(items, key=_candidate_order)) for pc, items in grouped.items()
        }
        self._pitches_by_class: dict[int, tuple[int, ...]] = {
            pc: tuple(sorted(items)) for pc, items in pitches.items()
        }

    def candidates(self, pitch: int) -> tuple[PositionCandidate, ...]:
        """Positions producing exactly *pitch* (empty if unplayable)."""
        return self._by_pitch.get(pitch, ())

    def candidates_for_pitch_class(self, pitch_class: int) -> tuple[PositionCandidate, ...]:
        """Positions producing *pitch_class* (0–11) in any octave."""
        return self._by_pitch_class.get(pitch_class % 12, ())

    def pitches_for_pitch_class(self, pitch_class: int) -> tuple[int, ...]:
        """Playable absolute pitches of *pitch_class*, ascending."""
        return self._pitches_by_class.get(pitch_class % 12, ())

    @property
    def pitches(self) -> list[int]:
        return sorted(self._by_pitch)

    def __contains__(self, pitch: object) -> bool:
        return pitch in self._by_pitch

    def __len__(self) -> int:
        return len(self._by_pitch)


def build_candidate_index(instrument: Instrument, max_fret: int = DEFAULT_MAX_FRET) -> CandidateIndex:
    """Enumerate every string and fret of *instrument* up to *max_fret*.

    Args:
        instrument: Geometry supplying ``string_order`` and ``pitch_at``.
        max_fret: Highest fret considered (inclusive).

    Returns:
        A :class:`CandidateIndex`. Degenerate geometry (no strings, or a
        ``pitch_at`` that never answers) yields an empty index.

    Raises:
        ValueError: If *max_fret* is negative.
    """
    if isinstance(max_fret, bool) or not isinstance(max_fret, int):
        raise ValueError(f"max_fret must be an integer, got {max_fret!r}")
    if max_fret < 0:
        raise ValueError(f"max_fret must be >= 0, got {max_fret}")

    by_pitch: dict[int, list[PositionCandidate]] = defaultdict(list)
    for string_index, string_id in enumerate(instrument.string_order):
        for fret in range(max_fret + 1):
            pitch = instrument.pitch_at(string_id, fret)
            if pitch is None:
                continue
            by_pitch[pitch].append(
                PositionCandidate(string_id=string_id, fret=fret, string_index=string_index)
            )

    index = CandidateIndex(
        {pitch: tuple(sorted(items, key=_candidate_order)) for pitch, items in by_pitch.items()},
        max_fret,
    )
    if len(index) == 0:
        logger.warning(
            "Instrument %r produced an empty candidate index (max_fret=%d)",
            getattr(instrument, "name", instrument),
            max_fret,
        )
    return index


def ensure_candidate_index(
    instrument: Instrument,
    max_fret: int = DEFAULT_MAX_FRET,
    candidate_index: CandidateIndex | None = None,
) -> CandidateIndex:
    """Return *candidate_index*, or build one when the caller has none.

    Raises:
        ValueError: If *max_fret* is negative, or the prebuilt index was
            built for a different fret range.
    """
    if candidate_index is None:
        return build_candidate_index(instrument, max_fret)
    if candidate_index.max_fret != max_fret:
        raise ValueError(
            f"candidate_index covers max_fret={candidate_index.max_fret}, expected {max_fret}"
        )
    return candidate_index
