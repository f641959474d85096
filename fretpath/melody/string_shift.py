"""String Shift — move every note of a melody by a fixed number of strings.

Pitch is preserved: each note is re-fretted on its target string. A
shift is feasible only if every note is positioned, every target string
exists, every pitch is reachable on its target string within
``[0, max_fret]`` and no two notes of one event land on the same
string. Infeasibility is reported, never raised.
"""

from __future__ import annotations

import logging
import math
from typing import Any

from ..tab_engine.candidate_index import DEFAULT_MAX_FRET, CandidateIndex, ensure_candidate_index
from ..tab_engine.instrument import Instrument
from .notes import clone_events, position_pitch, string_index_of, with_notes


logger = logging.getLogger(__name__)


def max_string_shift(instrument: Instrument) -> int:
    return max(0, len(instrument.string_order) - 1)


def normalize_string_shift(value: Any, instrument_or_max: Instrument | int | None = None) -> int:
    """Round and clamp a string offset to what the instrument allows.

    Args:
        value: Requested offset (number or numeric string; junk → 0).
        instrument_or_max: Instrument (bound = strings − 1) or an explicit
            maximum absolute offset. Defaults to a six-string bound.
    """
    parsed = 0
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            value = None
    if isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value):
        parsed = math.floor(value + 0.5)

    if instrument_or_max is None:
        bound = 5
    elif isinstance(instrument_or_max, int):
        bound = max(0, instrument_or_max)
    else:
        bound = max_string_shift(instrument_or_max)
    return max(-bound, min(bound, parsed))


def format_string_shift(value: Any) -> str:
    normalized = normalize_string_shift(value)
    if normalized > 0:
        return f"+{normalized} str"
    return f"{normalized} str"


def _shift_event(
    event: dict[str, Any],
    offset: int,
    instrument: Instrument,
    index: CandidateIndex,
) -> dict[str, Any] | None:
    """Shifted copy of *event*, or ``None`` when the shift cannot be played."""
    order = list(instrument.string_order)
    used: set[str] = set()
    notes: list[dict[str, Any]] = []

    for note in event.get("notes", []):
        pitch = position_pitch(instrument, note)
        if pitch is None:
            return None

        target_index = string_index_of(instrument, note["string"]) + offset
        if target_index < 0 or target_index >= len(order):
            return None
        target_string = order[target_index]
        if target_string in used:
            return None

        target = next((c for c in index.candidates(pitch) if c.string_id == target_string), None)
        if target is None:
            return None

        used.add(target_string)
        notes.append({"note": note.get("note"), "string": target_string, "fret": target.fret})

    return with_notes(event, notes)


def shift_strings(
    events: list[dict[str, Any]],
    offset: Any,
    instrument: Instrument,
    max_fret: int = DEFAULT_MAX_FRET,
    candidate_index: CandidateIndex | None = None,
) -> dict[str, Any]:
    """Relabel every note onto the string *offset* places away.

    Args:
        events: Melody events; every note must already have a position.
        offset: String offset in ``string_order`` terms (normalised).
        instrument: Instrument geometry.
        max_fret: Highest usable fret on the target strings.
        candidate_index: Prebuilt index for ``(instrument, max_fret)``.

    Returns:
        ``{"feasible": bool, "events": list}``. When infeasible, ``events``
        is an unshifted copy of the input.

    Raises:
        ValueError: If *max_fret* is negative, or a prebuilt
            *candidate_index* was built for a different fret range.
    """
    normalized = normalize_string_shift(offset, instrument)
    if normalized == 0 or not events:
        return {"feasible": True, "events": clone_events(events)}

    candidate_index = ensure_candidate_index(instrument, max_fret, candidate_index)

    shifted: list[dict[str, Any]] = []
    for event_index, event in enumerate(events):
        moved = _shift_event(event, normalized, instrument, candidate_index)
        if moved is None:
            logger.debug("String shift %+d infeasible at event %d", normalized, event_index)
            return {"feasible": False, "events": clone_events(events)}
        shifted.append(moved)

    return {"feasible": True, "events": shifted}


def is_string_shift_feasible(
    events: list[dict[str, Any]],
    offset: Any,
    instrument: Instrument,
    max_fret: int = DEFAULT_MAX_FRET,
    candidate_index: CandidateIndex | None = None,
) -> bool:
    return shift_strings(events, offset, instrument, max_fret, candidate_index)["feasible"]


def coerce_shift_to_feasible(
    events: list[dict[str, Any]],
    offset: Any,
    instrument: Instrument,
    max_fret: int = DEFAULT_MAX_FRET,
    candidate_index: CandidateIndex | None = None,
) -> int:
    """Largest feasible offset not exceeding *offset* in magnitude.

    Walks the magnitude down towards 0 keeping the sign; 0 (no shift)
    when nothing else works.
    """
    preferred = normalize_string_shift(offset, instrument)
    if preferred == 0:
        return 0
    candidate_index = ensure_candidate_index(instrument, max_fret, candidate_index)

    direction = 1 if preferred > 0 else -1
    for distance in range(abs(preferred), 0, -1):
        candidate = direction * distance
        if is_string_shift_feasible(events, candidate, instrument, max_fret, candidate_index):
            return candidate
    return 0
