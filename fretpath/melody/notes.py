"""Helpers for melody event / note dicts.

An event is a dict with a ``"notes"`` list plus arbitrary metadata keys
(timing, bar index, ...). A note is ``{"note", "string", "fret"}`` where
``string`` and ``fret`` are ``None`` for an unpositioned note.
"""

from __future__ import annotations

from typing import Any

from ..tab_engine.instrument import Instrument
from ..tab_engine.models import PositionCandidate
from ..tab_engine.pitch import normalize_pitch_class, pitch_class_name


def is_fret(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def clone_note(note: dict[str, Any]) -> dict[str, Any]:
    return {"note": note.get("note"), "string": note.get("string"), "fret": note.get("fret")}


def unpositioned_note(label: Any) -> dict[str, Any]:
    return {"note": label, "string": None, "fret": None}


def with_notes(event: dict[str, Any], notes: list[dict[str, Any]]) -> dict[str, Any]:
    """Copy of *event* with its metadata unchanged and *notes* swapped in."""
    resolved = {key: value for key, value in event.items() if key != "notes"}
    resolved["notes"] = notes
    return resolved


def clone_events(events: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [with_notes(event, [clone_note(n) for n in event.get("notes", [])]) for event in events]


def string_index_of(instrument: Instrument, string_id: Any) -> int | None:
    try:
        return list(instrument.string_order).index(string_id)
    except ValueError:
        return None


def position_pitch(instrument: Instrument, note: dict[str, Any]) -> int | None:
    """Absolute pitch sounded by the note's own string and fret, if any."""
    string_id, fret = note.get("string"), note.get("fret")
    if not isinstance(string_id, str) or not is_fret(fret) or fret < 0:
        return None
    if string_index_of(instrument, string_id) is None:
        return None
    return instrument.pitch_at(string_id, fret)


def explicit_position(
    note: dict[str, Any],
    instrument: Instrument,
    max_fret: int,
) -> tuple[PositionCandidate, int] | None:
    """Validate the note's own position.

    The position counts only when the string belongs to the instrument,
    the fret lies in ``[0, max_fret]`` and, if the note's label parses,
    the sounding pitch class matches it.

    Returns:
        ``(candidate, absolute_pitch)`` or ``None``.
    """
    pitch = position_pitch(instrument, note)
    if pitch is None or note["fret"] > max_fret:
        return None

    label = normalize_pitch_class(note.get("note"))
    if label is not None and label != pitch_class_name(pitch):
        return None

    candidate = PositionCandidate(
        string_id=note["string"],
        fret=note["fret"],
        string_index=string_index_of(instrument, note["string"]),
    )
    return candidate, pitch
