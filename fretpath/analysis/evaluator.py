"""Evaluator — check and tabulate resolved melody events.

Provides:
    - ``pitch_fidelity``          : share of positioned notes sounding their label
    - ``count_string_collisions`` : notes sharing a string inside one event
    - ``position_frame``          : one row per note as a pandas DataFrame
    - ``summarize_resolution``    : headline numbers for a resolver result
"""

from __future__ import annotations

from typing import Any

import pandas as pd

from ..melody.notes import position_pitch
from ..tab_engine.instrument import Instrument
from ..tab_engine.pitch import normalize_pitch_class, pitch_class_name


_FRAME_COLUMNS: list[str] = ["event", "note_index", "note", "string", "fret", "pitch", "pitch_class"]


def pitch_fidelity(events: list[dict[str, Any]], instrument: Instrument) -> float:
    """Fraction of positioned notes whose sounding pitch class matches the label.

    Args:
        events: Resolved events.
        instrument: Geometry used to compute the sounding pitch.

    Returns:
        Fidelity in [0.0, 1.0]. Returns 1.0 when no note is positioned.
    """
    checked = 0
    matching = 0
    for event in events:
        for note in event.get("notes", []):
            if note.get("string") is None or note.get("fret") is None:
                continue
            checked += 1
            pitch = position_pitch(instrument, note)
            if pitch is not None and pitch_class_name(pitch) == normalize_pitch_class(note.get("note")):
                matching += 1

    if checked == 0:
        return 1.0
    return matching / checked


def count_string_collisions(events: list[dict[str, Any]]) -> int:
    """Number of notes placed on a string already used in the same event."""
    collisions = 0
    for event in events:
        seen: set[str] = set()
        for note in event.get("notes", []):
            string_id = note.get("string")
            if string_id is None:
                continue
            if string_id in seen:
                collisions += 1
            seen.add(string_id)
    return collisions


def position_frame(events: list[dict[str, Any]], instrument: Instrument) -> pd.DataFrame:
    """Tabulate every note of *events*.

    Columns: ``event``, ``note_index``, ``note``, ``string``, ``fret``,
    ``pitch`` (sounding absolute pitch, or None) and ``pitch_class``.
    """
    rows: list[dict[str, Any]] = []
    for event_index, event in enumerate(events):
        for note_index, note in enumerate(event.get("notes", [])):
            pitch = position_pitch(instrument, note)
            rows.append(
                {
                    "event": event_index,
                    "note_index": note_index,
                    "note": note.get("note"),
                    "string": note.get("string"),
                    "fret": note.get("fret"),
                    "pitch": pitch,
                    "pitch_class": pitch_class_name(pitch) if pitch is not None else None,
                }
            )
    return pd.DataFrame(rows, columns=_FRAME_COLUMNS)


def summarize_resolution(result: dict[str, Any], instrument: Instrument) -> dict[str, Any]:
    """Headline numbers for the output of ``resolve_positions``.

    Returns:
        A dict with keys:
            - ``events``            (int)
            - ``notes``             (int)
            - ``filled_count``      (int)
            - ``unresolved_count``  (int)
            - ``pitch_fidelity``    (float)
            - ``string_collisions`` (int)
            - ``mean_fret``         (float | None) over positioned notes
    """
    events = result["events"]
    frame = position_frame(events, instrument)
    frets = frame["fret"].dropna()

    return {
        "events": len(events),
        "notes": int(len(frame)),
        "filled_count": int(result.get("filled_count", 0)),
        "unresolved_count": int(result.get("unresolved_count", 0)),
        "pitch_fidelity": pitch_fidelity(events, instrument),
        "string_collisions": count_string_collisions(events),
        "mean_fret": float(frets.astype(float).mean()) if not frets.empty else None,
    }
