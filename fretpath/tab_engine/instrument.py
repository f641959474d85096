"""Instrument geometry — string order and the pitch produced at each fret.

The engine only ever talks to an :class:`Instrument`: anything exposing a
``name``, an ordered ``string_order`` and a ``pitch_at`` function works.
:class:`TunedInstrument` covers the usual case of equal-tempered strings
described by their open-string note names.
"""

from __future__ import annotations

from typing import Mapping, Protocol, Sequence

from .pitch import parse_scientific_note


class Instrument(Protocol):
    """Read-only fretboard geometry consumed by the engine."""

    name: str
    string_order: Sequence[str]

    def pitch_at(self, string_id: str, fret: int) -> int | None:
        ...


class TunedInstrument:
    """Fretted instrument defined by its open-string tuning.

    Args:
        name: Identity used when callers cache per-instrument results.
        tuning: Ordered mapping ``string_id → open note`` (scientific
            pitch, e.g. ``"E2"``). Iteration order defines ``string_order``.

    Raises:
        ValueError: If an open note cannot be parsed.
    """

    def __init__(self, name: str, tuning: Mapping[str, str]) -> None:
        self.name = name
        self._open_pitches: dict[str, int] = {}
        for string_id, open_note in tuning.items():
            pitch = parse_scientific_note(open_note)
            if pitch is None:
                raise ValueError(
                    f"Invalid open note '{open_note}' for string '{string_id}' of {name}"
                )
            self._open_pitches[string_id] = pitch
        self.string_order: tuple[str, ...] = tuple(self._open_pitches)

    def pitch_at(self, string_id: str, fret: int) -> int | None:
        open_pitch = self._open_pitches.get(string_id)
        if open_pitch is None or fret < 0:
            return None
        return open_pitch + fret

    def __repr__(self) -> str:
        return f"TunedInstrument(name={self.name!r}, strings={list(self.string_order)!r})"


# ── Presets (low string first) ────────────────────────────────
GUITAR = TunedInstrument(
    "guitar",
    {"E2": "E2", "A2": "A2", "D3": "D3", "G3": "G3", "B3": "B3", "E4": "E4"},
)
BASS = TunedInstrument("bass", {"E1": "E1", "A1": "A1", "D2": "D2", "G2": "G2"})
UKULELE = TunedInstrument("ukulele", {"G": "G4", "C": "C4", "E": "E4", "A": "A4"})
