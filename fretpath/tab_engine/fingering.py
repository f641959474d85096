"""Fingering — left-hand finger numbers for resolved melody events.

The fretting hand sits on a position (the fret under the index finger)
and follows one-finger-per-fret: finger = ``fret - hand + 1``, clamped to
1–4. Open strings get finger 0. The hand position carries across events
and only moves as far as needed to reach the next event's notes.
"""

from __future__ import annotations

from typing import Any


def _clamp(value: int, lo: int, hi: int) -> int:
    return min(hi, max(lo, value))


def _is_positioned(note: dict[str, Any]) -> bool:
    fret = note.get("fret")
    return (
        isinstance(note.get("string"), str)
        and isinstance(fret, int)
        and not isinstance(fret, bool)
    )


def next_hand_position(current: int | None, fretted: list[int]) -> int | None:
    """Move the hand just enough to cover *fretted* (positive frets).

    Args:
        current: Hand position after the previous event, if any.
        fretted: Fretted (non-open) frets of the next event.

    Returns:
        The new hand position; *current* unchanged when there is
        nothing to fret.
    """
    if not fretted:
        return current

    lowest, highest = min(fretted), max(fretted)
    previous = current if current is not None else max(1, lowest)

    # Window of hand positions that still reach every note.
    lower_bound = max(1, highest - 3)
    upper_bound = lowest
    if lower_bound <= upper_bound:
        return _clamp(previous, lower_bound, upper_bound)

    # Span wider than the hand: stay as close to the previous spot as possible.
    return _clamp(previous, upper_bound, lower_bound)


def assign_fingers(events: list[dict[str, Any]]) -> list[list[dict[str, Any]]]:
    """Attach a finger number to every positioned note.

    Args:
        events: Resolved events (``{"notes": [{"note", "string", "fret"}]}``).

    Returns:
        One list per event with the positioned notes only, each a dict
        with ``note``, ``string``, ``fret`` and ``finger``
        (0 = open string, 1 = index … 4 = pinky).
    """
    hand: int | None = None
    fingered: list[list[dict[str, Any]]] = []

    for event in events:
        playable = [note for note in event.get("notes", []) if _is_positioned(note)]
        hand = next_hand_position(hand, [note["fret"] for note in playable if note["fret"] > 0])

        row: list[dict[str, Any]] = []
        for note in playable:
            if note["fret"] <= 0:
                finger = 0
            elif hand is None:
                finger = 1
            else:
                finger = _clamp(note["fret"] - hand + 1, 1, 4)
            row.append(
                {
                    "note": note.get("note"),
                    "string": note["string"],
                    "fret": note["fret"],
                    "finger": finger,
                }
            )
        fingered.append(row)

    return fingered


def fingers_for_event(events: list[dict[str, Any]], event_index: int) -> list[dict[str, Any]]:
    """Fingered notes of a single event; ``[]`` when out of range."""
    if event_index < 0 or event_index >= len(events):
        return []
    return assign_fingers(events)[event_index]
