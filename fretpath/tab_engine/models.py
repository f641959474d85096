"""Data model shared by the engine stages.

All structures are immutable and live for a single resolution call,
except the candidate lists held by a ``CandidateIndex``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class PositionCandidate:
    """One playable location: ``fret`` on ``string_id``.

    ``string_index`` is the position of ``string_id`` in the instrument's
    string order.
    """

    string_id: str
    fret: int
    string_index: int


@dataclass(frozen=True)
class EventOccurrence:
    """One note inside one event.

    Attributes:
        pitch: Absolute pitch, or a pitch class (0–11) when only the
            note name is known. Used for placement order only.
        label: Pitch-class label reported for this note.
        occurrence_index: Position of the note in its event's note list.
    """

    pitch: int
    label: str
    occurrence_index: int


@dataclass(frozen=True)
class ResolvedNote:
    label: str
    string_id: str
    fret: int


@dataclass(frozen=True)
class OccurrenceAssignment:
    occurrence_index: int
    label: str
    position: PositionCandidate


@dataclass(frozen=True)
class FingeringProfile:
    """Hand-position summary of one event's positions."""

    hand_position: int | None
    hand_shift_count: int
    clamped_finger_count: int
    open_string_count: int


@dataclass(frozen=True)
class EventAssignment:
    """One candidate solution for an event.

    ``len(resolved_notes) + unresolved_count`` equals the event's
    occurrence count, and no two ``positions`` share a string.
    """

    resolved_notes: tuple[ResolvedNote, ...]
    positions: tuple[PositionCandidate, ...]
    occurrence_assignments: tuple[OccurrenceAssignment, ...]
    unresolved_count: int
    internal_cost: float
    hand_position: int | None


@dataclass(frozen=True)
class PathEvent:
    """An event in the path-selection lattice.

    ``payload`` is opaque caller data carried alongside the alternatives.
    """

    payload: Any
    occurrences: tuple[EventOccurrence, ...]
    assignments: tuple[EventAssignment, ...]


@dataclass(frozen=True)
class SelectedPath:
    """Optimal choice of one assignment per event."""

    indexes: tuple[int, ...]
    assignments: tuple[EventAssignment, ...]
    events: tuple[PathEvent, ...] = field(default=(), repr=False)
    total_cost: float = 0.0
