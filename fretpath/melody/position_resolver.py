"""Position Resolver — fill in missing string/fret positions of a melody.

Responsibilities:
    1. Keep every explicit, pitch-valid position as the note's only candidate;
       it is never traded away for a cheaper partial assignment.
    2. Offer every position of the note's pitch class to unpositioned notes
       (repeated pitch classes stay separate notes, free to use separate strings).
    3. Rank alternatives per event, then pick one per event with the DP solver.
    4. Rebuild the events in their original note order, metadata untouched.
"""

from __future__ import annotations

import logging
from typing import Any

from ..tab_engine.candidate_index import DEFAULT_MAX_FRET, CandidateIndex, ensure_candidate_index
from ..tab_engine.cost_model import FretboardCostModel, default_cost_model
from ..tab_engine.enumerator import DEFAULT_MAX_ALTERNATIVES, enumerate_assignments
from ..tab_engine.instrument import Instrument
from ..tab_engine.models import EventOccurrence, PathEvent, PositionCandidate
from ..tab_engine.pitch import PITCH_CLASS_NAMES, normalize_pitch_class, pitch_class_name
from ..tab_engine.solver import DEFAULT_UNRESOLVED_PENALTY, select_path
from .notes import explicit_position, unpositioned_note, with_notes


logger = logging.getLogger(__name__)


def _event_lattice_entry(
    event: dict[str, Any],
    instrument: Instrument,
    index: CandidateIndex,
    cost_model: FretboardCostModel,
    max_alternatives: int,
) -> tuple[PathEvent, set[int]]:
    """Build one event's occurrences and ranked alternatives.

    Returns:
        The lattice entry and the note indexes that already carried a
        valid position.
    """
    occurrences: list[EventOccurrence] = []
    candidates: dict[int, tuple[PositionCandidate, ...]] = {}
    explicit_indexes: set[int] = set()

    for note_index, note in enumerate(event.get("notes", [])):
        explicit = explicit_position(note, instrument, index.max_fret)
        label = normalize_pitch_class(note.get("note"))

        if explicit is not None:
            candidate, pitch = explicit
            explicit_indexes.add(note_index)
            occurrences.append(EventOccurrence(pitch, label or pitch_class_name(pitch), note_index))
            candidates[note_index] = (candidate,)
            continue

        if label is None:
            continue
        semitone = PITCH_CLASS_NAMES.index(label)
        occurrences.append(EventOccurrence(semitone, label, note_index))
        candidates[note_index] = index.candidates_for_pitch_class(semitone)

    # A valid explicit position is dropped only when another explicit note holds its string.
    assignments = enumerate_assignments(
        occurrences, candidates, cost_model, max_alternatives, required=explicit_indexes
    )
    entry = PathEvent(payload=event, occurrences=tuple(occurrences), assignments=tuple(assignments))
    return entry, explicit_indexes


def resolve_positions(
    events: list[dict[str, Any]],
    instrument: Instrument,
    max_fret: int = DEFAULT_MAX_FRET,
    cost_model: FretboardCostModel | None = None,
    candidate_index: CandidateIndex | None = None,
    unresolved_penalty: float = DEFAULT_UNRESOLVED_PENALTY,
    max_alternatives: int = DEFAULT_MAX_ALTERNATIVES,
) -> dict[str, Any]:
    """Assign a string and fret to every note that lacks one.

    Args:
        events: Melody events (see :mod:`fretpath.melody.notes`).
        instrument: Instrument geometry.
        max_fret: Highest usable fret.
        cost_model: Scoring model; the packaged default when omitted.
        candidate_index: Prebuilt index for ``(instrument, max_fret)``.
        unresolved_penalty: DP cost per note left without a position.
        max_alternatives: Alternatives kept per event.

    Returns:
        A dict with:
            - ``events``           (list): resolved events, input order kept
            - ``filled_count``     (int):  notes that received a position
            - ``unresolved_count`` (int):  notes still without a position

    Raises:
        ValueError: If *max_fret* is negative, or a prebuilt
            *candidate_index* was built for a different fret range.
    """
    candidate_index = ensure_candidate_index(instrument, max_fret, candidate_index)
    model = cost_model or default_cost_model()

    lattice: list[PathEvent] = []
    explicit_by_event: list[set[int]] = []
    for event in events:
        entry, explicit_indexes = _event_lattice_entry(
            event, instrument, candidate_index, model, max_alternatives
        )
        lattice.append(entry)
        explicit_by_event.append(explicit_indexes)

    path = select_path(lattice, model, unresolved_penalty)

    filled = 0
    unresolved = 0
    resolved_events: list[dict[str, Any]] = []

    for event, assignment, explicit_indexes in zip(events, path.assignments, explicit_by_event):
        by_note = {item.occurrence_index: item for item in assignment.occurrence_assignments}
        notes: list[dict[str, Any]] = []

        for note_index, note in enumerate(event.get("notes", [])):
            chosen = by_note.get(note_index)
            if chosen is not None:
                if note_index not in explicit_indexes:
                    filled += 1
                notes.append(
                    {
                        "note": chosen.label,
                        "string": chosen.position.string_id,
                        "fret": chosen.position.fret,
                    }
                )
                continue

            unresolved += 1
            label = normalize_pitch_class(note.get("note"))
            notes.append(unpositioned_note(label if label is not None else note.get("note")))

        resolved_events.append(with_notes(event, notes))

    logger.debug(
        "Resolved %d events: %d filled, %d unresolved (path cost %.3f)",
        len(events),
        filled,
        unresolved,
        path.total_cost,
    )
    return {
        "events": resolved_events,
        "filled_count": filled,
        "unresolved_count": unresolved,
    }
