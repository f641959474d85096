"""Enumerator — ranked alternative position assignments for one event.

Bounded backtracking over the event's notes, highest pitch first (high
notes have the fewest low positions), after any notes the caller marks
as required. Every note either takes one of its candidate positions on a
string not yet used in the branch, or is left unresolved, so events
denser than the available strings still produce partial assignments.

The branch state (used strings, chosen positions) is immutable and
threaded through the recursion.
"""

from __future__ import annotations

import math
from typing import AbstractSet, Mapping, Sequence

from .cost_model import FretboardCostModel, default_cost_model
from .models import (
    EventAssignment,
    EventOccurrence,
    OccurrenceAssignment,
    PositionCandidate,
    ResolvedNote,
)


DEFAULT_MAX_ALTERNATIVES: int = 24
MIN_CANDIDATES_PER_NOTE: int = 4
CANDIDATE_POOL: int = 12

# (occurrence, position) pairs chosen so far in a branch
_Branch = tuple[tuple[EventOccurrence, PositionCandidate], ...]


def candidate_limit(occurrence_count: int) -> int:
    """Per-note candidate cap: ``max(4, ceil(12 / notes))``."""
    return max(MIN_CANDIDATES_PER_NOTE, math.ceil(CANDIDATE_POOL / max(1, occurrence_count)))


def fallback_assignment(
    unresolved_count: int,
    cost_model: FretboardCostModel | None = None,
) -> EventAssignment:
    """Fully unresolved assignment used when nothing else is available."""
    model = cost_model or default_cost_model()
    return EventAssignment(
        resolved_notes=(),
        positions=(),
        occurrence_assignments=(),
        unresolved_count=unresolved_count,
        internal_cost=model.empty_assignment_cost,
        hand_position=None,
    )


def _validate_occurrences(occurrences: Sequence[EventOccurrence]) -> None:
    seen: set[int] = set()
    for occurrence in occurrences:
        index = occurrence.occurrence_index
        if isinstance(index, bool) or not isinstance(index, int) or index < 0:
            raise ValueError(f"Malformed occurrence index: {index!r}")
        if index in seen:
            raise ValueError(f"Duplicate occurrence index: {index}")
        seen.add(index)


def _ranking_key(assignment: EventAssignment) -> tuple[int, float, int]:
    return (assignment.unresolved_count, assignment.internal_cost, len(assignment.resolved_notes))


def enumerate_assignments(
    occurrences: Sequence[EventOccurrence],
    candidates: Mapping[int, Sequence[PositionCandidate]],
    cost_model: FretboardCostModel | None = None,
    max_alternatives: int = DEFAULT_MAX_ALTERNATIVES,
    required: AbstractSet[int] = frozenset(),
) -> list[EventAssignment]:
    """Generate, score and rank alternative assignments for one event.

    Args:
        occurrences: The event's notes.
        candidates: Candidate positions per ``occurrence_index``, ordered
            by preference (fret, then string). Missing keys mean the note
            has no candidates.
        cost_model: Scoring model; the packaged default when omitted.
        max_alternatives: Number of assignments to keep.
        required: Occurrence indexes that may only stay unresolved when
            every one of their candidates is taken by an earlier note.

    Returns:
        Up to *max_alternatives* distinct assignments, sorted by
        unresolved count, then internal cost, then resolved note count.

    Raises:
        ValueError: On malformed or duplicate occurrence indexes, or a
            non-positive *max_alternatives*.
    """
    if max_alternatives < 1:
        raise ValueError(f"max_alternatives must be >= 1, got {max_alternatives}")
    _validate_occurrences(occurrences)

    model = cost_model or default_cost_model()
    # Required notes claim their strings before any optional note.
    ordered = sorted(
        occurrences,
        key=lambda o: (o.occurrence_index not in required, -o.pitch, o.occurrence_index),
    )
    limit = candidate_limit(len(occurrences))
    best_by_signature: dict[tuple[tuple[int, str, int], ...], EventAssignment] = {}

    def capture(branch: _Branch) -> None:
        chosen = {occ.occurrence_index: position for occ, position in branch}
        notes: list[ResolvedNote] = []
        positions: list[PositionCandidate] = []
        assigned: list[OccurrenceAssignment] = []
        unresolved = 0

        for occurrence in occurrences:
            position = chosen.get(occurrence.occurrence_index)
            if position is None:
                unresolved += 1
                continue
            notes.append(ResolvedNote(occurrence.label, position.string_id, position.fret))
            positions.append(position)
            assigned.append(OccurrenceAssignment(occurrence.occurrence_index, occurrence.label, position))

        profile = model.fingering_profile(positions)
        assignment = EventAssignment(
            resolved_notes=tuple(notes),
            positions=tuple(positions),
            occurrence_assignments=tuple(assigned),
            unresolved_count=unresolved,
            internal_cost=model.internal_cost(positions, profile),
            hand_position=profile.hand_position,
        )

        signature = tuple(
            (item.occurrence_index, item.position.string_id, item.position.fret) for item in assigned
        )
        existing = best_by_signature.get(signature)
        if existing is None or (
            assignment.internal_cost + assignment.unresolved_count
            < existing.internal_cost + existing.unresolved_count
        ):
            best_by_signature[signature] = assignment

    def search(depth: int, used_strings: frozenset[str], branch: _Branch) -> None:
        if depth == len(ordered):
            capture(branch)
            return

        occurrence = ordered[depth]
        options = [
            c for c in candidates.get(occurrence.occurrence_index, ()) if c.string_id not in used_strings
        ][:limit]
        for option in options:
            search(depth + 1, used_strings | {option.string_id}, branch + ((occurrence, option),))

        if options and occurrence.occurrence_index in required:
            return
        # Leave this note unresolved.
        search(depth + 1, used_strings, branch)

    search(0, frozenset(), ())

    ranked = sorted(best_by_signature.values(), key=_ranking_key)
    return ranked[:max_alternatives]
