"""Transposition — shift a melody by N semitones and re-place it on the fretboard.

Each note's source pitch comes from its own position or, failing that,
from a note name with an octave. Notes with only a pitch class are
placed in the octave closest to the previously placed note, so a
melodic line does not jump octaves. Every event is then re-fingered
independently with the shared cost model (best ranked alternative; no
path DP, the nearest-pitch anchoring already keeps the line together).
"""

from __future__ import annotations

import logging
import math
from typing import Any

from ..tab_engine.candidate_index import DEFAULT_MAX_FRET, CandidateIndex, ensure_candidate_index
from ..tab_engine.cost_model import FretboardCostModel, default_cost_model
from ..tab_engine.enumerator import enumerate_assignments
from ..tab_engine.instrument import Instrument
from ..tab_engine.models import EventOccurrence, PositionCandidate
from ..tab_engine.pitch import (
    parse_scientific_note,
    pitch_class_name,
    pitch_class_semitone,
    transpose_pitch_class,
)
from .notes import clone_events, position_pitch, unpositioned_note, with_notes


logger = logging.getLogger(__name__)

MIN_TRANSPOSE_SEMITONES: int = -12
MAX_TRANSPOSE_SEMITONES: int = 12
TRANSPOSE_MAX_ALTERNATIVES: int = 32
MAX_OCTAVE_SEARCH: int = 8


def normalize_transpose_semitones(value: Any) -> int:
    """Round and clamp a transpose amount to ``[-12, 12]``.

    Numeric strings are parsed; anything unusable becomes 0.
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return 0
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        return 0
    return max(MIN_TRANSPOSE_SEMITONES, min(MAX_TRANSPOSE_SEMITONES, math.floor(value + 0.5)))


def format_transpose_semitones(value: Any) -> str:
    normalized = normalize_transpose_semitones(value)
    if normalized > 0:
        return f"+{normalized} st"
    return f"{normalized} st"


def source_pitch(note: dict[str, Any], instrument: Instrument) -> int | None:
    """Pitch the note sounds before transposition, if it can be known."""
    pitch = position_pitch(instrument, note)
    if pitch is not None:
        return pitch
    return parse_scientific_note(note.get("note"))


def nearest_playable_pitch(
    pitch: int,
    index: CandidateIndex,
    max_octaves: int = MAX_OCTAVE_SEARCH,
) -> int | None:
    """*pitch* if playable, else the closest octave transposition that is.

    Upward octaves are tried before downward ones at equal distance.
    """
    if pitch in index:
        return pitch
    for octave in range(1, max_octaves + 1):
        for shifted in (pitch + 12 * octave, pitch - 12 * octave):
            if shifted in index:
                return shifted
    return None


def infer_pitch(pitch_class: str, previous_pitch: int | None, index: CandidateIndex) -> int | None:
    """Pick an octave for *pitch_class* near *previous_pitch*.

    Without a previous note the middle of the playable range is used.
    """
    semitone = pitch_class_semitone(pitch_class)
    if semitone is None:
        return None
    pitches = index.pitches_for_pitch_class(semitone)
    if not pitches:
        return None
    if previous_pitch is None:
        return pitches[len(pitches) // 2]
    # min() keeps the first (lowest) pitch on equal distance
    return min(pitches, key=lambda p: abs(p - previous_pitch))


def transpose_events(
    events: list[dict[str, Any]],
    semitones: Any,
    instrument: Instrument,
    max_fret: int = DEFAULT_MAX_FRET,
    cost_model: FretboardCostModel | None = None,
    candidate_index: CandidateIndex | None = None,
) -> list[dict[str, Any]]:
    """Transpose every note by *semitones* and choose new positions.

    Args:
        events: Melody events.
        semitones: Transpose amount; normalised to ``[-12, 12]``.
        instrument: Instrument geometry.
        max_fret: Highest usable fret.
        cost_model: Scoring model; the packaged default when omitted.
        candidate_index: Prebuilt index for ``(instrument, max_fret)``.

    Returns:
        New events with metadata unchanged. Notes that cannot be placed
        keep their transposed pitch class with ``string``/``fret`` None.

    Raises:
        ValueError: If *max_fret* is negative, or a prebuilt
            *candidate_index* was built for a different fret range.
    """
    offset = normalize_transpose_semitones(semitones)
    if offset == 0 or not events:
        return clone_events(events)
    candidate_index = ensure_candidate_index(instrument, max_fret, candidate_index)

    model = cost_model or default_cost_model()
    previous_pitch: int | None = None
    transposed: list[dict[str, Any]] = []

    for event in events:
        source_notes = event.get("notes", [])
        occurrences: list[EventOccurrence] = []
        candidates: dict[int, tuple[PositionCandidate, ...]] = {}

        for note_index, note in enumerate(source_notes):
            target: int | None = None
            pitch = source_pitch(note, instrument)
            if pitch is not None:
                target = nearest_playable_pitch(pitch + offset, candidate_index)

            if target is None:
                shifted_class = transpose_pitch_class(note.get("note"), offset)
                if shifted_class is not None:
                    inferred = infer_pitch(shifted_class, previous_pitch, candidate_index)
                    if inferred is not None:
                        target = nearest_playable_pitch(inferred, candidate_index)

            if target is None:
                continue
            occurrences.append(EventOccurrence(target, pitch_class_name(target), note_index))
            candidates[note_index] = candidate_index.candidates(target)

        best = None
        if occurrences:
            ranked = enumerate_assignments(
                occurrences, candidates, model, max_alternatives=TRANSPOSE_MAX_ALTERNATIVES
            )
            best = ranked[0] if ranked else None
        by_note = {item.occurrence_index: item for item in best.occurrence_assignments} if best else {}

        notes: list[dict[str, Any]] = []
        for note_index, note in enumerate(source_notes):
            chosen = by_note.get(note_index)
            if chosen is None:
                shifted_class = transpose_pitch_class(note.get("note"), offset)
                notes.append(unpositioned_note(shifted_class or note.get("note")))
                continue

            placed = {
                "note": chosen.label,
                "string": chosen.position.string_id,
                "fret": chosen.position.fret,
            }
            placed_pitch = instrument.pitch_at(chosen.position.string_id, chosen.position.fret)
            if placed_pitch is not None:
                previous_pitch = placed_pitch
            notes.append(placed)

        transposed.append(with_notes(event, notes))

    logger.debug("Transposed %d events by %+d semitones", len(events), offset)
    return transposed
