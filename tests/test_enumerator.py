import pytest

from fretpath.tab_engine.candidate_index import build_candidate_index
from fretpath.tab_engine.enumerator import (
    candidate_limit,
    enumerate_assignments,
    fallback_assignment,
)
from fretpath.tab_engine.models import EventOccurrence, PositionCandidate
from fretpath.tab_engine.pitch import pitch_class_name


def _occurrences(pitches):
    return [EventOccurrence(p, pitch_class_name(p), i) for i, p in enumerate(pitches)]


def _by_pitch(index, pitches):
    return {i: index.candidates(p) for i, p in enumerate(pitches)}


def test_candidate_limit():
    assert candidate_limit(0) == 12
    assert candidate_limit(1) == 12
    assert candidate_limit(2) == 6
    assert candidate_limit(3) == 4
    assert candidate_limit(6) == 4


def test_fallback_assignment(cost_model):
    fallback = fallback_assignment(3, cost_model)
    assert fallback.unresolved_count == 3
    assert fallback.positions == ()
    assert fallback.internal_cost == 1000
    assert fallback.hand_position is None


def test_single_note_prefers_open_string(guitar_index, cost_model):
    ranked = enumerate_assignments(_occurrences([50]), _by_pitch(guitar_index, [50]), cost_model)
    best = ranked[0]
    assert best.unresolved_count == 0
    assert best.positions == (PositionCandidate("D3", 0, 2),)
    assert best.internal_cost == pytest.approx(-0.45)


def test_chord_with_repeated_pitch_class(guitar_index, cost_model):
    pitches = [52, 64, 67, 71]
    ranked = enumerate_assignments(_occurrences(pitches), _by_pitch(guitar_index, pitches), cost_model)

    best = ranked[0]
    assert best.unresolved_count == 0
    assert len(best.resolved_notes) == 4
    assert len({p.string_id for p in best.positions}) == 4


def test_alternatives_respect_invariants(guitar_index, cost_model):
    pitches = [48, 52, 55, 60, 64]
    ranked = enumerate_assignments(_occurrences(pitches), _by_pitch(guitar_index, pitches), cost_model)

    assert 1 <= len(ranked) <= 24
    signatures = set()
    for assignment in ranked:
        strings = [p.string_id for p in assignment.positions]
        assert len(strings) == len(set(strings))
        assert len(assignment.resolved_notes) + assignment.unresolved_count == len(pitches)
        for item in assignment.occurrence_assignments:
            position = item.position
            assert guitar_index.candidates(pitches[item.occurrence_index]).count(position) == 1
        signatures.add(
            tuple((i.occurrence_index, i.position.string_id, i.position.fret) for i in assignment.occurrence_assignments)
        )
    assert len(signatures) == len(ranked)

    keys = [(a.unresolved_count, a.internal_cost, len(a.resolved_notes)) for a in ranked]
    assert keys == sorted(keys)


def test_max_alternatives_caps_output(guitar_index, cost_model):
    pitches = [48, 55]
    ranked = enumerate_assignments(
        _occurrences(pitches), _by_pitch(guitar_index, pitches), cost_model, max_alternatives=3
    )
    assert len(ranked) == 3


def test_same_string_collision_leaves_one_unresolved(cost_model):
    only = (PositionCandidate("A2", 3, 1),)
    occurrences = [EventOccurrence(48, "C", 0), EventOccurrence(48, "C", 1)]
    ranked = enumerate_assignments(occurrences, {0: only, 1: only}, cost_model)

    assert ranked[0].unresolved_count == 1
    assert all(a.unresolved_count >= 1 for a in ranked)


def test_note_without_candidates_is_unresolved(guitar_index, cost_model):
    occurrences = [EventOccurrence(48, "C", 0), EventOccurrence(0, "C", 1)]
    ranked = enumerate_assignments(occurrences, {0: guitar_index.candidates(48)}, cost_model)

    assert ranked[0].unresolved_count == 1
    assert [n.label for n in ranked[0].resolved_notes] == ["C"]


def test_more_notes_than_strings(ukulele, cost_model):
    index = build_candidate_index(ukulele, 12)
    labels = ["C", "E", "G", "B", "D"]
    occurrences = [EventOccurrence(i, label, i) for i, label in enumerate(labels)]
    candidates = {
        i: index.candidates_for_pitch_class(semitone)
        for i, semitone in enumerate([0, 4, 7, 11, 2])
    }
    ranked = enumerate_assignments(occurrences, candidates, cost_model)

    assert ranked[0].unresolved_count == 1
    assert len(ranked[0].positions) == 4


def test_empty_event(cost_model):
    ranked = enumerate_assignments([], {}, cost_model)
    assert len(ranked) == 1
    assert ranked[0].positions == ()
    assert ranked[0].unresolved_count == 0
    assert ranked[0].internal_cost == 1000


def test_malformed_occurrence_index_raises(guitar_index, cost_model):
    with pytest.raises(ValueError, match="Malformed"):
        enumerate_assignments([EventOccurrence(48, "C", -1)], {}, cost_model)
    with pytest.raises(ValueError, match="Malformed"):
        enumerate_assignments([EventOccurrence(48, "C", True)], {}, cost_model)


def test_duplicate_occurrence_index_raises(cost_model):
    occurrences = [EventOccurrence(48, "C", 0), EventOccurrence(52, "E", 0)]
    with pytest.raises(ValueError, match="Duplicate"):
        enumerate_assignments(occurrences, {}, cost_model)


def test_non_positive_max_alternatives_raises(cost_model):
    with pytest.raises(ValueError):
        enumerate_assignments([], {}, cost_model, max_alternatives=0)


def test_required_occurrences_are_never_dropped(cost_model):
    wide = [EventOccurrence(40, "E", 0), EventOccurrence(79, "G", 1)]
    candidates = {0: (PositionCandidate("E2", 0, 0),), 1: (PositionCandidate("E4", 15, 5),)}

    optional = enumerate_assignments(wide, candidates, cost_model)
    assert any(a.unresolved_count > 0 for a in optional)

    required = enumerate_assignments(wide, candidates, cost_model, required={0, 1})
    assert len(required) == 1
    assert required[0].unresolved_count == 0


def test_required_occurrence_claims_its_string_first(guitar_index, cost_model):
    # the required note sorts last by pitch, the optional one wants B3 open too
    occurrences = [EventOccurrence(11, "B", 0), EventOccurrence(0, "B", 1)]
    candidates = {
        0: guitar_index.candidates_for_pitch_class(11),
        1: (PositionCandidate("B3", 0, 4),),
    }
    ranked = enumerate_assignments(occurrences, candidates, cost_model, required={1})

    assert all(
        any(item.occurrence_index == 1 for item in a.occurrence_assignments) for a in ranked
    )
    assert ranked[0].unresolved_count == 0
