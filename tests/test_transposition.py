import math

import pytest

from fretpath.analysis.evaluator import count_string_collisions
from fretpath.melody.transposition import (
    format_transpose_semitones,
    infer_pitch,
    nearest_playable_pitch,
    normalize_transpose_semitones,
    transpose_events,
)
from fretpath.tab_engine.candidate_index import build_candidate_index
from fretpath.tab_engine.pitch import pitch_class_name


MELODY = [
    {"bar_index": 0, "column": 0, "notes": [{"note": "C", "string": "A2", "fret": 3}]},
    {"bar_index": 0, "column": 1, "notes": [{"note": "E", "string": "D3", "fret": 2}]},
    {"bar_index": 0, "column": 2, "notes": [{"note": "G", "string": "D3", "fret": 5}]},
    {"bar_index": 1, "column": 0, "notes": [{"note": "C", "string": "B3", "fret": 1}]},
    {"bar_index": 1, "column": 1, "notes": [{"note": "G", "string": "E4", "fret": 3}]},
]


def _pitches(events, instrument):
    return [
        instrument.pitch_at(n["string"], n["fret"]) if n["string"] is not None else None
        for e in events
        for n in e["notes"]
    ]


def test_normalize_transpose_semitones():
    assert normalize_transpose_semitones(3.4) == 3
    assert normalize_transpose_semitones(2.5) == 3
    assert normalize_transpose_semitones(-2.5) == -2
    assert normalize_transpose_semitones(-99) == -12
    assert normalize_transpose_semitones(99) == 12
    assert normalize_transpose_semitones("7") == 7
    assert normalize_transpose_semitones("bad") == 0
    assert normalize_transpose_semitones(None) == 0
    assert normalize_transpose_semitones(True) == 0
    assert normalize_transpose_semitones(math.nan) == 0


def test_format_transpose_semitones():
    assert format_transpose_semitones(0) == "0 st"
    assert format_transpose_semitones(2) == "+2 st"
    assert format_transpose_semitones(-3) == "-3 st"
    assert format_transpose_semitones(40) == "+12 st"


def test_nearest_playable_pitch(guitar_index):
    assert nearest_playable_pitch(50, guitar_index) == 50
    assert nearest_playable_pitch(30, guitar_index) == 42
    assert nearest_playable_pitch(100, guitar_index) == 88
    assert nearest_playable_pitch(500, guitar_index) is None


def test_infer_pitch(guitar_index):
    assert infer_pitch("D", None, guitar_index) == 74
    assert infer_pitch("E", 60, guitar_index) == 64
    # equidistant: lower octave wins
    assert infer_pitch("E", 58, guitar_index) == 52
    assert infer_pitch("nope", 60, guitar_index) is None


def test_single_note_up_a_tone(guitar):
    events = [{"notes": [{"note": "C", "string": "A2", "fret": 3}]}]
    [event] = transpose_events(events, 2, guitar)
    [note] = event["notes"]

    assert note["note"] == "D"
    assert guitar.pitch_at(note["string"], note["fret"]) == 50


@pytest.mark.parametrize("semitones", range(-12, 13))
def test_transposition_is_exact_when_playable(guitar, guitar_index, semitones):
    result = transpose_events(MELODY, semitones, guitar, candidate_index=guitar_index)

    for source, placed in zip(_pitches(MELODY, guitar), _pitches(result, guitar)):
        expected = source + semitones
        if expected in guitar_index:
            assert placed == expected
        else:
            assert placed is not None
            assert pitch_class_name(placed) == pitch_class_name(expected)


def test_metadata_preserved(guitar):
    result = transpose_events(MELODY, 5, guitar)
    assert [(e["bar_index"], e["column"]) for e in result] == [
        (e["bar_index"], e["column"]) for e in MELODY
    ]
    assert MELODY[0]["notes"][0] == {"note": "C", "string": "A2", "fret": 3}


def test_zero_offset_returns_copy(guitar):
    result = transpose_events(MELODY, 0, guitar)
    assert result == MELODY
    assert result is not MELODY
    assert result[0] is not MELODY[0]


def test_chord_transposition(guitar):
    chord = [{"notes": [
        {"note": "C", "string": "A2", "fret": 3},
        {"note": "E", "string": "D3", "fret": 2},
        {"note": "G", "string": "G3", "fret": 0},
        {"note": "C", "string": "B3", "fret": 1},
        {"note": "E", "string": "E4", "fret": 0},
    ]}]
    result = transpose_events(chord, 2, guitar)

    assert _pitches(result, guitar) == [50, 54, 57, 62, 66]
    assert [n["note"] for n in result[0]["notes"]] == ["D", "F#", "A", "D", "F#"]
    assert count_string_collisions(result) == 0


def test_pitch_class_only_notes_follow_the_line(guitar):
    events = [{"notes": [{"note": "C"}]}, {"notes": [{"note": "D"}]}]
    result = transpose_events(events, 2, guitar)
    first, second = _pitches(result, guitar)

    assert pitch_class_name(first) == "D"
    assert pitch_class_name(second) == "E"
    assert abs(second - first) <= 6


def test_octave_label_without_position(guitar):
    result = transpose_events([{"notes": [{"note": "C4"}]}], 2, guitar)
    assert _pitches(result, guitar) == [62]


def test_unplaceable_note_kept_without_position(guitar):
    result = transpose_events([{"notes": [{"note": "X"}]}], 3, guitar)
    assert result[0]["notes"] == [{"note": "X", "string": None, "fret": None}]


def test_negative_max_fret_raises(guitar):
    with pytest.raises(ValueError):
        transpose_events(MELODY, 2, guitar, max_fret=-1)


def test_numeric_strings_are_rounded():
    assert normalize_transpose_semitones("2.7") == 3
    assert normalize_transpose_semitones(" -4.4 ") == -4
    assert normalize_transpose_semitones("nan") == 0


def test_prebuilt_index_must_match_max_fret(guitar):
    index = build_candidate_index(guitar, 5)
    with pytest.raises(ValueError, match="max_fret"):
        transpose_events(MELODY, 2, guitar, max_fret=24, candidate_index=index)


def test_zero_offset_skips_index_checks(guitar):
    assert transpose_events(MELODY, 0, guitar, max_fret=-1) == MELODY
