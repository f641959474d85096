import logging

import pytest

from fretpath.tab_engine.candidate_index import build_candidate_index
from fretpath.tab_engine.instrument import GUITAR, TunedInstrument
from fretpath.tab_engine.models import PositionCandidate


def test_lowest_pitch_has_single_candidate(guitar_index):
    assert guitar_index.candidates(40) == (PositionCandidate("E2", 0, 0),)


def test_candidates_ordered_by_fret(guitar_index):
    found = [(c.string_id, c.fret) for c in guitar_index.candidates(64)]
    assert found == [("E4", 0), ("B3", 5), ("G3", 9), ("D3", 14), ("A2", 19), ("E2", 24)]


def test_every_candidate_sounds_its_pitch(guitar_index):
    for pitch in guitar_index.pitches:
        for candidate in guitar_index.candidates(pitch):
            assert GUITAR.pitch_at(candidate.string_id, candidate.fret) == pitch
            assert GUITAR.string_order[candidate.string_index] == candidate.string_id
            assert 0 <= candidate.fret <= 24


def test_pitch_range(guitar_index):
    assert min(guitar_index.pitches) == 40
    assert max(guitar_index.pitches) == 88
    assert len(guitar_index) == 49
    assert 88 in guitar_index
    assert 89 not in guitar_index
    assert guitar_index.candidates(30) == ()


def test_pitch_class_lookup(guitar_index):
    assert guitar_index.pitches_for_pitch_class(4) == (40, 52, 64, 76, 88)

    found = guitar_index.candidates_for_pitch_class(4)
    assert [(c.string_id, c.fret) for c in found[:4]] == [
        ("E2", 0),
        ("E4", 0),
        ("D3", 2),
        ("B3", 5),
    ]
    assert len(found) == sum(len(guitar_index.candidates(p)) for p in (40, 52, 64, 76, 88))


def test_max_fret_zero_only_open_strings():
    index = build_candidate_index(GUITAR, 0)
    assert len(index) == 6
    assert all(c.fret == 0 for p in index.pitches for c in index.candidates(p))


def test_negative_max_fret_raises():
    with pytest.raises(ValueError):
        build_candidate_index(GUITAR, -1)


def test_non_integer_max_fret_raises():
    with pytest.raises(ValueError):
        build_candidate_index(GUITAR, 12.5)


def test_empty_instrument_yields_empty_index(caplog):
    with caplog.at_level(logging.WARNING):
        index = build_candidate_index(TunedInstrument("none", {}), 12)
    assert len(index) == 0
    assert index.candidates_for_pitch_class(0) == ()
    assert "empty candidate index" in caplog.text


def test_silent_geometry_yields_empty_index():
    class Silent:
        name = "silent"
        string_order = ("a", "b")

        def pitch_at(self, string_id, fret):
            return None

    assert len(build_candidate_index(Silent(), 12)) == 0
