"""Melody — resolution adapters built on the tab engine.

Sub-package containing:
    notes              – helpers for melody event / note dicts
    position_resolver  – fill in missing positions (per-event search + path DP)
    transposition      – shift by semitones and re-place on the fretboard
    string_shift       – move notes across strings keeping exact pitch
    cache              – bounded FIFO cache and content signatures
    adjustments        – caller-owned memoised transpose / string-shift views
"""
