"""Tab Engine — fretboard position assignment by search and dynamic programming.

Sub-package containing:
    pitch            – note-name / pitch-class / absolute-pitch codec
    instrument       – instrument geometry protocol and tuned presets
    models           – immutable data model shared by the stages
    candidate_index  – pitch → playable (string, fret) positions
    cost_model       – configurable ergonomic cost functions
    enumerator       – per-event bounded backtracking over positions
    solver           – DP (Viterbi) path selection across events
    fingering        – left-hand finger numbers for resolved events
"""
