"""Pitch codec — note names, pitch classes and absolute pitches.

Absolute pitches are MIDI note numbers (``C4 = 60``). Pitch classes are
always spelled with sharps so that equal pitch classes compare equal as
strings (``Bb`` and ``A#`` both normalise to ``"A#"``).

Parsing of scientific pitch names is delegated to *pretty_midi*.
"""

from __future__ import annotations

import re

import pretty_midi


PITCH_CLASS_NAMES: tuple[str, ...] = (
    "C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B",
)

_OCTAVE_SUFFIX = re.compile(r"-?\d+$")
_PITCH_CLASS = re.compile(r"^([A-Ga-g])([#b]?)$")
_SCIENTIFIC = re.compile(r"^([A-Ga-g])([#b]?)(-?\d+)$")


def _clean(name: str) -> str:
    return name.strip().replace("♯", "#").replace("♭", "b")


def pitch_class_name(pitch: int) -> str:
    """Return the sharp-spelled pitch class of an absolute pitch."""
    return PITCH_CLASS_NAMES[int(round(pitch)) % 12]


def normalize_pitch_class(name: str | None) -> str | None:
    """Normalise a note name to a sharp-spelled pitch class.

    A trailing octave number is ignored (``"Eb4"`` → ``"D#"``).

    Args:
        name: Note name such as ``"C"``, ``"f#"``, ``"B♭"`` or ``"E#3"``.

    Returns:
        The pitch class name, or ``None`` if *name* is not a note.
    """
    if not isinstance(name, str):
        return None
    match = _PITCH_CLASS.match(_OCTAVE_SUFFIX.sub("", _clean(name)))
    if not match:
        return None
    # Octave 4 is arbitrary; only the pitch class survives.
    number = pretty_midi.note_name_to_number(f"{match.group(1).upper()}{match.group(2)}4")
    return pitch_class_name(number)


def pitch_class_semitone(name: str | None) -> int | None:
    """Semitone (0–11) of a note name's pitch class, or ``None``."""
    pitch_class = normalize_pitch_class(name)
    if pitch_class is None:
        return None
    return PITCH_CLASS_NAMES.index(pitch_class)


def parse_scientific_note(text: str | None) -> int | None:
    """Parse a note name *with* octave into an absolute pitch.

    ``"C#4"`` → 61, ``"Bb2"`` → 46. Names without an octave return ``None``.
    """
    if not isinstance(text, str):
        return None
    match = _SCIENTIFIC.match(_clean(text))
    if not match:
        return None
    letter, accidental, octave = match.groups()
    return pretty_midi.note_name_to_number(f"{letter.upper()}{accidental}{octave}")


def scientific_note_name(pitch: int) -> str:
    """Sharp-spelled scientific name of an absolute pitch (``60`` → ``"C4"``)."""
    return pretty_midi.note_number_to_name(pitch)


def transpose_pitch_class(name: str | None, semitones: int) -> str | None:
    """Shift a pitch class by *semitones*, wrapping around the octave."""
    semitone = pitch_class_semitone(name)
    if semitone is None:
        return None
    return PITCH_CLASS_NAMES[(semitone + int(semitones)) % 12]
