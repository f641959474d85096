"""Cost Model — ergonomic scoring of fretboard positions.

All weights are loaded from ``configs/tab_costs.yaml``.
No hardcoded constants: if a required key is missing from the YAML,
a ``ValueError`` is raised with a clear message.

Methods:
    fingering_profile – hand anchor, shifts and out-of-reach fingers
    internal_cost     – cost of the positions chosen for one event
    transition_cost   – cost of moving between two consecutive events
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Sequence

from ..config import DEFAULT_CONFIG_PATH, load_config, require_keys
from .models import EventAssignment, FingeringProfile, PositionCandidate


_REQUIRED_KEYS: list[str] = [
    "open_hand_span",
    "hand_shift_back",
    "max_finger",
    "average_fret_weight",
    "max_fret_weight",
    "fret_spread_weight",
    "string_spread_weight",
    "anchor_offset_weight",
    "hand_shift_weight",
    "clamped_finger_weight",
    "stretch_threshold",
    "stretch_weight",
    "wide_stretch_threshold",
    "wide_stretch_weight",
    "high_fret_average_threshold",
    "high_fret_average_weight",
    "high_fret_max_threshold",
    "high_fret_max_weight",
    "open_string_bonus_single",
    "open_string_bonus_chord",
    "empty_assignment_cost",
    "empty_transition_cost",
    "transition_fret_weight",
    "transition_string_weight",
    "nearest_string_distance_weight",
    "nearest_distance_weight",
    "large_jump_threshold",
    "large_jump_weight",
    "hand_position_weight",
]


def _clamp(value: int, lo: int, hi: int) -> int:
    return min(hi, max(lo, value))


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


class FretboardCostModel:
    """Rule-based cost model for fretboard position choices.

    Args:
        config_path: Path to the YAML configuration file.
    """

    def __init__(self, config_path: str | Path | None = None) -> None:
        source = DEFAULT_CONFIG_PATH if config_path is None else Path(config_path)
        cfg = load_config(source)
        require_keys(cfg, _REQUIRED_KEYS, source)

        self.open_hand_span: int = int(cfg["open_hand_span"])
        self.hand_shift_back: int = int(cfg["hand_shift_back"])
        self.max_finger: int = int(cfg["max_finger"])

        self.average_fret_weight: float = float(cfg["average_fret_weight"])
        self.max_fret_weight: float = float(cfg["max_fret_weight"])
        self.fret_spread_weight: float = float(cfg["fret_spread_weight"])
        self.string_spread_weight: float = float(cfg["string_spread_weight"])
        self.anchor_offset_weight: float = float(cfg["anchor_offset_weight"])
        self.hand_shift_weight: float = float(cfg["hand_shift_weight"])
        self.clamped_finger_weight: float = float(cfg["clamped_finger_weight"])
        self.stretch_threshold: float = float(cfg["stretch_threshold"])
        self.stretch_weight: float = float(cfg["stretch_weight"])
        self.wide_stretch_threshold: float = float(cfg["wide_stretch_threshold"])
        self.wide_stretch_weight: float = float(cfg["wide_stretch_weight"])
        self.high_fret_average_threshold: float = float(cfg["high_fret_average_threshold"])
        self.high_fret_average_weight: float = float(cfg["high_fret_average_weight"])
        self.high_fret_max_threshold: float = float(cfg["high_fret_max_threshold"])
        self.high_fret_max_weight: float = float(cfg["high_fret_max_weight"])
        self.open_string_bonus_single: float = float(cfg["open_string_bonus_single"])
        self.open_string_bonus_chord: float = float(cfg["open_string_bonus_chord"])
        self.empty_assignment_cost: float = float(cfg["empty_assignment_cost"])

        self.empty_transition_cost: float = float(cfg["empty_transition_cost"])
        self.transition_fret_weight: float = float(cfg["transition_fret_weight"])
        self.transition_string_weight: float = float(cfg["transition_string_weight"])
        self.nearest_string_distance_weight: float = float(cfg["nearest_string_distance_weight"])
        self.nearest_distance_weight: float = float(cfg["nearest_distance_weight"])
        self.large_jump_threshold: float = float(cfg["large_jump_threshold"])
        self.large_jump_weight: float = float(cfg["large_jump_weight"])
        self.hand_position_weight: float = float(cfg["hand_position_weight"])

    # ── Single event ──────────────────────────────────────────

    def fingering_profile(self, positions: Sequence[PositionCandidate]) -> FingeringProfile:
        """Walk the positions low fret to high and track the hand anchor.

        The anchor starts on the lowest fretted note. A note further than
        ``open_hand_span`` frets from the anchor moves the hand (anchor
        becomes ``fret - hand_shift_back``, never below fret 1). A note
        whose naive finger number falls outside ``1..max_finger`` counts
        as a clamped finger.

        Args:
            positions: Positions chosen for one event.

        Returns:
            The event's :class:`FingeringProfile`.
        """
        if not positions:
            return FingeringProfile(None, 0, 0, 0)

        ordered = sorted(positions, key=lambda p: (p.fret, p.string_index))
        fretted = [p.fret for p in ordered if p.fret > 0]
        hand: int | None = fretted[0] if fretted else None
        shifts = 0
        clamped = 0
        open_strings = 0

        for position in ordered:
            if position.fret == 0:
                open_strings += 1
                continue
            if hand is None:
                hand = position.fret
            if abs(position.fret - hand) > self.open_hand_span:
                hand = max(1, position.fret - self.hand_shift_back)
                shifts += 1
            raw_finger = position.fret - hand + 1
            if _clamp(raw_finger, 1, self.max_finger) != raw_finger:
                clamped += 1

        return FingeringProfile(
            hand_position=hand,
            hand_shift_count=shifts,
            clamped_finger_count=clamped,
            open_string_count=open_strings,
        )

    def internal_cost(
        self,
        positions: Sequence[PositionCandidate],
        profile: FingeringProfile | None = None,
    ) -> float:
        """Ergonomic cost of playing *positions* together.

        Args:
            positions: Positions chosen for one event.
            profile: Precomputed profile; computed when omitted.

        Returns:
            Weighted sum of fret height, spreads, hand movement and
            stretch penalties, minus an open-string bonus. An empty
            assignment costs ``empty_assignment_cost``.
        """
        if not positions:
            return self.empty_assignment_cost
        if profile is None:
            profile = self.fingering_profile(positions)

        frets = [p.fret for p in positions]
        strings = [p.string_index for p in positions]
        min_fret = min(frets)
        max_fret = max(frets)
        spread = max_fret - min_fret
        string_spread = max(strings) - min(strings)
        average_fret = _mean(frets)
        anchor = profile.hand_position if profile.hand_position is not None else min_fret

        stretch_penalty = (
            max(0.0, spread - self.stretch_threshold) * self.stretch_weight
            + max(0.0, spread - self.wide_stretch_threshold) * self.wide_stretch_weight
        )
        high_fret_penalty = (
            max(0.0, average_fret - self.high_fret_average_threshold) * self.high_fret_average_weight
            + max(0.0, max_fret - self.high_fret_max_threshold) * self.high_fret_max_weight
        )
        open_bonus = (
            self.open_string_bonus_chord if len(positions) > 1 else self.open_string_bonus_single
        )

        return (
            average_fret * self.average_fret_weight
            + max_fret * self.max_fret_weight
            + spread * self.fret_spread_weight
            + string_spread * self.string_spread_weight
            + abs(anchor - min_fret) * self.anchor_offset_weight
            + profile.hand_shift_count * self.hand_shift_weight
            + profile.clamped_finger_count * self.clamped_finger_weight
            + stretch_penalty
            + high_fret_penalty
            - profile.open_string_count * open_bonus
        )

    # ── Between events ────────────────────────────────────────

    def transition_cost(self, previous: EventAssignment, following: EventAssignment) -> float:
        """Cost of moving the hand from *previous* to *following*.

        Args:
            previous: Assignment chosen for the earlier event.
            following: Candidate assignment for the next event.

        Returns:
            Non-negative cost; ``empty_transition_cost`` when either side
            has no positions.
        """
        if not previous.positions or not following.positions:
            return self.empty_transition_cost

        fret_shift = abs(
            _mean([p.fret for p in following.positions]) - _mean([p.fret for p in previous.positions])
        )
        string_shift = abs(
            _mean([p.string_index for p in following.positions])
            - _mean([p.string_index for p in previous.positions])
        )

        nearest = _mean(
            [
                min(
                    abs(nxt.fret - prev.fret)
                    + abs(nxt.string_index - prev.string_index) * self.nearest_string_distance_weight
                    for prev in previous.positions
                )
                for nxt in following.positions
            ]
        )

        jump = abs(
            max(p.fret for p in following.positions) - max(p.fret for p in previous.positions)
        )
        large_jump_penalty = max(0.0, jump - self.large_jump_threshold) * self.large_jump_weight

        hand_shift = 0
        if previous.hand_position is not None and following.hand_position is not None:
            hand_shift = abs(following.hand_position - previous.hand_position)

        return (
            fret_shift * self.transition_fret_weight
            + string_shift * self.transition_string_weight
            + nearest * self.nearest_distance_weight
            + large_jump_penalty
            + hand_shift * self.hand_position_weight
        )


@lru_cache(maxsize=1)
def default_cost_model() -> FretboardCostModel:
    """Shared cost model built from the packaged configuration.

    The instance is never mutated by the engine.
    """
    return FretboardCostModel()
