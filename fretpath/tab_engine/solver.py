"""Solver — dynamic-programming path selection over per-event alternatives.

State:  ``(event_index, alternative_index)``
Transition: :meth:`FretboardCostModel.transition_cost` between the
            previous event's alternative and the current one.
Output: the minimum-cost assignment per event (Viterbi path).

Design choices:
    - No randomness, no multiprocessing.
    - Cost of an alternative = internal cost + unresolved notes × penalty.
    - Events without alternatives get a fully unresolved fallback so the
      lattice never has an empty column.
    - Ties go to the lowest alternative index.
"""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from .cost_model import FretboardCostModel, default_cost_model
from .enumerator import fallback_assignment
from .models import EventAssignment, PathEvent, SelectedPath


logger = logging.getLogger(__name__)

DEFAULT_UNRESOLVED_PENALTY: float = 28.0


def path_cost(
    assignments: Sequence[EventAssignment],
    cost_model: FretboardCostModel | None = None,
    unresolved_penalty: float = DEFAULT_UNRESOLVED_PENALTY,
) -> float:
    """Total cost of one fixed assignment per event (no optimisation)."""
    model = cost_model or default_cost_model()
    total = 0.0
    for i, assignment in enumerate(assignments):
        total += assignment.internal_cost + assignment.unresolved_count * unresolved_penalty
        if i > 0:
            total += model.transition_cost(assignments[i - 1], assignment)
    return total


def select_path(
    events: Sequence[PathEvent],
    cost_model: FretboardCostModel | None = None,
    unresolved_penalty: float = DEFAULT_UNRESOLVED_PENALTY,
) -> SelectedPath:
    """Find the cheapest sequence of assignments via DP.

    Args:
        events: Events in playing order, each with its ranked alternatives.
        cost_model: Scoring model; the packaged default when omitted.
        unresolved_penalty: Cost added per unresolved note.

    Returns:
        A :class:`SelectedPath` with one chosen alternative per event
        (index into the event's alternatives; 0 for a substituted
        fallback), the chosen assignments and the total path cost.
    """
    if not events:
        return SelectedPath(indexes=(), assignments=(), events=(), total_cost=0.0)

    model = cost_model or default_cost_model()
    n = len(events)

    lattice: list[tuple[EventAssignment, ...]] = [
        tuple(event.assignments)
        or (fallback_assignment(len(event.occurrences), model),)
        for event in events
    ]
    base_costs: list[np.ndarray] = [
        np.array(
            [a.internal_cost + a.unresolved_count * unresolved_penalty for a in alternatives],
            dtype=float,
        )
        for alternatives in lattice
    ]

    # ── DP tables ─────────────────────────────────────────────
    # dp[i][a] = minimum cumulative cost ending in alternative a of event i
    # bp[i][a] = predecessor alternative at event i-1
    dp: list[np.ndarray] = [base_costs[0]]
    bp: list[np.ndarray] = [np.full(len(lattice[0]), -1, dtype=int)]

    # ── Forward pass ──────────────────────────────────────────
    for i in range(1, n):
        previous, current = lattice[i - 1], lattice[i]
        transitions = np.array(
            [[model.transition_cost(p, a) for a in current] for p in previous],
            dtype=float,
        )
        totals = dp[i - 1][:, np.newaxis] + transitions
        best_prev = np.argmin(totals, axis=0)
        dp.append(totals[best_prev, np.arange(len(current))] + base_costs[i])
        bp.append(best_prev)

    # ── Backtrack ─────────────────────────────────────────────
    cursor = int(np.argmin(dp[-1]))
    total_cost = float(dp[-1][cursor])

    indexes = [0] * n
    for i in range(n - 1, -1, -1):
        indexes[i] = cursor
        cursor = int(bp[i][cursor])

    selected = tuple(lattice[i][indexes[i]] for i in range(n))
    logger.debug("Selected path over %d events, total cost %.3f", n, total_cost)

    return SelectedPath(
        indexes=tuple(indexes),
        assignments=selected,
        events=tuple(events),
        total_cost=total_cost,
    )
