"""
Metrics utilities for algedonode hierarchy simulations.

This module provides:
- Per-light tallies over a set of state/result pairs (e.g. a full simulation)
- Helpers to find unlit states and to check the single-light invariant
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Tuple

from .enums import LightType
from .graph import StateResult
from .states import DialState, all_dial_states, validate_state

if TYPE_CHECKING:
    from .hierarchy import AlgedonodeHierarchy


def count_results(results: Iterable[StateResult]) -> Dict[int, Dict[str, int]]:
    """
    Tally A and B results per light column.

    Args:
        results: State/result pairs; unlit results are skipped

    Returns:
        dict mapping light column -> {"aCount": n, "bCount": m}, only for columns
        that appear in the results
    """
    counts: Dict[int, Dict[str, int]] = {}
    for r in results:
        if r.result is None:
            continue
        tally = counts.setdefault(r.result.light_column, {"aCount": 0, "bCount": 0})
        if r.result.a_or_b is LightType.A:
            tally["aCount"] += 1
        else:
            tally["bCount"] += 1
    return counts


def light_frequencies(results: Iterable[StateResult]) -> Dict[Tuple[int, str], int]:
    """Return counts keyed by (light column, 'A' | 'B') for every one of the 16 lights."""
    freq = {(column, t.value): 0 for column in range(8) for t in (LightType.B, LightType.A)}
    for r in results:
        if r.result is not None:
            freq[(r.result.light_column, r.result.a_or_b.value)] += 1
    return freq


def unlit_states(results: Iterable[StateResult]) -> List[DialState]:
    """Dial states whose simulation left every light off."""
    return [r.state for r in results if r.result is None]


def verify_single_light(
    hierarchy: "AlgedonodeHierarchy", states: Optional[Iterable[Iterable[int]]] = None
) -> List[Tuple[DialState, int]]:
    """
    Check that each dial state lights exactly one light.

    Every state is cleared, set and propagated on `hierarchy`; the number of
    active lights is counted directly rather than through the lookup, which
    would hide duplicates. The hierarchy's dial values and lit light are
    restored afterwards.

    Args:
        hierarchy: Hierarchy to exercise
        states: States to check (all 10,000 if None)

    Returns:
        List of (state, active light count) for every offending state; empty
        when the invariant holds
    """
    offenders: List[Tuple[DialState, int]] = []
    with hierarchy.preserved_state():
        for state in states if states is not None else all_dial_states():
            state = validate_state(state)
            hierarchy.clear()
            hierarchy.set_dial_values(state)
            hierarchy.propagate_dial_values()
            lit = len(hierarchy.active_lights())
            if lit != 1:
                offenders.append((state, lit))
    return offenders
