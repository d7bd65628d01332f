"""
Dial state helpers.

A dial state is a 4-tuple of integers in [1, 10], one value per dial row. The
full state space holds 10,000 states, enumerated here in lexicographic order;
sequential and random stepping through it drive unattended runs.
"""

from __future__ import annotations

from functools import lru_cache
from itertools import product
from typing import Iterable, Tuple

import numpy as np

from .config import DIAL_VALUES, ROWS

DialState = Tuple[int, int, int, int]

STATE_COUNT = DIAL_VALUES**ROWS


@lru_cache(maxsize=1)
def all_dial_states() -> Tuple[DialState, ...]:
    """Every dial state from (1, 1, 1, 1) to (10, 10, 10, 10), last dial fastest."""
    return tuple(product(range(1, DIAL_VALUES + 1), repeat=ROWS))


def validate_state(state: Iterable[int]) -> DialState:
    """
    Normalise a dial state to a tuple, checking its shape and ranges.

    Raises:
        ValueError: If the state does not hold exactly 4 integers in [1, 10]
    """
    values = tuple(state)
    if len(values) != ROWS:
        raise ValueError(f"Dial state must have {ROWS} values, got {len(values)}")
    for row, value in enumerate(values):
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"Dial {row} value {value!r} is not an integer")
        if not 1 <= value <= DIAL_VALUES:
            raise ValueError(f"Dial {row} value {value} is outside 1..{DIAL_VALUES}")
    return values  # type: ignore[return-value]


def state_to_index(state: Iterable[int]) -> int:
    """Map a dial state to its position in `all_dial_states()`."""
    index = 0
    for value in validate_state(state):
        index = index * DIAL_VALUES + (value - 1)
    return index


def index_to_state(index: int) -> DialState:
    """Inverse of `state_to_index`."""
    if not 0 <= index < STATE_COUNT:
        raise ValueError(f"State index {index} is outside 0..{STATE_COUNT - 1}")
    values = []
    for _ in range(ROWS):
        index, digit = divmod(index, DIAL_VALUES)
        values.append(digit + 1)
    return tuple(reversed(values))  # type: ignore[return-value]


def next_state(state: Iterable[int]) -> DialState:
    """The state after `state` in `all_dial_states()`, wrapping to (1, 1, 1, 1) after the last."""
    return index_to_state((state_to_index(state) + 1) % STATE_COUNT)


def random_state(seed: int | None = None, rng: np.random.Generator | None = None) -> DialState:
    """
    Draw a dial state with every dial uniform over 1..10.

    Args:
        seed: Seed for a fresh generator; ignored when `rng` is given
        rng: Generator to draw from, for reproducible streams of states

    Returns:
        DialState: The drawn state
    """
    rng = rng if rng is not None else np.random.default_rng(seed)
    return tuple(int(v) for v in rng.integers(1, DIAL_VALUES + 1, size=ROWS))  # type: ignore[return-value]
