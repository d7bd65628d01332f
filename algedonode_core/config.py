"""
Configuration objects for the algedonode hierarchy.

Exposes the fixed dimensions of the hierarchy, the contact position layout and
the tunable starting state (strip offsets, dial values, lookup policy), so
experiments can be set up without editing core logic.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Dict, List

import numpy as np

ROWS = 4
COLUMNS = 8
DIAL_VALUES = 10
ALGEDONODE_LINES = 8
ESCAPE_VALUES = (9, 10)
CONTACT_COUNTS = (1, 2, 4, 8)

# Contacts never touch the pad edges, so a full strip push still covers them
CONTACT_LIMIT = 0.49


def _default_positions() -> Dict[int, List]:
    contacts2 = [-0.49, 0.49]
    contacts4 = [-0.49, -0.16, 0.16, 0.49]
    contacts8 = [-0.49, -0.35, -0.21, -0.07, 0.07, 0.21, 0.35, 0.49]
    return {
        1: [-0.49, 0.49, -0.49, 0.49, -0.49, 0.49, -0.49, 0.49],
        2: [list(contacts2) for _ in range(COLUMNS)],
        4: [list(contacts4) for _ in range(COLUMNS)],
        8: [list(contacts8) for _ in range(COLUMNS)],
    }


@dataclass
class ContactLayout:
    """
    Contact positions for every algedonode, keyed by contact count.

    Count 1 (the first row) holds a flat list of one position per column.
    Counts 2, 4 and 8 hold one list per column with that many positions, in
    contact index order. Positions are in pad units, inside (-0.5, 0.5).
    """

    positions: Dict[int, List] = field(default_factory=_default_positions)

    def position(self, count: int, column: int, index: int) -> float:
        """Return the position of contact `index` for a node with `count` contacts."""
        if count == 1:
            return float(self.positions[1][column])
        return float(self.positions[count][column][index])

    def validate(self) -> None:
        """
        Check the layout covers every contact count with in-range positions.

        Raises:
            ValueError: If a count is missing, a list has the wrong length, or a
                position lies outside (-0.5, 0.5)
        """
        for count in CONTACT_COUNTS:
            if count not in self.positions:
                raise ValueError(f"Contact layout is missing positions for count {count}")
            columns = self.positions[count]
            if len(columns) != COLUMNS:
                raise ValueError(
                    f"Contact layout for count {count} has {len(columns)} columns, expected {COLUMNS}"
                )
            for column, entry in enumerate(columns):
                values = [entry] if count == 1 else entry
                if count != 1 and len(values) != count:
                    raise ValueError(
                        f"Contact layout for count {count}, column {column} has "
                        f"{len(values)} positions, expected {count}"
                    )
                for value in values:
                    if not -0.5 < float(value) < 0.5:
                        raise ValueError(
                            f"Contact position {value} (count {count}, column {column}) "
                            "is outside (-0.5, 0.5)"
                        )

    def copy(self) -> "ContactLayout":
        return ContactLayout(copy.deepcopy(self.positions))

    def as_dict(self) -> Dict[str, List]:
        """Plain mapping with string keys, suitable for JSON/YAML output."""
        return {str(count): copy.deepcopy(self.positions[count]) for count in CONTACT_COUNTS}


def default_contact_layout() -> ContactLayout:
    """Return a fresh copy of the reference contact layout."""
    return ContactLayout()


def random_contact_layout(seed: int | None = None) -> ContactLayout:
    """
    Draw every contact position uniformly from [-0.49, 0.49).

    Args:
        seed: Optional seed for reproducible layouts

    Returns:
        ContactLayout: A new layout covering all contact counts
    """
    rng = np.random.default_rng(seed)

    def draw(n: int) -> List[float]:
        return [float(v) for v in rng.random(n) * (2 * CONTACT_LIMIT) - CONTACT_LIMIT]

    positions: Dict[int, List] = {1: draw(COLUMNS)}
    for count in CONTACT_COUNTS[1:]:
        positions[count] = [draw(count) for _ in range(COLUMNS)]
    return ContactLayout(positions)


@dataclass
class HierarchyConfig:
    """
    Configuration for `AlgedonodeHierarchy` construction and lookup policy.

    Defaults reproduce the reference hierarchy: default contacts, all strips
    centred, every dial at 1.
    """

    contacts: ContactLayout = field(default_factory=default_contact_layout)

    # Strip offsets in strip units, one per column
    strip_offsets: List[float] = field(default_factory=lambda: [0.0] * COLUMNS)

    # Starting dial values, one per row
    dial_values: List[int] = field(default_factory=lambda: [1] * ROWS)

    # When enabled, reading the illuminated light raises if more than one is lit
    strict_light_lookup: bool = False

    # Run topology validation after wiring and fail on any issue
    validate_topology: bool = True

    def validate(self) -> None:
        """
        Check ranges of every configured value.

        Raises:
            ValueError: If offsets, dial values or contacts are malformed
        """
        if len(self.strip_offsets) != COLUMNS:
            raise ValueError(f"Expected {COLUMNS} strip offsets, got {len(self.strip_offsets)}")
        for column, offset in enumerate(self.strip_offsets):
            if not -1.0 <= float(offset) <= 1.0:
                raise ValueError(f"Strip {column} offset {offset} is outside [-1, 1]")
        if len(self.dial_values) != ROWS:
            raise ValueError(f"Expected {ROWS} dial values, got {len(self.dial_values)}")
        for row, value in enumerate(self.dial_values):
            if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= DIAL_VALUES:
                raise ValueError(f"Dial {row} value {value!r} is outside 1..{DIAL_VALUES}")
        self.contacts.validate()
