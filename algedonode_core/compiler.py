"""
YAML configuration compiler for algedonode hierarchies.

This module compiles a YAML description of a hierarchy's starting state into a
`HierarchyConfig`, and from there into a ready `AlgedonodeHierarchy`.

YAML schema (all keys optional):

dials: [1, 1, 1, 1]          # one value in 1..10 per dial row
strips:                      # list of 8 offsets in [-1, 1] ...
  3: 0.5                     # ... or a {column: offset} mapping
contacts: default            # default | random | explicit mapping below
seed: 7                      # seed for `contacts: random`
strict_light_lookup: false
validate_topology: true

Explicit contacts are keyed by contact count:

contacts:
  1: [-0.49, 0.49, -0.49, 0.49, -0.49, 0.49, -0.49, 0.49]
  2: [[-0.49, 0.49], ...]    # 8 columns
  4: [[...], ...]
  8: [[...], ...]

Notes:
- Omitted keys fall back to the reference defaults.
- Any malformed value raises `ValueError` naming the offending key.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

import yaml

from .config import (
    COLUMNS,
    CONTACT_COUNTS,
    ContactLayout,
    HierarchyConfig,
    default_contact_layout,
    random_contact_layout,
)
from .hierarchy import AlgedonodeHierarchy

logger = logging.getLogger(__name__)

KNOWN_KEYS = {"dials", "strips", "contacts", "seed", "strict_light_lookup", "validate_topology"}


def _as_float(value: Any, where: str) -> float:
    if isinstance(value, bool):
        raise ValueError(f"{where}: expected a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{where}: expected a number, got {value!r}") from None


def _as_int(value: Any, where: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{where}: expected an integer key, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{where}: expected an integer key, got {value!r}") from None


def _as_bool(data: Dict[str, Any], key: str) -> bool:
    value = data[key]
    if not isinstance(value, bool):
        raise ValueError(f"{key}: expected true or false, got {value!r}")
    return value


def _parse_strips(value: Any) -> List[float]:
    offsets = [0.0] * COLUMNS
    if isinstance(value, dict):
        for column, offset in value.items():
            column = _as_int(column, "strips")
            if not 0 <= column < COLUMNS:
                raise ValueError(f"strips: column {column} is outside 0..{COLUMNS - 1}")
            offsets[column] = _as_float(offset, f"strips: column {column}")
        return offsets
    if isinstance(value, list):
        if len(value) != COLUMNS:
            raise ValueError(f"strips: expected {COLUMNS} offsets, got {len(value)}")
        return [_as_float(v, f"strips: column {i}") for i, v in enumerate(value)]
    raise ValueError(f"strips: expected a list or mapping, got {type(value).__name__}")


def _parse_contacts(value: Any, seed: Any) -> ContactLayout:
    if value is None or value == "default":
        return default_contact_layout()
    if value == "random":
        if seed is not None and (isinstance(seed, bool) or not isinstance(seed, int)):
            raise ValueError(f"seed: expected an integer, got {seed!r}")
        return random_contact_layout(seed)
    if not isinstance(value, dict):
        raise ValueError(f"contacts: expected 'default', 'random' or a mapping, got {value!r}")

    positions: Dict[int, List] = {}
    for count, entries in value.items():
        count = _as_int(count, "contacts")
        if count not in CONTACT_COUNTS:
            raise ValueError(f"contacts: unexpected contact count {count}")
        if not isinstance(entries, list):
            raise ValueError(f"contacts: count {count} expects a list, got {entries!r}")
        where = f"contacts: count {count}"
        if count == 1:
            positions[count] = [_as_float(v, where) for v in entries]
            continue
        columns = []
        for column, bank in enumerate(entries):
            if not isinstance(bank, list):
                raise ValueError(f"{where}, column {column} expects a list, got {bank!r}")
            columns.append([_as_float(v, f"{where}, column {column}") for v in bank])
        positions[count] = columns

    # counts not given keep their default positions
    layout = default_contact_layout()
    layout.positions.update(positions)
    layout.validate()
    return layout


def config_from_dict(data: Dict[str, Any]) -> HierarchyConfig:
    """
    Build a `HierarchyConfig` from a YAML-parsed dictionary.

    Args:
        data: Parsed YAML dictionary

    Returns:
        HierarchyConfig: Validated configuration

    Raises:
        ValueError: If any value is malformed or out of range
    """
    if not isinstance(data, dict):
        raise ValueError(f"Configuration must be a mapping, got {type(data).__name__}")

    unknown = set(data) - KNOWN_KEYS
    if unknown:
        logger.warning("Ignoring unknown configuration keys: %s", sorted(unknown))

    cfg = HierarchyConfig()
    if "dials" in data:
        dials = data["dials"]
        if not isinstance(dials, list):
            raise ValueError(f"dials: expected a list, got {type(dials).__name__}")
        cfg.dial_values = list(dials)
    if "strips" in data:
        cfg.strip_offsets = _parse_strips(data["strips"])
    cfg.contacts = _parse_contacts(data.get("contacts"), data.get("seed"))
    if "strict_light_lookup" in data:
        cfg.strict_light_lookup = _as_bool(data, "strict_light_lookup")
    if "validate_topology" in data:
        cfg.validate_topology = _as_bool(data, "validate_topology")

    cfg.validate()
    return cfg


def config_from_yaml(yaml_text: str) -> HierarchyConfig:
    """Build a `HierarchyConfig` from YAML text."""
    data = yaml.safe_load(yaml_text) or {}
    return config_from_dict(data)


def config_from_file(path: str) -> HierarchyConfig:
    """Build a `HierarchyConfig` from a YAML file path."""
    with open(path, "r", encoding="utf-8") as f:
        txt = f.read()
    logger.debug("Loaded configuration from %s", path)
    return config_from_yaml(txt)


def compile_from_dict(data: Dict[str, Any]) -> AlgedonodeHierarchy:
    """Compile a YAML-parsed dictionary into a wired hierarchy."""
    return AlgedonodeHierarchy(config_from_dict(data))


def compile_from_yaml(yaml_text: str) -> AlgedonodeHierarchy:
    """Compile YAML text into a wired hierarchy."""
    return AlgedonodeHierarchy(config_from_yaml(yaml_text))


def compile_from_file(path: str) -> AlgedonodeHierarchy:
    """Compile a YAML file into a wired hierarchy."""
    return AlgedonodeHierarchy(config_from_file(path))
