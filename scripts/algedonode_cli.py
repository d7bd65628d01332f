#!/usr/bin/env python3
"""
Algedonode hierarchy CLI

Usage modes:
- Default run: build the hierarchy, propagate the dial values, print the result
- Full: simulate all 10,000 dial states and print per-light counts
- Snapshot: dump the full (or metasystem) view of the hierarchy
- Validation: check the wired topology and the single-light invariant
- Export: write GraphML for external tools
- Utility: list sample configs, show version
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from glob import glob
from pathlib import Path
from typing import Any, Dict, List

from algedonode_core import AlgedonodeHierarchy, MultipleLightsError  # type: ignore
from algedonode_core.compiler import config_from_file  # type: ignore
from algedonode_core.config import HierarchyConfig, random_contact_layout  # type: ignore
from algedonode_core.metrics import count_results, unlit_states, verify_single_light  # type: ignore


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        description="Run the algedonode hierarchy and dump results/metrics",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    # Utilities / meta
    p.add_argument("--version", action="store_true", help="Print version and exit")
    p.add_argument("-v", "--verbose", action="count", default=0, help="Increase verbosity (-v, -vv)")
    p.add_argument("--list-configs", action="store_true", help="List bundled sample YAML configs and exit")

    # Primary input
    p.add_argument("config", nargs="?", help="Optional path to a YAML config (e.g., scripts/default.yaml)")

    # Starting state overrides
    p.add_argument("--dials", type=int, nargs=4, metavar="V", default=None, help="Dial values, 1-10 each")
    p.add_argument(
        "--strip",
        action="append",
        default=[],
        metavar="COLUMN=OFFSET",
        help="Strip offset in [-1, 1] for a column (repeatable)",
    )
    p.add_argument("--random-contacts", action="store_true", help="Use a random contact layout")
    p.add_argument("--seed", type=int, default=None, help="Seed for --random-contacts")
    p.add_argument("--strict", action="store_true", help="Fail if more than one light is lit")

    # Modes
    p.add_argument("--full", action="store_true", help="Simulate every dial state and print light counts")
    p.add_argument("--individual", action="store_true", help="With --full, include every state/result pair")
    p.add_argument("--snapshot", action="store_true", help="Print a snapshot of the hierarchy")
    p.add_argument("--metasystem", action="store_true", help="With --snapshot, show only dials, strips and lights")
    p.add_argument("--validate", action="store_true", help="Check topology and the single-light invariant")
    p.add_argument("--export-graphml", type=str, default="", help="Export the topology to GraphML at given path")
    p.add_argument("--out", type=str, default="", help="Optional output JSON file path")

    return p.parse_args(argv)


def setup_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def build_config(args: argparse.Namespace) -> HierarchyConfig:
    cfg = config_from_file(args.config) if args.config else HierarchyConfig()
    if args.dials is not None:
        cfg.dial_values = list(args.dials)
    for item in args.strip:
        column, sep, offset = item.partition("=")
        if not sep:
            raise ValueError(f"--strip expects COLUMN=OFFSET, got {item!r}")
        column = int(column)
        if not 0 <= column < len(cfg.strip_offsets):
            raise ValueError(f"--strip column {column} is out of range")
        cfg.strip_offsets[column] = float(offset)
    if args.random_contacts:
        cfg.contacts = random_contact_layout(args.seed)
    if args.strict:
        cfg.strict_light_lookup = True
    cfg.validate()
    return cfg


def find_sample_configs() -> List[str]:
    # Search relative to repo root and this script location
    here = Path(__file__).resolve()
    repo_root = here.parent.parent
    candidates = []
    for base in [repo_root, here.parent]:
        candidates.extend(sorted(glob(str(base / "*.yaml"))))
        candidates.extend(sorted(glob(str(base / "scripts" / "*.yaml"))))
    # Deduplicate while preserving order
    seen = set()
    result = []
    for c in candidates:
        if c not in seen:
            seen.add(c)
            result.append(c)
    return result


def emit(payload: Dict[str, Any], out: str) -> None:
    if out:
        with open(out, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
    else:
        print(json.dumps(payload, indent=2))


def main(argv: List[str] | None = None) -> int:
    from algedonode_core import __version__ as algedonode_version  # type: ignore

    args = parse_args(argv)
    setup_logging(args.verbose)

    if args.version:
        print(algedonode_version)
        return 0

    if args.list_configs:
        print(json.dumps(find_sample_configs(), indent=2))
        return 0

    try:
        cfg = build_config(args)
    except (OSError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    logging.info("Building hierarchy (dials=%s)", cfg.dial_values)
    hierarchy = AlgedonodeHierarchy(cfg)

    if args.export_graphml:
        logging.info("Exporting GraphML to %s", args.export_graphml)
        hierarchy.export_graphml(args.export_graphml)

    if args.validate:
        issues = hierarchy.g.validate_topology()
        offenders = verify_single_light(hierarchy)
        logging.info("Topology issues: %d, invariant violations: %d", len(issues), len(offenders))
        emit(
            {
                "topology_issues": issues,
                "single_light_violations": [
                    {"state": list(state), "lit": lit} for state, lit in offenders
                ],
                "statistics": hierarchy.g.get_graph_statistics(),
            },
            args.out,
        )
        return 1 if issues or offenders else 0

    if args.full:
        results = hierarchy.full_simulate()
        payload: Dict[str, Any] = {
            "states": len(results),
            "counts": {str(column): tally for column, tally in sorted(count_results(results).items())},
            "unlit": [list(s) for s in unlit_states(results)],
        }
        if args.individual:
            payload["individual_results"] = [r.as_dict() for r in results]
        emit(payload, args.out)
        return 0

    hierarchy.clear()
    hierarchy.propagate_dial_values()

    try:
        if args.snapshot:
            payload = hierarchy.snapshot(metasystem=args.metasystem)
        else:
            payload = hierarchy.get_current_result().as_dict()
    except MultipleLightsError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    emit(payload, args.out)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
