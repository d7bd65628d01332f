"""
Algedonode Hierarchy Core Package.

This package simulates the algedonode hierarchy from Stafford Beer's
*Brain of the Firm*: four ten-valued dials routed through a 4x8 grid of
algedonodes to exactly one of sixteen lights. It includes:

- Component data structures and the wired topology (graph, wiring)
- The activation propagation engine and simulations (hierarchy)
- Contact layouts and starting-state configuration (config, compiler)
- Tallies and invariant checks over simulation results (metrics)
"""

# Algedonode Core Package

__version__ = "0.1.0"

from .enums import ActivationSource, LightType, LinkType, TargetKind
from .config import (
    ContactLayout,
    HierarchyConfig,
    default_contact_layout,
    random_contact_layout,
)
from .graph import (
    HierarchyGraph,
    LightResult,
    MultipleLightsError,
    StateResult,
    TopologyError,
)
from .hierarchy import AlgedonodeHierarchy
from .states import all_dial_states, next_state, random_state, validate_state
from .compiler import compile_from_dict, compile_from_file, compile_from_yaml
from .metrics import count_results, light_frequencies, unlit_states, verify_single_light
