"""
Algedonode hierarchy propagation engine.

This module implements the activation protocol of Stafford Beer's algedonode
hierarchy over a wired `HierarchyGraph`:

- Dial lines 1-8 activate contacts; a contact always records the signal but
  only drives its pad-pair while its algedonode is active
- A pad-pair picks output 1 when the contact position is at or past half the
  strip offset, otherwise output 0, and activates that target
- Set-activators and lights accept activation from a pad output
  unconditionally, and from a dial escape line (9, 10) only while the node
  gating them is active
- A set-activator activates every algedonode in its partition

Propagation is synchronous: setting the dials and calling
`propagate_dial_values()` after `clear()` leaves exactly one light lit.
Callers must `clear()` before propagating a new dial state; the engine does
not do it for them, except inside `simulate()` and `full_simulate()`.

Configuration: contact layout, starting strip offsets and dial values, and the
light lookup policy come from `HierarchyConfig` in `algedonode_core.config`.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from .config import (
    COLUMNS,
    DIAL_VALUES,
    ROWS,
    ContactLayout,
    HierarchyConfig,
    default_contact_layout,
    random_contact_layout,
)
from .enums import ActivationSource, TargetKind
from .graph import (
    Algedonode,
    Contact,
    Dial,
    DialOutput,
    HierarchyGraph,
    Light,
    LightResult,
    MultipleLightsError,
    PadPair,
    StateResult,
    Target,
    TopologyError,
)
from .states import DialState, all_dial_states, validate_state
from .wiring import build_graph

logger = logging.getLogger(__name__)


class AlgedonodeHierarchy:
    """
    A complete algedonode hierarchy: 4 dials, 4x8 algedonodes, 16 lights.

    The hierarchy owns its graph, builds the wiring once at construction and
    exposes the operations a UI shell needs: setting dials, moving strips,
    re-positioning contacts, propagating, clearing, and simulating single or
    all dial states.

    Attributes:
        g: The wired hierarchy graph
        config: Configuration used to build the hierarchy
        stats: Counters for propagations and simulations
    """

    def __init__(self, config: HierarchyConfig | None = None):
        """
        Build and wire a hierarchy.

        Args:
            config: Optional configuration; defaults reproduce the reference hierarchy

        Raises:
            ValueError: If the configuration is out of range
            TopologyError: If topology validation is enabled and finds an issue
        """
        self.config = config or HierarchyConfig()
        self.config.validate()

        self.g: HierarchyGraph = build_graph(self.config.contacts)
        if self.config.validate_topology:
            issues = self.g.validate_topology()
            if issues:
                raise TopologyError(f"Hierarchy wiring is inconsistent: {issues}")

        self._contacts: ContactLayout = self.config.contacts.copy()
        # True while the lights reflect a propagation of the current dials
        self._live = False

        for column, offset in enumerate(self.config.strip_offsets):
            self.move_strip(column, offset)
        for row, value in enumerate(self.config.dial_values):
            self.set_dial_value(row, value)

        self.stats: Dict[str, int] = {}
        self.reset_stats()

    # ----- helpers -----
    def reset_stats(self) -> None:
        """Reset propagation and simulation counters."""
        self.stats = {
            "propagations": 0,
            "simulations": 0,
            "full_simulations": 0,
            "clears": 0,
        }

    def _gating_node(self, target: Target) -> Algedonode:
        if target.kind is TargetKind.SET_ACTIVATOR:
            return self.g.nodes[target.representative_id]
        return self.g.nodes[target.parent_id]

    # ----- controls -----
    def set_dial_value(self, dial: int, value: int) -> None:
        """
        Set dial `dial` (0-3) to `value` (1-10). Does not propagate.

        Raises:
            ValueError: If the dial index or value is out of range
        """
        if not 0 <= dial < ROWS:
            raise ValueError(f"Dial index {dial} is outside 0..{ROWS - 1}")
        if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= DIAL_VALUES:
            raise ValueError(f"Dial value {value!r} is outside 1..{DIAL_VALUES}")
        self.g.dials[dial].value = value

    def set_dial_values(self, state: Iterable[int]) -> None:
        """Set all four dials from a dial state. Does not propagate."""
        for row, value in enumerate(validate_state(state)):
            self.g.dials[row].value = value

    def get_dial_states(self) -> DialState:
        """Current dial values, one per row."""
        return tuple(dial.value for dial in self.g.dials)  # type: ignore[return-value]

    get_dial_values = get_dial_states

    def move_strip(self, column: int, offset: float) -> None:
        """
        Move strip `column` (0-7) to `offset` in [-1, 1], repositioning the
        pad-pairs of all four rows in that column.

        Raises:
            ValueError: If the column or offset is out of range
        """
        if not 0 <= column < COLUMNS:
            raise ValueError(f"Strip column {column} is outside 0..{COLUMNS - 1}")
        if not -1.0 <= offset <= 1.0:
            raise ValueError(f"Strip offset {offset} is outside [-1, 1]")
        strip = self.g.strips[column]
        strip.offset = float(offset)
        for node_id in strip.node_ids:
            self.g.nodes[node_id].pad.offset = strip.offset

    def get_strip_offsets(self) -> List[float]:
        return [strip.offset for strip in self.g.strips]

    @property
    def contact_layout(self) -> ContactLayout:
        """Copy of the contact layout currently applied to the hierarchy."""
        return self._contacts.copy()

    def set_new_contact_positions(self, layout: ContactLayout) -> None:
        """
        Reassign every contact position from `layout` without rewiring.

        Positions are looked up by (contact count, column, contact index).
        Activation state is untouched; clear and propagate to see the effect.

        Raises:
            ValueError: If the layout is malformed
        """
        layout.validate()
        for node in self.g.all_nodes():
            for index, contact_id in enumerate(node.contact_ids):
                self.g.contacts[contact_id].position = layout.position(
                    node.contact_count, node.column, index
                )
        self._contacts = layout.copy()

    def randomize_contacts(self, seed: int | None = None) -> ContactLayout:
        """Apply a random contact layout and return it."""
        layout = random_contact_layout(seed)
        self.set_new_contact_positions(layout)
        logger.info("Applied random contact layout (seed=%s)", seed)
        return layout

    def restore_default_contacts(self) -> None:
        """Put every contact back at its default position."""
        self.set_new_contact_positions(default_contact_layout())
        logger.info("Restored default contact layout")

    # ----- clearing -----
    def clear(self) -> None:
        """
        Reset all transient activation state.

        Algedonodes in rows 1-3 become inactive and their contacts ungated;
        every pad-pair, set-activator and light is reset; every dial line and
        contact signal is dropped. Row 0 algedonodes stay active. Safe to call
        repeatedly.
        """
        for node in self.g.all_nodes():
            self._clear_node(node)
        for dial in self.g.dials:
            self._clear_dial(dial)
        self._live = False
        self.stats["clears"] += 1

    def _clear_node(self, node: Algedonode) -> None:
        if node.row != 0:
            node.active = False
            for contact_id in node.contact_ids:
                self.g.contacts[contact_id].parent_active = False
        self._clear_pad(node.pad)

    def _clear_pad(self, pad: PadPair) -> None:
        pad.active_index = None
        for target_id in pad.outputs:
            self._clear_target(self.g.target(target_id))

    def _clear_target(self, target: Target) -> None:
        was_active = target.active
        target.active = False
        target.activation_source = ActivationSource.NONE
        # an inactive activator never activated its partition this cycle
        if target.kind is TargetKind.SET_ACTIVATOR and was_active:
            for node_id in target.node_ids:
                self._clear_node(self.g.nodes[node_id])

    def _clear_dial(self, dial: Dial) -> None:
        for output in dial.outputs:
            output.active = False
            if output.is_escape:
                for target_id in output.links:
                    self._clear_target(self.g.target(target_id))
            else:
                for contact_id in output.links:
                    self.g.contacts[contact_id].active = False

    # ----- propagation -----
    def propagate_dial(self, dial: int) -> None:
        """Fire the output line of a single dial matching its current value."""
        d = self.g.dials[dial]
        self._fire(d.output_for(d.value))
        self._live = True

    def propagate_dial_values(self) -> None:
        """
        Fire every dial's selected line, dials 0 to 3 in order.

        The cascade runs synchronously through contacts, pad-pairs and
        set-activators down to the lights.
        """
        for dial in self.g.dials:
            self._fire(dial.output_for(dial.value))
        self._live = True
        self.stats["propagations"] += 1

    def _fire(self, output: DialOutput) -> None:
        output.active = True
        if output.is_escape:
            for target_id in output.links:
                self._activate_target(self.g.target(target_id), ActivationSource.DIAL_OUTPUT)
        else:
            for contact_id in output.links:
                self._activate_contact(self.g.contacts[contact_id])

    def _activate_contact(self, contact: Contact) -> None:
        contact.active = True
        if contact.parent_active:
            self._activate_pad(self.g.nodes[contact.node_id].pad, contact.position)

    def _activate_pad(self, pad: PadPair, contact_position: float) -> None:
        index = pad.select(contact_position)
        pad.active_index = index
        self._activate_target(self.g.target(pad.outputs[index]), ActivationSource.ALGEDONODE)

    def _gate_allows(self, target: Target, source: ActivationSource) -> bool:
        """
        Decide whether an activation from `source` reaches `target`.

        Pad outputs always get through. Escape lines only get through while
        the node gating the target is active, i.e. while the signal is already
        in the right branch.
        """
        if source is ActivationSource.ALGEDONODE:
            return True
        if source is ActivationSource.DIAL_OUTPUT:
            return self._gating_node(target).active
        return False

    def _activate_target(self, target: Target, source: ActivationSource) -> bool:
        if not self._gate_allows(target, source):
            return False
        target.active = True
        target.activation_source = source
        if target.kind is TargetKind.SET_ACTIVATOR:
            for node_id in target.node_ids:
                self._activate_node(self.g.nodes[node_id])
        return True

    def _activate_node(self, node: Algedonode) -> None:
        node.active = True
        for contact_id in node.contact_ids:
            self.g.contacts[contact_id].parent_active = True

    # ----- results -----
    def active_lights(self) -> List[Light]:
        """Every lit light, in scan order."""
        return [light for light in self.g.all_lights() if light.active]

    def get_illuminated_light(self) -> Optional[LightResult]:
        """
        Return the lit light, or None if no light is on.

        Lights are scanned column by column, B before A; if several are lit
        the first one wins, unless `strict_light_lookup` is configured.

        Raises:
            MultipleLightsError: Under strict lookup, if more than one light is lit
        """
        lit = self.active_lights()
        if len(lit) > 1 and self.config.strict_light_lookup:
            raise MultipleLightsError(
                f"{len(lit)} lights are active: {[light.id for light in lit]}"
            )
        return lit[0].details() if lit else None

    def get_current_result(self) -> StateResult:
        """The current dial state paired with the currently lit light."""
        return StateResult(self.get_dial_states(), self.get_illuminated_light())

    # ----- simulation -----
    def _evaluate(self, state: DialState) -> Optional[LightResult]:
        self.clear()
        for dial, value in zip(self.g.dials, state):
            dial.value = value
        self.propagate_dial_values()
        return self.get_illuminated_light()

    @contextmanager
    def preserved_state(self) -> Iterator[None]:
        """
        Put the dial values back on exit, even if the block raises.

        The restored values are re-propagated only if they had been propagated
        on entry, so the caller sees the same lit light as before.
        """
        previous, was_live = self.get_dial_states(), self._live
        try:
            yield
        finally:
            self.clear()
            for dial, value in zip(self.g.dials, previous):
                dial.value = value
            if was_live:
                self.propagate_dial_values()

    def simulate(self, state: Iterable[int]) -> Optional[LightResult]:
        """
        Return the light a dial state illuminates at the current strip and
        contact settings.

        The hierarchy is cleared, set and propagated for `state`, then put back
        to its previous dial values (re-propagated if they were live), so the
        caller observes no change.

        Raises:
            ValueError: If `state` is not a valid dial state
        """
        state = validate_state(state)
        with self.preserved_state():
            result = self._evaluate(state)
        self.stats["simulations"] += 1
        return result

    def full_simulate(self) -> List[StateResult]:
        """
        Simulate all 10,000 dial states in lexicographic order.

        The previous dial values (and lit light, if any) are restored afterwards.

        Returns:
            List of `StateResult`, one per dial state, from (1,1,1,1) to (10,10,10,10)
        """
        with self.preserved_state():
            results = [StateResult(state, self._evaluate(state)) for state in all_dial_states()]
        self.stats["full_simulations"] += 1
        logger.info(
            "Full simulation complete: %d states, %d unlit",
            len(results),
            sum(1 for r in results if r.result is None),
        )
        return results

    # ----- observation -----
    def snapshot(self, metasystem: bool = False) -> Dict[str, Any]:
        """
        Capture the observable state of the hierarchy.

        Args:
            metasystem: If True, expose only what the metasystem sees (dials,
                strips and lights), hiding nodes, contacts and activators

        Returns:
            dict: Plain-data view suitable for rendering or JSON output
        """
        snap: Dict[str, Any] = {
            "dials": [
                {
                    "row": dial.row,
                    "value": dial.value,
                    "active_lines": [o.value for o in dial.outputs if o.active],
                }
                for dial in self.g.dials
            ],
            "strips": [{"column": s.column, "offset": s.offset} for s in self.g.strips],
            "lights": [
                {
                    "id": light.id,
                    "column": light.column,
                    "aOrB": light.a_or_b.value,
                    "active": light.active,
                    "activation_source": light.activation_source.name,
                }
                for light in self.g.all_lights()
            ],
            "result": self.get_current_result().as_dict(),
        }
        if metasystem:
            return snap

        snap["nodes"] = [
            {
                "id": node.id,
                "row": node.row,
                "column": node.column,
                "active": node.active,
                "pad_active_index": node.pad.active_index,
                "contacts": [
                    {
                        "position": c.position,
                        "active": c.active,
                        "parent_active": c.parent_active,
                    }
                    for c in (self.g.contacts[cid] for cid in node.contact_ids)
                ],
            }
            for node in self.g.all_nodes()
        ]
        snap["activators"] = [
            {
                "id": act.id,
                "row": act.row,
                "start_column": act.start_column,
                "end_column": act.end_column,
                "active": act.active,
                "activation_source": act.activation_source.name,
            }
            for act in self.g.activators.values()
        ]
        snap["stats"] = dict(self.stats)
        return snap

    def partition_states(self) -> List[Tuple[str, bool, List[bool]]]:
        """For each set-activator: its id, its state and the states of its partition nodes."""
        return [
            (act.id, act.active, [self.g.nodes[nid].active for nid in act.node_ids])
            for act in self.g.activators.values()
        ]

    def export_graphml(self, filepath: str) -> None:
        """Export the wired topology, with current activation, to GraphML."""
        self.g.export_graphml(filepath)
