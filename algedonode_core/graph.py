"""
Graph data structures for the algedonode hierarchy.

This module defines the components of the hierarchy and the container that owns
them:
- Contact, PadPair, Algedonode: the node layer (4 rows x 8 columns)
- SetActivator, Light: activation targets driven by pad outputs and escape lines
- Dial, DialOutput, Strip: inputs and the movable pad strips
- HierarchyGraph: arena of all components, with handle-based links between them

Components refer to each other by string id and are resolved through the
`HierarchyGraph`; no component owns another except an algedonode its pad-pair.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

import networkx as nx

from .config import ALGEDONODE_LINES, COLUMNS, ESCAPE_VALUES, ROWS
from .enums import ActivationSource, LightType, LinkType, TargetKind


class TopologyError(ValueError):
    """Raised when the hierarchy wiring breaks a construction contract."""


class MultipleLightsError(RuntimeError):
    """Raised by strict light lookup when more than one light is active."""


@dataclass(frozen=True)
class LightResult:
    """Column and row (A or B) of an illuminated light."""

    light_column: int
    a_or_b: LightType

    def as_dict(self) -> Dict[str, Any]:
        return {"lightColumn": self.light_column, "aOrB": self.a_or_b.value}


@dataclass(frozen=True)
class StateResult:
    """A dial state paired with the light it illuminates (None if no light)."""

    state: Tuple[int, ...]
    result: Optional[LightResult]

    def as_dict(self) -> Dict[str, Any]:
        return {
            "state": list(self.state),
            "result": self.result.as_dict() if self.result is not None else None,
        }


@dataclass
class Contact:
    """
    A fixed tap on an algedonode's pad-pair, fed by one dial line.

    A contact only affects its pad-pair when its dial line fires while the
    owning algedonode is active.

    Attributes:
        id: Unique identifier for this contact
        node_id: Id of the owning algedonode
        index: Position of this contact within its node's contact bank
        position: Vertical position in pad units, inside (-0.5, 0.5)
        active: Whether its dial line fired this cycle
        parent_active: Whether the owning algedonode is currently active
    """

    id: str
    node_id: str
    index: int
    position: float
    active: bool = False
    parent_active: bool = False


@dataclass
class PadPair:
    """
    Two adjacent pad regions under an algedonode.

    A live contact selects region 1 when its position is at or past half the
    strip offset, region 0 otherwise. Each region drives one output target.
    """

    offset: float = 0.0
    """Strip offset in strip units [-1, 1], shared across the column."""

    active_index: Optional[int] = None
    """Index of the region selected this cycle, or None."""

    outputs: Optional[Tuple[str, str]] = None
    """Target ids driven by region 0 and region 1; wired exactly once."""

    def set_outputs(self, output0: str, output1: str) -> None:
        """
        Wire the two output targets.

        Raises:
            TopologyError: If the outputs were already wired
        """
        if self.outputs is not None:
            raise TopologyError(
                f"Pad outputs already wired to {self.outputs}; cannot rewire to {(output0, output1)}"
            )
        self.outputs = (output0, output1)

    def select(self, contact_position: float) -> int:
        # ties go to region 1
        return 1 if contact_position >= self.offset / 2 else 0


@dataclass
class Algedonode:
    """
    A node gating dial signals through to one of two outputs.

    Row 0 nodes are permanently active; nodes in rows 1-3 are activated by the
    set-activator owning their partition and reset on every clear.
    """

    id: str
    """Unique identifier, e.g. 'n2.5' for row 2, column 5."""

    row: int
    """Row index, 0 to 3."""

    column: int
    """Column index, 0 to 7."""

    active: bool = False
    """Activation state; always True for row 0."""

    contact_ids: List[str] = field(default_factory=list)
    """Ids of the contacts on this node, in contact index order."""

    pad: PadPair = field(default_factory=PadPair)
    """The pad-pair beneath this node."""

    @property
    def contact_count(self) -> int:
        return len(self.contact_ids)

    def is_active(self) -> bool:
        return self.active


@dataclass
class SetActivator:
    """
    Fan-out point activating a partition of next-row algedonodes at once.

    Attributes:
        id: Unique identifier
        row: Row whose pad outputs (and dial escape lines) drive this activator
        start_column: First column of the driven partition (inclusive)
        end_column: Last column of the driven partition (inclusive)
        node_ids: Ids of the driven algedonodes in row + 1
        representative_id: Any node of the driving partition; gates escape activations
        active: Activation state this cycle
        activation_source: What activated it this cycle
    """

    id: str
    row: int
    start_column: int
    end_column: int
    node_ids: List[str]
    representative_id: str
    active: bool = False
    activation_source: ActivationSource = ActivationSource.NONE
    kind: TargetKind = field(default=TargetKind.SET_ACTIVATOR, init=False)

    def is_active(self) -> bool:
        return self.active


@dataclass
class Light:
    """
    Terminal sink of the hierarchy; one A and one B light per column.

    Attributes:
        id: Unique identifier, e.g. 'L3A'
        a_or_b: Light row
        column: Column index, 0 to 7
        parent_id: Last-row algedonode controlling this light; gates escape activations
        active: Whether the light is lit
        activation_source: What lit it this cycle
    """

    id: str
    a_or_b: LightType
    column: int
    parent_id: Optional[str] = None
    active: bool = False
    activation_source: ActivationSource = ActivationSource.NONE
    kind: TargetKind = field(default=TargetKind.LIGHT, init=False)

    def is_active(self) -> bool:
        return self.active

    def details(self) -> LightResult:
        return LightResult(self.column, self.a_or_b)


Target = Union[SetActivator, Light]


@dataclass
class DialOutput:
    """
    One of a dial's ten output lines.

    Lines 1-8 feed algedonode contacts; lines 9 and 10 are escape lines wired
    straight to set-activators (or lights, for the last dial).
    """

    id: str
    value: int
    """1-indexed line value."""

    active: bool = False
    links: List[str] = field(default_factory=list)
    """Contact ids (lines 1-8) or target ids (escape lines)."""

    @property
    def is_escape(self) -> bool:
        return self.value in ESCAPE_VALUES


@dataclass
class Dial:
    """An input selector for one row, holding a value in 1..10."""

    row: int
    value: int = 1
    outputs: List[DialOutput] = field(default_factory=list)

    def output_for(self, value: int) -> DialOutput:
        return self.outputs[value - 1]

    def algedonode_outputs(self) -> List[DialOutput]:
        return self.outputs[:ALGEDONODE_LINES]

    def escape_outputs(self) -> List[DialOutput]:
        return self.outputs[ALGEDONODE_LINES:]


@dataclass
class Strip:
    """The four pad-pairs of one column, moved together by a single offset."""

    column: int
    offset: float = 0.0
    node_ids: List[str] = field(default_factory=list)


@dataclass
class Edge:
    """
    A directed link in the hierarchy topology.

    Edges mirror the handle links held by components; they are kept for
    validation, statistics and export, not consulted during propagation.
    """

    src: str
    dst: str
    type: LinkType


class HierarchyGraph:
    """
    Container for every component of one algedonode hierarchy.

    Attributes:
        dials: The four dials, in row order
        rows: 4 x 8 grid of algedonodes
        nodes: Algedonodes by id
        contacts: Contacts by id
        activators: Set-activators by id, in creation order
        lights: One (B, A) light pair per column
        strips: One strip per column
        out_edges / in_edges: Topology edges by source / destination id
    """

    def __init__(self):
        """Initialize an empty hierarchy graph."""
        self.dials: List[Dial] = []
        self.rows: List[List[Algedonode]] = []
        self.nodes: Dict[str, Algedonode] = {}
        self.contacts: Dict[str, Contact] = {}
        self.activators: Dict[str, SetActivator] = {}
        self.lights: List[Tuple[Light, Light]] = []
        self.strips: List[Strip] = []
        self.out_edges: Dict[str, List[Edge]] = {}
        self.in_edges: Dict[str, List[Edge]] = {}
        self._dial_outputs: Dict[str, DialOutput] = {}
        self._lights_by_id: Dict[str, Light] = {}

    # ----- registration -----
    def _register(self, unit_id: str) -> None:
        if unit_id in self.out_edges:
            raise TopologyError(f"Duplicate component id '{unit_id}'")
        self.out_edges[unit_id] = []
        self.in_edges[unit_id] = []

    def add_dial(self, dial: Dial) -> None:
        self.dials.append(dial)
        for output in dial.outputs:
            self._register(output.id)
            self._dial_outputs[output.id] = output

    def add_node(self, node: Algedonode) -> None:
        self._register(node.id)
        self.nodes[node.id] = node
        while len(self.rows) <= node.row:
            self.rows.append([])
        self.rows[node.row].append(node)

    def add_contact(self, contact: Contact) -> None:
        self._register(contact.id)
        self.contacts[contact.id] = contact
        self.nodes[contact.node_id].contact_ids.append(contact.id)

    def add_activator(self, activator: SetActivator) -> None:
        self._register(activator.id)
        self.activators[activator.id] = activator

    def add_light_pair(self, light_b: Light, light_a: Light) -> None:
        for light in (light_b, light_a):
            self._register(light.id)
            self._lights_by_id[light.id] = light
        self.lights.append((light_b, light_a))

    def add_strip(self, strip: Strip) -> None:
        self.strips.append(strip)

    def add_edge(self, e: Edge) -> None:
        """
        Add a directed edge between registered components.

        Raises:
            TopologyError: If either endpoint is unknown
        """
        if e.src not in self.out_edges or e.dst not in self.out_edges:
            raise TopologyError(f"Edge {e.src} -> {e.dst} references an unknown component")
        self.out_edges[e.src].append(e)
        self.in_edges[e.dst].append(e)

    # ----- lookup -----
    def node(self, row: int, column: int) -> Algedonode:
        return self.rows[row][column]

    def dial_output(self, output_id: str) -> DialOutput:
        return self._dial_outputs[output_id]

    def target(self, target_id: str) -> Target:
        """Resolve a pad output or escape line target to its activator or light."""
        if target_id in self.activators:
            return self.activators[target_id]
        return self._lights_by_id[target_id]

    def light(self, column: int, a_or_b: LightType) -> Light:
        light_b, light_a = self.lights[column]
        return light_a if a_or_b is LightType.A else light_b

    def all_nodes(self) -> Iterator[Algedonode]:
        for row in self.rows:
            yield from row

    def all_lights(self) -> Iterator[Light]:
        """Lights in scan order: column 0 to 7, B before A within a column."""
        for pair in self.lights:
            yield from pair

    def partition_of(self, node_id: str) -> Optional[SetActivator]:
        """Return the set-activator whose partition contains the node (None for row 0)."""
        for e in self.in_edges.get(node_id, []):
            if e.type == LinkType.PARTITION:
                return self.activators[e.src]
        return None

    # ----- export -----
    def to_networkx(self) -> "nx.DiGraph":
        """
        Convert the hierarchy topology to a NetworkX DiGraph.

        Node attributes carry the component kind and its current activation;
        edge attributes carry the link type.
        """
        G = nx.DiGraph()

        for dial in self.dials:
            for output in dial.outputs:
                G.add_node(
                    output.id,
                    kind="DIAL_OUTPUT",
                    row=dial.row,
                    value=output.value,
                    active=output.active,
                )
        for node in self.all_nodes():
            G.add_node(
                node.id,
                kind="ALGEDONODE",
                row=node.row,
                column=node.column,
                active=node.active,
                offset=node.pad.offset,
            )
        for contact in self.contacts.values():
            G.add_node(
                contact.id,
                kind="CONTACT",
                position=contact.position,
                active=contact.active,
            )
        for act in self.activators.values():
            G.add_node(
                act.id,
                kind="SET_ACTIVATOR",
                row=act.row,
                start_column=act.start_column,
                end_column=act.end_column,
                active=act.active,
                activation_source=act.activation_source.name,
            )
        for light in self.all_lights():
            G.add_node(
                light.id,
                kind="LIGHT",
                column=light.column,
                a_or_b=light.a_or_b.value,
                active=light.active,
                activation_source=light.activation_source.name,
            )

        for edges in self.out_edges.values():
            for edge in edges:
                G.add_edge(edge.src, edge.dst, type=edge.type.name)

        # contact -> owning node is implicit in the component model
        for contact in self.contacts.values():
            G.add_edge(contact.id, contact.node_id, type="OWNER")

        return G

    def export_graphml(self, filepath: str) -> None:
        """Export the hierarchy topology to GraphML at `filepath`."""
        nx.write_graphml(self.to_networkx(), filepath)

    # ----- validation -----
    def validate_topology(self) -> Dict[str, List[str]]:
        """
        Check the structural invariants of a wired hierarchy.

        Checks:
        - every row r node has 2^r contacts
        - every dial line 1-8 of dial r feeds 2^r contacts
        - every pad-pair has both outputs wired
        - every node below row 0 belongs to exactly one partition
        - escape lines reach 2^r activators (rows 0-2) or 8 lights (row 3)
        - every light is controlled by the last-row node of its column

        Returns:
            Dictionary of issues by category; empty when the topology is sound
        """
        issues: Dict[str, List[str]] = {
            "contact_counts": [],
            "input_wiring": [],
            "output_wiring": [],
            "partitions": [],
            "escape_wiring": [],
            "lights": [],
        }

        if len(self.rows) != ROWS or any(len(row) != COLUMNS for row in self.rows):
            issues["output_wiring"].append(
                f"Expected a {ROWS}x{COLUMNS} node grid, got {[len(r) for r in self.rows]}"
            )
            return {k: v for k, v in issues.items() if v}

        for node in self.all_nodes():
            expected = 2**node.row
            if node.contact_count != expected:
                issues["contact_counts"].append(
                    f"Node '{node.id}' has {node.contact_count} contacts, expected {expected}"
                )
            if node.pad.outputs is None:
                issues["output_wiring"].append(f"Node '{node.id}' has unwired pad outputs")
            if node.row > 0:
                owners = [e.src for e in self.in_edges[node.id] if e.type == LinkType.PARTITION]
                if len(owners) != 1:
                    issues["partitions"].append(
                        f"Node '{node.id}' belongs to {len(owners)} partitions, expected 1"
                    )

        for dial in self.dials:
            fan_out = 2**dial.row
            for output in dial.algedonode_outputs():
                if len(output.links) != fan_out:
                    issues["input_wiring"].append(
                        f"Dial {dial.row} line {output.value} feeds {len(output.links)} contacts, "
                        f"expected {fan_out}"
                    )
            expected_escape = COLUMNS if dial.row == ROWS - 1 else 2**dial.row
            for output in dial.escape_outputs():
                if len(output.links) != expected_escape:
                    issues["escape_wiring"].append(
                        f"Dial {dial.row} line {output.value} reaches {len(output.links)} targets, "
                        f"expected {expected_escape}"
                    )

        for act in self.activators.values():
            rep = self.nodes.get(act.representative_id)
            if rep is None or rep.row != act.row:
                issues["partitions"].append(
                    f"Activator '{act.id}' has representative '{act.representative_id}' outside row {act.row}"
                )
            for node_id in act.node_ids:
                node = self.nodes[node_id]
                if node.row != act.row + 1 or not act.start_column <= node.column <= act.end_column:
                    issues["partitions"].append(
                        f"Activator '{act.id}' drives '{node_id}' outside its partition"
                    )

        for light in self.all_lights():
            parent = self.nodes.get(light.parent_id) if light.parent_id else None
            if parent is None or parent.row != ROWS - 1 or parent.column != light.column:
                issues["lights"].append(
                    f"Light '{light.id}' is controlled by '{light.parent_id}', "
                    f"expected the last-row node of column {light.column}"
                )

        return {k: v for k, v in issues.items() if v}

    def get_graph_statistics(self) -> Dict[str, Any]:
        """
        Summarise the topology for monitoring and the CLI.

        Returns:
            Dictionary with component counts, link type distribution and validation issues
        """
        link_distribution = {link_type.name: 0 for link_type in LinkType}
        for edges in self.out_edges.values():
            for edge in edges:
                link_distribution[edge.type.name] += 1

        issues = self.validate_topology()
        return {
            "basic_stats": {
                "dials": len(self.dials),
                "dial_outputs": len(self._dial_outputs),
                "algedonodes": len(self.nodes),
                "contacts": len(self.contacts),
                "set_activators": len(self.activators),
                "lights": len(self._lights_by_id),
                "strips": len(self.strips),
                "edges": sum(link_distribution.values()),
            },
            "contacts_by_row": [sum(n.contact_count for n in row) for row in self.rows],
            "activators_by_row": [
                sum(1 for a in self.activators.values() if a.row == r) for r in range(ROWS - 1)
            ],
            "link_type_distribution": link_distribution,
            "topology_issues": sum(len(v) for v in issues.values()),
        }
