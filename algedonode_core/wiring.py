"""
Topology builder for the algedonode hierarchy.

Builds, once per hierarchy, the fixed graph connecting 4 dials to 32
algedonodes and on to set-activators and 16 lights.

Input side: dial r's lines 1-8 are chunked into groups of 2^r and the groups
are cycled across the 8 columns of row r, one contact per line.

Output side: `link_partitions(row, start, end)` splits a column range into two
equal halves, creates one set-activator per half over the next row, wires pad
output 0 of every node in the range to the first and pad output 1 to the
second, and links the row's dial escape lines (9, 10) to the same pair. A
single-column range in the last row is wired to its B and A lights instead.
The last dial's escape lines reach every light pair directly.
"""

from __future__ import annotations

import logging
from typing import List, Sequence, TypeVar

from .config import (
    COLUMNS,
    CONTACT_COUNTS,
    DIAL_VALUES,
    ROWS,
    ContactLayout,
    default_contact_layout,
)
from .enums import LightType, LinkType
from .graph import (
    Algedonode,
    Contact,
    Dial,
    DialOutput,
    Edge,
    HierarchyGraph,
    Light,
    SetActivator,
    Strip,
    TopologyError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def partition_array(items: Sequence[T], size: int, cycle_to: int) -> List[List[T]]:
    """
    Chunk `items` into consecutive groups of `size`, cycling the groups until
    `cycle_to` groups exist.

    Example: 8 lines, size 2, cycle_to 8 gives
    [[1,2],[3,4],[5,6],[7,8],[1,2],[3,4],[5,6],[7,8]].

    Raises:
        TopologyError: If `size` does not evenly divide the items
    """
    if size <= 0 or len(items) % size:
        raise TopologyError(f"Cannot partition {len(items)} inputs into groups of {size}")
    chunks = [list(items[i : i + size]) for i in range(0, len(items), size)]
    return [chunks[i % len(chunks)] for i in range(cycle_to)]


def build_graph(contacts: ContactLayout | None = None) -> HierarchyGraph:
    """
    Construct and wire a complete hierarchy graph.

    Args:
        contacts: Contact positions to place on the algedonodes (default layout if None)

    Returns:
        HierarchyGraph: Fully wired graph with every node idle except row 0
    """
    contacts = contacts or default_contact_layout()
    g = HierarchyGraph()

    _add_components(g)
    _wire_inputs(g, contacts)
    link_partitions(g, 0, 0, COLUMNS - 1)

    # last dial's escape lines bypass the node layer straight to the lights
    last_dial = g.dials[ROWS - 1]
    for light_b, light_a in g.lights:
        _link_escapes(g, last_dial, light_b.id, light_a.id)

    logger.debug(
        "Built hierarchy: %d nodes, %d contacts, %d set-activators",
        len(g.nodes),
        len(g.contacts),
        len(g.activators),
    )
    return g


def _add_components(g: HierarchyGraph) -> None:
    for row in range(ROWS):
        outputs = [DialOutput(f"d{row}.{v}", v) for v in range(1, DIAL_VALUES + 1)]
        g.add_dial(Dial(row, outputs=outputs))
        for column in range(COLUMNS):
            g.add_node(Algedonode(f"n{row}.{column}", row, column, active=row == 0))

    for column in range(COLUMNS):
        g.add_light_pair(
            Light(f"L{column}B", LightType.B, column),
            Light(f"L{column}A", LightType.A, column),
        )
        g.add_strip(Strip(column, node_ids=[g.node(row, column).id for row in range(ROWS)]))


def _wire_inputs(g: HierarchyGraph, contacts: ContactLayout) -> None:
    for dial in g.dials:
        groups = partition_array(dial.algedonode_outputs(), 2**dial.row, COLUMNS)
        for column, group in enumerate(groups):
            _attach_contacts(g, g.node(dial.row, column), group, contacts)


def _attach_contacts(
    g: HierarchyGraph, node: Algedonode, inputs: List[DialOutput], contacts: ContactLayout
) -> None:
    count = len(inputs)
    if count not in CONTACT_COUNTS or count != 2**node.row:
        raise TopologyError(f"Node '{node.id}' got unexpected input size of {count}")

    for i, output in enumerate(inputs):
        contact = Contact(
            f"c{node.row}.{node.column}.{i}",
            node.id,
            i,
            contacts.position(count, node.column, i),
            # row 0 nodes are always active, so their contacts are always gated open
            parent_active=node.active,
        )
        g.add_contact(contact)
        output.links.append(contact.id)
        g.add_edge(Edge(output.id, contact.id, LinkType.CONTACT))


def link_partitions(g: HierarchyGraph, row: int, start: int, end: int) -> None:
    """
    Wire the outputs of the nodes in columns [start, end] of `row`.

    Args:
        g: Graph under construction
        row: Row of the partition, 0 to 3
        start: First column of the partition (inclusive)
        end: Last column of the partition (inclusive)

    Raises:
        TopologyError: If a single-column partition is reached above the last row
            or the recursion runs past the last row
    """
    if start == end:
        if row != ROWS - 1:
            raise TopologyError(f"Single-column partition at row {row}, expected row {ROWS - 1}")
        node = g.node(row, start)
        light_b, light_a = g.lights[start]
        node.pad.set_outputs(light_b.id, light_a.id)
        for light in (light_b, light_a):
            light.parent_id = node.id
            g.add_edge(Edge(node.id, light.id, LinkType.PAD))
            g.add_edge(Edge(light.id, node.id, LinkType.REPRESENTATIVE))
        return

    if row >= ROWS - 1:
        raise TopologyError(f"Partition [{start}, {end}] still spans columns at row {row}")

    mid = (start + end) // 2 + 1

    act0 = _add_activator(g, row, start, mid - 1, g.node(row, start))
    act1 = _add_activator(g, row, mid, end, g.node(row, mid))

    for column in range(start, end + 1):
        node = g.node(row, column)
        node.pad.set_outputs(act0.id, act1.id)
        g.add_edge(Edge(node.id, act0.id, LinkType.PAD))
        g.add_edge(Edge(node.id, act1.id, LinkType.PAD))

    _link_escapes(g, g.dials[row], act0.id, act1.id)

    link_partitions(g, row + 1, start, mid - 1)
    link_partitions(g, row + 1, mid, end)


def _add_activator(
    g: HierarchyGraph, row: int, start: int, end: int, representative: Algedonode
) -> SetActivator:
    node_ids = [g.node(row + 1, column).id for column in range(start, end + 1)]
    act = SetActivator(f"s{row}.{start}-{end}", row, start, end, node_ids, representative.id)
    g.add_activator(act)
    for node_id in node_ids:
        g.add_edge(Edge(act.id, node_id, LinkType.PARTITION))
    g.add_edge(Edge(act.id, representative.id, LinkType.REPRESENTATIVE))
    return act


def _link_escapes(g: HierarchyGraph, dial: Dial, target9: str, target10: str) -> None:
    for output, target_id in zip(dial.escape_outputs(), (target9, target10)):
        output.links.append(target_id)
        g.add_edge(Edge(output.id, target_id, LinkType.ESCAPE))
