"""
Tests for the hierarchy topology builder.

Covers input partitioning of dial lines, contact placement, the recursive
output partitioning into set-activators, escape line wiring and the
construction-time contract checks.
"""

import pytest

from algedonode_core.config import default_contact_layout
from algedonode_core.enums import LightType, LinkType
from algedonode_core.graph import HierarchyGraph, PadPair, TopologyError
from algedonode_core.wiring import build_graph, link_partitions, partition_array


class TestPartitionArray:
    """Test chunking and cycling of dial lines."""

    def test_size_one_cycles_single_lines(self):
        assert partition_array(list(range(1, 9)), 1, 8) == [[v] for v in range(1, 9)]

    def test_size_two_cycles_across_columns(self):
        """Lines are grouped in pairs and the four pairs repeat across 8 columns."""
        groups = partition_array(list(range(1, 9)), 2, 8)
        assert groups == [[1, 2], [3, 4], [5, 6], [7, 8], [1, 2], [3, 4], [5, 6], [7, 8]]

    def test_size_four(self):
        groups = partition_array(list(range(1, 9)), 4, 8)
        assert groups[0] == groups[2] == groups[4] == groups[6] == [1, 2, 3, 4]
        assert groups[1] == groups[3] == groups[5] == groups[7] == [5, 6, 7, 8]

    def test_size_eight_repeats_everything(self):
        groups = partition_array(list(range(1, 9)), 8, 8)
        assert len(groups) == 8
        assert all(group == list(range(1, 9)) for group in groups)

    def test_uneven_size_raises(self):
        with pytest.raises(TopologyError):
            partition_array(list(range(1, 9)), 3, 8)

    def test_zero_size_raises(self):
        with pytest.raises(TopologyError):
            partition_array(list(range(1, 9)), 0, 8)


class TestBuildGraph:
    """Test the fully wired graph."""

    def setup_method(self):
        self.g = build_graph()

    def test_component_counts(self):
        assert len(self.g.dials) == 4
        assert all(len(d.outputs) == 10 for d in self.g.dials)
        assert len(self.g.nodes) == 32
        assert len(self.g.contacts) == 8 * (1 + 2 + 4 + 8)
        assert len(self.g.activators) == 2 + 4 + 8
        assert len(self.g.lights) == 8
        assert len(self.g.strips) == 8

    def test_row_zero_active_and_gated_open(self):
        for column in range(8):
            node = self.g.node(0, column)
            assert node.active
            assert all(self.g.contacts[cid].parent_active for cid in node.contact_ids)

    def test_lower_rows_start_idle(self):
        for row in range(1, 4):
            for column in range(8):
                node = self.g.node(row, column)
                assert not node.active
                assert not any(self.g.contacts[cid].parent_active for cid in node.contact_ids)

    def test_contacts_per_node_double_each_row(self):
        for node in self.g.all_nodes():
            assert node.contact_count == 2**node.row

    def test_dial_line_fan_out(self):
        """Each of lines 1-8 of dial r feeds 2^r contacts."""
        for dial in self.g.dials:
            for output in dial.algedonode_outputs():
                assert len(output.links) == 2**dial.row

    def test_row_one_line_feeds_both_halves(self):
        dial = self.g.dials[1]
        owners = [self.g.contacts[cid].node_id for cid in dial.output_for(3).links]
        assert sorted(owners) == ["n1.1", "n1.5"]

    def test_contact_positions_from_layout(self):
        layout = default_contact_layout()
        for node in self.g.all_nodes():
            for i, cid in enumerate(node.contact_ids):
                expected = layout.position(node.contact_count, node.column, i)
                assert self.g.contacts[cid].position == expected

    def test_activator_partitions(self):
        expected = {
            "s0.0-3": ["n1.0", "n1.1", "n1.2", "n1.3"],
            "s0.4-7": ["n1.4", "n1.5", "n1.6", "n1.7"],
            "s1.0-1": ["n2.0", "n2.1"],
            "s1.6-7": ["n2.6", "n2.7"],
            "s2.0-0": ["n3.0"],
            "s2.7-7": ["n3.7"],
        }
        for act_id, node_ids in expected.items():
            assert self.g.activators[act_id].node_ids == node_ids

    def test_activator_representatives(self):
        assert self.g.activators["s0.0-3"].representative_id == "n0.0"
        assert self.g.activators["s0.4-7"].representative_id == "n0.4"
        assert self.g.activators["s1.2-3"].representative_id == "n1.2"
        assert self.g.activators["s2.5-5"].representative_id == "n2.5"

    def test_pad_outputs(self):
        assert self.g.node(0, 2).pad.outputs == ("s0.0-3", "s0.4-7")
        assert self.g.node(1, 5).pad.outputs == ("s1.4-5", "s1.6-7")
        assert self.g.node(2, 3).pad.outputs == ("s2.2-2", "s2.3-3")
        assert self.g.node(3, 4).pad.outputs == ("L4B", "L4A")

    def test_lights_controlled_by_last_row(self):
        for column in range(8):
            for t in (LightType.A, LightType.B):
                assert self.g.light(column, t).parent_id == f"n3.{column}"

    def test_escape_lines(self):
        d0 = self.g.dials[0]
        assert d0.output_for(9).links == ["s0.0-3"]
        assert d0.output_for(10).links == ["s0.4-7"]
        d2 = self.g.dials[2]
        assert len(d2.output_for(9).links) == 4
        d3 = self.g.dials[3]
        assert d3.output_for(9).links == [f"L{c}B" for c in range(8)]
        assert d3.output_for(10).links == [f"L{c}A" for c in range(8)]

    def test_partition_of(self):
        assert self.g.partition_of("n0.3") is None
        assert self.g.partition_of("n1.6").id == "s0.4-7"
        assert self.g.partition_of("n3.2").id == "s2.2-2"

    def test_topology_is_sound(self):
        assert self.g.validate_topology() == {}

    def test_edge_counts(self):
        stats = self.g.get_graph_statistics()
        dist = stats["link_type_distribution"]
        assert dist["CONTACT"] == 120
        assert dist["PAD"] == 64
        assert dist["PARTITION"] == 24
        assert dist["ESCAPE"] == 30
        assert dist["REPRESENTATIVE"] == 30
        assert stats["basic_stats"]["edges"] == 268


class TestConstructionContracts:
    """Test failures raised while wiring."""

    def test_pad_outputs_wired_once(self):
        pad = PadPair()
        pad.set_outputs("x", "y")
        with pytest.raises(TopologyError, match="already wired"):
            pad.set_outputs("x", "y")

    def test_relinking_partition_raises(self):
        g = build_graph()
        with pytest.raises(TopologyError):
            link_partitions(g, 3, 2, 2)

    def test_single_column_above_last_row_raises(self):
        g = build_graph()
        with pytest.raises(TopologyError, match="Single-column partition"):
            link_partitions(g, 1, 4, 4)

    def test_duplicate_component_id_raises(self):
        g = build_graph()
        with pytest.raises(TopologyError, match="Duplicate"):
            g.add_node(g.node(0, 0))

    def test_edge_to_unknown_component_raises(self):
        from algedonode_core.graph import Edge

        g = HierarchyGraph()
        with pytest.raises(TopologyError, match="unknown component"):
            g.add_edge(Edge("a", "b", LinkType.PAD))

    def test_validation_reports_broken_wiring(self):
        g = build_graph()
        g.dials[2].output_for(4).links.pop()
        issues = g.validate_topology()
        assert list(issues) == ["input_wiring"]
        assert "Dial 2 line 4" in issues["input_wiring"][0]
