"""
Tests for contact layouts and contact repositioning.
"""

import pytest

from algedonode_core import AlgedonodeHierarchy, HierarchyConfig
from algedonode_core.config import (
    CONTACT_LIMIT,
    ContactLayout,
    default_contact_layout,
    random_contact_layout,
)


class TestDefaultLayout:
    """Test the reference contact positions."""

    def test_row_zero_alternates(self):
        layout = default_contact_layout()
        assert layout.positions[1] == [-0.49, 0.49, -0.49, 0.49, -0.49, 0.49, -0.49, 0.49]

    def test_banks_are_evenly_spread(self):
        layout = default_contact_layout()
        assert layout.positions[2][3] == [-0.49, 0.49]
        assert layout.positions[4][0] == [-0.49, -0.16, 0.16, 0.49]
        assert layout.positions[8][7] == [-0.49, -0.35, -0.21, -0.07, 0.07, 0.21, 0.35, 0.49]

    def test_position_lookup(self):
        layout = default_contact_layout()
        assert layout.position(1, 3, 0) == 0.49
        assert layout.position(4, 2, 1) == -0.16
        assert layout.position(8, 0, 4) == 0.07

    def test_fresh_copies_are_independent(self):
        a = default_contact_layout()
        b = default_contact_layout()
        a.positions[2][0][0] = 0.1
        assert b.positions[2][0][0] == -0.49

    def test_as_dict_uses_string_keys(self):
        data = default_contact_layout().as_dict()
        assert set(data) == {"1", "2", "4", "8"}


class TestValidation:
    """Test layout validation errors."""

    def test_default_is_valid(self):
        default_contact_layout().validate()

    def test_missing_count(self):
        layout = default_contact_layout()
        del layout.positions[4]
        with pytest.raises(ValueError, match="missing positions for count 4"):
            layout.validate()

    def test_wrong_column_count(self):
        layout = default_contact_layout()
        layout.positions[1] = layout.positions[1][:7]
        with pytest.raises(ValueError, match="7 columns"):
            layout.validate()

    def test_wrong_bank_size(self):
        layout = default_contact_layout()
        layout.positions[8][2] = [0.0] * 7
        with pytest.raises(ValueError, match="column 2 has 7 positions"):
            layout.validate()

    @pytest.mark.parametrize("value", [0.5, -0.5, 0.75])
    def test_position_out_of_range(self, value):
        layout = default_contact_layout()
        layout.positions[2][5][1] = value
        with pytest.raises(ValueError, match="outside"):
            layout.validate()

    def test_hierarchy_rejects_bad_layout(self):
        layout = default_contact_layout()
        layout.positions[1][0] = 0.6
        with pytest.raises(ValueError):
            AlgedonodeHierarchy(HierarchyConfig(contacts=layout))


class TestRandomLayout:
    """Test seeded random layouts."""

    def test_seed_is_reproducible(self):
        assert random_contact_layout(5).positions == random_contact_layout(5).positions

    def test_seeds_differ(self):
        assert random_contact_layout(5).positions != random_contact_layout(6).positions

    def test_shape_and_range(self):
        layout = random_contact_layout(123)
        layout.validate()
        values = list(layout.positions[1])
        for count in (2, 4, 8):
            for column in layout.positions[count]:
                values.extend(column)
        assert len(values) == 8 * (1 + 2 + 4 + 8)
        assert all(-CONTACT_LIMIT <= v < CONTACT_LIMIT for v in values)


class TestRepositioning:
    """Test applying layouts to a wired hierarchy."""

    def test_set_new_contact_positions(self):
        h = AlgedonodeHierarchy()
        layout = random_contact_layout(9)
        h.set_new_contact_positions(layout)
        assert h.contact_layout == layout
        node = h.g.node(2, 6)
        assert [h.g.contacts[cid].position for cid in node.contact_ids] == layout.positions[4][6]
        assert h.g.contacts["c0.3.0"].position == layout.positions[1][3]

    def test_contact_layout_is_a_copy(self):
        h = AlgedonodeHierarchy()
        layout = h.contact_layout
        layout.positions[1][0] = 0.2
        assert h.contact_layout.positions[1][0] == -0.49

    def test_repositioning_does_not_rewire(self):
        h = AlgedonodeHierarchy()
        before = {cid: c.node_id for cid, c in h.g.contacts.items()}
        h.randomize_contacts(seed=3)
        assert {cid: c.node_id for cid, c in h.g.contacts.items()} == before
        assert h.g.validate_topology() == {}

    def test_randomize_returns_applied_layout(self):
        h = AlgedonodeHierarchy()
        layout = h.randomize_contacts(seed=21)
        assert layout == random_contact_layout(21)
        assert h.contact_layout == layout

    def test_invalid_layout_leaves_contacts_unchanged(self):
        h = AlgedonodeHierarchy()
        bad = ContactLayout({1: [0.0] * 8})
        with pytest.raises(ValueError):
            h.set_new_contact_positions(bad)
        assert h.contact_layout == default_contact_layout()

    def test_restore_default_round_trip(self):
        """Randomizing then restoring the defaults gives the default results."""
        h = AlgedonodeHierarchy()
        states = [(1, 1, 1, 1), (2, 7, 3, 5), (8, 4, 6, 1), (5, 5, 5, 5), (3, 1, 8, 2)]
        before = [h.simulate(s) for s in states]
        h.randomize_contacts(seed=99)
        h.restore_default_contacts()
        assert [h.simulate(s) for s in states] == before
        assert h.contact_layout == default_contact_layout()

    def test_random_contacts_change_some_results(self):
        h = AlgedonodeHierarchy()
        before = h.full_simulate()
        h.randomize_contacts(seed=4)
        after = h.full_simulate()
        assert [r.result for r in before] != [r.result for r in after]
