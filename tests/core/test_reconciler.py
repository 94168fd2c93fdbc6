"""Tests for position renumbering."""

import pytest

from core.exceptions import ReconciliationError
from core.reconciler import assert_dense, compact_after_removal, shift_for_insert


class TestCompactAfterRemoval:

    def test_entries_behind_move_up(self, make_entry):
        remaining = [make_entry(1), make_entry(3), make_entry(4)]

        moved = compact_after_removal(remaining, 2)

        assert [e.position for e in moved] == [2, 3]

    def test_removing_the_last_moves_nothing(self, make_entry):
        assert compact_after_removal([make_entry(1), make_entry(2)], 3) == []

    def test_result_is_dense(self, make_entry):
        remaining = [make_entry(1), make_entry(3)]
        moved = {e.id: e for e in compact_after_removal(remaining, 2)}
        merged = [moved.get(e.id, e) for e in remaining]
        assert_dense(merged)


class TestShiftForInsert:

    def test_shifts_position_and_behind(self, make_entry):
        active = [make_entry(1), make_entry(2), make_entry(3)]

        moved = shift_for_insert(active, 2)

        # Back of the queue first
        assert [e.position for e in moved] == [4, 3]

    def test_append_shifts_nothing(self, make_entry):
        assert shift_for_insert([make_entry(1)], 2) == []


class TestAssertDense:

    def test_dense_passes(self, make_entry):
        assert_dense([make_entry(2), make_entry(1)])

    def test_empty_passes(self):
        assert_dense([])

    def test_gap_raises(self, make_entry):
        with pytest.raises(ReconciliationError, match="not the dense"):
            assert_dense([make_entry(1), make_entry(3)])

    def test_duplicate_raises(self, make_entry):
        with pytest.raises(ReconciliationError):
            assert_dense([make_entry(1), make_entry(1)])
