"""Tests for wait-time estimation."""

from core.estimator import estimate_wait, refresh_estimates
from core.models import QueueStatus


class TestEstimateWait:

    def test_first_position_waits_nothing(self, make_entry):
        assert estimate_wait([make_entry(1), make_entry(2)], 1) == 0

    def test_sums_durations_ahead(self, make_entry):
        active = [make_entry(1, duration=30), make_entry(2, duration=15), make_entry(3, duration=45)]
        assert estimate_wait(active, 3) == 45

    def test_back_of_queue(self, make_entry):
        active = [make_entry(1, duration=30), make_entry(2, duration=15)]
        assert estimate_wait(active, 3) == 45

    def test_in_progress_entry_counts_in_full(self, make_entry):
        active = [make_entry(1, duration=30, status=QueueStatus.IN_PROGRESS), make_entry(2)]
        assert estimate_wait(active, 2) == 30

    def test_empty_queue(self):
        assert estimate_wait([], 1) == 0


class TestRefreshEstimates:

    def test_returns_only_changed_entries(self, make_entry):
        active = [
            make_entry(1, duration=30, estimated_wait_minutes=0),
            make_entry(2, duration=30, estimated_wait_minutes=10),
            make_entry(3, duration=30, estimated_wait_minutes=60),
        ]

        changed = refresh_estimates(active)

        assert [e.position for e in changed] == [2]
        assert changed[0].estimated_wait_minutes == 30

    def test_does_not_mutate_input(self, make_entry):
        entry = make_entry(2, estimated_wait_minutes=99)
        refresh_estimates([make_entry(1), entry])
        assert entry.estimated_wait_minutes == 99

    def test_order_independent(self, make_entry):
        active = [make_entry(3, duration=10), make_entry(1, duration=20), make_entry(2, duration=5)]

        waits = {e.position: e.estimated_wait_minutes for e in refresh_estimates(active)}

        assert waits == {2: 20, 3: 25}
