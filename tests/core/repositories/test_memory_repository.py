"""Tests for InMemoryQueueRepository transactions and queries."""

import gc
import threading
from uuid import uuid4

import pytest

from core.exceptions import NotFoundError
from core.models import QueueStatus
from core.repositories.base import customer_lock_key, shop_lock_key
from core.repositories.memory_repository import InMemoryQueueRepository


@pytest.fixture
def repo():
    return InMemoryQueueRepository()


class TestLockKeys:

    def test_key_formats(self, shop_id):
        assert shop_lock_key(shop_id) == f"shop:{shop_id}"
        assert customer_lock_key(shop_id) == f"customer:{shop_id}"


class TestTransaction:

    def test_commit_publishes_writes(self, repo, make_entry, shop_id):
        entry = make_entry(1)

        with repo.transaction([shop_lock_key(shop_id)]):
            repo.add(entry)
            assert repo.get_by_id(entry.id) == entry

        assert repo.get_by_id(entry.id) == entry

    def test_exception_discards_writes(self, repo, make_entry, shop_id):
        entry = make_entry(1)

        with pytest.raises(RuntimeError, match="abort"):
            with repo.transaction([shop_lock_key(shop_id)]):
                repo.add(entry)
                raise RuntimeError("abort")

        assert repo.get_by_id(entry.id) is None

    def test_staged_writes_invisible_to_other_threads(self, repo, make_entry, shop_id):
        entry = make_entry(1)
        seen = []

        with repo.transaction([shop_lock_key(shop_id)]):
            repo.add(entry)
            reader = threading.Thread(target=lambda: seen.append(repo.get_by_id(entry.id)))
            reader.start()
            reader.join()

        assert seen == [None]

    def test_nested_transaction_rejected(self, repo, shop_id):
        with repo.transaction([shop_lock_key(shop_id)]):
            with pytest.raises(RuntimeError, match="Nested"):
                with repo.transaction([shop_lock_key(shop_id)]):
                    pass

    def test_lock_released_after_failure(self, repo, shop_id):
        with pytest.raises(ValueError):
            with repo.transaction([shop_lock_key(shop_id)]):
                raise ValueError("boom")

        with repo.transaction([shop_lock_key(shop_id)]):
            pass

    def test_released_key_locks_are_dropped(self, repo, shop_id):
        keys = [shop_lock_key(shop_id)] + [customer_lock_key(uuid4()) for _ in range(5)]

        for key in keys:
            with repo.transaction([shop_lock_key(shop_id), key]):
                assert key in repo._key_locks

        gc.collect()
        assert len(repo._key_locks) == 0


class TestWrites:

    def test_add_duplicate_id(self, repo, make_entry):
        entry = repo.add(make_entry(1))
        with pytest.raises(ValueError, match="already exists"):
            repo.add(entry)

    def test_update_missing(self, repo, make_entry):
        with pytest.raises(NotFoundError):
            repo.update(make_entry(1))


class TestQueries:

    def test_list_active_sorted_and_filtered(self, repo, make_entry, shop_id, shop_b_id):
        second = repo.add(make_entry(2))
        first = repo.add(make_entry(1))
        repo.add(make_entry(3, status=QueueStatus.CANCELLED))
        repo.add(make_entry(1, shop=shop_b_id))

        assert [e.id for e in repo.list_active(shop_id)] == [first.id, second.id]

    def test_list_for_shop_by_status(self, repo, make_entry, shop_id):
        repo.add(make_entry(1))
        done = repo.add(make_entry(2, status=QueueStatus.COMPLETED))

        result = repo.list_for_shop(shop_id, statuses=[QueueStatus.COMPLETED])

        assert [e.id for e in result] == [done.id]
        assert len(repo.list_for_shop(shop_id)) == 2
        assert len(repo.list_for_shop(shop_id, limit=1)) == 1

    def test_find_active_for_customer(self, repo, make_entry):
        closed = repo.add(make_entry(1, status=QueueStatus.NO_SHOW))
        assert repo.find_active_for_customer(closed.customer_id) is None

        live = repo.add(make_entry(1, customer_id=closed.customer_id))
        assert repo.find_active_for_customer(closed.customer_id).id == live.id
        assert len(repo.list_for_customer(closed.customer_id)) == 2
