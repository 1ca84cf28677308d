"""
Tests for Optimistic Buffer
"""

import threading
import pytest
from datetime import date

from tools.optimistic_buffer import (
    OptimisticBuffer,
    OptimisticBufferRegistry,
    create_optimistic_id,
    is_optimistic_id,
)


@pytest.fixture
def buffer():
    return OptimisticBuffer()


class TestOptimisticIds:
    """Tests for local id generation"""

    @pytest.mark.unit
    def test_ids_are_prefixed_and_unique(self):
        ids = {create_optimistic_id() for _ in range(200)}
        assert len(ids) == 200
        assert all(is_optimistic_id(i) for i in ids)

    @pytest.mark.unit
    def test_durable_ids_are_not_optimistic(self):
        assert not is_optimistic_id("42")


class TestOptimisticBuffer:
    """Tests for add, resolve and merge"""

    @pytest.mark.unit
    def test_add_creates_pending_entry(self, buffer):
        entry_id = buffer.add("1", date(2024, 1, 15), 0.5, 200.0, "left")
        entry = buffer.get(entry_id)

        assert entry.is_optimistic
        assert entry.protocol_id == "1"
        assert entry.dose_mg == pytest.approx(100.0)
        assert len(buffer) == 1

    @pytest.mark.unit
    def test_entries_newest_first(self, buffer):
        first = buffer.add("1", date(2024, 1, 1), 0.5, 200.0)
        second = buffer.add("1", date(2024, 1, 8), 0.5, 200.0)
        assert [e.id for e in buffer.entries()] == [second, first]

    @pytest.mark.unit
    def test_resolve_removes_once(self, buffer):
        entry_id = buffer.add("1", date(2024, 1, 1), 0.5, 200.0)
        assert buffer.resolve(entry_id)
        assert not buffer.resolve(entry_id)
        assert buffer.get(entry_id) is None

    @pytest.mark.unit
    def test_merge_puts_pending_first(self, buffer, make_injection):
        durable = (make_injection(date(2024, 1, 1), id="7"),)
        entry_id = buffer.add("1", date(2024, 1, 8), 0.5, 200.0)
        merged = buffer.merge(durable)
        assert [e.id for e in merged] == [entry_id, "7"]

    @pytest.mark.unit
    def test_concurrent_adds(self, buffer):
        def worker():
            for _ in range(50):
                buffer.add("1", date(2024, 1, 1), 0.5, 200.0)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(buffer) == 200


class TestRegistry:
    """Tests for per-user buffers"""

    @pytest.mark.unit
    def test_buffers_are_per_user(self):
        registry = OptimisticBufferRegistry()
        registry.for_user("a").add("1", date(2024, 1, 1), 0.5, 200.0)
        assert len(registry.for_user("a")) == 1
        assert len(registry.for_user("b")) == 0
        assert registry.for_user("a") is registry.for_user("a")

    @pytest.mark.unit
    def test_clear(self):
        registry = OptimisticBufferRegistry()
        registry.for_user("a").add("1", date(2024, 1, 1), 0.5, 200.0)
        registry.clear()
        assert len(registry) == 0
        assert registry.entries("a") == ()

    @pytest.mark.unit
    def test_reads_do_not_create_buffers(self):
        """Test lookups for unknown users leave the registry empty"""
        registry = OptimisticBufferRegistry()
        assert registry.get("stranger") is None
        assert registry.entries("stranger") == ()
        assert registry.resolve("stranger", "optimistic-1-abc") is False
        assert len(registry) == 0
