"""Tests for the repeat registry and job store."""

import pytest
from sqlalchemy import event
from sqlalchemy.pool import StaticPool

from chronorepeat.database import DatabaseManager
from chronorepeat.models import JobOptions, JobState
from chronorepeat.scheduler import JobStore, RepeatRegistry


@pytest.fixture
def registry(db_manager):
    return RepeatRegistry(db_manager, "reports")


@pytest.fixture
def job_store(db_manager):
    return JobStore(db_manager)


class TestRepeatRegistry:

    def test_score_of_missing(self, registry):
        assert registry.score_of("nope") is None
        assert registry.exists("nope") is False

    def test_upsert_inserts_and_replaces(self, registry):
        registry.upsert("a::::1000", 1000)
        registry.upsert("a::::1000", 2000)
        assert registry.score_of("a::::1000") == 2000
        assert registry.cardinality() == 1

    def test_registries_are_per_queue(self, db_manager, registry):
        registry.upsert("a::::1000", 1000)
        other = RepeatRegistry(db_manager, "emails")
        assert other.score_of("a::::1000") is None
        assert other.cardinality() == 0

    def test_range_orders(self, registry):
        registry.upsert("c", 300)
        registry.upsert("a", 100)
        registry.upsert("b", 200)
        registry.upsert("b2", 200)

        ascending = registry.range(asc=True)
        descending = registry.range(asc=False)

        assert ascending == [("a", 100), ("b", 200), ("b2", 200), ("c", 300)]
        assert descending == list(reversed(ascending))

    def test_range_bounds(self, registry):
        for key, score in [("a", 100), ("b", 200), ("c", 300)]:
            registry.upsert(key, score)

        assert registry.range(150, 300, asc=True) == [("b", 200), ("c", 300)]
        assert registry.range(150, asc=True) == [("b", 200), ("c", 300)]
        assert registry.range(0, 99) == []

    def test_remove_is_idempotent(self, registry):
        registry.upsert("a", 100)
        assert registry.remove("repeat:x:", "a") == 1
        assert registry.remove("repeat:x:", "a") == 0
        assert registry.cardinality() == 0

    def test_remove_cancels_delayed_job(self, registry, job_store):
        registry.upsert("a", 15000)
        job_store.create("reports", "a", None, JobOptions(job_id="repeat:x:15000", delay=3000, timestamp=12000))

        assert registry.remove("repeat:x:", "a") == 1
        assert job_store.get("reports", "repeat:x:15000") is None

    def test_remove_keeps_job_that_is_no_longer_delayed(self, registry, job_store):
        registry.upsert("a", 15000)
        job_store.create("reports", "a", None, JobOptions(job_id="repeat:x:15000", delay=0, timestamp=15000))

        assert registry.remove("repeat:x:", "a") == 1
        assert job_store.get("reports", "repeat:x:15000").state == JobState.WAITING.value


class TestConcurrentRemoval:
    """Two schedulers sharing one file-backed database."""

    @pytest.fixture
    def managers(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'shared.db'}"
        first = DatabaseManager(database_url=url)
        second = DatabaseManager(database_url=url)
        first.initialize()
        second.initialize()
        yield first, second
        first.close()
        second.close()

    def test_file_database_does_not_share_one_connection(self, managers, db_manager):
        first, _ = managers
        assert not isinstance(first.engine.pool, StaticPool)
        assert isinstance(db_manager.engine.pool, StaticPool)

    def test_racing_removals_report_one_removal(self, managers):
        first, second = managers
        registry_a = RepeatRegistry(first, "reports")
        registry_b = RepeatRegistry(second, "reports")
        registry_a.upsert("k", 15000)
        JobStore(first).create("reports", "k", None, JobOptions(job_id="repeat:x:15000", delay=3000, timestamp=12000))

        results = []

        def remove_from_other_process(conn, cursor, statement, parameters, context, executemany):
            # B finishes its removal between A reading the entry and A deleting it
            if statement.lstrip().startswith("DELETE FROM repeat_registry") and not results:
                results.append(registry_b.remove("repeat:x:", "k"))

        event.listen(first.engine, "before_cursor_execute", remove_from_other_process)
        try:
            results.append(registry_a.remove("repeat:x:", "k"))
        finally:
            event.remove(first.engine, "before_cursor_execute", remove_from_other_process)

        assert results == [1, 0]
        assert registry_a.cardinality() == 0
        assert JobStore(first).get("reports", "repeat:x:15000") is None


class TestJobStore:

    def test_create_sets_state_from_delay(self, job_store):
        delayed = job_store.create("q", "a", {"n": 1}, JobOptions(job_id="1", delay=10, timestamp=5))
        waiting = job_store.create("q", "a", {"n": 2}, JobOptions(job_id="2", timestamp=5))

        assert delayed.state == JobState.DELAYED.value
        assert delayed.process_at == 15
        assert delayed.to_dict()["process_at"] == 15
        assert waiting.state == JobState.WAITING.value

    def test_create_is_idempotent_on_id(self, job_store):
        first = job_store.create("q", "a", {"n": 1}, JobOptions(job_id="same", timestamp=5))
        second = job_store.create("q", "a", {"n": 2}, JobOptions(job_id="same", timestamp=6))

        assert second.data == first.data == {"n": 1}
        assert second.timestamp == 5

    def test_create_generates_id(self, job_store):
        job = job_store.create("q", "a", None, JobOptions())
        assert job.id
        assert job_store.get("q", job.id) is not None

    def test_extra_options_are_kept(self, job_store):
        job = job_store.create("q", "a", None, JobOptions(job_id="x", timestamp=1, priority=3))
        assert job.opts["priority"] == 3
        assert job.options.priority == 3
