"""Tests for RepoStateCoordinator over fake git adapters."""

from __future__ import annotations

import asyncio
import logging

import pytest

from gitstate.adapters.git.types import OperationResult
from gitstate.config import StatusConfig
from gitstate.errors import GitCommandError
from gitstate.state.commands import StageFile
from gitstate.state.coordinator import CoordinatorPhase, RepoStateCoordinator, StateEvent
from gitstate.state.models import Section
from tests.helpers.snapshots import sections, snapshot, xy_map

pytestmark = pytest.mark.unit


async def _settle() -> None:
    for _ in range(10):
        await asyncio.sleep(0)


class TestRefresh:
    async def test_initial_refresh_populates_status(self, fake_coordinator, fake_queries):
        fake_queries.snapshot = snapshot(untracked=["new.txt"])
        phases = []
        fake_coordinator.on(StateEvent.STATUS, lambda c: phases.append(c.phase))

        assert fake_coordinator.phase == CoordinatorPhase.EMPTY
        status = await fake_coordinator.refresh()

        assert xy_map(status.untracked) == {"new.txt": "??"}
        assert status.head_commit_msg == "subject of HEAD"
        assert phases == [CoordinatorPhase.LOADING, CoordinatorPhase.READY]
        assert not fake_coordinator.refreshing

    async def test_valid_cache_skips_git(self, fake_coordinator, fake_queries):
        await fake_coordinator.refresh()
        assert fake_queries.status_calls == 1

        done = []
        request_id = fake_coordinator.refresh_status(on_done=lambda: done.append(True))

        assert request_id is None
        assert done == [True]
        assert fake_queries.status_calls == 1

    async def test_force_bypasses_cache(self, fake_coordinator, fake_queries):
        await fake_coordinator.refresh()
        request_id = fake_coordinator.refresh_status(force=True)
        assert request_id is not None
        await _settle()
        assert fake_queries.status_calls == 2

    async def test_newest_refresh_wins(self, fake_coordinator, fake_queries):
        gate_a = fake_queries.script(snapshot(untracked=["a"]), gated=True)
        gate_b = fake_queries.script(snapshot(untracked=["b"]), gated=True)

        fake_coordinator.refresh_status(force=True)
        fake_coordinator.refresh_status(force=True)
        await _settle()

        gate_b.set()
        await _settle()
        assert xy_map(fake_coordinator.status.untracked) == {"b": "??"}

        gate_a.set()
        await _settle()
        assert xy_map(fake_coordinator.status.untracked) == {"b": "??"}

    async def test_pending_callbacks_run_once_newest_lands(self, fake_coordinator, fake_queries):
        gate_a = fake_queries.script(snapshot(untracked=["a"]), gated=True)
        fake_queries.script(snapshot(untracked=["b"]))
        done = []

        fake_coordinator.refresh_status(force=True, on_done=lambda: done.append("first"))
        fake_coordinator.refresh_status(force=True, on_done=lambda: done.append("second"))
        await _settle()

        assert done == ["first", "second"]
        gate_a.set()
        await _settle()
        assert done == ["first", "second"]

    async def test_fetch_failure_keeps_snapshot(self, fake_coordinator, fake_queries, caplog):
        fake_queries.snapshot = snapshot(untracked=["keep"])
        await fake_coordinator.refresh()

        fake_queries.fail_with = GitCommandError(["status"], 128, "fatal: bad index")
        status = await fake_coordinator.refresh()

        assert xy_map(status.untracked) == {"keep": "??"}
        assert not fake_coordinator.refreshing
        assert "bad index" in caplog.text

    async def test_refresh_clears_stale(self, fake_coordinator):
        fake_coordinator.mark_stale()
        assert fake_coordinator.stale
        await fake_coordinator.refresh()
        assert not fake_coordinator.stale


class TestStaleAndListeners:
    async def test_mark_stale_is_idempotent(self, fake_coordinator):
        events = []
        fake_coordinator.on(StateEvent.STALE, lambda c: events.append("stale"))
        fake_coordinator.on(StateEvent.STATUS, lambda c: events.append("status"))

        fake_coordinator.mark_stale()
        fake_coordinator.mark_stale()

        assert events == ["stale", "status"]

    async def test_clear_stale_notifies_status(self, fake_coordinator):
        fake_coordinator.mark_stale()
        events = []
        fake_coordinator.on(StateEvent.STALE, lambda c: events.append(("stale", c.stale)))
        fake_coordinator.on(StateEvent.STATUS, lambda c: events.append(("status", c.stale)))

        fake_coordinator.clear_stale()
        fake_coordinator.clear_stale()

        assert events == [("stale", False), ("status", False)]

    async def test_refresh_from_stale_notifies_each_event_once(self, fake_coordinator):
        fake_coordinator.mark_stale()
        events = []
        fake_coordinator.on(StateEvent.STALE, lambda c: events.append(("stale", c.refreshing)))
        fake_coordinator.on(StateEvent.STATUS, lambda c: events.append(("status", c.refreshing)))

        fake_coordinator.refresh_status(force=True)

        assert events == [("stale", True), ("status", True)]
        await fake_coordinator.refresh()

    async def test_listener_failure_is_isolated(self, fake_coordinator, caplog):
        seen = []

        def broken(_c):
            raise ValueError("listener bug")

        fake_coordinator.on(StateEvent.STALE, broken)
        fake_coordinator.on(StateEvent.STALE, lambda c: seen.append(c.stale))

        with caplog.at_level(logging.ERROR):
            fake_coordinator.mark_stale()

        assert seen == [True]
        assert "listener bug" in caplog.text

    async def test_off_removes_listener(self, fake_coordinator):
        seen = []

        def listener(c):
            seen.append(1)

        fake_coordinator.on(StateEvent.STALE, listener)
        fake_coordinator.off(StateEvent.STALE, listener)
        fake_coordinator.off(StateEvent.STALE, listener)
        fake_coordinator.mark_stale()
        assert seen == []


class TestOptimisticUpdates:
    async def test_apply_command_without_status_is_noop(self, fake_coordinator, clock):
        fake_coordinator.apply_command(StageFile("a", Section.UNTRACKED))
        assert fake_coordinator.status is None
        assert fake_coordinator.last_operation_time is None

    async def test_stage_updates_immediately(self, fake_coordinator, fake_queries, fake_operations, clock):
        fake_queries.snapshot = snapshot(untracked=["new.txt"])
        await fake_coordinator.refresh()
        calls_before = fake_queries.status_calls

        result = await fake_coordinator.stage("new.txt", Section.UNTRACKED)

        assert result.ok
        assert fake_operations.calls == [("stage", ("new.txt",))]
        assert xy_map(fake_coordinator.status.staged) == {"new.txt": "A."}
        assert fake_coordinator.last_operation_time == clock.now
        assert fake_queries.status_calls == calls_before
        assert not fake_coordinator.cache.is_valid("status")

    async def test_failed_operation_leaves_snapshot(self, fake_coordinator, fake_queries, fake_operations, caplog):
        fake_queries.snapshot = snapshot(unstaged={"a.py": ".M"})
        before = await fake_coordinator.refresh()
        fake_operations.result = OperationResult.failure("index.lock exists")

        result = await fake_coordinator.stage("a.py", Section.UNSTAGED)

        assert not result.ok
        assert result.error == "index.lock exists"
        assert fake_coordinator.status is before
        assert "stage error: index.lock exists" in caplog.text

    async def test_directory_stage_refreshes_instead(self, fake_coordinator, fake_queries):
        fake_queries.snapshot = snapshot(untracked=["build/"])
        await fake_coordinator.refresh()
        fake_queries.script(snapshot(staged={"build/a.o": "A."}))

        await fake_coordinator.stage("build/", Section.UNTRACKED)
        assert fake_coordinator.refreshing
        await _settle()

        assert xy_map(fake_coordinator.status.staged) == {"build/a.o": "A."}

    async def test_unstage_and_intent(self, fake_coordinator, fake_queries, fake_operations):
        fake_queries.snapshot = snapshot(staged={"m.py": "M."}, untracked=["n.py"])
        await fake_coordinator.refresh()

        await fake_coordinator.unstage("m.py")
        await fake_coordinator.stage_intent("n.py")
        assert xy_map(fake_coordinator.status.unstaged) == {"m.py": ".M", "n.py": ".A"}

        await fake_coordinator.unstage_intent("n.py")
        assert xy_map(fake_coordinator.status.untracked) == {"n.py": "??"}
        assert fake_operations.names == ["unstage", "stage_intent", "unstage"]

    async def test_bulk_operations(self, fake_coordinator, fake_queries, fake_operations):
        fake_queries.snapshot = snapshot(unstaged={"a": ".M", "b": ".M"}, untracked=["c"])
        await fake_coordinator.refresh()

        await fake_coordinator.stage_files([("a", Section.UNSTAGED), ("c", Section.UNTRACKED)])
        assert xy_map(fake_coordinator.status.staged) == {"a": "M.", "c": "A."}

        await fake_coordinator.stage_all()
        assert set(xy_map(fake_coordinator.status.staged)) == {"a", "b", "c"}

        await fake_coordinator.unstage_files(["a"])
        assert xy_map(fake_coordinator.status.unstaged) == {"a": ".M"}

        await fake_coordinator.unstage_all()
        assert fake_coordinator.status.staged == ()
        assert fake_operations.names == ["stage_files", "stage_all", "unstage_files", "unstage_all"]

    async def test_empty_bulk_is_noop(self, fake_coordinator, fake_operations):
        assert (await fake_coordinator.stage_files([])).ok
        assert (await fake_coordinator.unstage_files([])).ok
        assert (await fake_coordinator.discard_files([])).ok
        assert fake_operations.calls == []


class TestDiscard:
    @pytest.fixture
    async def loaded(self, fake_coordinator, fake_queries):
        fake_queries.snapshot = snapshot(
            staged={"s.py": "M."},
            unstaged={"m.py": ".M", "i.py": ".A"},
            untracked=["junk.txt"],
        )
        await fake_coordinator.refresh()
        return fake_coordinator

    async def test_untracked_is_deleted(self, loaded, fake_operations):
        await loaded.discard("junk.txt", Section.UNTRACKED)
        assert fake_operations.calls == [("delete_untracked", ("junk.txt",))]
        assert loaded.status.untracked == ()

    async def test_intent_to_add_is_reset(self, loaded, fake_operations):
        await loaded.discard("i.py", Section.UNSTAGED)
        assert fake_operations.calls == [("unstage", ("i.py",))]
        assert xy_map(loaded.status.untracked) == {"junk.txt": "??", "i.py": "??"}
        assert "i.py" not in xy_map(loaded.status.unstaged)

    async def test_modified_is_checked_out(self, loaded, fake_operations):
        await loaded.discard("m.py", Section.UNSTAGED)
        assert fake_operations.calls == [("discard", ("m.py",))]
        assert xy_map(loaded.status.unstaged) == {"i.py": ".A"}

    async def test_discard_files_splits_by_kind(self, loaded, fake_operations):
        result = await loaded.discard_files(
            [
                ("junk.txt", Section.UNTRACKED),
                ("m.py", Section.UNSTAGED),
                ("i.py", Section.UNSTAGED),
                ("s.py", Section.STAGED),
            ]
        )
        assert result.ok
        assert sorted(fake_operations.names) == [
            "delete_untracked_files",
            "discard_files",
            "unstage_files",
        ]
        assert fake_operations.names[-1] == "unstage_files"
        assert sections(loaded.status) == {
            "staged": {},
            "unstaged": {},
            "untracked": {"i.py": "??"},
            "conflicted": {},
        }


class TestOptimisticReplay:
    async def test_command_during_refresh_survives_stale_result(self, fake_coordinator, fake_queries):
        fake_queries.snapshot = snapshot(untracked=["new.txt"])
        await fake_coordinator.refresh()

        # The refresh read git before the stage landed.
        gate = fake_queries.script(snapshot(untracked=["new.txt"]), gated=True)
        fake_coordinator.refresh_status(force=True)
        await fake_coordinator.stage("new.txt", Section.UNTRACKED)
        gate.set()
        await _settle()

        assert xy_map(fake_coordinator.status.staged) == {"new.txt": "A."}
        assert fake_coordinator.status.untracked == ()

    async def test_replay_is_idempotent_when_result_already_fresh(self, fake_coordinator, fake_queries):
        fake_queries.snapshot = snapshot(untracked=["new.txt"])
        await fake_coordinator.refresh()

        gate = fake_queries.script(snapshot(staged={"new.txt": "A."}), gated=True)
        fake_coordinator.refresh_status(force=True)
        await fake_coordinator.stage("new.txt", Section.UNTRACKED)
        gate.set()
        await _settle()

        assert sections(fake_coordinator.status)["staged"] == {"new.txt": "A."}

    async def test_replay_can_be_disabled(self, tmp_path, fake_queries, fake_operations):
        coordinator = RepoStateCoordinator(
            tmp_path,
            tmp_path,
            queries=fake_queries,
            operations=fake_operations,
            config=StatusConfig(replay_optimistic=False),
        )
        fake_queries.snapshot = snapshot(untracked=["new.txt"])
        await coordinator.refresh()

        gate = fake_queries.script(snapshot(untracked=["new.txt"]), gated=True)
        coordinator.refresh_status(force=True)
        await coordinator.stage("new.txt", Section.UNTRACKED)
        gate.set()
        await _settle()

        assert xy_map(coordinator.status.untracked) == {"new.txt": "??"}
        await coordinator.close()

    async def test_mid_fetch_operation_skips_cache_write(self, fake_coordinator, fake_queries):
        fake_queries.snapshot = snapshot(untracked=["new.txt"])
        await fake_coordinator.refresh()

        gate = fake_queries.script(snapshot(untracked=["new.txt"]), gated=True)
        fake_coordinator.refresh_status(force=True)
        await fake_coordinator.stage("new.txt", Section.UNTRACKED)
        gate.set()
        await _settle()

        assert not fake_coordinator.cache.is_valid("status")


class TestLifecycle:
    async def test_close_resolves_waiters(self, fake_coordinator, fake_queries):
        fake_queries.script(snapshot(), gated=True)
        waiter = asyncio.create_task(fake_coordinator.refresh())
        await _settle()
        assert fake_coordinator.phase == CoordinatorPhase.LOADING

        await fake_coordinator.close()
        assert await waiter is None
        assert not fake_coordinator.sequencer.is_pending()

    async def test_invalidate_and_refresh(self, fake_coordinator, fake_queries):
        await fake_coordinator.refresh()
        assert fake_coordinator.invalidate_and_refresh() is not None
        await _settle()
        assert fake_queries.status_calls == 2
