"""
Unit tests for admin_console/store.py
"""

import threading
import time

from admin_console import table_state as ts
from admin_console.config import ConsoleConfig
from admin_console.store import WorkspaceStore, get_workspace_store, reset_workspace_store

from .conftest import build_users


class TestWorkspaceStore:
    def test_get_unknown_session_is_none(self):
        assert WorkspaceStore().get("missing") is None

    def test_create_and_get(self):
        store = WorkspaceStore()
        state = store.create("abc", build_users(3))
        assert store.get("abc") is state
        assert len(state.users) == 3

    def test_apply_replaces_snapshot(self):
        store = WorkspaceStore()
        before = store.create("abc", build_users(3))

        after = store.apply("abc", lambda state: ts.delete_row(state, "1"))

        assert store.get("abc") is after
        assert len(before.users) == 3
        assert len(after.users) == 2

    def test_apply_without_workspace_is_not_stored(self):
        store = WorkspaceStore()
        state = store.apply("new", ts.bulk_delete)
        assert state.users == ()
        assert store.get("new") is None
        assert len(store) == 0

    def test_sessions_are_isolated(self):
        store = WorkspaceStore()
        store.create("a", build_users(3))
        store.create("b", build_users(3))

        store.apply("a", lambda state: ts.delete_row(state, "1"))

        assert len(store.get("a").users) == 2
        assert len(store.get("b").users) == 3

    def test_discard(self):
        store = WorkspaceStore()
        store.create("a", build_users(1))
        store.discard("a")
        store.discard("never-existed")
        assert store.get("a") is None


class FakeClock:
    """Manually advanced timer for TTL tests."""

    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestWorkspaceEviction:
    def test_workspace_expires_after_ttl(self):
        clock = FakeClock()
        store = WorkspaceStore(ttl_seconds=60, timer=clock)
        store.create("a", build_users(3))

        clock.now = 59
        assert store.get("a") is not None
        clock.now = 61
        assert store.get("a") is None
        assert len(store) == 0

    def test_changes_extend_lifetime(self):
        clock = FakeClock()
        store = WorkspaceStore(ttl_seconds=60, timer=clock)
        store.create("a", build_users(3))

        clock.now = 50
        store.apply("a", lambda state: ts.toggle_row(state, "1"))
        clock.now = 100

        assert store.get("a").selected_ids == frozenset({"1"})

    def test_size_is_capped(self):
        store = WorkspaceStore(max_workspaces=3)
        for index in range(10):
            store.create(f"session-{index}", build_users(1))

        assert len(store) == 3
        assert store.get("session-9") is not None
        assert store.get("session-0") is None

    def test_from_config(self):
        store = WorkspaceStore.from_config(ConsoleConfig(max_workspaces=2))
        for index in range(5):
            store.create(str(index), [])
        assert len(store) == 2


class TestLoadOnce:
    def test_runs_loader_only_without_workspace(self):
        store = WorkspaceStore()
        calls = []

        def loader():
            calls.append(1)
            return build_users(4)

        first = store.load_once("a", loader)
        second = store.load_once("a", loader)

        assert first is second
        assert len(first.users) == 4
        assert len(calls) == 1

    def test_loads_after_action_on_missing_workspace(self):
        store = WorkspaceStore()
        store.apply("a", ts.next_page)

        state = store.load_once("a", lambda: build_users(12))

        assert len(state.users) == 12

    def test_concurrent_first_requests_fetch_once(self):
        store = WorkspaceStore()
        calls = []

        def slow_loader():
            calls.append(1)
            time.sleep(0.05)
            return build_users(2)

        results = []
        threads = [
            threading.Thread(target=lambda: results.append(store.load_once("a", slow_loader)))
            for _ in range(5)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(calls) == 1
        assert len(results) == 5
        assert all(state is results[0] for state in results)


class TestStoreSingleton:
    def test_singleton_and_reset(self):
        first = get_workspace_store()
        assert get_workspace_store() is first
        reset_workspace_store()
        assert get_workspace_store() is not first
