"""
Workspace store.

Holds the latest TableState snapshot for each browser session. Handlers
read a snapshot, compute the next one with a pure transition, and hand
it back through apply(). Snapshot replacement is serialised per process
because WSGI servers run handlers on threads.

Workspaces live in a TTL cache bounded in size: a workspace expires
WORKSPACE_TTL_SECONDS after its last change, and the least recently used
one is evicted once MAX_WORKSPACES is reached.

Public API:
- get_workspace_store(): Singleton store for the process
- reset_workspace_store(): Drop the singleton (tests, reload)
- WorkspaceStore: The store itself
"""

import logging
import threading
import time
from typing import Callable, Dict, Iterable, Optional

from cachetools import TTLCache

from .config import ConsoleConfig
from .models import UserRecord
from .table_state import TableState, initial_state

logger = logging.getLogger(__name__)

Transition = Callable[[TableState], TableState]
Loader = Callable[[], Iterable[UserRecord]]


class WorkspaceStore:
    """In-memory, bounded map of session id -> TableState."""

    def __init__(
        self,
        max_workspaces: int = 1000,
        ttl_seconds: float = 3600.0,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._states: TTLCache = TTLCache(maxsize=max_workspaces, ttl=ttl_seconds, timer=timer)
        self._lock = threading.Lock()
        self._loading: Dict[str, threading.Lock] = {}

    @classmethod
    def from_config(cls, config: ConsoleConfig) -> "WorkspaceStore":
        return cls(max_workspaces=config.max_workspaces, ttl_seconds=config.workspace_ttl)

    def get(self, session_id: str) -> Optional[TableState]:
        with self._lock:
            return self._states.get(session_id)

    def create(self, session_id: str, users: Iterable[UserRecord]) -> TableState:
        """Start (or restart) a workspace over a freshly loaded collection."""
        state = initial_state(users)
        with self._lock:
            self._states[session_id] = state
        logger.info(f"Created workspace {session_id[:8]} with {len(state.users)} users")
        return state

    def load_once(self, session_id: str, loader: Loader) -> TableState:
        """
        Return the session's workspace, running loader() only if it has none.

        Concurrent first requests of one session wait for a single load
        instead of each fetching. Other sessions are not blocked.
        """
        with self._lock:
            state = self._states.get(session_id)
            if state is not None:
                return state
            session_lock = self._loading.setdefault(session_id, threading.Lock())

        try:
            with session_lock:
                state = self.get(session_id)
                if state is None:
                    state = self.create(session_id, loader())
        finally:
            with self._lock:
                self._loading.pop(session_id, None)
        return state

    def apply(self, session_id: str, transition: Transition) -> TableState:
        """
        Replace the session's snapshot with transition(snapshot).

        A session without a workspace gets transition(empty state) back
        and nothing is stored, so its next GET / still runs the loader.
        """
        with self._lock:
            current = self._states.get(session_id)
            if current is None:
                return transition(initial_state())
            new_state = transition(current)
            self._states[session_id] = new_state
        return new_state

    def discard(self, session_id: str) -> None:
        with self._lock:
            self._states.pop(session_id, None)

    def __len__(self) -> int:
        with self._lock:
            self._states.expire()
            return len(self._states)


# Singleton store instance
_store_instance: Optional[WorkspaceStore] = None


def get_workspace_store() -> WorkspaceStore:
    global _store_instance

    if _store_instance is None:
        _store_instance = WorkspaceStore.from_config(ConsoleConfig.from_env())
    return _store_instance


def reset_workspace_store() -> None:
    """Reset the store singleton."""
    global _store_instance

    _store_instance = None
    logger.info("Workspace store reset")
