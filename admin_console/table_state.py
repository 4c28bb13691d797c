"""
Table state for the user console.

Every operator action is a pure function from one TableState snapshot to
the next. Snapshots are frozen; callers store the returned value and
render from it. Derived views (filtered list, page count, visible page)
are recomputed from the snapshot each time they are asked for.

Every transition finishes with _restore_invariants(), which:
- drops selected ids that are no longer in the collection
- drops the edit buffer if its row is gone
- clamps current_page into [1, page_count]

Transitions never raise. Unknown ids, out-of-range pages and edits
outside the Editing state are no-ops.
"""

import math
from dataclasses import dataclass, field, replace
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple

from .models import EDITABLE_FIELDS, UserRecord

PAGE_SIZE = 10

SELECT_ALL_CHECKED = "checked"
SELECT_ALL_INDETERMINATE = "indeterminate"
SELECT_ALL_UNCHECKED = "unchecked"


@dataclass(frozen=True)
class EditBuffer:
    """Shadow copy of the editable fields of the row being edited."""
    user_id: str
    name: str
    email: str
    role: str

    @classmethod
    def from_record(cls, user: UserRecord) -> "EditBuffer":
        return cls(user_id=user.id, name=user.name, email=user.email, role=user.role)


@dataclass(frozen=True)
class TableState:
    """
    Snapshot of one console workspace.

    Attributes:
        users: The collection, in display order, unique by id
        selected_ids: Ids checked for bulk action
        current_page: 1-indexed page of the filtered list
        search_query: Lower-cased filter text ("" means no filter)
        edit: Buffer for the row under edit, None in read mode
    """
    users: Tuple[UserRecord, ...] = ()
    selected_ids: FrozenSet[str] = field(default_factory=frozenset)
    current_page: int = 1
    search_query: str = ""
    edit: Optional[EditBuffer] = None

    @property
    def editing_id(self) -> Optional[str]:
        return self.edit.user_id if self.edit else None


def initial_state(users: Iterable[UserRecord] = ()) -> TableState:
    """Fresh snapshot over a loaded collection."""
    return _restore_invariants(TableState(users=tuple(users)))


# ============================================================================
# Derived views
# ============================================================================

def filtered_users(state: TableState) -> List[UserRecord]:
    if not state.search_query:
        return list(state.users)
    return [user for user in state.users if user.matches(state.search_query)]


def page_count(state: TableState) -> int:
    return max(1, math.ceil(len(filtered_users(state)) / PAGE_SIZE))


def visible_users(state: TableState) -> List[UserRecord]:
    start = (state.current_page - 1) * PAGE_SIZE
    return filtered_users(state)[start:start + PAGE_SIZE]


def visible_ids(state: TableState) -> List[str]:
    return [user.id for user in visible_users(state)]


def select_all_status(state: TableState) -> str:
    """
    State of the header checkbox, scoped to the visible page.

    Returns:
        "checked" when every visible row is selected, "indeterminate" when
        some are, "unchecked" when none are or the page is empty
    """
    ids = visible_ids(state)
    selected = [user_id for user_id in ids if user_id in state.selected_ids]
    if not ids or not selected:
        return SELECT_ALL_UNCHECKED
    if len(selected) == len(ids):
        return SELECT_ALL_CHECKED
    return SELECT_ALL_INDETERMINATE


def pagination(state: TableState) -> Dict[str, Any]:
    """Pagination metadata in the shape returned by the JSON API."""
    total_pages = page_count(state)
    return {
        "page": state.current_page,
        "page_size": PAGE_SIZE,
        "total_count": len(filtered_users(state)),
        "total_pages": total_pages,
        "has_prev": state.current_page > 1,
        "has_next": state.current_page < total_pages,
    }


# ============================================================================
# Search
# ============================================================================

def set_search(state: TableState, query: str) -> TableState:
    """Apply a new filter. A changed query always returns to page 1."""
    normalized = (query or "").strip().lower()
    if normalized == state.search_query:
        return state
    return _restore_invariants(replace(state, search_query=normalized, current_page=1))


# ============================================================================
# Selection
# ============================================================================

def toggle_row(state: TableState, user_id: str) -> TableState:
    if not _has_user(state, user_id):
        return state
    if user_id in state.selected_ids:
        selected = state.selected_ids - {user_id}
    else:
        selected = state.selected_ids | {user_id}
    return _restore_invariants(replace(state, selected_ids=selected))


def toggle_select_all(state: TableState, checked: bool) -> TableState:
    """Select or clear exactly the rows on the current page."""
    page_ids = frozenset(visible_ids(state))
    if checked:
        selected = state.selected_ids | page_ids
    else:
        selected = state.selected_ids - page_ids
    return _restore_invariants(replace(state, selected_ids=selected))


def bulk_delete(state: TableState) -> TableState:
    """Remove every selected record and clear the selection."""
    users = tuple(user for user in state.users if user.id not in state.selected_ids)
    return _restore_invariants(replace(state, users=users, selected_ids=frozenset()))


# ============================================================================
# Single-row delete
# ============================================================================

def delete_row(state: TableState, user_id: str) -> TableState:
    if not _has_user(state, user_id):
        return state
    users = tuple(user for user in state.users if user.id != user_id)
    return _restore_invariants(
        replace(state, users=users, selected_ids=state.selected_ids - {user_id})
    )


# ============================================================================
# Inline edit
# ============================================================================

def start_edit(state: TableState, user_id: str) -> TableState:
    """
    Enter Editing(user_id) with the buffer seeded from the row.

    If another row is already being edited its buffer is discarded
    without saving. Callers that need to warn the operator can compare
    state.editing_id before calling.
    """
    user = _find_user(state, user_id)
    if user is None:
        return state
    return _restore_invariants(replace(state, edit=EditBuffer.from_record(user)))


def change_field(state: TableState, field_name: str, value: str) -> TableState:
    """Update one buffer field. Empty strings are accepted as-is."""
    if state.edit is None or field_name not in EDITABLE_FIELDS:
        return state
    buffer = replace(state.edit, **{field_name: value if value is not None else ""})
    return replace(state, edit=buffer)


def save_edit(state: TableState) -> TableState:
    """Merge the buffer into its record and return to read mode."""
    buffer = state.edit
    if buffer is None:
        return state
    users = tuple(
        replace(user, name=buffer.name, email=buffer.email, role=buffer.role)
        if user.id == buffer.user_id else user
        for user in state.users
    )
    return _restore_invariants(replace(state, users=users, edit=None))


def cancel_edit(state: TableState) -> TableState:
    if state.edit is None:
        return state
    return replace(state, edit=None)


# ============================================================================
# Pagination
# ============================================================================

def change_page(state: TableState, page: int) -> TableState:
    if page < 1 or page > page_count(state) or page == state.current_page:
        return state
    return replace(state, current_page=page)


def first_page(state: TableState) -> TableState:
    return change_page(state, 1)


def prev_page(state: TableState) -> TableState:
    return change_page(state, state.current_page - 1)


def next_page(state: TableState) -> TableState:
    return change_page(state, state.current_page + 1)


def last_page(state: TableState) -> TableState:
    return change_page(state, page_count(state))


# ============================================================================
# Helpers
# ============================================================================

def _find_user(state: TableState, user_id: str) -> Optional[UserRecord]:
    return next((user for user in state.users if user.id == user_id), None)


def _has_user(state: TableState, user_id: str) -> bool:
    return _find_user(state, user_id) is not None


def _restore_invariants(state: TableState) -> TableState:
    ids = {user.id for user in state.users}

    selected = state.selected_ids & ids
    edit = state.edit if state.edit and state.edit.user_id in ids else None
    current_page = min(max(1, state.current_page), page_count(state))

    if (
        selected == state.selected_ids
        and edit == state.edit
        and current_page == state.current_page
    ):
        return state
    return replace(state, selected_ids=frozenset(selected), edit=edit, current_page=current_page)
