"""
Flask application for the User Admin Console.

Provides a table view of user records loaded from a remote JSON document:
- Free-text search (name, email, role)
- Pagination (10 per page)
- Multi-select delete (per-page select-all)
- Inline edit and single-row delete

Every action posts to /actions/*, computes the next TableState snapshot
with a pure transition, and returns the re-rendered table partial.
Edits live in server memory for the browser session only.

Stack: Flask + HTMX + Tailwind CSS (CDN)
"""

import logging
import traceback
import uuid
from typing import Any, Dict, Tuple

from flask import Flask, jsonify, render_template, request, session

from . import table_state as ts
from .config import ConsoleConfig
from .loader import fetch_users
from .models import EDITABLE_FIELDS
from .store import WorkspaceStore, get_workspace_store
from .table_state import TableState
from .version import __version__

config = ConsoleConfig.from_env()

app = Flask(__name__)

# Configure logging
logging.basicConfig(
    level=getattr(logging, config.log_level, logging.INFO),
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)

app.secret_key = config.resolve_secret_key()
app.config["SESSION_COOKIE_HTTPONLY"] = True
app.config["SESSION_COOKIE_SAMESITE"] = "Lax"

PAGE_KEYWORDS = {
    "first": ts.first_page,
    "prev": ts.prev_page,
    "next": ts.next_page,
    "last": ts.last_page,
}

TRUTHY = {"true", "on", "1", "yes"}


@app.context_processor
def inject_version():
    """Inject version info into all templates."""
    return {"version": __version__}


# ============================================================================
# Workspace helpers
# ============================================================================

def _get_store() -> WorkspaceStore:
    return get_workspace_store()


def _session_id() -> str:
    """Workspace key for the current browser session, created on demand."""
    workspace_id = session.get("workspace_id")
    if not workspace_id:
        workspace_id = uuid.uuid4().hex
        session["workspace_id"] = workspace_id
    return workspace_id


def _current_state() -> TableState:
    return _get_store().get(_session_id()) or ts.initial_state()


def _load_users():
    return fetch_users(config.users_url, timeout=config.fetch_timeout)


def _load_workspace() -> TableState:
    """Return the session's workspace, running the loader if it has none."""
    return _get_store().load_once(_session_id(), _load_users)


def _apply(transition) -> TableState:
    return _get_store().apply(_session_id(), transition)


def _table_context(state: TableState) -> Dict[str, Any]:
    return {
        "state": state,
        "users": ts.visible_users(state),
        "pagination": ts.pagination(state),
        "select_all": ts.select_all_status(state),
        "selected_ids": state.selected_ids,
        "edit": state.edit,
        "query": state.search_query,
    }


def _render_table(state: TableState):
    return render_template("partials/user_table.html", **_table_context(state))


def _wants_html() -> bool:
    return bool(request.headers.get("HX-Request")) and not request.path.startswith("/api/")


def _bad_request(message: str) -> Tuple[Any, int]:
    """400 as an HTML fragment for HTMX, JSON otherwise."""
    if _wants_html():
        return render_template("partials/error.html", message=message), 400
    return jsonify({"error": message}), 400


def _serialize_state(state: TableState) -> Dict[str, Any]:
    edit = state.edit
    return {
        "users": [user.to_dict() for user in ts.visible_users(state)],
        "pagination": ts.pagination(state),
        "selected_ids": sorted(state.selected_ids),
        "select_all": ts.select_all_status(state),
        "edit": {
            "user_id": edit.user_id,
            "name": edit.name,
            "email": edit.email,
            "role": edit.role,
        } if edit else None,
        "query": state.search_query,
    }


# ============================================================================
# Pages and partials
# ============================================================================

@app.route("/")
def index():
    """Render the console. Loads the collection on the session's first visit."""
    state = _load_workspace()
    return render_template("index.html", **_table_context(state))


@app.route("/partials/user-table", methods=["GET"])
def user_table_partial():
    """HTMX partial: Return the table, pagination bar and bulk actions."""
    try:
        return _render_table(_current_state())
    except Exception as e:
        error_details = f"{type(e).__name__}: {str(e)}"
        logger.error(f"user_table_partial error: {error_details}\n{traceback.format_exc()}")
        return render_template("partials/error.html", message=f"Unexpected error: {error_details}"), 500


# ============================================================================
# Actions
# ============================================================================

@app.route("/actions/search", methods=["POST"])
def search_users():
    query = request.form.get("query", "")
    return _render_table(_apply(lambda state: ts.set_search(state, query)))


@app.route("/actions/page", methods=["POST"])
def change_page():
    """
    Move to another page.

    Form Fields:
        page: Page number, or one of first/prev/next/last
    """
    target = request.form.get("page", "").strip().lower()

    if target in PAGE_KEYWORDS:
        transition = PAGE_KEYWORDS[target]
    else:
        try:
            page = int(target)
        except ValueError:
            return _bad_request(f"Invalid page: '{target}'")
        transition = lambda state: ts.change_page(state, page)

    return _render_table(_apply(transition))


@app.route("/actions/rows/<path:user_id>/toggle", methods=["POST"])
def toggle_row(user_id: str):
    return _render_table(_apply(lambda state: ts.toggle_row(state, user_id)))


@app.route("/actions/select-all", methods=["POST"])
def toggle_select_all():
    checked = request.form.get("checked", "").strip().lower() in TRUTHY
    return _render_table(_apply(lambda state: ts.toggle_select_all(state, checked)))


@app.route("/actions/bulk-delete", methods=["POST"])
def bulk_delete():
    state = _apply(ts.bulk_delete)
    logger.info(f"Bulk delete: {len(state.users)} users remain")
    return _render_table(state)


@app.route("/actions/rows/<path:user_id>/delete", methods=["POST"])
def delete_row(user_id: str):
    return _render_table(_apply(lambda state: ts.delete_row(state, user_id)))


@app.route("/actions/rows/<path:user_id>/edit", methods=["POST"])
def start_edit(user_id: str):
    previous = _current_state().editing_id
    if previous and previous != user_id:
        logger.info(f"Discarding unsaved edit of user {previous}")
    return _render_table(_apply(lambda state: ts.start_edit(state, user_id)))


@app.route("/actions/edit/field", methods=["POST"])
def change_edit_field():
    """
    Update one field of the edit buffer.

    Form Fields:
        field: name, email or role
        value: New value (empty allowed)
    """
    field_name = request.form.get("field", "")
    if field_name not in EDITABLE_FIELDS:
        return _bad_request(f"Invalid field: '{field_name}'")
    value = request.form.get("value", "")
    return _render_table(_apply(lambda state: ts.change_field(state, field_name, value)))


@app.route("/actions/edit/save", methods=["POST"])
def save_edit():
    """
    Save the row under edit.

    Any of name/email/role present in the form is written to the buffer
    first, so the edit inputs can be submitted together with Save.
    """
    changes = {name: request.form[name] for name in EDITABLE_FIELDS if name in request.form}

    def transition(state: TableState) -> TableState:
        for field_name, value in changes.items():
            state = ts.change_field(state, field_name, value)
        return ts.save_edit(state)

    return _render_table(_apply(transition))


@app.route("/actions/edit/cancel", methods=["POST"])
def cancel_edit():
    return _render_table(_apply(ts.cancel_edit))


@app.route("/actions/reload", methods=["POST"])
def reload_users():
    """Drop the session's workspace and fetch the collection again."""
    _get_store().discard(_session_id())
    return _render_table(_load_workspace())


# ============================================================================
# JSON API
# ============================================================================

@app.route("/api/users", methods=["GET"])
def list_users():
    """
    Current snapshot as JSON.

    Returns:
        JSON with the visible page, pagination metadata, selection,
        header checkbox state, edit buffer and search query
    """
    return jsonify(_serialize_state(_current_state()))


@app.route("/health", methods=["GET"])
def health_check():
    return jsonify({"status": "healthy", "version": __version__})

