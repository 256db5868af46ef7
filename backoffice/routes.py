######################################################################
# Copyright 2016, 2024 John J. Rofrano. All Rights Reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# https://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
######################################################################

"""
Benefits Back-Office Service

This service implements a REST API that allows you to Create, Read, Update,
Delete and List Benefits, and to re-sequence their priority order through
reorder sessions that save only the positions that changed.
"""

# Standard library
import math

# Third-party
from flask import abort, current_app as app, jsonify, request, url_for

# First-party
from backoffice import catalog
from backoffice.common import status  # HTTP status codes
from backoffice.models import STATUSES, Benefit, DataValidationError
from backoffice.reorder import ReorderSession, SessionRegistry, UnknownItemError

# Open reorder sessions, one per operator dialog
sessions = SessionRegistry(ttl=app.config.get("REORDER_SESSION_TTL"))


######################################################################
# Root endpoint
######################################################################
@app.route("/", methods=["GET"])
def index():
    """Root URL response"""
    return (
        jsonify(
            name="Benefits Back-Office Service",
            version="1.0.0",
            description="RESTful service for managing and ordering benefits",
            paths={
                "benefits": "/benefits",
                "reorder_sessions": "/benefits/reorder-sessions",
            },
        ),
        status.HTTP_200_OK,
    )


######################################################################
# LIST Benefits with optional filters
#
# Supported query params:
# ?title=<str>    -> case-insensitive substring match
# ?status=<str>   -> active | inactive
# ?page=<int>     -> 1-based page, default 1
# ?size=<int>     -> page size, default BENEFITS_PAGE_SIZE
# Results are always in position order.
######################################################################
@app.route("/benefits", methods=["GET"])
def list_benefits():
    """
    List Benefits
    - Without query: first page of all benefits
    - With filters: matching benefits, paginated
    """
    app.logger.info("Request to list Benefits")

    title = request.args.get("title")
    benefit_status = request.args.get("status")
    page = _positive_int_arg("page", 1)
    size = _positive_int_arg("size", app.config.get("BENEFITS_PAGE_SIZE", 25))

    if benefit_status and benefit_status not in STATUSES:
        abort(
            status.HTTP_400_BAD_REQUEST,
            f"Invalid value for query parameter 'status'. Accepted: {', '.join(STATUSES)}. "
            f"Received: {benefit_status!r}",
        )

    benefits, total = Benefit.search(
        title=title.strip() if title else None,
        status=benefit_status,
        page=page,
        size=size,
    )
    return (
        jsonify(
            content=[b.serialize() for b in benefits],
            total_elements=total,
            size=size,
            number=page,
            total_pages=math.ceil(total / size),
        ),
        status.HTTP_200_OK,
    )


######################################################################
# READ a Benefit
######################################################################
@app.route("/benefits/<int:benefit_id>", methods=["GET"])
def get_benefits(benefit_id: int):
    """
    Get a Benefit by id
    """
    app.logger.info("Request to get Benefit with id [%s]", benefit_id)
    benefit = _find_or_404(benefit_id)
    return jsonify(benefit.serialize()), status.HTTP_200_OK


######################################################################
# CREATE a Benefit
######################################################################
@app.route("/benefits", methods=["POST"])
def create_benefits():
    """
    Create a Benefit
    Without a position the benefit goes after the last one
    """
    app.logger.info("Request to Create a Benefit")
    check_content_type("application/json")

    benefit = Benefit()
    try:
        data = request.get_json()
        app.logger.info("Processing: %s", data)
        benefit.deserialize(data)
        benefit.create()
    except DataValidationError as error:
        abort(status.HTTP_400_BAD_REQUEST, str(error))

    location_url = url_for("get_benefits", benefit_id=benefit.id, _external=True)
    return (
        jsonify(benefit.serialize()),
        status.HTTP_201_CREATED,
        {"Location": location_url},
    )


######################################################################
# UPDATE a Benefit
######################################################################
@app.route("/benefits/<int:benefit_id>", methods=["PUT"])
def update_benefits(benefit_id: int):
    """
    Update a Benefit
    Replaces fields of a benefit with payload values
    """
    app.logger.info("Request to update Benefit with id [%s]", benefit_id)
    check_content_type("application/json")

    benefit = _find_or_404(benefit_id)
    data = request.get_json()
    app.logger.info("Processing: %s", data)
    if isinstance(data, dict) and "id" in data and str(data["id"]) != str(benefit_id):
        abort(status.HTTP_400_BAD_REQUEST, "ID in body must match resource path")
    try:
        benefit.deserialize(data)
        benefit.id = benefit_id
        benefit.update()
    except DataValidationError as error:
        abort(status.HTTP_400_BAD_REQUEST, str(error))

    return jsonify(benefit.serialize()), status.HTTP_200_OK


######################################################################
# DELETE a Benefit
######################################################################
@app.route("/benefits/<int:benefit_id>", methods=["DELETE"])
def delete_benefits(benefit_id: int):
    """
    Delete a Benefit by id
    - If the benefit doesn't exist, return 404
    - If exists, delete and return 204
    """
    app.logger.info("Request to delete Benefit with id [%s]", benefit_id)
    benefit = _find_or_404(benefit_id)
    benefit.delete()
    return "", status.HTTP_204_NO_CONTENT


######################################################################
# OPEN a reorder session
######################################################################
@app.route("/benefits/reorder-sessions", methods=["POST"])
def open_reorder_session():
    """
    Open a reorder session seeded with the current benefits order
    """
    app.logger.info("Request to open a reorder session")
    session = sessions.open(
        catalog.seed_items(),
        catalog.persist,
        page_size=app.config.get("REORDER_PAGE_SIZE", 20),
        search_fields=app.config.get("REORDER_SEARCH_FIELDS", ("title", "category")),
    )
    location_url = url_for("get_reorder_session", session_id=session.id, _external=True)
    with session.lock:
        body = _session_view(session)
    return jsonify(body), status.HTTP_201_CREATED, {"Location": location_url}


######################################################################
# VIEW a reorder session
#
# ?q=<str>     -> search over title and category; a new search resets to page 1
# ?page=<int>  -> 1-based page, clamped to the available pages
# ?size=<int>  -> page size for this view
######################################################################
@app.route("/benefits/reorder-sessions/<session_id>", methods=["GET"])
def get_reorder_session(session_id: str):
    """
    Get the visible page of a reorder session
    """
    app.logger.info("Request to view reorder session [%s]", session_id)
    session = sessions.get(session_id)
    size = _positive_int_arg("size", session.page_size)
    query = request.args.get("q")
    page = request.args.get("page")

    with session.lock:
        if query is not None and query != session.query:
            session.search(query)
        if page is not None:
            session.page = _positive_int_arg("page", 1)
        body = _session_view(session, size)
    return jsonify(body), status.HTTP_200_OK


######################################################################
# MOVE a single benefit
#
# Body, one of:
#   {"id": <id>, "index": <int>}          -> 0-based index (drag by index)
#   {"id": <id>, "position": <int>}       -> 1-based numeric entry
#   {"id": <id>, "to": "top" | "bottom"}  -> shortcuts
#   {"id": <id>, "over": <id>}            -> drop onto another benefit
######################################################################
@app.route("/benefits/reorder-sessions/<session_id>/moves", methods=["PUT"])
def move_benefit(session_id: str):
    """
    Move one benefit inside a reorder session
    """
    app.logger.info("Request to move a benefit in reorder session [%s]", session_id)
    check_content_type("application/json")
    session = sessions.get(session_id)
    data = _json_body()
    if "id" not in data:
        abort(status.HTTP_400_BAD_REQUEST, "Field 'id' is required")
    item_id = data["id"]

    with session.lock:
        if "to" in data:
            if data["to"] == "top":
                changed = session.move_to_top(item_id)
            elif data["to"] == "bottom":
                changed = session.move_to_bottom(item_id)
            else:
                abort(status.HTTP_400_BAD_REQUEST, "Field 'to' must be 'top' or 'bottom'")
        elif "position" in data:
            changed = session.move_to_position(item_id, _int_field(data, "position"))
        elif "index" in data:
            changed = session.move(item_id, _int_field(data, "index"))
        elif "over" in data:
            changed = session.drag(item_id, data["over"])
        else:
            abort(
                status.HTTP_400_BAD_REQUEST,
                "A move needs one of 'index', 'position', 'to' or 'over'",
            )
        body = _session_view(session)

    body["changed"] = changed
    return jsonify(body), status.HTTP_200_OK


######################################################################
# CHANGE the selection
#
# Body: {"action": "add" | "remove" | "toggle" | "clear" | "toggle_all",
#        "ids": [<id>, ...]}
# toggle_all acts on the benefits of the current page.
######################################################################
@app.route("/benefits/reorder-sessions/<session_id>/selection", methods=["PUT"])
def update_selection(session_id: str):
    """
    Update the batch selection of a reorder session
    """
    app.logger.info("Request to update the selection of reorder session [%s]", session_id)
    check_content_type("application/json")
    session = sessions.get(session_id)
    data = _json_body()
    action = data.get("action")
    ids = data.get("ids", [])
    if not isinstance(ids, list):
        abort(status.HTTP_400_BAD_REQUEST, "Field 'ids' must be a list")

    with session.lock:
        if action in ("add", "remove", "toggle"):
            for item_id in ids:
                getattr(session.selection, action)(item_id)
        elif action == "clear":
            session.selection.clear()
        elif action == "toggle_all":
            session.toggle_select_all()
        else:
            abort(
                status.HTTP_400_BAD_REQUEST,
                "Field 'action' must be one of add, remove, toggle, clear, toggle_all",
            )
        body = _session_view(session)
    return jsonify(body), status.HTTP_200_OK


######################################################################
# BATCH MOVE the selection
#
# Body: {"position": <int>} or {"to": "top" | "bottom"}
#       optional "ids": [...] replaces the selection first
######################################################################
@app.route("/benefits/reorder-sessions/<session_id>/batch-moves", methods=["PUT"])
def batch_move_benefits(session_id: str):
    """
    Move the selected benefits as one block and renumber the whole order
    """
    app.logger.info("Request to batch move benefits in reorder session [%s]", session_id)
    check_content_type("application/json")
    session = sessions.get(session_id)
    data = _json_body()

    with session.lock:
        if "ids" in data:
            if not isinstance(data["ids"], list):
                abort(status.HTTP_400_BAD_REQUEST, "Field 'ids' must be a list")
            for item_id in data["ids"]:
                if item_id not in session.store:
                    raise UnknownItemError(item_id)
            session.selection.clear()
            for item_id in data["ids"]:
                session.selection.add(item_id)

        if data.get("to") == "top":
            changed = session.batch_move_to_top()
        elif data.get("to") == "bottom":
            changed = session.batch_move_to_bottom()
        elif "position" in data:
            changed = session.batch_move(_int_field(data, "position"))
        else:
            abort(
                status.HTTP_400_BAD_REQUEST,
                "A batch move needs 'position' or 'to' ('top' or 'bottom')",
            )
        body = _session_view(session)

    body["changed"] = changed
    return jsonify(body), status.HTTP_200_OK


######################################################################
# PREVIEW the pending changes
######################################################################
@app.route("/benefits/reorder-sessions/<session_id>/changes", methods=["GET"])
def list_reorder_changes(session_id: str):
    """
    List the position changes a save would send
    """
    app.logger.info("Request to list changes of reorder session [%s]", session_id)
    session = sessions.get(session_id)
    with session.lock:
        changes = [change.serialize() for change in session.changes()]
    return jsonify(changes), status.HTTP_200_OK


######################################################################
# SAVE a reorder session
#
# Optional body: {"close": true} drops the session after a successful save
######################################################################
@app.route("/benefits/reorder-sessions/<session_id>/save", methods=["POST"])
def save_reorder_session(session_id: str):
    """
    Save the changed positions of a reorder session
    - No changes: 200 without touching the catalog
    - A save already in flight: 409
    - Catalog failure: 502, the edited order is kept for a retry
    """
    app.logger.info("Request to save reorder session [%s]", session_id)
    session = sessions.get(session_id)
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        abort(status.HTTP_400_BAD_REQUEST, "Request body must be a JSON object")

    if session.saving:
        abort(status.HTTP_409_CONFLICT, f"Reorder session '{session_id}' is already saving.")

    with session.lock:
        result = session.save()

    if not result.ok:
        body = result.serialize()
        body.update(
            status=status.HTTP_502_BAD_GATEWAY,
            error="Bad Gateway",
            message=str(result.error),
        )
        return jsonify(body), status.HTTP_502_BAD_GATEWAY

    if data.get("close") is True:
        sessions.close(session_id)
    return jsonify(result.serialize()), status.HTTP_200_OK


######################################################################
# CANCEL a reorder session
######################################################################
@app.route("/benefits/reorder-sessions/<session_id>", methods=["DELETE"])
def cancel_reorder_session(session_id: str):
    """
    Cancel a reorder session; nothing is sent to the catalog
    """
    app.logger.info("Request to cancel reorder session [%s]", session_id)
    sessions.close(session_id)
    return "", status.HTTP_204_NO_CONTENT


######################################################################
# Utility: Content-Type guard
######################################################################
def check_content_type(content_type: str):
    """Checks that the media type is correct (tolerates charset etc.)"""
    if request.mimetype != content_type:
        got = request.content_type or "none"
        abort(
            status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            f"Content-Type must be {content_type}; received {got}",
        )


######################################################################
# Utility: request parsing
######################################################################
def _find_or_404(benefit_id: int) -> Benefit:
    benefit = Benefit.find(benefit_id)
    if not benefit:
        abort(
            status.HTTP_404_NOT_FOUND,
            f"Benefit with id '{benefit_id}' was not found.",
        )
    return benefit


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        abort(status.HTTP_400_BAD_REQUEST, "Request body must be a JSON object")
    return data


def _int_field(data: dict, name: str) -> int:
    value = data.get(name)
    if isinstance(value, bool) or not isinstance(value, int):
        abort(status.HTTP_400_BAD_REQUEST, f"Field '{name}' must be an integer")
    return value


def _positive_int_arg(name: str, default: int) -> int:
    """Reads a query-string integer >= 1, 400 otherwise"""
    raw = request.args.get(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        value = 0
    if value < 1:
        abort(
            status.HTTP_400_BAD_REQUEST,
            f"Query parameter '{name}' must be a positive integer. Received: {raw!r}",
        )
    return value


def _session_view(session: ReorderSession, size: int = None) -> dict:
    """Visible page of a session plus its selection and save state"""
    body = session.view(size).serialize()
    body.update(
        id=session.id,
        query=session.query,
        selected=sorted(session.selection, key=str),
        pending_changes=len(session.changes()),
        saving=session.saving,
    )
    return body


######################################################################
# Endpoint: /health (K8s liveness/readiness)
######################################################################
@app.route("/health", methods=["GET"])
def health():
    """
    K8s health check endpoint
    Returns:
        JSON: {"status": "OK"} with HTTP 200
    """
    app.logger.info("Health check requested")
    return jsonify(status="OK"), status.HTTP_200_OK
