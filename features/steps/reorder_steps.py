"""Step definitions for the reorder BDD scenarios.

All interactions go through the REST API with Flask's test client.
"""

from behave import given, then, when  # pylint: disable=no-name-in-module

from backoffice.models import Benefit

BASE_URL = "/benefits/reorder-sessions"


def _benefit_payload(row):
    return {
        "title": row["title"],
        "category": row["category"],
        "position": int(row["position"]),
        "description": f"{row['title']} for wallet users",
        "legal_text": "Valid while the promotion lasts",
        "cashback_percentage": 10,
        "purchase_cap": 500,
        "start_date": "2025-01-01",
        "end_date": "2025-12-31",
    }


def _names(text):
    return [name.strip() for name in text.split(",") if name.strip()]


def _session_url(context, suffix=""):
    return f"{BASE_URL}/{context.session_id}{suffix}"


def _titles_by_id(context):
    return {benefit_id: title for title, benefit_id in context.ids.items()}


@given("the following benefits")
def step_impl_benefits(context):
    """Load the catalog from the table."""
    for row in context.table:
        resp = context.client.post("/benefits", json=_benefit_payload(row))
        assert resp.status_code == 201, resp.get_data(as_text=True)
        context.ids[row["title"]] = resp.get_json()["id"]


@when("I open a reorder session")
def step_open(context):
    context.resp = context.client.post(BASE_URL)
    assert context.resp.status_code == 201, context.resp.get_data(as_text=True)
    context.session_id = context.resp.get_json()["id"]


@when('I search for "{text}"')
def step_search(context, text):
    context.resp = context.client.get(_session_url(context), query_string={"q": text})
    assert context.resp.status_code == 200


@when('I move "{title}" to index {index:d}')
def step_move_index(context, title, index):
    context.resp = context.client.put(
        _session_url(context, "/moves"), json={"id": context.ids[title], "index": index}
    )
    assert context.resp.status_code == 200


@when('I move "{title}" to the {end}')
def step_move_end(context, title, end):
    context.resp = context.client.put(
        _session_url(context, "/moves"), json={"id": context.ids[title], "to": end}
    )
    assert context.resp.status_code == 200


@when('I enter position {position:d} for "{title}"')
def step_numeric_entry(context, position, title):
    context.resp = context.client.put(
        _session_url(context, "/moves"), json={"id": context.ids[title], "position": position}
    )
    assert context.resp.status_code == 200


@when('I select "{titles}"')
def step_select(context, titles):
    ids = [context.ids[title] for title in _names(titles)]
    context.resp = context.client.put(
        _session_url(context, "/selection"), json={"action": "add", "ids": ids}
    )
    assert context.resp.status_code == 200


@when("I batch move the selection to position {position:d}")
def step_batch_move(context, position):
    context.resp = context.client.put(
        _session_url(context, "/batch-moves"), json={"position": position}
    )
    assert context.resp.status_code == 200


@when("I save the session")
def step_save(context):
    context.resp = context.client.post(_session_url(context, "/save"))


@when("I cancel the session")
def step_cancel(context):
    context.resp = context.client.delete(_session_url(context))
    assert context.resp.status_code == 204


@then('the order should be "{titles}"')
def step_order(context, titles):
    resp = context.client.get(_session_url(context), query_string={"q": "", "size": 100})
    actual = [item["title"] for item in resp.get_json()["items"]]
    assert actual == _names(titles), actual


@then('the visible page should be "{titles}"')
def step_visible(context, titles):
    resp = context.client.get(_session_url(context))
    actual = [item["title"] for item in resp.get_json()["items"]]
    assert actual == _names(titles), actual


@then('the pending changes should be "{expected}"')
def step_changes(context, expected):
    resp = context.client.get(_session_url(context, "/changes"))
    titles = _titles_by_id(context)
    actual = [f"{titles[change['id']]}={change['position']}" for change in resp.get_json()]
    assert actual == _names(expected), actual


@then("the positions should run from 1 to {last:d}")
def step_positions(context, last):
    resp = context.client.get(_session_url(context), query_string={"size": 100})
    positions = [item["position"] for item in resp.get_json()["items"]]
    assert positions == list(range(1, last + 1)), positions


@then("nothing should be selected")
def step_nothing_selected(context):
    resp = context.client.get(_session_url(context))
    assert resp.get_json()["selected"] == []


@then("the save should succeed with {count:d} changes")
def step_save_ok(context, count):
    assert context.resp.status_code == 200
    data = context.resp.get_json()
    assert data["ok"] and len(data["changes"]) == count, data


@then("the save should report no changes")
def step_save_no_changes(context):
    assert context.resp.status_code == 200
    assert context.resp.get_json()["no_changes"] is True


@then('the catalog position of "{title}" should be {position:d}')
def step_catalog_position(context, title, position):
    benefit = Benefit.find(context.ids[title])
    assert benefit.position == position, benefit


@then("there should be no pending changes")
def step_no_changes(context):
    resp = context.client.get(_session_url(context, "/changes"))
    assert resp.get_json() == [], resp.get_json()
