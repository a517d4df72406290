import json
from datetime import datetime, timezone as dt_timezone
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
from django.urls import reverse

from finance.models import CostEntry, RevenueEntry
from hub.exceptions import NotFound, PreconditionFailed
from integrations import services
from integrations.models import NotionConnection, SimplicateConnection, SimplicateMapping
from integrations.simplicate import SimplicateClient, SimplicateError

pytestmark = pytest.mark.django_db


def revenue_row(page_id, **fields):
    row = {
        "notion_page_id": page_id,
        "description": "Work",
        "hours": Decimal("2.00"),
        "billable": True,
        "start_time": datetime(2024, 3, 5, 9, 0, tzinfo=dt_timezone.utc),
        "client": "Acme",
        "type": "Development",
        "revenue": Decimal("200.00"),
    }
    row.update(fields)
    return row


def make_entry(user, page_id, **fields):
    data = revenue_row(page_id, **fields)
    data.pop("notion_page_id")
    return RevenueEntry.objects.create(user=user, notion_page_id=page_id, **data)


@pytest.fixture
def simplicate(user):
    SimplicateConnection.objects.create(
        user=user, subdomain="acme", api_key="k", api_secret="s", employee_id="employee:1"
    )
    SimplicateMapping.objects.create(user=user, notion_value="Acme", simplicate_id="project:1",
                                     mapping_type="project")
    SimplicateMapping.objects.create(user=user, notion_value="Development", simplicate_id="hourtype:1",
                                     mapping_type="hourtype")


# ───────────── Notion sync ─────────────

def test_sync_without_connection_is_precondition_failed(user):
    with pytest.raises(PreconditionFailed):
        services.sync_revenue(user, client=MagicMock())


def test_sync_revenue_upserts_by_page_id(user):
    NotionConnection.objects.create(user=user, database_id="db-1")
    client = MagicMock()
    client.fetch_time_entries.return_value = [revenue_row("p1"), revenue_row("p2")]

    assert services.sync_revenue(user, client=client) == {"synced": 2}

    client.fetch_time_entries.return_value = [revenue_row("p1", revenue=Decimal("300.00"))]
    services.sync_revenue(user, client=client)

    assert RevenueEntry.objects.filter(user=user).count() == 2
    assert RevenueEntry.objects.get(notion_page_id="p1").revenue == Decimal("300.00")
    assert NotionConnection.objects.get(user=user).last_sync_at is not None
    client.fetch_time_entries.assert_called_with("db-1")


def test_sync_keeps_push_state(user):
    NotionConnection.objects.create(user=user, database_id="db-1")
    entry = make_entry(user, "p1", simplicate_id="hours:1", simplicate_status="synced")
    client = MagicMock()
    client.fetch_time_entries.return_value = [revenue_row("p1", description="Edited")]

    services.sync_revenue(user, client=client)

    entry.refresh_from_db()
    assert entry.description == "Edited"
    assert entry.simplicate_id == "hours:1"


def test_two_users_can_sync_the_same_page(user, other_user):
    for owner in (user, other_user):
        NotionConnection.objects.create(user=owner, database_id="shared-db")
    client = MagicMock()
    client.fetch_time_entries.return_value = [revenue_row("shared-page")]

    services.sync_revenue(user, client=client)
    services.sync_revenue(other_user, client=client)

    assert RevenueEntry.objects.filter(notion_page_id="shared-page").count() == 2
    assert RevenueEntry.objects.get(user=other_user, notion_page_id="shared-page").revenue == Decimal("200.00")


def test_sync_costs(user):
    NotionConnection.objects.create(user=user, costs_database_id="costs-1")
    client = MagicMock()
    client.fetch_cost_entries.return_value = [
        {"notion_page_id": "c1", "name": "Laptop", "amount_excl_vat": Decimal("1000.00"),
         "vat": Decimal("210.00"), "invoice_date": datetime(2024, 1, 2).date()},
    ]
    assert services.sync_costs(user, client=client) == {"synced": 1}
    assert CostEntry.objects.get(notion_page_id="c1").name == "Laptop"
    assert NotionConnection.objects.get(user=user).costs_last_sync_at is not None


# ───────────── Simplicate push ─────────────

def test_push_requires_connection(user):
    make_entry(user, "p1")
    with pytest.raises(PreconditionFailed):
        services.push_entries(user, [1], client=MagicMock())


def test_push_requires_employee_id(user):
    SimplicateConnection.objects.create(user=user, subdomain="acme", api_key="k", api_secret="s")
    with pytest.raises(PreconditionFailed, match="Employee"):
        services.push_entries(user, [1], client=MagicMock())


def test_push_with_no_owned_entries_is_not_found(user, other_user, simplicate):
    theirs = make_entry(other_user, "p-other")
    with pytest.raises(NotFound):
        services.push_entries(user, [theirs.pk], client=MagicMock())


def test_push_reports_each_outcome(user, simplicate):
    ok = make_entry(user, "p1", start_time=datetime(2024, 3, 1, 9, tzinfo=dt_timezone.utc))
    done = make_entry(user, "p2", simplicate_id="hours:old", simplicate_status="synced")
    unmapped = make_entry(user, "p3", client="Unknown")
    incomplete = make_entry(user, "p4", hours=None)
    broken = make_entry(user, "p5", start_time=datetime(2024, 3, 9, 9, tzinfo=dt_timezone.utc))

    client = MagicMock()
    client.post_hours.side_effect = ["hours:new", SimplicateError("Project closed")]
    sleep = MagicMock()

    result = services.push_entries(
        user, [ok.pk, done.pk, unmapped.pk, incomplete.pk, broken.pk], client=client, sleep=sleep, delay=1
    )

    outcomes = {r["entry_id"]: r for r in result["results"]}
    assert outcomes[ok.pk]["success"] is True
    assert outcomes[ok.pk]["simplicate_id"] == "hours:new"
    assert outcomes[done.pk] == {"entry_id": done.pk, "success": True,
                                 "simplicate_id": "hours:old", "error": "Already synced"}
    assert "No project mapping" in outcomes[unmapped.pk]["error"]
    assert outcomes[incomplete.pk]["error"] == "Entry missing hours or start time"
    assert outcomes[broken.pk] == {"entry_id": broken.pk, "success": False, "error": "Project closed"}
    assert result["summary"] == {"total": 5, "success": 2, "failed": 3}

    # only real requests are rate limited
    assert client.post_hours.call_count == 2
    sleep.assert_called_once_with(1)

    ok.refresh_from_db()
    broken.refresh_from_db()
    assert ok.simplicate_status == "synced"
    assert ok.simplicate_synced_at is not None
    assert broken.simplicate_status == "failed"
    assert broken.simplicate_id is None


def test_push_hours_payload(user, simplicate):
    entry = make_entry(user, "p1")
    client = MagicMock()
    client.post_hours.return_value = "hours:1"

    services.push_entries(user, [entry.pk], client=client, sleep=MagicMock())

    payload = client.post_hours.call_args.args[0]
    assert payload["employee_id"] == "employee:1"
    assert payload["project_id"] == "project:1"
    assert payload["type_id"] == "hourtype:1"
    assert payload["hours"] == 2.0
    assert payload["start_date"] == "2024-03-05"
    assert payload["note"] == "Work"


def test_push_kilometers_goes_to_mileage(user, simplicate):
    trip = make_entry(user, "p1", type="Kilometers", hours=None, kilometers=Decimal("42.00"))
    client = MagicMock()
    client.post_mileage.return_value = "mileage:1"

    result = services.push_entries(user, [trip.pk], client=client, sleep=MagicMock())

    assert result["summary"]["success"] == 1
    client.post_hours.assert_not_called()
    assert client.post_mileage.call_args.args[0]["mileage"] == 42.0


def ok_reply(body=None, json_error=False):
    resp = MagicMock()
    resp.ok = True
    resp.status_code = 200
    if json_error:
        resp.json.side_effect = ValueError("Expecting value")
    else:
        resp.json.return_value = body
    return resp


@patch("integrations.simplicate.requests.request")
def test_push_survives_malformed_replies(mock_request, user, simplicate):
    no_id = make_entry(user, "p1", start_time=datetime(2024, 3, 1, 9, tzinfo=dt_timezone.utc))
    not_json = make_entry(user, "p2", start_time=datetime(2024, 3, 2, 9, tzinfo=dt_timezone.utc))
    good = make_entry(user, "p3", start_time=datetime(2024, 3, 3, 9, tzinfo=dt_timezone.utc))
    mock_request.side_effect = [
        ok_reply({"errors": None}),
        ok_reply(json_error=True),
        ok_reply({"data": {"id": "hours:7"}}),
    ]
    client = SimplicateClient("acme", "k", "s")

    result = services.push_entries(user, [no_id.pk, not_json.pk, good.pk], client=client, sleep=MagicMock())

    outcomes = {r["entry_id"]: r for r in result["results"]}
    assert outcomes[no_id.pk] == {"entry_id": no_id.pk, "success": False,
                                  "error": "Simplicate response has no id"}
    assert outcomes[not_json.pk]["success"] is False
    assert outcomes[good.pk]["simplicate_id"] == "hours:7"
    assert result["summary"] == {"total": 3, "success": 1, "failed": 2}

    no_id.refresh_from_db()
    not_json.refresh_from_db()
    assert no_id.simplicate_status == "failed"
    assert not_json.simplicate_status == "failed"


def test_sync_status_only_reports_own_entries(user, other_user):
    mine = make_entry(user, "p1", simplicate_status="failed")
    theirs = make_entry(other_user, "p2")
    status = services.sync_status(user, [mine.pk, theirs.pk])
    assert status == [{"entry_id": mine.pk, "simplicate_id": None,
                       "simplicate_status": "failed", "simplicate_synced_at": None}]


# ───────────── mappings + views ─────────────

def test_mapping_upsert_and_delete(user):
    services.upsert_mapping(user, "Acme", "project:1", "project")
    services.upsert_mapping(user, "Acme", "project:2", "project")
    assert [m.simplicate_id for m in services.list_mappings(user)] == ["project:2"]

    services.delete_mapping(user, "Acme", "project")
    with pytest.raises(NotFound):
        services.delete_mapping(user, "Acme", "project")


def test_sync_view_without_connection_returns_412(api):
    response = api.post(reverse("integrations:notion_sync_revenue"))
    assert response.status_code == 412
    assert response.json()["code"] == "PreconditionFailed"


def test_simplicate_settings_view_hides_secrets(api):
    response = api.post(
        reverse("integrations:simplicate_settings"),
        data=json.dumps({"subdomain": "Acme", "api_key": "k", "api_secret": "s"}),
        content_type="application/json",
    )
    data = response.json()["connection"]
    assert data == {"subdomain": "acme", "employee_id": "", "has_api_key": True, "has_api_secret": True}


def test_push_view_validates_entry_ids(api):
    response = api.post(
        reverse("integrations:push"), data=json.dumps({"entry_ids": []}), content_type="application/json"
    )
    assert response.status_code == 400
