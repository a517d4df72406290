from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
import requests
from django.test import override_settings

from integrations.notion import (
    REVENUE_PROPERTY_MAP, NotionClient, NotionError, parse_cost_entry, parse_time_entry,
)
from integrations.simplicate import SimplicateClient, SimplicateError


def fake_response(status=200, body=None):
    resp = MagicMock()
    resp.ok = 200 <= status < 300
    resp.status_code = status
    resp.reason = "Error" if not resp.ok else "OK"
    resp.json.return_value = body if body is not None else {}
    return resp


def time_page(page_id="page-1"):
    return {
        "object": "page",
        "id": page_id,
        "properties": {
            "Omschrijving": {"type": "title", "title": [{"plain_text": "Build "}, {"plain_text": "API"}]},
            "# uren": {"type": "number", "number": 2.5},
            "Declarabel?": {"type": "checkbox", "checkbox": False},
            "Starttijd": {"type": "date", "date": {"start": "2024-03-05T09:00:00.000+01:00"}},
            "Klant": {"type": "select", "select": {"name": "Acme"}},
            "Soort": {"type": "select", "select": {"name": "Development"}},
            "Omzet": {"type": "formula", "formula": {"type": "number", "number": 237.5}},
            "Maand": {"type": "formula", "formula": {"type": "string", "string": "Maart"}},
            "Jaar": {"type": "number", "number": 2024},
        },
    }


# ───────────── Notion parsing ─────────────

def test_parse_time_entry_maps_dutch_properties():
    row = parse_time_entry(time_page())
    assert row["notion_page_id"] == "page-1"
    assert row["description"] == "Build API"
    assert row["hours"] == Decimal("2.50")
    assert row["billable"] is False
    assert row["client"] == "Acme"
    assert row["revenue"] == Decimal("237.50")
    assert row["month_number"] == 3
    assert row["year"] == 2024
    assert row["start_time"].isoformat() == "2024-03-05T09:00:00+01:00"
    assert row["kilometers"] is None


def test_parse_time_entry_defaults_billable_to_true():
    page = {"object": "page", "id": "p", "properties": {}}
    assert parse_time_entry(page)["billable"] is True


def test_parse_cost_entry_numeric_quarter_and_unnamed():
    page = {
        "object": "page",
        "id": "c1",
        "properties": {
            "Kwartaal": {"type": "number", "number": 2},
            "Datum factuur": {"type": "date", "date": {"start": "2024-05-10"}},
            "Bedrag excl. BTW": {"type": "number", "number": 100},
        },
    }
    row = parse_cost_entry(page)
    assert row["quarter"] == "Q2"
    assert row["name"] == "Unnamed"
    assert row["invoice_date"].isoformat() == "2024-05-10"
    assert row["amount_excl_vat"] == Decimal("100.00")


# ───────────── Notion client ─────────────

@override_settings(NOTION_API_KEY="")
def test_notion_client_requires_api_key():
    with pytest.raises(NotionError):
        NotionClient()


@patch("integrations.notion.requests.request")
def test_notion_query_follows_cursor(mock_request):
    mock_request.side_effect = [
        fake_response(body={"results": [time_page("a")], "has_more": True, "next_cursor": "cur-1"}),
        fake_response(body={"results": [time_page("b"), {"object": "page", "id": "partial"}],
                            "has_more": False, "next_cursor": None}),
    ]
    client = NotionClient(api_key="secret", timeout=5)

    rows = client.fetch_time_entries("db-1")

    assert [r["notion_page_id"] for r in rows] == ["a", "b"]
    second_body = mock_request.call_args_list[1].kwargs["json"]
    assert second_body["start_cursor"] == "cur-1"
    assert second_body["page_size"] == 100
    headers = mock_request.call_args_list[0].kwargs["headers"]
    assert headers["Authorization"] == "Bearer secret"


@patch("integrations.notion.requests.request")
def test_notion_validate_reports_found_properties(mock_request):
    mock_request.return_value = fake_response(body={"properties": {"Klant": {}, "Omzet": {}, "Other": {}}})
    result = NotionClient(api_key="secret").validate("db-1", REVENUE_PROPERTY_MAP)
    assert result == {"valid": True, "properties": ["Klant", "Omzet"]}


@patch("integrations.notion.requests.request")
def test_notion_validate_database_not_found(mock_request):
    mock_request.return_value = fake_response(404, {"message": "Could not find database with ID: db-1"})
    result = NotionClient(api_key="secret").validate("db-1", REVENUE_PROPERTY_MAP)
    assert result["valid"] is False
    assert "shared the database" in result["error"]


# ───────────── Simplicate client ─────────────

def test_simplicate_client_requires_credentials():
    with pytest.raises(SimplicateError):
        SimplicateClient("acme", "", "")


@patch("integrations.simplicate.requests.request")
def test_simplicate_post_hours_returns_id(mock_request):
    mock_request.return_value = fake_response(body={"data": {"id": "hours:123"}})
    client = SimplicateClient("acme", "key", "secret", timeout=5)

    assert client.post_hours({"hours": 1}) == "hours:123"

    method, url = mock_request.call_args.args
    assert method == "POST"
    assert url == "https://acme.simplicate.nl/api/v2/hours/hours"
    headers = mock_request.call_args.kwargs["headers"]
    assert headers["Authentication-Key"] == "key"
    assert headers["Authentication-Secret"] == "secret"


@patch("integrations.simplicate.requests.request")
def test_simplicate_post_mileage_endpoint(mock_request):
    mock_request.return_value = fake_response(body={"data": {"id": "mileage:9"}})
    assert SimplicateClient("acme", "k", "s").post_mileage({"mileage": 12}) == "mileage:9"
    assert mock_request.call_args.args[1].endswith("/mileage/mileage")


@patch("integrations.simplicate.requests.request")
def test_simplicate_error_body_becomes_message(mock_request):
    mock_request.return_value = fake_response(422, {"errors": [{"message": "Project closed"}]})
    with pytest.raises(SimplicateError, match="Project closed"):
        SimplicateClient("acme", "k", "s").post_hours({})


@patch("integrations.simplicate.requests.request")
def test_simplicate_network_error_is_wrapped(mock_request):
    mock_request.side_effect = requests.ConnectionError("boom")
    with pytest.raises(SimplicateError):
        SimplicateClient("acme", "k", "s").get_projects()


@patch("integrations.simplicate.requests.request")
def test_simplicate_test_connection_never_raises(mock_request):
    mock_request.return_value = fake_response(401, {"message": "Invalid key"})
    assert SimplicateClient("acme", "k", "s").test_connection() == {"success": False, "error": "Invalid key"}


@patch("integrations.simplicate.requests.request")
def test_simplicate_created_reply_without_id_is_an_error(mock_request):
    mock_request.return_value = fake_response(body={"errors": None})
    with pytest.raises(SimplicateError, match="no id"):
        SimplicateClient("acme", "k", "s").post_mileage({"mileage": 12})


@patch("integrations.simplicate.requests.request")
def test_simplicate_non_json_success_is_an_error(mock_request):
    resp = fake_response()
    resp.json.side_effect = ValueError("Expecting value")
    mock_request.return_value = resp
    with pytest.raises(SimplicateError, match="non-JSON"):
        SimplicateClient("acme", "k", "s").get_projects()


@patch("integrations.notion.requests.request")
def test_notion_non_json_success_is_an_error(mock_request):
    resp = fake_response()
    resp.json.side_effect = ValueError("Expecting value")
    mock_request.return_value = resp
    with pytest.raises(NotionError, match="non-JSON"):
        NotionClient(api_key="secret").retrieve_database("db-1")
