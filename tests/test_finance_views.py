import json
from datetime import date, datetime, timezone as dt_timezone
from decimal import Decimal

import pytest
from django.urls import reverse

from finance.forms import TargetForm
from finance.models import CostEntry, RevenueEntry, RevenueTarget

pytestmark = pytest.mark.django_db


def make_revenue(user, page_id, day, revenue, client="Acme", type="Dev", hours="1"):
    return RevenueEntry.objects.create(
        user=user,
        notion_page_id=page_id,
        start_time=datetime(day.year, day.month, day.day, 10, tzinfo=dt_timezone.utc),
        revenue=Decimal(revenue),
        net_income=Decimal(revenue),
        hours=Decimal(hours),
        client=client,
        type=type,
    )


@pytest.fixture
def revenue(user, other_user):
    make_revenue(user, "p1", date(2024, 1, 10), "1000")
    make_revenue(user, "p2", date(2024, 2, 10), "500", client="Beta")
    make_revenue(user, "p3", date(2024, 2, 20), "250", type="Design")
    make_revenue(other_user, "x1", date(2024, 1, 10), "9999")


def test_target_form_upserts_per_year(user):
    form = TargetForm({"year": 2024, "target_value": "100000"}, user=user)
    assert form.is_valid(), form.errors
    form.save()

    form = TargetForm({"year": 2024, "target_value": "120000", "notes": "stretch"}, user=user)
    assert form.is_valid(), form.errors
    target = form.save()

    assert RevenueTarget.objects.filter(user=user).count() == 1
    assert target.target_value == Decimal("120000")
    assert target.notes == "stretch"


def test_target_form_rejects_negative_and_odd_years(user):
    assert not TargetForm({"year": 2024, "target_value": "-1"}, user=user).is_valid()
    assert not TargetForm({"year": 1890, "target_value": "1"}, user=user).is_valid()


def test_revenue_kpis_are_user_scoped(api, revenue):
    data = api.get(reverse("finance:revenue_kpis")).json()
    assert data["total_revenue"] == 1750.0
    assert data["entry_count"] == 3


def test_revenue_kpis_filter_by_client_and_dates(api, revenue):
    data = api.get(
        reverse("finance:revenue_kpis"),
        {"client": "Acme", "date_from": "2024-02-01", "date_to": "2024-02-29"},
    ).json()
    assert data["total_revenue"] == 250.0


def test_revenue_by_period_densified(api, revenue):
    data = api.get(
        reverse("finance:revenue_by_period"),
        {"group_by": "month", "date_from": "2024-01-01", "date_to": "2024-03-31"},
    ).json()
    assert [p["period"] for p in data["periods"]] == ["2024-01", "2024-02", "2024-03"]
    assert [p["revenue"] for p in data["periods"]] == [1000.0, 750.0, 0.0]


def test_revenue_by_period_rejects_unknown_grouping(api, revenue):
    response = api.get(reverse("finance:revenue_by_period"), {"group_by": "decade"})
    assert response.status_code == 400


def test_revenue_by_client(api, revenue):
    clients = api.get(reverse("finance:revenue_by_client")).json()["clients"]
    assert clients[0] == {"client": "Acme", "revenue": 1250.0, "hours": 2.0}


def test_filter_options(api, revenue):
    assert api.get(reverse("finance:revenue_filter_options")).json() == {
        "clients": ["Acme", "Beta"],
        "types": ["Design", "Dev"],
    }


def test_revenue_csv_export(api, revenue):
    response = api.get(reverse("finance:revenue_export_csv"))
    assert response["Content-Type"] == "text/csv"
    lines = response.content.decode().strip().splitlines()
    assert lines[0].startswith("Date,Client,Type")
    assert lines[1].startswith("2024-01-10,Acme,Dev")
    assert len(lines) == 4


def test_cost_kpis_and_sections(api, user):
    CostEntry.objects.create(user=user, notion_page_id="c1", name="Laptop", amount_excl_vat=Decimal("1000"),
                             vat=Decimal("210"), invoice_date=date(2024, 1, 5), vat_section="1a", year=2024)
    CostEntry.objects.create(user=user, notion_page_id="c2", name="Train", amount_excl_vat=Decimal("50"),
                             vat=Decimal("4.50"), invoice_date=date(2024, 2, 5), vat_section="1b", year=2024)

    kpis = api.get(reverse("finance:cost_kpis")).json()
    assert kpis["total_incl_vat"] == 1264.5
    assert kpis["entry_count"] == 2

    sections = api.get(reverse("finance:cost_by_section"), {"year": "2024"}).json()["sections"]
    assert [s["vat_section"] for s in sections] == ["1a", "1b"]


def test_cost_year_filter_must_be_numeric(api):
    response = api.get(reverse("finance:cost_kpis"), {"year": "last"})
    assert response.status_code == 400


def test_target_crud_views(api):
    response = api.post(
        reverse("finance:target_list"),
        data=json.dumps({"year": 2024, "target_value": 120000}),
        content_type="application/json",
    )
    assert response.json() == {"year": 2024, "target_value": 120000.0, "notes": ""}

    assert api.get(reverse("finance:target_detail", args=[2024])).status_code == 200
    assert api.post(reverse("finance:target_delete", args=[2024])).json() == {"success": True}
    assert api.get(reverse("finance:target_detail", args=[2024])).status_code == 404


def test_target_analytics_without_target_is_null(api):
    assert api.get(reverse("finance:target_analytics", args=[2024])).json() == {"analytics": None}


def test_target_analytics_view(api, user, revenue):
    RevenueTarget.objects.create(user=user, year=2024, target_value=Decimal("12000"))
    data = api.get(reverse("finance:target_analytics", args=[2024])).json()["analytics"]
    assert len(data["monthly_breakdown"]) == 12
    assert data["monthly_breakdown"][0]["actual"] == 1000.0


def test_pacing_view_past_year(api, revenue):
    data = api.get(reverse("finance:pacing"), {"period": "year", "date": "2024-06-01", "target": "3500"}).json()
    assert data["period_start"] == "2024-01-01"
    assert data["current_value"] == 1750.0
    assert data["percentage"] == pytest.approx(50.0)


def test_pacing_view_rejects_unknown_period(api):
    assert api.get(reverse("finance:pacing"), {"period": "decade"}).status_code == 400


@pytest.mark.parametrize("params", [
    {"period": "year"},
    {"period": "year", "target": "lots"},
    {"period": "year", "target": "-5"},
    {"period": "year", "target": "1000", "date": "yesterday"},
])
def test_pacing_view_rejects_missing_or_bad_input(api, params):
    response = api.get(reverse("finance:pacing"), params)
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid input."


def test_pacing_view_period_defaults_to_year(api, revenue):
    data = api.get(reverse("finance:pacing"), {"date": "2024-03-15", "target": "3500"}).json()
    assert data["period_start"] == "2024-01-01"
    assert data["period_end"] == "2024-12-31"
