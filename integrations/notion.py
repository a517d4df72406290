# integrations/notion.py
# ─────────────────────────────────────────────────────────────────────────────
# ✅ Thin Notion REST client for the two source databases:
#      • hours database  → RevenueEntry field dicts
#      • costs database  → CostEntry field dicts
#    Property names in the databases are Dutch; the maps below translate them.
# ─────────────────────────────────────────────────────────────────────────────

import logging
from datetime import datetime, time
from decimal import Decimal, InvalidOperation as DecimalError

import requests
from django.conf import settings
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from hub.exceptions import HubError

logger = logging.getLogger(__name__)

NOTION_BASE = "https://api.notion.com/v1"
PAGE_SIZE = 100

# Dutch property name → RevenueEntry field
REVENUE_PROPERTY_MAP = {
    "Omschrijving": "description",
    "# km": "kilometers",
    "# minuten": "minutes",
    "# uren": "hours",
    "Declarabel?": "billable",
    "Starttijd": "start_time",
    "Eindtijd": "end_time",
    "Pauze (min)": "break_minutes",
    "Klant": "client",
    "Soort": "type",
    "Tarief": "rate",
    "Omzet": "revenue",
    "IB reservering": "tax_reservation",
    "Netto inkomen": "net_income",
    "Jaar": "year",
    "Kwartaal": "quarter",
    "Maand": "month",
    "Week": "week",
}

# Dutch property name → CostEntry field
COSTS_PROPERTY_MAP = {
    "Naam": "name",
    "BTW": "vat",
    "Bedrag excl. BTW": "amount_excl_vat",
    "Datum factuur": "invoice_date",
    "Jaar": "year",
    "Kwartaal": "quarter",
    "Omschrijving": "description",
    "Opmerkingen BTW aangifte": "vat_remarks",
    "Sectie BTW aangifte": "vat_section",
}

DUTCH_MONTHS = {
    "januari": 1, "februari": 2, "maart": 3, "april": 4, "mei": 5, "juni": 6,
    "juli": 7, "augustus": 8, "september": 9, "oktober": 10, "november": 11, "december": 12,
}

_DECIMAL_FIELDS = {
    "kilometers", "minutes", "hours", "break_minutes", "rate", "revenue",
    "tax_reservation", "net_income", "vat", "amount_excl_vat",
}
_INT_FIELDS = {"year", "week"}
_CENT = Decimal("0.01")


class NotionError(HubError):
    """Notion could not be reached or answered with an error."""

    status_code = 502


# ─────────────────────────────────────────────────────────────────────────────
# 🔧 Property parsing
# ─────────────────────────────────────────────────────────────────────────────
def _plain_text(parts):
    return "".join(p.get("plain_text", "") for p in parts or []) or None


def extract_property_value(prop):
    """One Notion property object → str / number / bool / date string / None."""
    kind = prop.get("type")
    if kind == "title":
        return _plain_text(prop.get("title"))
    if kind == "rich_text":
        return _plain_text(prop.get("rich_text"))
    if kind in ("number", "checkbox"):
        return prop.get(kind)
    if kind == "date":
        return (prop.get("date") or {}).get("start")
    if kind == "select":
        return (prop.get("select") or {}).get("name")
    if kind == "formula":
        formula = prop.get("formula") or {}
        value = formula.get(formula.get("type"))
        if formula.get("type") == "date":
            return (value or {}).get("start")
        return value
    return None


def _to_decimal(value):
    if value is None or isinstance(value, bool):
        return None
    try:
        return Decimal(str(value)).quantize(_CENT)
    except (DecimalError, ValueError):
        return None


def _to_int(value):
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _to_datetime(value):
    """'2024-03-05T09:00:00.000+01:00' or '2024-03-05' → aware datetime."""
    if not value:
        return None
    dt = parse_datetime(value)
    if dt is None:
        d = parse_date(value)
        if d is None:
            return None
        dt = datetime.combine(d, time.min)
    if timezone.is_naive(dt):
        dt = timezone.make_aware(dt)
    return dt


def _to_date(value):
    dt = _to_datetime(value)
    return timezone.localtime(dt).date() if dt else None


def month_number(month):
    """Dutch month name → 1..12 (None when unknown)."""
    if not month:
        return None
    return DUTCH_MONTHS.get(str(month).strip().lower())


def _read(page, property_map):
    props = page.get("properties") or {}
    values = {}
    for notion_name, field in property_map.items():
        if notion_name in props:
            values[field] = extract_property_value(props[notion_name])
    return values


def _convert(values):
    for field in list(values):
        if field in _DECIMAL_FIELDS:
            values[field] = _to_decimal(values[field])
        elif field in _INT_FIELDS:
            values[field] = _to_int(values[field])
    return values


def parse_time_entry(page):
    """Notion page → dict of RevenueEntry fields (plus `notion_page_id`)."""
    values = _convert(_read(page, REVENUE_PROPERTY_MAP))
    month = values.get("month")
    quarter = values.get("quarter")
    billable = values.get("billable")
    return {
        "notion_page_id": page["id"],
        "description": values.get("description") or None,
        "kilometers": values.get("kilometers"),
        "minutes": values.get("minutes"),
        "hours": values.get("hours"),
        "billable": True if billable is None else bool(billable),
        "start_time": _to_datetime(values.get("start_time")),
        "end_time": _to_datetime(values.get("end_time")),
        "break_minutes": values.get("break_minutes"),
        "client": values.get("client") or None,
        "type": values.get("type") or None,
        "rate": values.get("rate"),
        "revenue": values.get("revenue"),
        "tax_reservation": values.get("tax_reservation"),
        "net_income": values.get("net_income"),
        "year": values.get("year"),
        "quarter": str(quarter) if quarter not in (None, "") else None,
        "month": month or None,
        "month_number": month_number(month),
        "week": values.get("week"),
    }


def parse_cost_entry(page):
    """Notion page → dict of CostEntry fields (plus `notion_page_id`)."""
    values = _convert(_read(page, COSTS_PROPERTY_MAP))
    quarter = values.get("quarter")
    if isinstance(quarter, (int, float)) and not isinstance(quarter, bool):
        quarter = f"Q{int(quarter)}"                     # numeric quarter column → "Q1"
    return {
        "notion_page_id": page["id"],
        "name": values.get("name") or "Unnamed",
        "vat": values.get("vat"),
        "amount_excl_vat": values.get("amount_excl_vat"),
        "invoice_date": _to_date(values.get("invoice_date")),
        "year": values.get("year"),
        "quarter": str(quarter) if quarter not in (None, "") else None,
        "description": values.get("description") or None,
        "vat_remarks": values.get("vat_remarks") or None,
        "vat_section": values.get("vat_section") or None,
    }


# ─────────────────────────────────────────────────────────────────────────────
# 🌐 HTTP client
# ─────────────────────────────────────────────────────────────────────────────
class NotionClient:
    """Read-only access to Notion databases through the REST API."""

    def __init__(self, api_key=None, timeout=None):
        self.api_key = api_key if api_key is not None else settings.NOTION_API_KEY
        self.timeout = timeout or settings.HTTP_TIMEOUT
        if not self.api_key:
            raise NotionError("NOTION_API_KEY is not configured")

    @property
    def headers(self):
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Notion-Version": settings.NOTION_API_VERSION,
            "Content-Type": "application/json",
        }

    def _request(self, method, path, **kwargs):
        url = f"{NOTION_BASE}{path}"
        try:
            resp = requests.request(method, url, headers=self.headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise NotionError(f"Notion request failed: {exc}", path=path) from exc
        if not resp.ok:
            try:
                message = resp.json().get("message")
            except ValueError:
                message = None
            raise NotionError(
                message or f"Notion API error: {resp.status_code}",
                path=path,
                status=resp.status_code,
            )
        try:
            return resp.json()
        except ValueError as exc:
            raise NotionError("Notion returned a non-JSON response", path=path) from exc

    def retrieve_database(self, database_id):
        return self._request("GET", f"/databases/{database_id}")

    def query_database(self, database_id, sort_property=None):
        """Yield every page of a database, following the pagination cursor."""
        cursor = None
        while True:
            body = {"page_size": PAGE_SIZE}
            if cursor:
                body["start_cursor"] = cursor
            if sort_property:
                body["sorts"] = [{"property": sort_property, "direction": "descending"}]
            data = self._request("POST", f"/databases/{database_id}/query", json=body)

            for page in data.get("results", []):
                if page.get("object") == "page" and "properties" in page:   # skip partial pages
                    yield page

            cursor = data.get("next_cursor")
            if not data.get("has_more") or not cursor:
                break

    # ───────────── High-level helpers ─────────────
    def fetch_time_entries(self, database_id):
        return [parse_time_entry(p) for p in self.query_database(database_id, "Starttijd")]

    def fetch_cost_entries(self, database_id):
        return [parse_cost_entry(p) for p in self.query_database(database_id, "Datum factuur")]

    def validate(self, database_id, property_map):
        """
        Check the database is reachable and report which expected properties it has.
        Returns {"valid": bool, "properties": [...]} or {"valid": False, "error": "..."}.
        """
        try:
            database = self.retrieve_database(database_id)
        except NotionError as exc:
            logger.warning(
                "Notion database validation failed",
                extra={"database_id": database_id, "detail": exc.message, "action": "notion_validate"},
            )
            if "Could not find database" in exc.message:
                return {
                    "valid": False,
                    "error": "Database not found. Make sure you shared the database with your integration.",
                }
            return {"valid": False, "error": exc.message}

        existing = database.get("properties")
        if existing is None:
            return {
                "valid": False,
                "error": "Unable to access database properties. Make sure you have the correct permissions.",
            }
        return {"valid": True, "properties": [name for name in property_map if name in existing]}
