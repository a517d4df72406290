# integrations/services.py
# ─────────────────────────────────────────────────────────────────────────────
# ✅ Sync (Notion → local entries) and push (local entries → Simplicate).
#    This file includes:
#      • Connection settings: get / save / validate / test
#      • sync_revenue / sync_costs – upsert keyed by notion_page_id
#      • Mapping CRUD (Notion client/type → Simplicate project/hour type)
#      • push_entries – sequential, rate-limited, per-entry outcomes
#      • sync_status – push state of a set of entries
# ─────────────────────────────────────────────────────────────────────────────

import logging
import time

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from finance.models import CostEntry, RevenueEntry
from hub.exceptions import NotFound, PreconditionFailed

from .models import NotionConnection, SimplicateConnection, SimplicateMapping
from .notion import COSTS_PROPERTY_MAP, REVENUE_PROPERTY_MAP, NotionClient
from .simplicate import SimplicateClient, SimplicateError, hours_payload, mileage_payload

logger = logging.getLogger(__name__)

MILEAGE_TYPE = "Kilometers"                     # entries of this type are pushed as mileage


# ─────────────────────────────────────────────────────────────────────────────
# 🔌 Notion connection
# ─────────────────────────────────────────────────────────────────────────────
def get_notion_connection(user):
    return NotionConnection.objects.filter(user=user).first()


def save_notion_connection(user, **fields):
    """Upsert the user's Notion settings; only the given fields change."""
    connection, _ = NotionConnection.objects.update_or_create(user=user, defaults=fields)
    return connection


def validate_notion(user, database_id, kind="revenue", client=None):
    client = client or NotionClient()
    property_map = COSTS_PROPERTY_MAP if kind == "costs" else REVENUE_PROPERTY_MAP
    return client.validate(database_id, property_map)


def _require_notion(user, field):
    connection = get_notion_connection(user)
    if connection is None or not getattr(connection, field):
        raise PreconditionFailed("Notion connection not configured")
    return connection


# ─────────────────────────────────────────────────────────────────────────────
# 🔄 Sync (Notion → local)
# ─────────────────────────────────────────────────────────────────────────────
def _upsert(model, user, rows):
    with transaction.atomic():
        for row in rows:
            fields = dict(row)
            page_id = fields.pop("notion_page_id")
            model.objects.update_or_create(user=user, notion_page_id=page_id, defaults=fields)
    return len(rows)


def sync_revenue(user, client=None):
    """Pull every page of the hours database into RevenueEntry rows."""
    connection = _require_notion(user, "database_id")
    client = client or NotionClient()

    rows = client.fetch_time_entries(connection.database_id)
    synced = _upsert(RevenueEntry, user, rows)

    connection.last_sync_at = timezone.now()
    connection.save(update_fields=["last_sync_at"])
    logger.info(
        "Revenue entries synced from Notion",
        extra={"user_id": user.pk, "synced": synced, "action": "notion_sync_revenue"},
    )
    return {"synced": synced}


def sync_costs(user, client=None):
    """Pull every page of the costs database into CostEntry rows."""
    connection = _require_notion(user, "costs_database_id")
    client = client or NotionClient()

    rows = client.fetch_cost_entries(connection.costs_database_id)
    synced = _upsert(CostEntry, user, rows)

    connection.costs_last_sync_at = timezone.now()
    connection.save(update_fields=["costs_last_sync_at"])
    logger.info(
        "Cost entries synced from Notion",
        extra={"user_id": user.pk, "synced": synced, "action": "notion_sync_costs"},
    )
    return {"synced": synced}


# ─────────────────────────────────────────────────────────────────────────────
# 🔌 Simplicate connection
# ─────────────────────────────────────────────────────────────────────────────
def get_simplicate_connection(user):
    return SimplicateConnection.objects.filter(user=user).first()


def save_simplicate_connection(user, subdomain, api_key=None, api_secret=None, employee_id=None):
    """Upsert the settings. Omitted credentials keep their stored value."""
    fields = {"subdomain": subdomain}
    for name, value in (("api_key", api_key), ("api_secret", api_secret), ("employee_id", employee_id)):
        if value is not None:
            fields[name] = value
    connection, _ = SimplicateConnection.objects.update_or_create(user=user, defaults=fields)
    return connection


def _require_simplicate(user):
    connection = get_simplicate_connection(user)
    if connection is None or not connection.has_credentials:
        raise PreconditionFailed("Simplicate connection not configured")
    return connection


def simplicate_client(user):
    return SimplicateClient.from_connection(_require_simplicate(user))


def check_simplicate(user):
    connection = get_simplicate_connection(user)
    if connection is None or not connection.has_credentials:
        return {"success": False, "error": "API credentials not configured"}
    return SimplicateClient.from_connection(connection).test_connection()


def list_projects(user, client=None):
    client = client or simplicate_client(user)
    return [
        {
            "id": p.get("id"),
            "name": p.get("name"),
            "project_number": p.get("project_number"),
            "organization": (p.get("organization") or {}).get("name"),
            "status": (p.get("project_status") or {}).get("label"),
        }
        for p in client.get_projects()
    ]


def list_hour_types(user, client=None):
    """Active (not blocked) hour types only."""
    client = client or simplicate_client(user)
    return [
        {"id": h.get("id"), "label": h.get("label"), "tariff": h.get("tariff")}
        for h in client.get_hour_types()
        if not h.get("blocked")
    ]


def list_employees(user, client=None):
    client = client or simplicate_client(user)
    return [
        {"id": e.get("id"), "name": e.get("name"), "function": e.get("function")}
        for e in client.get_employees()
    ]


# ─────────────────────────────────────────────────────────────────────────────
# 🔗 Mappings
# ─────────────────────────────────────────────────────────────────────────────
def list_mappings(user, mapping_type=None):
    qs = SimplicateMapping.objects.filter(user=user)
    if mapping_type:
        qs = qs.filter(mapping_type=mapping_type)
    return list(qs.order_by("notion_value"))


def upsert_mapping(user, notion_value, simplicate_id, mapping_type):
    mapping, _ = SimplicateMapping.objects.update_or_create(
        user=user,
        notion_value=notion_value,
        mapping_type=mapping_type,
        defaults={"simplicate_id": simplicate_id},
    )
    return mapping


def delete_mapping(user, notion_value, mapping_type):
    deleted, _ = SimplicateMapping.objects.filter(
        user=user, notion_value=notion_value, mapping_type=mapping_type
    ).delete()
    if not deleted:
        raise NotFound("Mapping not found", notion_value=notion_value, mapping_type=mapping_type)


def _mapping_tables(user):
    projects, hour_types = {}, {}
    for m in SimplicateMapping.objects.filter(user=user):
        table = projects if m.mapping_type == SimplicateMapping.PROJECT else hour_types
        table[m.notion_value] = m.simplicate_id
    return projects, hour_types


# ─────────────────────────────────────────────────────────────────────────────
# 🚀 Push (local → Simplicate)
# ─────────────────────────────────────────────────────────────────────────────
def _prepare(entry, employee_id, projects, hour_types):
    """
    Decide what to send for one entry.
    Returns (kind, payload) or (None, error message) when it can't be pushed.
    """
    project_id = projects.get(entry.client) if entry.client else None

    if entry.type == MILEAGE_TYPE:
        if not entry.kilometers or not entry.start_time:
            return None, "Entry missing kilometers or start time"
        if not project_id:
            return None, f"No project mapping found for client: {entry.client or 'unknown'}"
        return "mileage", mileage_payload(entry, employee_id, project_id)

    if not entry.hours or not entry.start_time:
        return None, "Entry missing hours or start time"
    if not project_id:
        return None, f"No project mapping found for client: {entry.client or 'unknown'}"
    hour_type_id = hour_types.get(entry.type) if entry.type else None
    if not hour_type_id:
        return None, f"No hour type mapping found for type: {entry.type or 'unknown'}"
    return "hours", hours_payload(entry, employee_id, project_id, hour_type_id)


def push_entries(user, entry_ids, client=None, sleep=time.sleep, delay=None):
    """
    Push the given entries to Simplicate, one request at a time.

    A failure on one entry never aborts the batch; every entry gets an
    outcome in `results` and the `summary` counts them.
    """
    connection = _require_simplicate(user)
    if not connection.employee_id:
        raise PreconditionFailed("Employee ID not configured in Simplicate settings")

    entries = list(RevenueEntry.objects.filter(user=user, pk__in=entry_ids).order_by("start_time", "id"))
    if not entries:
        raise NotFound("No entries found", entry_ids=list(entry_ids))

    client = client or SimplicateClient.from_connection(connection)
    delay = settings.SIMPLICATE_PUSH_DELAY if delay is None else delay
    projects, hour_types = _mapping_tables(user)

    results = []
    requests_sent = 0
    for entry in entries:
        if entry.simplicate_id:
            results.append({
                "entry_id": entry.pk,
                "success": True,
                "simplicate_id": entry.simplicate_id,
                "error": "Already synced",
            })
            continue

        kind, prepared = _prepare(entry, connection.employee_id, projects, hour_types)
        if kind is None:
            results.append({"entry_id": entry.pk, "success": False, "error": prepared})
            continue

        if requests_sent and delay:
            sleep(delay)                                  # ⏱️ stay under the 60 req/min limit
        requests_sent += 1

        try:
            if kind == "mileage":
                simplicate_id = client.post_mileage(prepared)
            else:
                simplicate_id = client.post_hours(prepared)
        except SimplicateError as exc:
            entry.simplicate_status = "failed"
            entry.save(update_fields=["simplicate_status"])
            logger.warning(
                "Simplicate push failed",
                extra={"entry_id": entry.pk, "detail": exc.message, "action": "simplicate_push_failed"},
            )
            results.append({"entry_id": entry.pk, "success": False, "error": exc.message})
            continue

        entry.simplicate_id = str(simplicate_id)
        entry.simplicate_synced_at = timezone.now()
        entry.simplicate_status = "synced"
        entry.save(update_fields=["simplicate_id", "simplicate_synced_at", "simplicate_status"])
        results.append({"entry_id": entry.pk, "success": True, "simplicate_id": entry.simplicate_id})

    success = sum(1 for r in results if r["success"])
    summary = {"total": len(results), "success": success, "failed": len(results) - success}
    logger.info(
        "Simplicate push finished",
        extra={"user_id": user.pk, **summary, "action": "simplicate_push"},
    )
    return {"results": results, "summary": summary}


def sync_status(user, entry_ids):
    """Push state per entry (only the caller's entries are reported)."""
    entries = RevenueEntry.objects.filter(user=user, pk__in=entry_ids)
    return [
        {
            "entry_id": e.pk,
            "simplicate_id": e.simplicate_id,
            "simplicate_status": e.simplicate_status,
            "simplicate_synced_at": e.simplicate_synced_at.isoformat() if e.simplicate_synced_at else None,
        }
        for e in entries
    ]
