# integrations/simplicate.py
# ─────────────────────────────────────────────────────────────────────────────
# ✅ Simplicate REST client (https://{subdomain}.simplicate.nl/api/v2)
#    Used for pushing hours/mileage and for the lists the mapping screen needs.
# ─────────────────────────────────────────────────────────────────────────────

import logging

import requests
from django.conf import settings
from django.utils import timezone

from hub.exceptions import HubError

logger = logging.getLogger(__name__)


class SimplicateError(HubError):
    """Simplicate could not be reached or rejected the request."""

    status_code = 502


class SimplicateClient:
    def __init__(self, subdomain, api_key, api_secret, timeout=None):
        if not api_key or not api_secret:
            raise SimplicateError("Simplicate API key and secret are required")
        self.subdomain = subdomain
        self.api_key = api_key
        self.api_secret = api_secret
        self.timeout = timeout or settings.HTTP_TIMEOUT

    @classmethod
    def from_connection(cls, connection):
        """Build a client from a SimplicateConnection row."""
        return cls(connection.subdomain, connection.api_key, connection.api_secret)

    @property
    def base_url(self):
        return f"https://{self.subdomain}.simplicate.nl/api/v2"

    @property
    def headers(self):
        return {
            "Authentication-Key": self.api_key,
            "Authentication-Secret": self.api_secret,
            "Content-Type": "application/json",
        }

    def _request(self, method, endpoint, **kwargs):
        url = f"{self.base_url}{endpoint}"
        try:
            resp = requests.request(method, url, headers=self.headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise SimplicateError(f"Simplicate request failed: {exc}", endpoint=endpoint) from exc

        if not resp.ok:
            message = f"Simplicate API error: {resp.status_code} {resp.reason or ''}".strip()
            try:
                body = resp.json()
            except ValueError:
                body = {}
            if isinstance(body, dict):
                errors = body.get("errors") or []
                if errors:
                    message = ", ".join(str(e.get("message", e)) if isinstance(e, dict) else str(e)
                                        for e in errors)
                elif body.get("message"):
                    message = body["message"]
            logger.warning(
                "Simplicate request rejected",
                extra={"endpoint": endpoint, "status": resp.status_code, "action": "simplicate_error"},
            )
            raise SimplicateError(message, endpoint=endpoint, status=resp.status_code)

        try:
            return resp.json()
        except ValueError as exc:
            raise SimplicateError("Simplicate returned a non-JSON response", endpoint=endpoint) from exc

    def _created_id(self, endpoint, payload):
        body = self._request("POST", endpoint, json=payload)
        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, dict) or not data.get("id"):
            raise SimplicateError("Simplicate response has no id", endpoint=endpoint)
        return data["id"]

    # ───────────── Reads ─────────────
    def test_connection(self):
        """{"success": True} or {"success": False, "error": "..."}; never raises."""
        try:
            self._request("GET", "/hrm/employee", params={"limit": 1})
        except SimplicateError as exc:
            return {"success": False, "error": exc.message}
        return {"success": True}

    def get_employees(self):
        return self._request("GET", "/hrm/employee").get("data", [])

    def get_projects(self):
        return self._request("GET", "/projects/project").get("data", [])

    def get_hour_types(self):
        return self._request("GET", "/hours/hourstype").get("data", [])

    # ───────────── Writes ─────────────
    def post_hours(self, payload):
        """POST one hours registration; returns the new Simplicate id."""
        return self._created_id("/hours/hours", payload)

    def post_mileage(self, payload):
        """POST one mileage registration; returns the new Simplicate id."""
        return self._created_id("/mileage/mileage", payload)


# ─────────────────────────────────────────────────────────────────────────────
# 🔁 RevenueEntry → Simplicate payloads
# ─────────────────────────────────────────────────────────────────────────────
def _start_date(entry):
    start = entry.start_time
    if timezone.is_aware(start):
        start = timezone.localtime(start)
    return start.date().isoformat()


def hours_payload(entry, employee_id, project_id, hour_type_id):
    if not entry.hours or not entry.start_time:
        raise ValueError("Entry must have hours and start_time")
    payload = {
        "employee_id": employee_id,
        "project_id": project_id,
        "type_id": hour_type_id,
        "hours": float(entry.hours),
        "start_date": _start_date(entry),
        "billable": entry.billable,
    }
    if entry.description:
        payload["note"] = entry.description
    return payload


def mileage_payload(entry, employee_id, project_id):
    if not entry.kilometers or not entry.start_time:
        raise ValueError("Entry must have kilometers and start_time")
    payload = {
        "employee_id": employee_id,
        "project_id": project_id,
        "mileage": float(entry.kilometers),
        "start_date": _start_date(entry),
    }
    if entry.description:
        payload["description"] = entry.description
    return payload
