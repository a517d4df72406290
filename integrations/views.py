# integrations/views.py
# ─────────────────────────────────────────────────────────────────────────────
# ✅ JSON endpoints for the Notion sync and the Simplicate push.
#    Connection problems surface as 412 (not configured) or 502 (remote error)
#    through JsonErrorMixin.
# ─────────────────────────────────────────────────────────────────────────────

from django.contrib.auth.mixins import LoginRequiredMixin
from django.http import JsonResponse
from django.views import View

from hub.views import JsonErrorMixin, form_errors_response, request_payload

from . import services
from .forms import (
    EntryIdsForm, MappingForm, NotionSettingsForm, NotionValidateForm, SimplicateSettingsForm,
)


def _iso(dt):
    return dt.isoformat() if dt else None


def _notion_dict(connection):
    if connection is None:
        return None
    return {
        "database_id": connection.database_id,
        "costs_database_id": connection.costs_database_id,
        "last_sync_at": _iso(connection.last_sync_at),
        "costs_last_sync_at": _iso(connection.costs_last_sync_at),
    }


def _simplicate_dict(connection):
    if connection is None:
        return None
    return {
        "subdomain": connection.subdomain,
        "employee_id": connection.employee_id,
        "has_api_key": bool(connection.api_key),          # 🔒 credentials never leave the server
        "has_api_secret": bool(connection.api_secret),
    }


def _mapping_dict(mapping):
    return {
        "notion_value": mapping.notion_value,
        "simplicate_id": mapping.simplicate_id,
        "mapping_type": mapping.mapping_type,
    }


class _ApiView(LoginRequiredMixin, JsonErrorMixin, View):
    """Base: login required + service errors rendered as JSON."""


# ─────────────────────────────────────────────────────────────────────────────
# 📓 NOTION
# ─────────────────────────────────────────────────────────────────────────────
class NotionSettingsView(_ApiView):
    """GET: current settings (null when none). POST: save database ids."""

    def get(self, request):
        return JsonResponse({"connection": _notion_dict(services.get_notion_connection(request.user))})

    def post(self, request):
        form = NotionSettingsForm(request_payload(request), instance=services.get_notion_connection(request.user))
        if not form.is_valid():
            return form_errors_response(form)
        connection = services.save_notion_connection(
            request.user,
            database_id=form.cleaned_data["database_id"],
            costs_database_id=form.cleaned_data["costs_database_id"],
        )
        return JsonResponse({"connection": _notion_dict(connection)})


class NotionValidateView(_ApiView):
    def post(self, request):
        form = NotionValidateForm(request_payload(request))
        if not form.is_valid():
            return form_errors_response(form)
        result = services.validate_notion(
            request.user, form.cleaned_data["database_id"], form.cleaned_data.get("kind") or "revenue"
        )
        return JsonResponse(result)


class NotionSyncRevenueView(_ApiView):
    def post(self, request):
        return JsonResponse(services.sync_revenue(request.user))


class NotionSyncCostsView(_ApiView):
    def post(self, request):
        return JsonResponse(services.sync_costs(request.user))


# ─────────────────────────────────────────────────────────────────────────────
# 🧾 SIMPLICATE
# ─────────────────────────────────────────────────────────────────────────────
class SimplicateSettingsView(_ApiView):
    def get(self, request):
        return JsonResponse({"connection": _simplicate_dict(services.get_simplicate_connection(request.user))})

    def post(self, request):
        form = SimplicateSettingsForm(request_payload(request))
        if not form.is_valid():
            return form_errors_response(form)
        connection = services.save_simplicate_connection(
            request.user, form.cleaned_data["subdomain"], **form.credentials()
        )
        return JsonResponse({"connection": _simplicate_dict(connection)})


class SimplicateTestView(_ApiView):
    def get(self, request):
        return JsonResponse(services.check_simplicate(request.user))


class SimplicateProjectsView(_ApiView):
    def get(self, request):
        return JsonResponse({"projects": services.list_projects(request.user)})


class SimplicateHourTypesView(_ApiView):
    def get(self, request):
        return JsonResponse({"hour_types": services.list_hour_types(request.user)})


class SimplicateEmployeesView(_ApiView):
    def get(self, request):
        return JsonResponse({"employees": services.list_employees(request.user)})


class MappingListView(_ApiView):
    """GET: mappings (optionally ?type=project|hourtype). POST: upsert one."""

    def get(self, request):
        mappings = services.list_mappings(request.user, request.GET.get("type") or None)
        return JsonResponse({"mappings": [_mapping_dict(m) for m in mappings]})

    def post(self, request):
        form = MappingForm(request_payload(request))
        if not form.is_valid():
            return form_errors_response(form)
        if not form.cleaned_data["simplicate_id"]:
            return JsonResponse({"error": "Invalid input.", "fields": {"simplicate_id": ["This field is required."]}},
                                status=400)
        mapping = services.upsert_mapping(
            request.user,
            form.cleaned_data["notion_value"],
            form.cleaned_data["simplicate_id"],
            form.cleaned_data["mapping_type"],
        )
        return JsonResponse(_mapping_dict(mapping))


class MappingDeleteView(_ApiView):
    def post(self, request):
        form = MappingForm(request_payload(request))
        if not form.is_valid():
            return form_errors_response(form)
        services.delete_mapping(request.user, form.cleaned_data["notion_value"], form.cleaned_data["mapping_type"])
        return JsonResponse({"success": True})


class PushView(_ApiView):
    """Push {"entry_ids": [...]} to Simplicate; per-entry results + summary."""

    def post(self, request):
        form = EntryIdsForm(request_payload(request))
        if not form.is_valid():
            return form_errors_response(form)
        return JsonResponse(services.push_entries(request.user, form.cleaned_data["entry_ids"]))


class SyncStatusView(_ApiView):
    def post(self, request):
        form = EntryIdsForm(request_payload(request))
        if not form.is_valid():
            return form_errors_response(form)
        return JsonResponse({"entries": services.sync_status(request.user, form.cleaned_data["entry_ids"])})
