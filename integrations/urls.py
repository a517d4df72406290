# integrations/urls.py
# ✅ URL routes for the Notion sync and the Simplicate push.

from django.urls import path
from . import views

app_name = "integrations"

urlpatterns = [
    # ───────────── Notion ─────────────
    path("notion/settings/", views.NotionSettingsView.as_view(), name="notion_settings"),
    path("notion/validate/", views.NotionValidateView.as_view(), name="notion_validate"),
    path("notion/sync/revenue/", views.NotionSyncRevenueView.as_view(), name="notion_sync_revenue"),
    path("notion/sync/costs/", views.NotionSyncCostsView.as_view(), name="notion_sync_costs"),

    # ───────────── Simplicate ─────────────
    path("simplicate/settings/", views.SimplicateSettingsView.as_view(), name="simplicate_settings"),
    path("simplicate/test/", views.SimplicateTestView.as_view(), name="simplicate_test"),
    path("simplicate/projects/", views.SimplicateProjectsView.as_view(), name="simplicate_projects"),
    path("simplicate/hour-types/", views.SimplicateHourTypesView.as_view(), name="simplicate_hour_types"),
    path("simplicate/employees/", views.SimplicateEmployeesView.as_view(), name="simplicate_employees"),
    path("simplicate/mappings/", views.MappingListView.as_view(), name="mapping_list"),
    path("simplicate/mappings/delete/", views.MappingDeleteView.as_view(), name="mapping_delete"),
    path("simplicate/push/", views.PushView.as_view(), name="push"),
    path("simplicate/status/", views.SyncStatusView.as_view(), name="sync_status"),
]
