# finance/urls.py
# ✅ URL routes for the Finance app.

from django.urls import path                   # 🔗 path() maps URL patterns to views
from . import views                            # 📦 class-based views from finance/views.py

# 🏷️ Namespace for reverse(): use 'finance:route_name'
app_name = "finance"

urlpatterns = [
    # ───────────── Revenue ─────────────
    path("revenue/entries/", views.RevenueEntryListView.as_view(), name="revenue_entries"),
    path("revenue/kpis/", views.RevenueKpiView.as_view(), name="revenue_kpis"),
    path("revenue/by-period/", views.RevenueByPeriodView.as_view(), name="revenue_by_period"),
    path("revenue/by-client/", views.RevenueByClientView.as_view(), name="revenue_by_client"),
    path("revenue/by-type/", views.RevenueByTypeView.as_view(), name="revenue_by_type"),
    path("revenue/filter-options/", views.RevenueFilterOptionsView.as_view(), name="revenue_filter_options"),
    path(
        "revenue/export.csv",                  # 🌐 /finance/revenue/export.csv
        views.RevenueCsvExportView.as_view(),  # 📥 CSV download for the current filters
        name="revenue_export_csv",
    ),

    # ───────────── Costs ─────────────
    path("costs/entries/", views.CostEntryListView.as_view(), name="cost_entries"),
    path("costs/kpis/", views.CostKpiView.as_view(), name="cost_kpis"),
    path("costs/by-period/", views.CostByPeriodView.as_view(), name="cost_by_period"),
    path("costs/by-section/", views.CostBySectionView.as_view(), name="cost_by_section"),

    # ───────────── Targets + pacing ─────────────
    path("targets/", views.TargetListView.as_view(), name="target_list"),
    path("targets/<int:year>/", views.TargetDetailView.as_view(), name="target_detail"),
    path("targets/<int:year>/delete/", views.TargetDeleteView.as_view(), name="target_delete"),
    path("targets/<int:year>/analytics/", views.TargetAnalyticsView.as_view(), name="target_analytics"),
    path("pacing/", views.PacingView.as_view(), name="pacing"),
]
