# finance/admin.py
# ✅ Register ONLY finance models here (synced entries + targets)

from django.contrib import admin                          # ← Django admin site
from .models import CostEntry, RevenueEntry, RevenueTarget

@admin.register(RevenueEntry)
class RevenueEntryAdmin(admin.ModelAdmin):
    list_display  = ("start_time", "client", "type", "hours", "revenue", "simplicate_status", "user")
    list_filter   = ("billable", "simplicate_status", "type")
    search_fields = ("description", "client", "notion_page_id", "user__username")
    date_hierarchy = "start_time"                         # nice date drill-down

@admin.register(CostEntry)
class CostEntryAdmin(admin.ModelAdmin):
    list_display  = ("invoice_date", "name", "amount_excl_vat", "vat", "vat_section", "user")
    list_filter   = ("vat_section", "year")
    search_fields = ("name", "description", "user__username")
    date_hierarchy = "invoice_date"

@admin.register(RevenueTarget)
class RevenueTargetAdmin(admin.ModelAdmin):
    list_display  = ("year", "target_value", "user")
    search_fields = ("user__username",)
