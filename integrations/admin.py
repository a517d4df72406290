# integrations/admin.py

from django.contrib import admin
from .models import NotionConnection, SimplicateConnection, SimplicateMapping


@admin.register(NotionConnection)
class NotionConnectionAdmin(admin.ModelAdmin):
    list_display  = ("user", "database_id", "costs_database_id", "last_sync_at", "costs_last_sync_at")
    search_fields = ("user__username",)


@admin.register(SimplicateConnection)
class SimplicateConnectionAdmin(admin.ModelAdmin):
    list_display  = ("user", "subdomain", "employee_id")
    exclude       = ("api_secret",)                       # never show the secret in admin
    search_fields = ("user__username", "subdomain")


@admin.register(SimplicateMapping)
class SimplicateMappingAdmin(admin.ModelAdmin):
    list_display  = ("notion_value", "mapping_type", "simplicate_id", "user")
    list_filter   = ("mapping_type",)
    search_fields = ("notion_value", "user__username")
