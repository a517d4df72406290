# drawings/admin.py

from django.contrib import admin
from .models import Drawing, DrawingFile, Folder


@admin.register(Folder)
class FolderAdmin(admin.ModelAdmin):
    list_display  = ("name", "parent", "user", "updated_at")
    search_fields = ("name", "user__username")


@admin.register(Drawing)
class DrawingAdmin(admin.ModelAdmin):
    list_display  = ("name", "folder", "user", "updated_at")
    list_filter   = ("folder",)
    search_fields = ("name", "user__username")
    date_hierarchy = "updated_at"


@admin.register(DrawingFile)
class DrawingFileAdmin(admin.ModelAdmin):
    list_display = ("file_id", "mime_type", "drawing")
