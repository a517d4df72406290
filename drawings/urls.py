# drawings/urls.py
# ✅ URL routes for folders and drawings.

from django.urls import path
from . import views

app_name = "drawings"

urlpatterns = [
    # ───────────── Folders ─────────────
    path("folders/", views.FolderListView.as_view(), name="folder_list"),
    path("folders/contents/", views.FolderContentsView.as_view(), name="folder_contents"),
    path("folders/<int:pk>/path/", views.FolderPathView.as_view(), name="folder_path"),
    path("folders/<int:pk>/rename/", views.FolderRenameView.as_view(), name="folder_rename"),
    path("folders/<int:pk>/move/", views.FolderMoveView.as_view(), name="folder_move"),
    path("folders/<int:pk>/delete/", views.FolderDeleteView.as_view(), name="folder_delete"),

    # ───────────── Drawings ─────────────
    path("", views.DrawingListView.as_view(), name="drawing_list"),
    path("<int:pk>/", views.DrawingDetailView.as_view(), name="drawing_detail"),
    path("<int:pk>/move/", views.DrawingMoveView.as_view(), name="drawing_move"),
    path("<int:pk>/delete/", views.DrawingDeleteView.as_view(), name="drawing_delete"),
    path("<int:pk>/files/", views.DrawingFilesView.as_view(), name="drawing_files"),
]
