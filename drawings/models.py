# drawings/models.py

# ✅ Import Django utilities for building models
from django.conf import settings                    # lets us reference the current User model safely
from django.db import models                        # core Django ORM classes


class Folder(models.Model):
    """
    A user-owned folder. Folders nest through `parent` and form a forest per owner:
    following `parent` upward always ends at a root-level folder (parent=None).
    `parent` is only changed through drawings.services.move_folder, which rejects cycles.
    """

    # ✅ Owner of the folder (privacy boundary)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,                 # if the user is deleted, delete their folders
        related_name="drawing_folders",
        help_text="Owner of this folder",
    )

    name = models.CharField(max_length=255)

    # ✅ Parent folder; deleting a folder deletes its whole subtree
    parent = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.CASCADE,
        related_name="children",
        help_text="Empty means the folder sits at the root",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name", "id"]
        indexes = [models.Index(fields=["user", "parent"], name="folder_user_parent_idx")]

    def __str__(self):
        return self.name


class Drawing(models.Model):
    """A canvas drawing. `elements` and `app_state` are stored as opaque JSON."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="drawings",
        help_text="Owner of this drawing",
    )

    name = models.CharField(max_length=255)

    # ✅ SET_NULL: a drawing left behind by a deleted folder falls back to the root
    folder = models.ForeignKey(
        Folder,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="drawings",
    )

    elements = models.JSONField(default=list, blank=True)   # canvas elements
    app_state = models.JSONField(null=True, blank=True)     # canvas UI state

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-updated_at", "-id"]                   # most recently edited first
        indexes = [models.Index(fields=["user", "folder"], name="drawing_user_folder_idx")]

    def __str__(self):
        return self.name


class DrawingFile(models.Model):
    """An embedded binary file (image) of a drawing, stored as a data URL."""

    drawing = models.ForeignKey(Drawing, on_delete=models.CASCADE, related_name="files")
    file_id = models.CharField(max_length=255)
    mime_type = models.CharField(max_length=100)
    data_url = models.TextField()

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["drawing", "file_id"], name="uq_drawingfile_drawing_file"),
        ]

    def __str__(self):
        return f"{self.file_id} ({self.mime_type})"
