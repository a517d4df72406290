# drawings/forms.py
# ─────────────────────────────────────────────────────────────────────────────
# Input forms for the folder/drawing endpoints.
#   1) FolderForm      – create a folder (name + optional parent)
#   2) RenameForm      – new name for a folder or drawing
#   3) MoveForm        – target folder id (blank = root)
#   4) DrawingForm     – create a drawing (name + optional folder)
#   5) FileItemForm    – one embedded file of a drawing
# ─────────────────────────────────────────────────────────────────────────────

from django import forms


def _norm_name(name: str) -> str:
    """Return a neatly spaced version of the name (no double spaces)."""
    return " ".join((name or "").split())


class _NamedForm(forms.Form):
    name = forms.CharField(max_length=255)

    def clean_name(self):
        name = _norm_name(self.cleaned_data.get("name"))
        if not name:
            raise forms.ValidationError("Name cannot be blank.")
        return name


class FolderForm(_NamedForm):
    parent_id = forms.IntegerField(required=False)         # ← blank = create at root


class RenameForm(_NamedForm):
    pass


class MoveForm(forms.Form):
    target_id = forms.IntegerField(required=False)         # ← blank = move to root


class DrawingForm(_NamedForm):
    folder_id = forms.IntegerField(required=False)


class DrawingUpdateForm(forms.Form):
    """Only the name is validated here; canvas JSON is passed through as-is."""

    name = forms.CharField(max_length=255, required=False)

    def clean_name(self):
        return _norm_name(self.cleaned_data.get("name")) or None


class FileItemForm(forms.Form):
    file_id = forms.CharField(max_length=255)
    mime_type = forms.CharField(max_length=100)
    data_url = forms.CharField()
