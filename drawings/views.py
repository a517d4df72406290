# drawings/views.py
# ─────────────────────────────────────────────────────────────────────────────
# ✅ JSON endpoints for folders and drawings.
#    Every view is login-protected and passes request.user into the service
#    layer; ownership, cycle checks and cascades all live in services.py.
# ─────────────────────────────────────────────────────────────────────────────

from django.contrib.auth.mixins import LoginRequiredMixin
from django.http import JsonResponse
from django.views import View

from hub.views import JsonErrorMixin, form_errors_response, request_payload

from . import services
from .forms import (
    DrawingForm, DrawingUpdateForm, FileItemForm, FolderForm, MoveForm, RenameForm,
)


# ─────────────────────────────────────────────────────────────────────────────
# 🔧 Serializers
# ─────────────────────────────────────────────────────────────────────────────
def _folder_dict(folder):
    return {
        "id": folder.pk,
        "name": folder.name,
        "parent_id": folder.parent_id,
        "created_at": folder.created_at.isoformat(),
        "updated_at": folder.updated_at.isoformat(),
    }


def _drawing_dict(drawing, with_content=False):
    data = {
        "id": drawing.pk,
        "name": drawing.name,
        "folder_id": drawing.folder_id,
        "created_at": drawing.created_at.isoformat(),
        "updated_at": drawing.updated_at.isoformat(),
    }
    if with_content:
        data["elements"] = drawing.elements
        data["app_state"] = drawing.app_state
        data["files"] = [
            {"file_id": f.file_id, "mime_type": f.mime_type, "data_url": f.data_url}
            for f in drawing.files.all()
        ]
    return data


def _folder_param(request):
    """?folder=<id> → id, ?folder= / ?folder=root → None (root)."""
    raw = (request.GET.get("folder") or "").strip()
    return None if raw in ("", "root") else raw


class _ApiView(LoginRequiredMixin, JsonErrorMixin, View):
    """Base: login required + service errors rendered as JSON."""


# ─────────────────────────────────────────────────────────────────────────────
# 🗂️ FOLDER VIEWS
# ─────────────────────────────────────────────────────────────────────────────
class FolderListView(_ApiView):
    """GET: all folders of the user. POST: create a folder."""

    def get(self, request):
        folders = services.list_folders(request.user)
        return JsonResponse({"folders": [_folder_dict(f) for f in folders]})

    def post(self, request):
        form = FolderForm(request_payload(request))
        if not form.is_valid():
            return form_errors_response(form)
        folder = services.create_folder(
            request.user, form.cleaned_data["name"], form.cleaned_data["parent_id"]
        )
        return JsonResponse(_folder_dict(folder), status=201)


class FolderContentsView(_ApiView):
    """Immediate sub-folders + drawings of ?folder=<id> (root when omitted)."""

    def get(self, request):
        contents = services.get_contents(request.user, _folder_param(request))
        return JsonResponse({
            "folders": [_folder_dict(f) for f in contents["folders"]],
            "drawings": [_drawing_dict(d) for d in contents["drawings"]],
        })


class FolderPathView(_ApiView):
    """Breadcrumb trail root → folder."""

    def get(self, request, pk):
        return JsonResponse({"path": services.get_path(request.user, pk)})


class FolderRenameView(_ApiView):
    def post(self, request, pk):
        form = RenameForm(request_payload(request))
        if not form.is_valid():
            return form_errors_response(form)
        folder = services.rename_folder(request.user, pk, form.cleaned_data["name"])
        return JsonResponse(_folder_dict(folder))


class FolderMoveView(_ApiView):
    def post(self, request, pk):
        form = MoveForm(request_payload(request))
        if not form.is_valid():
            return form_errors_response(form)
        folder = services.move_folder(request.user, pk, form.cleaned_data["target_id"])
        return JsonResponse(_folder_dict(folder))


class FolderDeleteView(_ApiView):
    def post(self, request, pk):
        result = services.delete_folder(request.user, pk)
        return JsonResponse(result)


# ─────────────────────────────────────────────────────────────────────────────
# 🎨 DRAWING VIEWS
# ─────────────────────────────────────────────────────────────────────────────
class DrawingListView(_ApiView):
    """GET: drawings (optionally ?folder=<id>|root). POST: create a drawing."""

    def get(self, request):
        if "folder" in request.GET:
            drawings = services.list_drawings(request.user, _folder_param(request))
        else:
            drawings = services.list_drawings(request.user)
        return JsonResponse({"drawings": [_drawing_dict(d) for d in drawings]})

    def post(self, request):
        form = DrawingForm(request_payload(request))
        if not form.is_valid():
            return form_errors_response(form)
        drawing = services.create_drawing(
            request.user, form.cleaned_data["name"], form.cleaned_data["folder_id"]
        )
        return JsonResponse(_drawing_dict(drawing), status=201)


class DrawingDetailView(_ApiView):
    """GET: drawing with canvas content. POST: update name / elements / app_state."""

    def get(self, request, pk):
        drawing = services.get_drawing(request.user, pk)
        return JsonResponse(_drawing_dict(drawing, with_content=True))

    def post(self, request, pk):
        payload = request_payload(request)
        form = DrawingUpdateForm(payload)
        if not form.is_valid():
            return form_errors_response(form)

        elements = payload.get("elements")
        if elements is not None and not isinstance(elements, list):
            return JsonResponse({"error": "elements must be a list."}, status=400)

        kwargs = {"name": form.cleaned_data["name"], "elements": elements}
        if "app_state" in payload:                         # null is a valid value here
            kwargs["app_state"] = payload.get("app_state")

        drawing = services.update_drawing(request.user, pk, **kwargs)
        return JsonResponse(_drawing_dict(drawing, with_content=True))


class DrawingMoveView(_ApiView):
    def post(self, request, pk):
        form = MoveForm(request_payload(request))
        if not form.is_valid():
            return form_errors_response(form)
        drawing = services.move_drawing(request.user, pk, form.cleaned_data["target_id"])
        return JsonResponse(_drawing_dict(drawing))


class DrawingDeleteView(_ApiView):
    def post(self, request, pk):
        services.delete_drawing(request.user, pk)
        return JsonResponse({"success": True})


class DrawingFilesView(_ApiView):
    """Upsert embedded files: {"files": [{"file_id", "mime_type", "data_url"}, ...]}."""

    def post(self, request, pk):
        items = request_payload(request).get("files")
        if not isinstance(items, list):
            return JsonResponse({"error": "files must be a list."}, status=400)

        files = []
        for item in items:
            form = FileItemForm(item if isinstance(item, dict) else {})
            if not form.is_valid():
                return form_errors_response(form)
            files.append(form.cleaned_data)

        return JsonResponse(services.save_drawing_files(request.user, pk, files))
