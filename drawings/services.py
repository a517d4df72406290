# drawings/services.py
# ─────────────────────────────────────────────────────────────────────────────
# ✅ Folder tree + drawing operations. Views stay thin and call into here.
#    This file includes:
#      • assert_owned – the one ownership gate every operation goes through
#      • Folder operations: create / rename / move / delete / path / contents
#      • Drawing operations: list / create / get / update / move / delete / files
#
#    Tree invariant: per owner, folders form a forest (child → parent never
#    loops). Only move_folder changes `parent`, and it rejects self-moves and
#    moves into a descendant.
# ─────────────────────────────────────────────────────────────────────────────

import logging

from django.db import transaction

from hub.exceptions import InvalidOperation, NotFound

from .models import Drawing, DrawingFile, Folder

logger = logging.getLogger(__name__)

# Sentinel for "argument not given" where None is a meaningful value (root / clear).
_UNSET = object()

_OWNED_KINDS = {
    "folder": Folder,
    "drawing": Drawing,
}


def _coerce_pk(value):
    """Turn an id coming from a URL or JSON body into an int (None if it can't be)."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


# ─────────────────────────────────────────────────────────────────────────────
# 🔒 Ownership gate
# ─────────────────────────────────────────────────────────────────────────────
def assert_owned(kind, pk, user):
    """
    Return the `kind` row with this pk if it belongs to `user`.

    Raises NotFound when the row is missing, owned by someone else, or the id
    is not a valid key. Both cases look the same to the caller on purpose.
    """
    model = _OWNED_KINDS[kind]
    key = _coerce_pk(pk)
    obj = model.objects.filter(pk=key, user=user).first() if key is not None else None
    if obj is None:
        raise NotFound(f"{kind.capitalize()} not found", kind=kind, id=pk)
    return obj


def _parent_map(user):
    """{folder_id: parent_id} for all of the user's folders, in one query."""
    return dict(Folder.objects.filter(user=user).values_list("id", "parent_id"))


def _is_descendant_or_self(parents, candidate_id, ancestor_id):
    """
    Walk upward from `candidate_id` and report whether `ancestor_id` is reached.
    A missing folder counts as the root; a revisited folder stops the walk, so
    this terminates even on corrupted data.
    """
    seen = set()
    current = candidate_id
    while current is not None and current not in seen:
        if current == ancestor_id:
            return True
        seen.add(current)
        current = parents.get(current)
    return False


# ─────────────────────────────────────────────────────────────────────────────
# 🗂️ Folders
# ─────────────────────────────────────────────────────────────────────────────
def list_folders(user):
    return list(Folder.objects.filter(user=user).order_by("name", "id"))


def create_folder(user, name, parent_id=None):
    parent = assert_owned("folder", parent_id, user) if parent_id is not None else None
    folder = Folder.objects.create(user=user, name=name, parent=parent)
    logger.info(
        "Folder created",
        extra={"folder_id": folder.pk, "parent_id": folder.parent_id, "action": "folder_created"},
    )
    return folder


def rename_folder(user, folder_id, new_name):
    folder = assert_owned("folder", folder_id, user)
    folder.name = new_name
    folder.save(update_fields=["name", "updated_at"])
    return folder


def move_folder(user, folder_id, new_parent_id):
    """
    Re-parent a folder (None = root).

    Raises InvalidOperation for a move into itself or into one of its own
    descendants, NotFound if either folder is not the caller's.
    """
    folder = assert_owned("folder", folder_id, user)

    target = None
    if new_parent_id is not None:
        if _coerce_pk(new_parent_id) == folder.pk:
            raise InvalidOperation("Cannot move folder into itself", id=folder.pk)

        target = assert_owned("folder", new_parent_id, user)

        if _is_descendant_or_self(_parent_map(user), target.pk, folder.pk):
            logger.warning(
                "Cyclic folder move rejected",
                extra={"folder_id": folder.pk, "target_id": target.pk, "action": "folder_move_rejected"},
            )
            raise InvalidOperation(
                "Cannot move folder into its own descendant", id=folder.pk, target=target.pk
            )

    folder.parent = target
    folder.save(update_fields=["parent", "updated_at"])
    logger.info(
        "Folder moved",
        extra={"folder_id": folder.pk, "parent_id": folder.parent_id, "action": "folder_moved"},
    )
    return folder


@transaction.atomic
def delete_folder(user, folder_id):
    """
    Delete a folder and its whole subtree.

    Drawings sitting directly in the folder move up to the folder's parent
    (the root for a root-level folder). Drawings in deeper sub-folders fall
    back to the root through the SET_NULL rule on Drawing.folder.
    """
    folder = assert_owned("folder", folder_id, user)
    parent_id = folder.parent_id

    reparented = Drawing.objects.filter(user=user, folder=folder).update(folder_id=parent_id)
    _, per_model = folder.delete()                     # cascade removes descendants
    deleted_folders = per_model.get(Folder._meta.label, 0)

    logger.info(
        "Folder deleted",
        extra={
            "folder_id": folder_id,
            "parent_id": parent_id,
            "deleted_folders": deleted_folders,
            "reparented_drawings": reparented,
            "action": "folder_deleted",
        },
    )
    return {"deleted_folders": deleted_folders, "reparented_drawings": reparented}


def get_path(user, folder_id):
    """Breadcrumb from the root down to `folder_id` as [{"id", "name"}, ...]."""
    folders = {
        row["id"]: row
        for row in Folder.objects.filter(user=user).values("id", "name", "parent_id")
    }
    path = []
    seen = set()
    current = _coerce_pk(folder_id)
    while current is not None and current not in seen:
        row = folders.get(current)
        if row is None:
            break                                      # broken link → stop here
        seen.add(current)
        path.append({"id": row["id"], "name": row["name"]})
        current = row["parent_id"]
    path.reverse()
    return path


def get_contents(user, folder_id=None):
    """Immediate sub-folders and drawings of a folder (None = root)."""
    folder = assert_owned("folder", folder_id, user) if folder_id is not None else None
    folders = Folder.objects.filter(user=user, parent=folder).order_by("name", "id")
    drawings = Drawing.objects.filter(user=user, folder=folder).order_by("-updated_at", "-id")
    return {"folders": list(folders), "drawings": list(drawings)}


# ─────────────────────────────────────────────────────────────────────────────
# 🎨 Drawings
# ─────────────────────────────────────────────────────────────────────────────
def list_drawings(user, folder_id=_UNSET):
    qs = Drawing.objects.filter(user=user)
    if folder_id is not _UNSET:
        qs = qs.filter(folder_id=_coerce_pk(folder_id))
    return list(qs.order_by("-updated_at", "-id"))


def create_drawing(user, name, folder_id=None):
    folder = assert_owned("folder", folder_id, user) if folder_id is not None else None
    return Drawing.objects.create(user=user, name=name, folder=folder, elements=[], app_state=None)


def get_drawing(user, drawing_id):
    return assert_owned("drawing", drawing_id, user)


def update_drawing(user, drawing_id, name=None, elements=None, app_state=_UNSET):
    drawing = assert_owned("drawing", drawing_id, user)
    if name:
        drawing.name = name
    if elements is not None:
        drawing.elements = elements
    if app_state is not _UNSET:
        drawing.app_state = app_state
    drawing.save()
    return drawing


def move_drawing(user, drawing_id, new_folder_id):
    """Put a drawing into another folder (None = root). Drawings are leaves, so no cycle check."""
    drawing = assert_owned("drawing", drawing_id, user)
    folder = assert_owned("folder", new_folder_id, user) if new_folder_id is not None else None
    drawing.folder = folder
    drawing.save(update_fields=["folder", "updated_at"])
    return drawing


def delete_drawing(user, drawing_id):
    drawing = assert_owned("drawing", drawing_id, user)
    drawing.delete()


@transaction.atomic
def save_drawing_files(user, drawing_id, files):
    """Upsert embedded files keyed by (drawing, file_id). All or nothing."""
    drawing = assert_owned("drawing", drawing_id, user)
    for item in files:
        DrawingFile.objects.update_or_create(
            drawing=drawing,
            file_id=item["file_id"],
            defaults={"mime_type": item["mime_type"], "data_url": item["data_url"]},
        )
    return {"success": True, "saved": len(files)}
