import json

import pytest
from django.urls import reverse

from drawings import services
from drawings.models import Drawing, DrawingFile
from hub.exceptions import NotFound

pytestmark = pytest.mark.django_db


def post_json(client, url, data):
    return client.post(url, data=json.dumps(data), content_type="application/json")


# ───────────── services ─────────────

def test_create_and_update_drawing(user):
    drawing = services.create_drawing(user, "Board")
    assert drawing.elements == []
    assert drawing.app_state is None

    updated = services.update_drawing(
        user, drawing.pk, elements=[{"type": "rectangle"}], app_state={"zoom": 1}
    )
    assert updated.name == "Board"
    assert updated.elements == [{"type": "rectangle"}]
    assert updated.app_state == {"zoom": 1}

    cleared = services.update_drawing(user, drawing.pk, app_state=None)
    assert cleared.app_state is None
    assert cleared.elements == [{"type": "rectangle"}]


def test_list_drawings_by_folder(user):
    folder = services.create_folder(user, "Work")
    inside = services.create_drawing(user, "Inside", folder.pk)
    loose = services.create_drawing(user, "Loose")

    assert {d.pk for d in services.list_drawings(user)} == {inside.pk, loose.pk}
    assert [d.pk for d in services.list_drawings(user, folder.pk)] == [inside.pk]
    assert [d.pk for d in services.list_drawings(user, None)] == [loose.pk]


def test_move_drawing_between_folders(user):
    a = services.create_folder(user, "A")
    drawing = services.create_drawing(user, "Board")
    assert services.move_drawing(user, drawing.pk, a.pk).folder_id == a.pk
    assert services.move_drawing(user, drawing.pk, None).folder_id is None


def test_other_users_drawing_is_not_found(user, other_user):
    theirs = services.create_drawing(other_user, "Secret")
    for call in (
        lambda: services.get_drawing(user, theirs.pk),
        lambda: services.update_drawing(user, theirs.pk, name="Mine"),
        lambda: services.delete_drawing(user, theirs.pk),
    ):
        with pytest.raises(NotFound):
            call()
    assert Drawing.objects.filter(pk=theirs.pk, name="Secret").exists()


def test_save_drawing_files_upserts_by_file_id(user):
    drawing = services.create_drawing(user, "Board")
    files = [{"file_id": "f1", "mime_type": "image/png", "data_url": "data:a"}]
    assert services.save_drawing_files(user, drawing.pk, files) == {"success": True, "saved": 1}

    files[0]["data_url"] = "data:b"
    services.save_drawing_files(user, drawing.pk, files)

    stored = DrawingFile.objects.get(drawing=drawing)
    assert stored.data_url == "data:b"


# ───────────── views ─────────────

def test_views_require_login(client):
    response = client.get(reverse("drawings:folder_list"))
    assert response.status_code == 302


def test_create_folder_view(api):
    response = post_json(api, reverse("drawings:folder_list"), {"name": "  Clients  "})
    assert response.status_code == 201
    assert response.json()["name"] == "Clients"
    assert response.json()["parent_id"] is None


def test_create_folder_view_rejects_blank_name(api):
    response = post_json(api, reverse("drawings:folder_list"), {"name": "   "})
    assert response.status_code == 400
    assert "name" in response.json()["fields"]


def test_cyclic_move_view_returns_400(api, user):
    clients = services.create_folder(user, "Clients")
    acme = services.create_folder(user, "Acme", clients.pk)

    response = post_json(api, reverse("drawings:folder_move", args=[clients.pk]), {"target_id": acme.pk})

    assert response.status_code == 400
    assert response.json()["code"] == "InvalidOperation"


def test_foreign_folder_view_returns_404(api, other_user):
    foreign = services.create_folder(other_user, "Theirs")
    response = post_json(api, reverse("drawings:folder_rename", args=[foreign.pk]), {"name": "Mine"})
    assert response.status_code == 404
    assert response.json()["code"] == "NotFound"


def test_folder_contents_view_root(api, user):
    services.create_folder(user, "Clients")
    services.create_drawing(user, "Loose")
    data = api.get(reverse("drawings:folder_contents"), {"folder": "root"}).json()
    assert [f["name"] for f in data["folders"]] == ["Clients"]
    assert [d["name"] for d in data["drawings"]] == ["Loose"]


def test_delete_folder_view(api, user):
    clients = services.create_folder(user, "Clients")
    acme = services.create_folder(user, "Acme", clients.pk)
    invoice = services.create_drawing(user, "Invoice.png", acme.pk)

    response = api.post(reverse("drawings:folder_delete", args=[acme.pk]))

    assert response.status_code == 200
    assert response.json()["reparented_drawings"] == 1
    invoice.refresh_from_db()
    assert invoice.folder_id == clients.pk


def test_drawing_detail_view_roundtrip(api, user):
    drawing = services.create_drawing(user, "Board")
    url = reverse("drawings:drawing_detail", args=[drawing.pk])

    response = post_json(api, url, {"elements": [{"id": "x"}], "app_state": {"theme": "dark"}})
    assert response.status_code == 200

    data = api.get(url).json()
    assert data["elements"] == [{"id": "x"}]
    assert data["app_state"] == {"theme": "dark"}
    assert data["files"] == []


def test_drawing_detail_view_rejects_non_list_elements(api, user):
    drawing = services.create_drawing(user, "Board")
    response = post_json(api, reverse("drawings:drawing_detail", args=[drawing.pk]), {"elements": "nope"})
    assert response.status_code == 400


def test_drawing_files_view(api, user):
    drawing = services.create_drawing(user, "Board")
    response = post_json(
        api,
        reverse("drawings:drawing_files", args=[drawing.pk]),
        {"files": [{"file_id": "f1", "mime_type": "image/png", "data_url": "data:a"}]},
    )
    assert response.json() == {"success": True, "saved": 1}


def test_unknown_url_returns_json_404(api):
    response = api.get("/no-such-page/")
    assert response.status_code == 404
