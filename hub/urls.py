# hub/urls.py
# ✅ Root URL map: each app mounts under its own prefix.

from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("drawings/", include("drawings.urls")),          # 🗂️ folders + drawings
    path("finance/", include("finance.urls")),            # 📊 revenue, costs, targets
    path("integrations/", include("integrations.urls")),  # 🔌 Notion sync + Simplicate push
]

handler404 = "hub.views.page_not_found_view"
