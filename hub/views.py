# hub/views.py
# ✅ Project-wide view helpers: JSON error translation + the custom 404 handler.

import json
import logging

from django.http import JsonResponse

from .exceptions import HubError

logger = logging.getLogger(__name__)


def request_payload(request):
    """Return the submitted data as a dict (JSON body or form-encoded POST)."""
    if request.content_type == "application/json":
        try:
            data = json.loads(request.body or b"{}")
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}
    return request.POST


def form_errors_response(form):
    """400 response listing the form's field errors."""
    return JsonResponse({"error": "Invalid input.", "fields": form.errors}, status=400)


class JsonErrorMixin:
    """
    Turn service-layer errors into JSON responses.
    NotFound → 404, InvalidOperation → 400, PreconditionFailed → 412.
    """

    def dispatch(self, request, *args, **kwargs):
        try:
            return super().dispatch(request, *args, **kwargs)
        except HubError as exc:
            logger.info(
                "Request rejected",
                extra={
                    "path": request.path,
                    "error": exc.__class__.__name__,
                    "detail": exc.message,
                    "action": "request_rejected",
                },
            )
            return JsonResponse({"error": exc.message, "code": exc.__class__.__name__},
                                status=exc.status_code)


def page_not_found_view(request, exception):  # ✅ handles 404s raised outside our services
    return JsonResponse({"error": "Not found.", "code": "NotFound"}, status=404)
