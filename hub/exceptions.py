# hub/exceptions.py
# ✅ Errors shared by every app. Views map them to HTTP status codes
#    (see hub/views.py → JsonErrorMixin).


class HubError(Exception):
    """Base class for errors raised by the service layer."""

    status_code = 400

    def __init__(self, message="", **context):
        super().__init__(message)
        self.message = message
        self.context = context                      # extra ids for logs / responses


class NotFound(HubError):
    """The referenced row does not exist or is not owned by the caller."""

    status_code = 404


class InvalidOperation(HubError):
    """The request is well-formed but would break an invariant (e.g. a cyclic move)."""

    status_code = 400


class PreconditionFailed(HubError):
    """An integration is not configured well enough to run the operation."""

    status_code = 412
