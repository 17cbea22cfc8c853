"""
Error taxonomy for the reporting API.

Route handlers raise these; create_app() registers one exception handler
that renders them as the standard JSON error body::

    {"error": "Invalid month", "details": "...", "status_code": 400}
"""


class ReportingError(Exception):
    """Base class for errors that map to a JSON error response."""

    status_code = 500
    error = "Internal server error"

    def __init__(self, details: str = "", error: str | None = None) -> None:
        super().__init__(details or error or self.error)
        self.details = details
        if error is not None:
            self.error = error


class InvalidArgument(ReportingError, ValueError):
    """A query parameter is missing or out of range (400)."""

    status_code = 400
    error = "Invalid argument"


class UpstreamFailure(ReportingError):
    """The seed source could not be fetched or parsed (500)."""

    error = "Upstream failure"


class StoreFailure(ReportingError):
    """A query or aggregation against the store failed (500)."""

    error = "Store failure"
