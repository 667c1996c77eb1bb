"""Error taxonomy shared by the analytics services and the HTTP boundary.

Every error carries a machine readable ``kind`` and a human readable
``message``; the HTTP layer renders both and maps ``status_code`` onto the
response.
"""


def format_validation_errors(errors) -> str:
    """Flatten pydantic-style error dicts into one ``loc: msg; ...`` line."""
    parts = []
    for error in errors:
        location = ".".join(str(part) for part in error.get("loc", ()))
        message = error.get("msg", "invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts) or "invalid request"


class AnalyticsError(Exception):
    kind = "analytics_error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message}


class NotFoundError(AnalyticsError):
    """No processed batch exists for the requested scope."""

    kind = "not_found"
    status_code = 404


class ValidationError(AnalyticsError):
    """Filter or payload input rejected before any aggregation work."""

    kind = "validation_error"
    status_code = 400


class IngestionError(AnalyticsError):
    kind = "ingestion_error"
    status_code = 500

    def __init__(self, message: str, batch_id: str | None = None):
        super().__init__(message)
        self.batch_id = batch_id

    def to_dict(self) -> dict:
        payload = super().to_dict()
        if self.batch_id:
            payload["batch_id"] = self.batch_id
        return payload


__all__ = [
    "AnalyticsError",
    "IngestionError",
    "NotFoundError",
    "ValidationError",
    "format_validation_errors",
]
