# core/errors.py
"""Error taxonomy for the activity API.

Every error carries a machine-readable ``code`` and the HTTP status the API
boundary should answer with. ``MalformedRecord`` never reaches the boundary:
the ledger builder logs it and drops the record.
"""
from __future__ import annotations


class ActivityError(Exception):
    code = "InternalError"
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"error": self.code, "message": self.message}


class ValidationFailed(ActivityError):
    status_code = 400


class InvalidAddress(ValidationFailed):
    code = "InvalidAddress"


class InvalidGranularity(ValidationFailed):
    code = "InvalidGranularity"


class InvalidRange(ValidationFailed):
    code = "InvalidRange"


class EmptyRange(ValidationFailed):
    code = "EmptyRange"


class RangeTooLarge(ValidationFailed):
    code = "RangeTooLarge"


class DataSourceError(ActivityError):
    """Raised when an upstream data source cannot satisfy a request."""

    code = "DataSourceUnavailable"
    status_code = 502


class DataSourceUnavailable(DataSourceError):
    code = "DataSourceUnavailable"
    status_code = 502


class DataSourceTimeout(DataSourceError):
    code = "DataSourceTimeout"
    status_code = 504


class MalformedRecord(ActivityError):
    code = "MalformedRecord"

    def __init__(self, message: str, signature: str | None = None) -> None:
        super().__init__(message)
        self.signature = signature
