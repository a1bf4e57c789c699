"""
Error kinds raised by the tracker backend.

Routes never build HTTP responses for these directly; ``backend.main`` maps
each kind to a status code.
"""
from __future__ import annotations


class TrackerError(Exception):
    """Base exception for the tracker backend"""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class UnauthorizedError(TrackerError):
    """Raised when no authenticated user id is present"""

    status_code = 401

    def __init__(self, message: str = "Missing authenticated user"):
        super().__init__(message)


class NotFoundError(TrackerError):
    """Raised when a record does not exist for the current user"""

    status_code = 404

    def __init__(self, entity: str, record_id: str):
        self.entity = entity
        self.record_id = record_id
        super().__init__(f"{entity} {record_id} not found")


class ValidationError(TrackerError):
    """Raised when a request is well-formed but not acceptable"""

    status_code = 400

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Validation error for {field}: {message}")


class InvalidDateError(TrackerError, ValueError):
    """Raised when a date or timestamp cannot be parsed"""

    status_code = 400

    def __init__(self, value):
        self.value = value
        super().__init__(f"Invalid date value: {value!r}")


class StorageError(TrackerError):
    """Raised when a database read or write fails"""

    status_code = 503

    def __init__(self, operation: str, details: str = ""):
        self.operation = operation
        self.details = details
        super().__init__(f"Could not {operation}. Please try again.")
