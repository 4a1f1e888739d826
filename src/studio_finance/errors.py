"""Error taxonomy shared by services, the facade and the API."""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Discriminator for failed operations."""

    NOT_FOUND = "not_found"
    INVALID_STATE = "invalid_state"
    VALIDATION_FAILED = "validation_failed"
    STORAGE_FAILURE = "storage_failure"


class FinanceError(Exception):
    """Base class for expected engine failures.

    Raised before any mutation (not found, invalid state, validation) or after
    a rolled-back transaction (storage failure). Callers must not assume any
    state changed.
    """

    code: ErrorCode = ErrorCode.VALIDATION_FAILED

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class NotFoundError(FinanceError):
    """Raised when a studio, payee or record does not exist."""

    code = ErrorCode.NOT_FOUND

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(
            f"{entity} {entity_id} not found",
            {"entity": entity, "id": str(entity_id)},
        )


class InvalidStateError(FinanceError):
    """Raised when a record is not in a state that allows the operation."""

    code = ErrorCode.INVALID_STATE

    def __init__(
        self,
        entity: str,
        entity_id: Any,
        status: str | None,
        reason: str | None = None,
    ):
        self.entity = entity
        self.entity_id = entity_id
        self.status = status
        self.reason = reason
        msg = f"{entity} {entity_id} is in state '{status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(
            msg,
            {"entity": entity, "id": str(entity_id), "status": status, "reason": reason},
        )


class ValidationFailedError(FinanceError):
    """Raised when input amounts or shapes are inconsistent."""

    code = ErrorCode.VALIDATION_FAILED

    def __init__(self, message: str, errors: list[str] | None = None):
        self.errors = errors or [message]
        super().__init__(message, {"errors": self.errors})


class StorageFailureError(FinanceError):
    """Raised when the store could not apply a transaction (rolled back)."""

    code = ErrorCode.STORAGE_FAILURE
