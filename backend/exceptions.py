"""Error kinds raised by the purchase order and payment workflows."""

from typing import List, Dict, Optional


class ServiceError(Exception):
    """Base class for errors surfaced to callers as a (kind, message) pair."""

    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict:
        return {"kind": self.kind, "message": self.message, "errors": []}


class ValidationError(ServiceError):
    """Malformed or out-of-range input. Raised before any write happens."""

    kind = "validation_error"

    def __init__(self, message: str, errors: Optional[List[Dict[str, str]]] = None):
        super().__init__(message)
        # Field-level detail, e.g. [{"field": "items.0.quantity", "message": "..."}]
        self.errors = errors or []

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(message, [{"field": field, "message": message}])

    def to_dict(self) -> Dict:
        return {"kind": self.kind, "message": self.message, "errors": self.errors}


class NotFoundError(ServiceError):
    kind = "not_found"


class ConflictError(ServiceError):
    """Unique value clash or a state that forbids the operation. Caller may regenerate and retry."""

    kind = "conflict"


class ReconciliationError(ServiceError):
    """Unexpected failure inside a multi-row update. The transaction has been rolled back."""

    kind = "reconciliation_error"
