"""Domain errors raised by the checkout and reporting services.

Every error carries a ``kind`` understood by API clients and the HTTP status
the boundary layer answers with. ``details`` holds structured context that is
merged into the JSON error body.
"""

from typing import Any


class ShopPosError(Exception):
    kind = "internal"
    status_code = 500

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "message": self.message, **self.details}


class ValidationError(ShopPosError):
    kind = "validation"
    status_code = 400


class NotFoundError(ShopPosError):
    kind = "not-found"
    status_code = 404

    @classmethod
    def for_entity(cls, entity: str, entity_id: int) -> "NotFoundError":
        return cls(f"{entity} {entity_id} not found", entity=entity.lower(), id=entity_id)


class InsufficientStockError(ShopPosError):
    kind = "insufficient-stock"
    status_code = 409

    def __init__(self, inventory_id: int, label: str, available: int, requested: int) -> None:
        super().__init__(
            f"Insufficient stock for {label}: available {available}, requested {requested}",
            inventory_id=inventory_id,
            item=label,
            available=available,
            requested=requested,
        )


class ConflictError(ShopPosError):
    """Transaction lost a race with a concurrent writer; the whole request may be retried once."""

    kind = "conflict"
    status_code = 409

    def __init__(self, message: str = "Concurrent update detected, please retry", **details: Any) -> None:
        super().__init__(message, retryable=True, **details)


class InternalError(ShopPosError):
    kind = "internal"
    status_code = 500

    def __init__(self, message: str = "Unable to complete the request") -> None:
        super().__init__(message)
