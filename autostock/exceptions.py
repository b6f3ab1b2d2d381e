"""
Exceptions for Autostock.

Every error is an InventoryError carrying a structured code for
programmatic handling. Subclasses name the error kind; adapters map
them to their own protocol (HTTP status, gRPC code, ...).
"""

from decimal import Decimal
from typing import Any


class InventoryError(Exception):
    """
    Structured exception for inventory operations.

    Usage:
        try:
            inventory.create_reservation('C0001', 10, 'customer-42')
        except InsufficientStock as e:
            print(f"Only {e.available} available")
        except InventoryError as e:
            return JsonResponse(e.as_dict(), status=400)

    Attributes:
        code: Error code for programmatic handling
        message: Human-readable message
        data: Additional context data
    """

    default_code = 'INVENTORY_ERROR'
    retryable = False

    _default_messages = {
        'INVENTORY_ERROR': 'Inventory operation failed',
        'VALIDATION_ERROR': 'Invalid input',
        'INVALID_QUANTITY': 'Quantity must be a positive integer',
        'INVALID_EXPIRY': 'Expiry must be in the future',
        'SAME_WAREHOUSE': 'Source and destination warehouses must differ',
        'WAREHOUSE_INACTIVE': 'Warehouse is not active',
        'INVALID_FIELD': 'Field cannot be changed through this operation',
        'INVALID_DAYS': 'Days must be a positive integer',
        'NOT_FOUND': 'Resource not found',
        'INSUFFICIENT_STOCK': 'Requested quantity exceeds available stock',
        'CONFLICT': 'Concurrent modification detected, retry the operation',
        'INVALID_STATE_TRANSITION': 'Operation not allowed in the current state',
        'CAPACITY_EXCEEDED': 'Warehouse capacity would be exceeded',
        'INTERNAL_INCONSISTENCY': 'Ledger invariant violated',
    }

    def __init__(self, code: str | None = None, message: str | None = None, **data):
        self.code = code or self.default_code
        self.message = message or self._default_messages.get(self.code, self.code)
        self.data = data
        super().__init__(self.message)

    def __str__(self) -> str:
        if not self.data:
            return f"[{self.code}] {self.message}"
        details = ', '.join(f"{k}={v}" for k, v in self.data.items())
        return f"[{self.code}] {self.message} ({details})"

    def as_dict(self) -> dict[str, Any]:
        """Serialize to dict (useful for APIs)."""
        return {
            'code': self.code,
            'message': self.message,
            'retryable': self.retryable,
            'data': {
                k: str(v) if isinstance(v, Decimal) else v
                for k, v in self.data.items()
            },
        }


class ValidationError(InventoryError):
    """Malformed input. Raised before any write."""

    default_code = 'VALIDATION_ERROR'


class NotFound(InventoryError):
    """Unknown car, warehouse, reservation, transfer or snapshot."""

    default_code = 'NOT_FOUND'


class InsufficientStock(InventoryError):
    """Requested quantity exceeds what is free at selection time."""

    default_code = 'INSUFFICIENT_STOCK'

    @property
    def available(self) -> int:
        """Shortcut for data['available']."""
        return self.data.get('available', 0)

    @property
    def requested(self) -> int:
        """Shortcut for data['requested']."""
        return self.data.get('requested', 0)


class Conflict(InventoryError):
    """Version compare-and-set lost to a concurrent writer."""

    default_code = 'CONFLICT'
    retryable = True


class InvalidStateTransition(InventoryError):
    """Operation attempted from a terminal or incompatible state."""

    default_code = 'INVALID_STATE_TRANSITION'


class CapacityExceeded(InventoryError):
    """Warehouse total capacity would be exceeded."""

    default_code = 'CAPACITY_EXCEEDED'


class InternalInconsistency(InventoryError):
    """An invariant the ledger should have prevented was violated."""

    default_code = 'INTERNAL_INCONSISTENCY'
