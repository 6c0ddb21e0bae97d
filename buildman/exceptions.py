"""
Exceptions for Buildman.

All errors are StockError with a structured code for programmatic handling.
"""

from decimal import Decimal
from typing import Any


class BaseError(Exception):
    """
    Exception with a machine-readable code and keyword context.

    Subclasses declare ``_default_messages`` mapping code -> message; an
    explicit ``message`` overrides it.
    """

    _default_messages: dict[str, str] = {}

    def __init__(self, code: str, message: str | None = None, **data: Any):
        self.code = code
        self.message = message or self._default_messages.get(code, code)
        self.data = data
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.code!r}, {self.data!r})"


class StockError(BaseError):
    """
    Structured exception for ledger and costing operations.

    Usage:
        try:
            stock.record_outbound(project_id, material_id, qty, ref)
        except StockError as e:
            if e.code == 'INSUFFICIENT_STOCK':
                print(f"Only {e.available} on hand")

    Attributes:
        code: Error code for programmatic handling
        message: Human-readable message
        data: Additional context data
    """

    _default_messages = {
        'INVALID_QUANTITY': 'Quantity must be positive',
        'INSUFFICIENT_STOCK': 'Insufficient stock for this material',
        'INVALID_TOLERANCE': 'Tolerance fraction must be between 0 and 1',
        'INVALID_STATUS': 'Invalid status for this operation',
        'INVALID_AMOUNT': 'Amount must be positive',
        'INVALID_REFERENCE': 'Invalid movement reference',
        'REASON_REQUIRED': 'Reason is required',
        'NOT_FOUND': 'Referenced record not found',
        'CONCURRENT_MODIFICATION': 'Concurrent modification detected',
    }

    @property
    def available(self) -> Decimal:
        """Shortcut for data['available']."""
        return self.data.get('available', Decimal('0'))

    @property
    def requested(self) -> Decimal:
        """Shortcut for data['requested']."""
        return self.data.get('requested', Decimal('0'))

    def as_dict(self) -> dict[str, Any]:
        """Serialize to dict (useful for APIs)."""
        return {
            'code': self.code,
            'message': self.message,
            'data': {
                k: str(v) if isinstance(v, Decimal) else v
                for k, v in self.data.items()
            }
        }
