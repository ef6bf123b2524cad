# pricing/exceptions.py

"""
Errors raised by the pricing services.

Both are deterministic for a given input and are never retried. A
below-cost price is not an error: it comes back flagged on the result.
"""


class PricingError(Exception):
    """Base class for pricing failures ("cannot price")."""


class NotFoundError(PricingError, LookupError):
    """No rate rule exists for the requested product size."""

    def __init__(self, size_id):
        self.size_id = size_id
        super().__init__(f"Invalid product size: {size_id!r}")


class InvalidArgumentError(PricingError, ValueError):
    """A quantity, override or rate rule value is out of range."""
