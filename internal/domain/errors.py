"""
Domain-specific exceptions.

Custom exceptions for query translation, catalog and cart rule violations.
"""
from typing import Optional


class DomainError(Exception):
    """Base exception for domain errors."""

    def __init__(self, message: str) -> None:
        """
        Initialize domain error.

        Args:
            message: Error message describing the issue.
        """
        self.message = message
        super().__init__(self.message)


class DomainValidationError(DomainError):
    """Exception raised when entity validation fails."""
    pass


class InvalidQueryError(DomainError):
    """Exception raised when a required query term is missing or malformed."""
    pass


class ProductNotFoundError(DomainError):
    """Exception raised when a referenced catalog product does not exist."""

    def __init__(self, product_id: str) -> None:
        """
        Initialize product not found error.

        Args:
            product_id: The ID (or slug) of the product that was not found.
        """
        super().__init__(f"Product not found with id or slug of {product_id}")
        self.product_id = product_id


class CartNotFoundError(DomainError):
    """Exception raised when an operation requires a cart that was never created."""

    def __init__(self, owner_id: str) -> None:
        super().__init__("Cart not found")
        self.owner_id = owner_id


class LineNotFoundError(DomainError):
    """Exception raised when updating a product that is not a line in the cart."""

    def __init__(self, product_id: str) -> None:
        super().__init__("Item not found in cart")
        self.product_id = product_id


class InvalidQuantityError(DomainError):
    """Exception raised for non-positive or non-numeric line quantities."""

    def __init__(self, quantity: Optional[object] = None) -> None:
        """
        Initialize invalid quantity error.

        Args:
            quantity: The rejected raw quantity value.
        """
        super().__init__("Quantity must be at least 1")
        self.quantity = quantity
