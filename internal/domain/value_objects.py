"""
Value Objects for the catalog and cart domain.

Value objects are immutable and defined by their attributes.
"""
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from .errors import DomainValidationError, InvalidQuantityError


@dataclass(frozen=True)
class Price:
    """
    Monetary amount of a catalog product.

    Attributes:
        amount: The price amount, never negative.
    """
    amount: Decimal

    def __post_init__(self) -> None:
        """Validate price constraints."""
        if self.amount < 0:
            raise DomainValidationError("Price must be a positive number")

    @classmethod
    def of(cls, value: Any) -> "Price":
        """
        Build a price from a stored number or string.

        Args:
            value: Raw amount (int, float, str or Decimal).

        Returns:
            Price instance.

        Raises:
            DomainValidationError: If the value is not a number.
        """
        if isinstance(value, bool):
            raise DomainValidationError(f"Invalid price: {value!r}")
        try:
            # str() keeps floats like 9.99 from expanding to binary noise
            return cls(amount=Decimal(str(value)))
        except (InvalidOperation, ValueError):
            raise DomainValidationError(f"Invalid price: {value!r}")


@dataclass(frozen=True)
class Quantity:
    """
    Positive line-item quantity.

    Attributes:
        value: Number of units, at least 1.
    """
    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise InvalidQuantityError(self.value)
        if self.value < 1:
            raise InvalidQuantityError(self.value)

    @classmethod
    def parse(cls, raw: Any) -> "Quantity":
        """
        Parse a client-supplied quantity.

        Accepts ints and integer strings; everything else (floats with a
        fractional part, non-numeric text, booleans, None) is rejected.

        Raises:
            InvalidQuantityError: If the value is not a positive integer.
        """
        if isinstance(raw, bool) or raw is None:
            raise InvalidQuantityError(raw)
        if isinstance(raw, int):
            return cls(raw)
        if isinstance(raw, float):
            if not raw.is_integer():
                raise InvalidQuantityError(raw)
            return cls(int(raw))
        if isinstance(raw, str):
            try:
                return cls(int(raw.strip()))
            except ValueError:
                raise InvalidQuantityError(raw)
        raise InvalidQuantityError(raw)

    def __add__(self, other: "Quantity") -> "Quantity":
        return Quantity(self.value + other.value)
