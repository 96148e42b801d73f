"""
Domain model for the shopping Cart.

A cart stores only (product, quantity) lines. Unit prices and totals are
never stored: they are resolved from the live catalog every time the cart is
read or changed.
"""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Mapping, Optional

from .errors import LineNotFoundError
from .product import utcnow
from .value_objects import Price, Quantity


@dataclass
class LineItem:
    """
    One cart line.

    Attributes:
        product_id: Referenced catalog product.
        quantity: Units of the product, at least 1.
    """
    product_id: str
    quantity: int

    def to_dict(self) -> dict:
        return {"product_id": self.product_id, "quantity": self.quantity}

    @classmethod
    def from_dict(cls, data: dict) -> "LineItem":
        return cls(product_id=str(data["product_id"]), quantity=int(data["quantity"]))


@dataclass
class Cart:
    """
    Cart aggregate, one per owner.

    Attributes:
        owner_id: Identity of the owning user.
        items: Lines in insertion order.
    """
    owner_id: str
    items: list[LineItem] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def find_line(self, product_id: str) -> Optional[LineItem]:
        """Return the line for `product_id`, matched by identity."""
        return next(
            (line for line in self.items if line.product_id == product_id),
            None,
        )

    def add(self, product_id: str, quantity: Quantity) -> None:
        """
        Add units of a product.

        A product already in the cart has the quantity added to its line;
        otherwise a new line is appended.
        """
        line = self.find_line(product_id)
        if line is not None:
            line.quantity = (Quantity(line.quantity) + quantity).value
        else:
            self.items.append(LineItem(product_id=product_id, quantity=quantity.value))
        self.updated_at = utcnow()

    def set_quantity(self, product_id: str, quantity: Quantity) -> None:
        """
        Replace the quantity of an existing line.

        Raises:
            LineNotFoundError: If the product is not in the cart.
        """
        line = self.find_line(product_id)
        if line is None:
            raise LineNotFoundError(product_id)
        line.quantity = quantity.value
        self.updated_at = utcnow()

    def remove(self, product_id: str) -> None:
        """Remove a product's line. Removing a non-member is a no-op."""
        self.items = [line for line in self.items if line.product_id != product_id]
        self.updated_at = utcnow()

    def clear(self) -> None:
        """Remove every line."""
        self.items = []
        self.updated_at = utcnow()

    @property
    def product_ids(self) -> list[str]:
        return [line.product_id for line in self.items]

    def to_document(self) -> dict:
        return {
            "owner_id": self.owner_id,
            "items": [line.to_dict() for line in self.items],
            "created_at": self.created_at.isoformat(timespec="microseconds"),
            "updated_at": self.updated_at.isoformat(timespec="microseconds"),
        }

    @classmethod
    def from_document(cls, document: dict) -> "Cart":
        created_at = document.get("created_at") or utcnow()
        updated_at = document.get("updated_at") or created_at
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)
        if isinstance(updated_at, str):
            updated_at = datetime.fromisoformat(updated_at)
        return cls(
            owner_id=str(document["owner_id"]),
            items=[LineItem.from_dict(item) for item in document.get("items") or []],
            created_at=created_at,
            updated_at=updated_at,
        )


@dataclass(frozen=True)
class PricedLine:
    """A cart line with its unit price resolved from the current catalog."""
    product_id: str
    quantity: int
    unit_price: Decimal
    product: dict

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class CartTotals:
    """Derived cart totals."""
    total_items: int = 0
    total_price: Decimal = Decimal("0")


@dataclass(frozen=True)
class CartView:
    """
    Priced snapshot of a cart.

    Attributes:
        lines: Lines whose product still exists, in cart order.
        totals: Aggregates over `lines`.
        unavailable: Product ids of lines whose product no longer exists.
    """
    lines: list[PricedLine]
    totals: CartTotals
    unavailable: list[str] = field(default_factory=list)


def aggregate(lines: list[PricedLine]) -> CartTotals:
    """
    Compute totals from scratch.

    Args:
        lines: Priced lines.

    Returns:
        Sum of quantities and sum of quantity x unit price.
    """
    total_items = 0
    total_price = Decimal("0")
    for line in lines:
        total_items += line.quantity
        total_price += line.line_total
    return CartTotals(total_items=total_items, total_price=total_price)


def price_cart(cart: Cart, catalog: Mapping[str, dict]) -> CartView:
    """
    Resolve every line against the live catalog and aggregate.

    Lines whose product is absent from `catalog` are excluded from the
    priced lines and the totals, and reported as unavailable.

    Args:
        cart: The cart to price.
        catalog: Current product documents keyed by product id.

    Returns:
        CartView with fresh unit prices.
    """
    lines = []
    unavailable = []
    for line in cart.items:
        product = catalog.get(line.product_id)
        if product is None:
            unavailable.append(line.product_id)
            continue
        lines.append(
            PricedLine(
                product_id=line.product_id,
                quantity=line.quantity,
                unit_price=Price.of(product.get("price", 0)).amount,
                product=product,
            )
        )
    return CartView(lines=lines, totals=aggregate(lines), unavailable=unavailable)
