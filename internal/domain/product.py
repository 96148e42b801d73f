"""
Domain model for catalog Product.

Products are stored as JSON documents; this entity owns the invariants and
derived fields that must hold whenever a product document is written.
"""
import re
import unicodedata
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional
from uuid import uuid4

from .errors import DomainValidationError
from .value_objects import Price


NAME_MAX_LENGTH = 200
SHORT_DESCRIPTION_MAX_LENGTH = 300

# Fields a client may set on create/update. Everything else is derived or
# owned by the system.
WRITABLE_FIELDS = frozenset({
    "name",
    "slug",
    "brand",
    "description",
    "short_description",
    "category",
    "sub_category",
    "price",
    "mrp",
    "discount",
    "stock",
    "unit",
    "salt_composition",
    "manufacturer",
    "thumbnail",
    "is_prescription_required",
    "is_featured",
    "is_active",
})


def utcnow() -> datetime:
    """Current UTC time (timezone-aware)."""
    return datetime.now(timezone.utc)


def slugify(text: str) -> str:
    """
    Build a lowercase URL slug from free text.

    Accents are folded to ASCII and every run of other characters
    collapses into a single hyphen.
    """
    normalized = unicodedata.normalize("NFKD", text)
    ascii_text = normalized.encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", ascii_text.lower())
    return slug.strip("-")


def _to_decimal(value: Any, name: str) -> Decimal:
    try:
        return Price.of(value).amount
    except DomainValidationError:
        raise DomainValidationError(f"{name} must be a positive number")


@dataclass
class Product:
    """
    Catalog product aggregate.

    Attributes:
        id: Unique identifier (hex UUID).
        name: Display name.
        slug: URL slug, derived from the name when not supplied.
        price: Selling base price.
        mrp: Maximum retail price, never below `price`.
        discount: Percentage discount (0-100).
        selling_price: Derived, `price - price * discount / 100`.
        stock: Units on hand.
        in_stock: Derived, `stock > 0`.
        is_active: Visible in the public catalog.
        is_deleted: Soft-deleted; invisible everywhere.
    """
    name: str = ""
    price: Decimal = Decimal("0")
    mrp: Optional[Decimal] = None
    id: str = field(default_factory=lambda: uuid4().hex)
    slug: str = ""
    brand: str = ""
    description: str = ""
    short_description: Optional[str] = None
    category: str = ""
    sub_category: Optional[str] = None
    discount: Decimal = Decimal("0")
    selling_price: Decimal = Decimal("0")
    stock: int = 0
    in_stock: bool = False
    unit: Optional[str] = None
    salt_composition: Optional[str] = None
    manufacturer: Optional[str] = None
    thumbnail: Optional[str] = None
    rating: Decimal = Decimal("0")
    num_reviews: int = 0
    is_prescription_required: bool = False
    is_featured: bool = False
    is_active: bool = True
    is_deleted: bool = False
    created_by: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        """Normalize numeric fields, derive computed ones and validate."""
        self.name = (self.name or "").strip()
        self.price = _to_decimal(self.price, "Price")
        self.mrp = self.price if self.mrp is None else _to_decimal(self.mrp, "MRP")
        self.discount = _to_decimal(self.discount, "Discount")
        self.rating = _to_decimal(self.rating, "Rating")
        if not self.slug and self.name:
            self.slug = slugify(self.name)
        self._derive()
        self._validate()

    def _derive(self) -> None:
        self.selling_price = self.price - (self.price * self.discount) / 100
        self.in_stock = self.stock > 0

    def _validate(self) -> None:
        """
        Validate domain invariants.

        Raises:
            DomainValidationError: If validation fails.
        """
        if not self.name:
            raise DomainValidationError("Product name is required")
        if len(self.name) > NAME_MAX_LENGTH:
            raise DomainValidationError(
                f"Product name cannot exceed {NAME_MAX_LENGTH} characters"
            )
        if (
            self.short_description
            and len(self.short_description) > SHORT_DESCRIPTION_MAX_LENGTH
        ):
            raise DomainValidationError(
                f"Short description cannot exceed {SHORT_DESCRIPTION_MAX_LENGTH} characters"
            )
        if self.mrp < self.price:
            raise DomainValidationError(
                "MRP must be greater than or equal to selling price"
            )
        if self.discount > 100:
            raise DomainValidationError("Discount cannot be more than 100%")
        if not isinstance(self.stock, int) or self.stock < 0:
            raise DomainValidationError("Stock cannot be negative")
        if self.rating > 5:
            raise DomainValidationError("Rating cannot be more than 5")

    def apply_changes(self, changes: dict) -> None:
        """
        Apply a partial update.

        The slug is regenerated when the name changes and no explicit slug
        is supplied. Unknown or system-owned keys are ignored.

        Args:
            changes: Mapping of writable field name to new value.
        """
        renamed = "name" in changes and changes["name"] != self.name
        for key, value in changes.items():
            if key in WRITABLE_FIELDS:
                setattr(self, key, value)
        if renamed and "slug" not in changes:
            self.slug = ""
        self.updated_at = utcnow()
        self.__post_init__()

    def soft_delete(self) -> None:
        """Mark the product as deleted without removing the document."""
        self.is_deleted = True
        self.updated_at = utcnow()

    def to_document(self) -> dict:
        """
        Convert to a JSON-native document.

        Returns:
            Dictionary suitable for the document store.
        """
        document = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, Decimal):
                value = float(value)
            elif isinstance(value, datetime):
                value = value.isoformat(timespec="microseconds")
            document[f.name] = value
        return document

    @classmethod
    def from_document(cls, document: dict) -> "Product":
        """
        Rebuild a product from a stored document.

        Args:
            document: Stored product document.

        Returns:
            Product entity.
        """
        known = {f.name for f in fields(cls)}
        data = {k: v for k, v in document.items() if k in known}
        for key in ("created_at", "updated_at"):
            if isinstance(data.get(key), str):
                data[key] = datetime.fromisoformat(data[key])
        return cls(**data)
