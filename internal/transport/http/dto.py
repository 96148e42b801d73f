"""
Data Transfer Objects for Catalog Service API.

Contains Pydantic models for request/response validation.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from internal.domain.cart import CartView, PricedLine
from internal.domain.query import PageWindow, ResultEnvelope


# Listing DTOs
class PageLink(BaseModel):
    """Descriptor of an adjacent page."""

    page: int = Field(..., description="1-based page number")
    limit: int = Field(..., description="Page size")

    @classmethod
    def from_window(cls, window: PageWindow) -> "PageLink":
        return cls(page=window.page, limit=window.limit)


class ListResponse(BaseModel):
    """Paginated listing envelope."""

    success: bool = True
    count: int = Field(..., description="Number of items in this page")
    pagination: Dict[str, PageLink] = Field(
        default_factory=dict,
        description="`next` and `prev` descriptors, present only when the page exists",
    )
    data: List[Dict[str, Any]] = Field(default_factory=list)

    class Config:
        json_schema_extra = {
            "example": {
                "success": True,
                "count": 1,
                "pagination": {"next": {"page": 3, "limit": 1}, "prev": {"page": 1, "limit": 1}},
                "data": [{"id": "4f1c0d8e2a9b4c7d8e6f5a4b3c2d1e0f", "name": "Paracetamol 500mg"}],
            }
        }

    @classmethod
    def from_envelope(cls, envelope: ResultEnvelope) -> "ListResponse":
        pagination = {}
        if envelope.next_page is not None:
            pagination["next"] = PageLink.from_window(envelope.next_page)
        if envelope.prev_page is not None:
            pagination["prev"] = PageLink.from_window(envelope.prev_page)
        return cls(count=envelope.count, pagination=pagination, data=envelope.items)


class CategoriesResponse(BaseModel):
    """Distinct categories of visible products."""

    success: bool = True
    count: int
    data: List[str]


class FeaturedResponse(BaseModel):
    """Featured products."""

    success: bool = True
    count: int
    data: List[Dict[str, Any]]


# Product DTOs
class ProductFields(BaseModel):
    """Writable product fields."""

    slug: Optional[str] = Field(None, max_length=250)
    brand: Optional[str] = None
    description: Optional[str] = None
    short_description: Optional[str] = None
    category: Optional[str] = None
    sub_category: Optional[str] = None
    mrp: Optional[Decimal] = Field(None, ge=0)
    discount: Optional[Decimal] = Field(None, ge=0, le=100)
    stock: Optional[int] = Field(None, ge=0)
    unit: Optional[str] = None
    salt_composition: Optional[str] = None
    manufacturer: Optional[str] = None
    thumbnail: Optional[str] = None
    is_prescription_required: Optional[bool] = None
    is_featured: Optional[bool] = None
    is_active: Optional[bool] = None


class CreateProductRequest(ProductFields):
    """Request body for creating a product."""

    name: str = Field(..., min_length=1, max_length=200)
    price: Decimal = Field(..., ge=0)

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Paracetamol 500mg",
                "price": 25.5,
                "mrp": 30,
                "discount": 10,
                "category": "Pain Relief",
                "brand": "Calpol",
                "stock": 120,
            }
        }


class UpdateProductRequest(ProductFields):
    """Request body for a partial product update."""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    price: Optional[Decimal] = Field(None, ge=0)


class ProductResponse(BaseModel):
    """Single product envelope."""

    success: bool = True
    data: Dict[str, Any]


class MessageResponse(BaseModel):
    """Acknowledgement envelope."""

    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    """Error envelope."""

    success: bool = False
    message: str


# Cart DTOs
class AddCartItemRequest(BaseModel):
    """Request body for adding a product to the cart."""

    product_id: str = Field(..., min_length=1, alias="productId")
    # validated by the cart service so every bad quantity gets the same error
    quantity: Any = 1

    class Config:
        populate_by_name = True
        json_schema_extra = {"example": {"productId": "4f1c0d8e2a9b4c7d8e6f5a4b3c2d1e0f", "quantity": 2}}


class UpdateCartItemRequest(BaseModel):
    """Request body for setting a line quantity."""

    quantity: Any


class CartLineDTO(BaseModel):
    """Cart line priced from the current catalog."""

    product_id: str = Field(..., alias="productId")
    name: Optional[str] = None
    slug: Optional[str] = None
    thumbnail: Optional[str] = None
    quantity: int
    price: float = Field(..., description="Current unit price")
    line_total: float = Field(..., alias="lineTotal")

    class Config:
        populate_by_name = True

    @classmethod
    def from_line(cls, line: PricedLine) -> "CartLineDTO":
        return cls(
            product_id=line.product_id,
            name=line.product.get("name"),
            slug=line.product.get("slug"),
            thumbnail=line.product.get("thumbnail"),
            quantity=line.quantity,
            price=float(line.unit_price),
            line_total=float(line.line_total),
        )


class CartDTO(BaseModel):
    """Cart contents and totals."""

    items: List[CartLineDTO] = Field(default_factory=list)
    total_items: int = Field(0, alias="totalItems")
    total_price: float = Field(0.0, alias="totalPrice")
    unavailable_items: List[str] = Field(default_factory=list, alias="unavailableItems")

    class Config:
        populate_by_name = True

    @classmethod
    def from_view(cls, view: CartView) -> "CartDTO":
        return cls(
            items=[CartLineDTO.from_line(line) for line in view.lines],
            total_items=view.totals.total_items,
            total_price=float(view.totals.total_price),
            unavailable_items=list(view.unavailable),
        )


class CartResponse(BaseModel):
    """Cart envelope."""

    success: bool = True
    data: CartDTO
