"""
Cart API Handlers.

The cart owner is the user identity forwarded by the gateway in the
`X-User-ID` header.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Path, status

from internal.domain.cart import CartView
from internal.domain.errors import DomainError
from internal.transport.http.dto import (
    AddCartItemRequest,
    CartDTO,
    CartResponse,
    ErrorResponse,
    UpdateCartItemRequest,
)
from internal.transport.http.errors import to_http_exception
from internal.usecase.cart_service import CartService
from pkg.logger.logger import get_logger, set_owner_id

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/cart", tags=["cart"])

_cart_service: Optional[CartService] = None


def set_cart_service(service: CartService) -> None:
    """Set the cart service instance."""
    global _cart_service
    _cart_service = service


def get_cart_service() -> CartService:
    if _cart_service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not initialized",
        )
    return _cart_service


def get_owner_id(x_user_id: Optional[str] = Header(None, alias="X-User-ID")) -> str:
    """Resolve the cart owner from the forwarded identity header."""
    owner_id = (x_user_id or "").strip()
    if not owner_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-ID header",
        )
    set_owner_id(owner_id)
    return owner_id


def _respond(view: CartView) -> CartResponse:
    return CartResponse(data=CartDTO.from_view(view))


_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid quantity"},
    401: {"model": ErrorResponse, "description": "Missing owner identity"},
    404: {"model": ErrorResponse, "description": "Cart, line or product not found"},
}


@router.get("", response_model=CartResponse, responses=_RESPONSES)
async def get_cart(
    owner_id: str = Depends(get_owner_id),
    service: CartService = Depends(get_cart_service),
) -> CartResponse:
    """Get the caller's cart, creating an empty one on first access."""
    return _respond(await service.get_cart(owner_id))


@router.post("/items", response_model=CartResponse, responses=_RESPONSES)
async def add_cart_item(
    body: AddCartItemRequest,
    owner_id: str = Depends(get_owner_id),
    service: CartService = Depends(get_cart_service),
) -> CartResponse:
    """Add a product to the cart; an existing line has its quantity increased."""
    try:
        view = await service.add_item(owner_id, body.product_id, body.quantity)
    except DomainError as e:
        raise to_http_exception(e)
    return _respond(view)


@router.patch("/items/{product_id}", response_model=CartResponse, responses=_RESPONSES)
async def update_cart_item(
    body: UpdateCartItemRequest,
    product_id: str = Path(..., description="Product ID of the line"),
    owner_id: str = Depends(get_owner_id),
    service: CartService = Depends(get_cart_service),
) -> CartResponse:
    """Set the quantity of a line."""
    try:
        view = await service.update_item(owner_id, product_id, body.quantity)
    except DomainError as e:
        raise to_http_exception(e)
    return _respond(view)


@router.delete("/items/{product_id}", response_model=CartResponse, responses=_RESPONSES)
async def remove_cart_item(
    product_id: str = Path(..., description="Product ID of the line"),
    owner_id: str = Depends(get_owner_id),
    service: CartService = Depends(get_cart_service),
) -> CartResponse:
    """Remove a line; removing a product that is not in the cart changes nothing."""
    try:
        view = await service.remove_item(owner_id, product_id)
    except DomainError as e:
        raise to_http_exception(e)
    return _respond(view)


@router.delete("", response_model=CartResponse, responses=_RESPONSES)
async def clear_cart(
    owner_id: str = Depends(get_owner_id),
    service: CartService = Depends(get_cart_service),
) -> CartResponse:
    """Remove every line from the cart."""
    try:
        view = await service.clear(owner_id)
    except DomainError as e:
        raise to_http_exception(e)
    return _respond(view)
