"""
Query policies for the product collection.
"""
from internal.domain.query import Condition, Operator
from internal.usecase.list_resources import ResourcePolicy


NOT_DELETED = Condition("is_deleted", Operator.EQ, False)
ACTIVE = Condition("is_active", Operator.EQ, True)

# Fields indexed for free-text search, and the text search configuration
# the index in migrations/001_catalog.sql is built with.
PRODUCT_TEXT_FIELDS = ("name", "description", "brand", "salt_composition")
PRODUCT_TEXT_CONFIG = "simple"

# camelCase flag names accepted from clients.
PRODUCT_FIELD_ALIASES = (
    ("isActive", "is_active"),
    ("isDeleted", "is_deleted"),
    ("isFeatured", "is_featured"),
    ("inStock", "in_stock"),
)

# Storefront: only active, non-deleted products.
PUBLIC_PRODUCTS = ResourcePolicy(
    name="products",
    baseline=(ACTIVE, NOT_DELETED),
    contains_fields=frozenset({"category"}),
    field_aliases=PRODUCT_FIELD_ALIASES,
)

# Back office: inactive products are visible, deleted ones never are.
ADMIN_PRODUCTS = ResourcePolicy(
    name="admin_products",
    baseline=(NOT_DELETED,),
    contains_fields=frozenset({"category"}),
    field_aliases=PRODUCT_FIELD_ALIASES,
)
