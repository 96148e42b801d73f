"""
Metrics infrastructure package.
"""
from .prometheus import (
    HTTP_REQUESTS_TOTAL,
    HTTP_REQUEST_DURATION,
    RESOURCE_QUERIES_TOTAL,
    RESOURCE_MATCHED_TOTAL,
    CART_MUTATIONS_TOTAL,
    DB_QUERY_DURATION,
)

__all__ = [
    "HTTP_REQUESTS_TOTAL",
    "HTTP_REQUEST_DURATION",
    "RESOURCE_QUERIES_TOTAL",
    "RESOURCE_MATCHED_TOTAL",
    "CART_MUTATIONS_TOTAL",
    "DB_QUERY_DURATION",
]
