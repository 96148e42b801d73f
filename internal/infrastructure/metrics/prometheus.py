"""
Prometheus Metrics for the Catalog Service.

Defines all metrics for monitoring listing, cart and storage behaviour.
"""

from prometheus_client import Counter, Histogram

# HTTP
HTTP_REQUESTS_TOTAL = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status_code']
)

HTTP_REQUEST_DURATION = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

# Resource listing
RESOURCE_QUERIES_TOTAL = Counter(
    'resource_queries_total',
    'Resource list/search queries executed',
    ['resource', 'status']  # status: success, invalid, error
)

RESOURCE_MATCHED_TOTAL = Histogram(
    'resource_matched_total',
    'Documents matched per listing query, ignoring pagination',
    ['resource'],
    buckets=[0, 1, 10, 25, 100, 500, 1000, 5000, 10000]
)

# Cart
CART_MUTATIONS_TOTAL = Counter(
    'cart_mutations_total',
    'Cart mutations',
    ['operation', 'status']  # operation: add, update, remove, clear
)

# Storage
DB_QUERY_DURATION = Histogram(
    'db_query_duration_seconds',
    'Database query duration',
    ['operation'],  # find_page, find, count, insert, update, upsert
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0]
)
