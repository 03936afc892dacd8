from prometheus_client import Counter, Histogram, make_asgi_app

# Route label uses the template (/api/v1/buckets/{bucket_name}/files) to keep cardinality low
REQUESTS = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "route", "status"],
)

LATENCY = Histogram(
    "http_request_duration_seconds",
    "Request latency in seconds",
    ["method", "route"],
)

STORAGE_OPERATIONS = Counter(
    "storage_operations_total",
    "Object storage facade operations by outcome",
    ["operation", "outcome"],
)

UPLOAD_DURATION = Histogram(
    "storage_upload_duration_seconds",
    "Time spent transferring staged files to the object store",
)

metrics_app = make_asgi_app()
