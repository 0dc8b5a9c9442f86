from prometheus_client import Counter, Histogram

# 低基数标签：使用操作名（如 upload_part），不使用对象 key，避免高基数
REQUESTS = Counter(
    "oss_requests_total",
    "Total OSS requests",
    ["method", "operation", "status"],
)

LATENCY = Histogram(
    "oss_request_duration_seconds",
    "OSS request latency in seconds",
    ["method", "operation"],
)
