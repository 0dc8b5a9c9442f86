import logging
from typing import Any, Mapping

from ossclient.infra.observability.metrics import LATENCY, REQUESTS

logger = logging.getLogger("ossclient.http")

SENSITIVE_KEYS = {
    "authorization",
    "x-oss-security-token",
    "security-token",
    "access_key_secret",
    "secret",
    "token",
}


def mask_mapping(obj: Any) -> Any:
    if isinstance(obj, Mapping):
        masked: dict[str, Any] = {}
        for k, v in obj.items():
            if isinstance(k, str) and k.lower() in SENSITIVE_KEYS:
                masked[k] = "***"
            else:
                masked[k] = mask_mapping(v)
        return masked
    if isinstance(obj, list):
        return [mask_mapping(x) for x in obj]
    return obj


def record_request(
    *,
    method: str,
    operation: str,
    bucket: str,
    object_name: str,
    status_code: int,
    elapsed: float,
    request_id: str | None,
    request_headers: Mapping[str, str] | None = None,
) -> None:
    """Count, time and log one completed OSS request.

    ``request_headers`` is only logged when given, after masking.
    """
    REQUESTS.labels(method, operation, str(status_code)).inc()
    LATENCY.labels(method, operation).observe(elapsed)

    level = logging.INFO
    if status_code >= 500:
        level = logging.ERROR
    elif status_code >= 400:
        level = logging.WARNING

    duration_ms = round(elapsed * 1000, 3)
    extra_payload: dict[str, Any] = {
        "method": method,
        "operation": operation,
        "bucket": bucket,
        "object": object_name,
        "status": status_code,
        "duration_ms": duration_ms,
        "request_id": request_id,
    }
    if request_headers is not None:
        extra_payload["request_headers"] = mask_mapping(dict(request_headers))

    logger.log(
        level,
        "oss_request method=%s operation=%s bucket=%s object=%s status=%s "
        "duration_ms=%.3f request_id=%s",
        method,
        operation,
        bucket or "-",
        object_name or "-",
        status_code,
        duration_ms,
        request_id or "-",
        extra={"extra": extra_payload},
    )


def record_failure(
    *,
    method: str,
    operation: str,
    bucket: str,
    object_name: str,
    elapsed: float,
    exc: BaseException,
) -> None:
    """Count and log a request that failed below the HTTP layer."""
    REQUESTS.labels(method, operation, "error").inc()
    LATENCY.labels(method, operation).observe(elapsed)
    duration_ms = round(elapsed * 1000, 3)
    logger.error(
        "oss_request_error method=%s operation=%s bucket=%s object=%s duration_ms=%.3f",
        method,
        operation,
        bucket or "-",
        object_name or "-",
        duration_ms,
        exc_info=exc,
        extra={
            "extra": {
                "method": method,
                "operation": operation,
                "bucket": bucket,
                "object": object_name,
                "status": "error",
                "duration_ms": duration_ms,
                "exception": repr(exc),
            }
        },
    )
