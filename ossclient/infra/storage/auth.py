"""OSS request signing.

Every function here is pure: the signature depends only on the request
metadata passed in and the credentials, never on client state.

    Authorization = "OSS " + AccessKeyId + ":" + Signature
    Signature = base64(hmac-sha1(AccessKeySecret,
        VERB + "\\n"
        + Content-MD5 + "\\n"
        + Content-Type + "\\n"
        + Date + "\\n"
        + CanonicalizedOSSHeaders
        + CanonicalizedResource))
"""

from __future__ import annotations

import base64
import hashlib
import hmac
from datetime import datetime
from email.utils import format_datetime, formatdate
from typing import Iterable, Mapping
from urllib.parse import quote

# Sub-resources that take part in the canonicalized resource
SIGNABLE_RESOURCES = frozenset(
    {
        "acl",
        "uploads",
        "location",
        "cors",
        "logging",
        "website",
        "referer",
        "lifecycle",
        "delete",
        "append",
        "tagging",
        "objectMeta",
        "uploadId",
        "partNumber",
        "security-token",
        "position",
        "img",
        "style",
        "styleName",
        "replication",
        "replicationProgress",
        "replicationLocation",
        "cname",
        "bucketInfo",
        "comp",
        "qos",
        "live",
        "status",
        "vod",
        "startTime",
        "endTime",
        "symlink",
        "x-oss-process",
        "response-content-type",
        "response-content-language",
        "response-expires",
        "response-cache-control",
        "response-content-disposition",
        "response-content-encoding",
        "udf",
        "udfName",
        "udfImage",
        "udfId",
        "udfImageDesc",
        "udfApplication",
        "udfApplicationLog",
        "restore",
        "callback",
        "callback-var",
    }
)

OSS_HEADER_PREFIX = "x-oss-"

Resources = Mapping[str, "str | int | None"]


def format_date(now: datetime | None = None) -> str:
    """Return an RFC 1123 date, e.g. ``Sun, 18 Oct 2026 10:00:00 GMT``."""
    if now is None:
        return formatdate(usegmt=True)
    return format_datetime(now, usegmt=True)


def select_resources(resources: Resources | None) -> list[tuple[str, str | None]]:
    """Keep the signable sub-resources, sorted by name."""
    if not resources:
        return []
    selected = [
        (name, None if value is None else str(value))
        for name, value in resources.items()
        if name in SIGNABLE_RESOURCES
    ]
    selected.sort(key=lambda item: item[0])
    return selected


def resources_to_string(
    resources: Iterable[tuple[str, str | None]], *, encode: bool = False
) -> str:
    """Render sub-resources as ``a=1&b`` for signing or, encoded, for a URL."""
    rendered = []
    for name, value in resources:
        if value is None:
            rendered.append(name)
        elif encode:
            rendered.append(f"{name}={quote(value, safe='')}")
        else:
            rendered.append(f"{name}={value}")
    return "&".join(rendered)


def canonicalize_headers(headers: Mapping[str, str]) -> str:
    oss_headers = sorted(
        (name.lower().strip(), str(value).strip())
        for name, value in headers.items()
        if name.lower().startswith(OSS_HEADER_PREFIX)
    )
    return "".join(f"{name}:{value}\n" for name, value in oss_headers)


def canonicalize_resource(bucket: str, object_name: str, resources: str = "") -> str:
    path = f"/{bucket}/{object_name}" if bucket else "/"
    if resources:
        return f"{path}?{resources}"
    return path


def string_to_sign(
    method: str,
    bucket: str,
    object_name: str,
    resources: str,
    headers: Mapping[str, str],
) -> str:
    lowered = {name.lower(): str(value) for name, value in headers.items()}
    return "\n".join(
        [
            method.upper(),
            lowered.get("content-md5", ""),
            lowered.get("content-type", ""),
            lowered.get("date", ""),
            canonicalize_headers(lowered)
            + canonicalize_resource(bucket, object_name, resources),
        ]
    )


def sign(
    method: str,
    key_id: str,
    key_secret: str,
    bucket: str,
    object_name: str,
    resources: str,
    headers: Mapping[str, str],
) -> str:
    """Compute the ``Authorization`` header value for a request.

    Args:
        method: HTTP verb.
        key_id: Access key id.
        key_secret: Access key secret.
        bucket: Bucket name, empty for service-level requests.
        object_name: Object key, unquoted.
        resources: Signable sub-resources as rendered by resources_to_string.
        headers: Request headers; must already contain ``Date``.

    Returns:
        The value for the ``Authorization`` header.
    """
    payload = string_to_sign(method, bucket, object_name, resources, headers)
    digest = hmac.new(
        key_secret.encode("utf-8"), payload.encode("utf-8"), hashlib.sha1
    ).digest()
    signature = base64.b64encode(digest).decode("ascii")
    return f"OSS {key_id}:{signature}"
