"""XML bodies exchanged with OSS."""

from __future__ import annotations

from typing import Sequence
from xml.etree.ElementTree import Element, ParseError, SubElement, fromstring, tostring

from ossclient.infra.storage.client import (
    BucketInfo,
    CompletedPart,
    ListBucketsResult,
    MalformedResponseError,
)


def _parse(content: bytes, what: str) -> Element:
    try:
        return fromstring(content)
    except ParseError as exc:
        raise MalformedResponseError(f"Failed to parse {what} response: {exc}") from exc


def _text(element: Element | None, path: str, default: str = "") -> str:
    if element is None:
        return default
    found = element.find(path)
    if found is None or found.text is None:
        return default
    return found.text


def to_complete_upload_request(parts: Sequence[CompletedPart]) -> bytes:
    """Build a ``CompleteMultipartUpload`` body with parts in ascending order."""
    root = Element("CompleteMultipartUpload")
    for part in sorted(parts, key=lambda p: p.part_number):
        node = SubElement(root, "Part")
        SubElement(node, "PartNumber").text = str(int(part.part_number))
        SubElement(node, "ETag").text = part.etag
    return tostring(root, encoding="utf-8")


def parse_upload_id(content: bytes) -> str:
    upload_id = _text(_parse(content, "InitiateMultipartUpload"), "UploadId")
    if not upload_id:
        raise MalformedResponseError("OSS response missing UploadId")
    return upload_id


def parse_error(content: bytes) -> dict[str, str]:
    """Extract Code, Message and RequestId from an OSS error body.

    Unparseable bodies yield an empty dict; the raw body stays on the error.
    """
    if not content:
        return {}
    try:
        root = fromstring(content)
    except ParseError:
        return {}
    return {
        child.tag: child.text or ""
        for child in root
        if child.tag in ("Code", "Message", "RequestId", "HostId")
    }


def parse_list_buckets(content: bytes) -> ListBucketsResult:
    root = _parse(content, "ListAllMyBuckets")
    buckets = tuple(
        BucketInfo(
            name=_text(node, "Name"),
            creation_date=_text(node, "CreationDate"),
            location=_text(node, "Location"),
            extranet_endpoint=_text(node, "ExtranetEndpoint"),
            intranet_endpoint=_text(node, "IntranetEndpoint"),
            storage_class=_text(node, "StorageClass"),
        )
        for node in root.iterfind("Buckets/Bucket")
    )
    return ListBucketsResult(
        prefix=_text(root, "Prefix"),
        marker=_text(root, "Marker"),
        max_keys=_text(root, "MaxKeys"),
        is_truncated=_text(root, "IsTruncated") == "true",
        next_marker=_text(root, "NextMarker"),
        owner_id=_text(root, "Owner/ID"),
        owner_display_name=_text(root, "Owner/DisplayName"),
        buckets=buckets,
    )
