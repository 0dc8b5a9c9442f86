"""In-process OSS service for client tests, served through httpx.MockTransport."""

from __future__ import annotations

import hashlib
import itertools
from dataclasses import dataclass, field
from typing import Any
from xml.etree.ElementTree import fromstring

import httpx

from ossclient.infra.storage import auth

ENDPOINT_HOST = "oss-test.aliyuncs.com"
KEY_ID = "test-key-id"
KEY_SECRET = "test-key-secret"
BUCKET = "test-bucket"


def _error(status: int, code: str, message: str) -> httpx.Response:
    body = (
        f"<?xml version=\"1.0\" encoding=\"UTF-8\"?>"
        f"<Error><Code>{code}</Code><Message>{message}</Message>"
        f"<RequestId>req-{code}</RequestId><HostId>{ENDPOINT_HOST}</HostId></Error>"
    )
    return httpx.Response(
        status,
        content=body.encode("utf-8"),
        headers={"x-oss-request-id": f"req-{code}", "content-type": "application/xml"},
    )


def _etag(data: bytes) -> str:
    return '"' + hashlib.md5(data).hexdigest().upper() + '"'


@dataclass
class FakeOSS:
    """Minimal OSS emulation: objects, multipart uploads and signature checks."""

    objects: dict[str, bytes] = field(default_factory=dict)
    content_types: dict[str, str] = field(default_factory=dict)
    uploads: dict[str, dict[str, Any]] = field(default_factory=dict)
    requests: list[httpx.Request] = field(default_factory=list)
    fail_part_numbers: set[int] = field(default_factory=set)
    omit_upload_id: bool = False
    omit_part_etag: bool = False
    _ids: Any = field(default_factory=lambda: itertools.count(1))

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls(self, operation: str) -> list[httpx.Request]:
        return [r for r in self.requests if self.classify(r) == operation]

    @staticmethod
    def classify(request: httpx.Request) -> str:
        params = request.url.params
        method = request.method
        if method == "POST" and "uploads" in params:
            return "initiate"
        if method == "PUT" and "partNumber" in params:
            return "upload_part"
        if method == "POST" and "uploadId" in params:
            return "complete"
        if method == "DELETE" and "uploadId" in params:
            return "abort"
        return method.lower()

    def _verify_signature(self, request: httpx.Request, bucket: str, key: str) -> bool:
        resources = {k: (v or None) for k, v in request.url.params.items()}
        expected = auth.sign(
            request.method,
            KEY_ID,
            KEY_SECRET,
            bucket,
            key,
            auth.resources_to_string(auth.select_resources(resources)),
            dict(request.headers.items()),
        )
        return request.headers.get("authorization") == expected

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host
        if host == ENDPOINT_HOST:
            bucket = ""
        elif host.endswith("." + ENDPOINT_HOST):
            bucket = host[: -len(ENDPOINT_HOST) - 1]
        else:
            return _error(400, "InvalidBucketName", f"unexpected host {host}")
        key = request.url.path.lstrip("/")

        if not self._verify_signature(request, bucket, key):
            return _error(403, "SignatureDoesNotMatch", "signature mismatch")

        if not bucket:
            return self._list_buckets()
        if bucket != BUCKET:
            return _error(404, "NoSuchBucket", "The specified bucket does not exist.")

        operation = self.classify(request)
        params = request.url.params
        if operation == "initiate":
            return self._initiate(key, request)
        if operation == "upload_part":
            return self._upload_part(params, request.content)
        if operation == "complete":
            return self._complete(key, params["uploadId"], request.content)
        if operation == "abort":
            self.uploads.pop(params["uploadId"], None)
            return httpx.Response(204)
        if operation == "put":
            self.objects[key] = request.content
            if "content-type" in request.headers:
                self.content_types[key] = request.headers["content-type"]
            return httpx.Response(200, headers={"etag": _etag(request.content)})
        if operation in ("get", "head"):
            if key not in self.objects:
                return _error(404, "NoSuchKey", "The specified key does not exist.")
            data = self.objects[key]
            headers = {
                "etag": _etag(data),
                "content-type": self.content_types.get(key, "application/octet-stream"),
            }
            if operation == "head":
                headers["content-length"] = str(len(data))
                return httpx.Response(200, headers=headers)
            return httpx.Response(200, content=data, headers=headers)
        if operation == "delete":
            if key not in self.objects:
                return _error(404, "NoSuchKey", "The specified key does not exist.")
            del self.objects[key]
            return httpx.Response(204)
        return _error(405, "MethodNotAllowed", request.method)

    def _list_buckets(self) -> httpx.Response:
        body = (
            "<?xml version=\"1.0\" encoding=\"UTF-8\"?>"
            "<ListAllMyBucketsResult>"
            "<Owner><ID>512</ID><DisplayName>owner-name</DisplayName></Owner>"
            "<Buckets><Bucket>"
            f"<CreationDate>2026-01-01T00:00:00.000Z</CreationDate>"
            f"<ExtranetEndpoint>{ENDPOINT_HOST}</ExtranetEndpoint>"
            "<IntranetEndpoint>oss-test-internal.aliyuncs.com</IntranetEndpoint>"
            "<Location>oss-cn-test</Location>"
            f"<Name>{BUCKET}</Name>"
            "<StorageClass>Standard</StorageClass>"
            "</Bucket></Buckets>"
            "</ListAllMyBucketsResult>"
        )
        return httpx.Response(200, content=body.encode("utf-8"))

    def _initiate(self, key: str, request: httpx.Request) -> httpx.Response:
        upload_id = f"upload-{next(self._ids)}"
        self.uploads[upload_id] = {
            "key": key,
            "parts": {},
            "content_type": request.headers.get("content-type"),
        }
        upload_id_xml = "" if self.omit_upload_id else f"<UploadId>{upload_id}</UploadId>"
        body = (
            "<?xml version=\"1.0\" encoding=\"UTF-8\"?>"
            "<InitiateMultipartUploadResult>"
            f"<Bucket>{BUCKET}</Bucket><Key>{key}</Key>{upload_id_xml}"
            "</InitiateMultipartUploadResult>"
        )
        return httpx.Response(200, content=body.encode("utf-8"))

    def _upload_part(self, params: httpx.QueryParams, content: bytes) -> httpx.Response:
        upload = self.uploads.get(params["uploadId"])
        if upload is None:
            return _error(404, "NoSuchUpload", "The specified upload does not exist.")
        number = int(params["partNumber"])
        if number in self.fail_part_numbers:
            return _error(500, "InternalError", "part failed")
        upload["parts"][number] = content
        if self.omit_part_etag:
            return httpx.Response(200)
        return httpx.Response(200, headers={"etag": _etag(content)})

    def _complete(self, key: str, upload_id: str, content: bytes) -> httpx.Response:
        upload = self.uploads.get(upload_id)
        if upload is None:
            return _error(404, "NoSuchUpload", "The specified upload does not exist.")
        root = fromstring(content)
        listed = [
            (int(part.findtext("PartNumber") or 0), part.findtext("ETag") or "")
            for part in root.findall("Part")
        ]
        numbers = [number for number, _ in listed]
        if numbers != sorted(numbers) or len(set(numbers)) != len(numbers):
            return _error(400, "InvalidPartOrder", "parts must be in ascending order")
        for number, etag in listed:
            data = upload["parts"].get(number)
            if data is None or _etag(data) != etag:
                return _error(400, "InvalidPart", f"part {number} is invalid")
        self.objects[key] = b"".join(upload["parts"][number] for number in numbers)
        if upload["content_type"]:
            self.content_types[key] = upload["content_type"]
        del self.uploads[upload_id]
        return httpx.Response(200, content=b"<CompleteMultipartUploadResult/>")
