#!/usr/bin/env python3
"""Command line access to an OSS bucket.

Usage:
  .venv/bin/python scripts/oss_cli.py put ./report.pdf reports/report.pdf
  .venv/bin/python scripts/oss_cli.py upload ./big.tar backups/big.tar --part-size 104857600
  .venv/bin/python scripts/oss_cli.py get reports/report.pdf -o ./copy.pdf
  .venv/bin/python scripts/oss_cli.py delete reports/report.pdf

Credentials, endpoint and bucket come from OSS_* environment variables or .env.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from ossclient.common.config import Settings, get_settings
from ossclient.common.logging import setup_logging
from ossclient.infra.storage.client import StorageError
from ossclient.infra.storage.oss_client import OSSStorageClient

logger = logging.getLogger("ossclient.cli")


async def run(args: argparse.Namespace, settings: Settings) -> None:
    async with OSSStorageClient.from_settings(settings) as client:
        if args.command == "get":
            data = await client.get_object(args.object)
            if args.output:
                with open(args.output, "wb") as fh:
                    fh.write(data)
            else:
                sys.stdout.buffer.write(data)
        elif args.command == "put":
            headers = {"Content-Type": args.content_type} if args.content_type else None
            await client.put_object_from_file(args.file, args.object, headers)
            print(f"Uploaded {args.file} to {client.bucket}/{args.object}")
        elif args.command == "upload":
            headers = {"Content-Type": args.content_type} if args.content_type else None
            part_size = args.part_size or settings.OSS_PART_SIZE_BYTES
            parts = await client.chunk_upload_by_size(
                args.object, args.file, part_size, headers
            )
            print(
                f"Uploaded {args.file} to {client.bucket}/{args.object} "
                f"in {len(parts)} parts"
            )
        elif args.command == "head":
            head = await client.head_object(args.object)
            print(f"size={head.size_bytes} etag={head.etag} type={head.content_type}")
        elif args.command == "delete":
            await client.delete_object(args.object)
            print(f"Deleted {client.bucket}/{args.object}")
        elif args.command == "list-buckets":
            result = await client.list_buckets()
            for bucket in result.buckets:
                print(f"{bucket.name}\t{bucket.location}\t{bucket.storage_class}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Aliyun OSS object operations")
    sub = parser.add_subparsers(dest="command", required=True)

    get = sub.add_parser("get", help="Download an object")
    get.add_argument("object")
    get.add_argument("-o", "--output", help="Write to file instead of stdout")

    put = sub.add_parser("put", help="Upload a file in a single request")
    put.add_argument("file")
    put.add_argument("object")
    put.add_argument("--content-type", default=None)

    upload = sub.add_parser("upload", help="Upload a file as a multipart upload")
    upload.add_argument("file")
    upload.add_argument("object")
    upload.add_argument(
        "--part-size",
        type=int,
        default=None,
        help="Part size in bytes (default: OSS_PART_SIZE_BYTES)",
    )
    upload.add_argument("--content-type", default=None)

    head = sub.add_parser("head", help="Show object metadata")
    head.add_argument("object")

    delete = sub.add_parser("delete", help="Delete an object")
    delete.add_argument("object")

    sub.add_parser("list-buckets", help="List buckets of the access key")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
    try:
        asyncio.run(run(args, settings))
    except StorageError as exc:
        logger.error("%s failed: %s", args.command, exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
