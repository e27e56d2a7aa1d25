"""bucket-index: browse and edit a bucket through its local index."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import TYPE_CHECKING, Any

from bucket_index._config import AdapterConfig
from bucket_index._errors import BucketIndexError
from bucket_index._manager import FileManager

if TYPE_CHECKING:
    from collections.abc import Sequence

    from bucket_index._models import Progress

DEFAULT_DB = "bucket-index.db"


def _print(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def _progress(progress: Progress) -> None:
    print(f"\r{progress.ratio:6.1%}", end="", file=sys.stderr, flush=True)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bucket-index", description=__doc__)
    parser.add_argument(
        "--db",
        default=os.environ.get("BUCKET_INDEX_DB", DEFAULT_DB),
        help="Index database file (default: $BUCKET_INDEX_DB or %(default)s)",
    )
    parser.add_argument(
        "--local-root",
        help="Use a local directory as the bucket instead of the configured S3 settings",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0, help="More log output (repeatable)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("configure", help="Store S3 connection settings")
    p.add_argument("--access-key-id")
    p.add_argument("--secret-access-key", help="Leave out to keep the stored secret")
    p.add_argument("--region")
    p.add_argument("--bucket", required=True)
    p.add_argument("--endpoint")

    sub.add_parser("settings", help="Show stored settings (secret omitted)")
    sub.add_parser("sync", help="Rebuild the index from the bucket")

    p = sub.add_parser("ls", help="List a folder or search below it")
    p.add_argument("dirname", nargs="?", default="")
    p.add_argument("-k", "--keyword", help="Search terms; prefix a term with '-' to exclude it")
    p.add_argument("--after", type=int, help="Resume after this object id")
    p.add_argument("--limit", type=int, default=50)

    p = sub.add_parser("stat", help="Show an object with live remote headers")
    p.add_argument("id", type=int)

    p = sub.add_parser("mkdir", help="Create a folder")
    p.add_argument("name")
    p.add_argument("--in", dest="dirname", default="", help="Parent folder")

    p = sub.add_parser("put", help="Upload a local file")
    p.add_argument("local_path")
    p.add_argument("--to", dest="dirname", default="", help="Destination folder")

    p = sub.add_parser("rm", help="Delete objects (folders recursively)")
    p.add_argument("ids", type=int, nargs="+")

    p = sub.add_parser("get", help="Download objects (folders recursively)")
    p.add_argument("destination")
    p.add_argument("ids", type=int, nargs="+")
    p.add_argument("--from", dest="dirname", default="", help="Folder the selection was made in")
    return parser


def _run(manager: FileManager, args: argparse.Namespace) -> None:
    if args.command == "configure":
        settings = manager.update_s3_settings(
            access_key_id=args.access_key_id,
            secret_access_key=args.secret_access_key,
            region=args.region,
            bucket=args.bucket,
            endpoint=args.endpoint,
        )
        _print(settings.to_dict())
    elif args.command == "settings":
        settings = manager.get_settings()
        _print(settings.to_dict() if settings else None)
    elif args.command == "sync":
        indexed, removed = manager.sync_objects_from_s3()
        _print({"indexed": indexed, "removed": removed})
    elif args.command == "ls":
        page = manager.get_objects(args.dirname, args.keyword, args.after, args.limit)
        _print({"has_next_page": page.has_next_page, "items": [r.to_dict() for r in page.items]})
    elif args.command == "stat":
        _print(manager.get_object(args.id).to_dict())
    elif args.command == "mkdir":
        _print(manager.create_folder(args.dirname, args.name).to_dict())
    elif args.command == "put":
        record = manager.create_file(args.local_path, args.dirname, on_progress=_progress)
        print(file=sys.stderr)
        _print(record.to_dict())
    elif args.command == "rm":
        manager.delete_objects(args.ids)
    elif args.command == "get":
        written = manager.download_objects(args.destination, args.dirname, args.ids, on_progress=_progress)
        print(file=sys.stderr)
        _print([str(p) for p in written])


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.WARNING - 10 * min(args.verbose, 2),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    adapter_config = AdapterConfig(type="local", options={"root": args.local_root}) if args.local_root else None
    with FileManager(args.db, adapter_config=adapter_config) as manager:
        try:
            _run(manager, args)
        except BucketIndexError as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 1
    return 0
