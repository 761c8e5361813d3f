"""
Command-line entry point.

Usage:
    python -m inventory_ingest stock.xlsx --owner seller-42
    python -m inventory_ingest bundle.zip --type zip --owner seller-42 --json
    python -m inventory_ingest --cleanup-images 48

Exit code is 1 when the ingestion fails (unsupported type, unreadable file).
"""

import argparse
import asyncio
import json
import sys

from inventory_ingest.ingest.reader_factory import detect_file_type
from inventory_ingest.services.ingestion_pipeline import IngestionPipeline
from inventory_ingest.storage.image_store import LocalImageStore
from inventory_ingest.utils.logger import configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="inventory-ingest",
        description="Parse an inventory upload into normalized records.",
    )
    parser.add_argument("file", nargs="?", help="Path to a CSV, Excel, PDF or ZIP file")
    parser.add_argument("--type", dest="file_type", help="Declared file type (default: from extension)")
    parser.add_argument("--owner", default="cli", help="Owner id stamped on every record")
    parser.add_argument("--project", default=None, help="Project id (default: 'default')")
    parser.add_argument("--json", action="store_true", help="Print the full result as JSON")
    parser.add_argument("--log-level", default=None, help="Override INVENTORY_LOG_LEVEL")
    parser.add_argument(
        "--cleanup-images",
        type=int,
        metavar="HOURS",
        default=None,
        help="Delete stored images older than HOURS and exit",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level, stream=sys.stderr)

    if args.cleanup_images is not None:
        deleted = LocalImageStore().cleanup_expired(args.cleanup_images)
        print(f"Deleted {deleted} expired image(s)")
        return 0

    if not args.file:
        parser.error("a file path is required")

    file_type = args.file_type or detect_file_type(args.file)
    if file_type is None:
        parser.error("cannot determine file type; pass --type")

    result = asyncio.run(
        IngestionPipeline().ingest(args.file, file_type, owner_id=args.owner, project_id=args.project)
    )

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        status = "OK" if result.success else "FAILED"
        print(
            f"{status}: {result.successful_rows}/{result.total_rows} rows imported, "
            f"{result.failed_rows} failed"
        )
        for error in result.errors:
            print(f"  - {error}")

    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
