"""
Replace the snapset Prefs Safes in the preferences database:

1. Retrieve every Prefs Safe of type "snapset".
2. Retrieve the GPII Keys that reference one of those Prefs Safes.
3. Delete both sets in one bulk request.
4. Upload the new snapsets and demo user records (skipped with --justDelete).

Example:
    snapset-loader $COUCHDB_URL $BUILD_DATA_DIR $BUILD_DEMOUSER_DIR
"""
from __future__ import annotations

import argparse
import asyncio
import logging
from typing import List, Optional

from snapset_loader.adapters.storage.couch_http_client import CouchHTTPClient
from snapset_loader.application.services.pipeline_context import init_context
from snapset_loader.application.services.snapset_pipeline import PipelineResult, SnapsetPipeline
from snapset_loader.exceptions import SnapsetLoaderError, UsageError
from snapset_loader.logging import setup_logging
from snapset_loader.settings import LoaderSettings, load_env, load_settings

logger = logging.getLogger("snapset_loader.cli")

USAGE = "Usage: snapset-loader $COUCHDB_URL $BUILD_DATA_DIR $BUILD_DEMOUSER_DIR [--justDelete]"


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        raise UsageError(message)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = _ArgumentParser(
        prog="snapset-loader",
        description="Delete the snapset Prefs Safes and their GPII Keys, then load fresh ones.",
    )
    parser.add_argument("couch_db_url", help="Base URL of the preferences database.")
    parser.add_argument("build_data_dir", help="Directory of snapset Prefs Safes and GPII Keys (*.json).")
    parser.add_argument("demo_user_dir", help="Directory of demo user Prefs Safes and GPII Keys (*.json).")
    parser.add_argument(
        "--justDelete",
        dest="just_delete",
        action="store_true",
        help="Only delete the current snapsets; skip the upload.",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Per-request timeout in seconds (default: wait indefinitely).",
    )
    parser.add_argument("--bulk-docs-path", default=None, help="Path of the bulk docs endpoint.")
    parser.add_argument("--log-file", default=None, help="Optional rotating log file.")
    parser.add_argument("--log-level", default=None, help="Log level (default: INFO).")
    return parser.parse_args(argv)


async def run_pipeline(args: argparse.Namespace, settings: LoaderSettings) -> PipelineResult:
    context = init_context(
        args.couch_db_url,
        args.build_data_dir,
        args.demo_user_dir,
        just_delete=args.just_delete,
        bulk_docs_path=settings.bulk_docs_path,
    )
    pipeline = SnapsetPipeline(
        context,
        gateway=CouchHTTPClient(timeout_seconds=settings.timeout_seconds),
    )
    return await pipeline.run()


def main(argv: Optional[List[str]] = None) -> int:
    load_env()
    try:
        args = parse_args(argv)
        settings = load_settings(
            timeout_seconds=args.timeout,
            bulk_docs_path=args.bulk_docs_path,
            log_file=args.log_file,
            log_level=args.log_level,
        )
    except UsageError as exc:
        setup_logging()
        logger.error("%s", exc)
        logger.error(USAGE)
        return 1

    setup_logging(settings.log_level, settings.log_file)
    try:
        asyncio.run(run_pipeline(args, settings))
    except UsageError as exc:
        logger.error("%s", exc)
        logger.error(USAGE)
        return 1
    except SnapsetLoaderError:
        # Already reported by the pipeline.
        return 1
    return 0
