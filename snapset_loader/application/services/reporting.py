from __future__ import annotations

import logging
from typing import Any, Optional

from snapset_loader.domain.records import BulkSummary, DeletionSummary, parse_bulk_results
from snapset_loader.exceptions import ParseError
from snapset_loader.logging import log_event

logger = logging.getLogger("snapset_loader.pipeline")

UPLOAD_CONFIRMATION = "Uploaded latest snapsets and demo user preferences"


def summarize_bulk_results(body: str, *, operation: str = "bulk_docs") -> Optional[BulkSummary]:
    """
    Count per-document outcomes of a _bulk_docs response and log any
    per-document errors. Reporting only: an unreadable body is logged and
    yields None.
    """
    try:
        results = parse_bulk_results(body, source=operation)
    except ParseError as exc:
        logger.warning("Could not summarize %s response: %s", operation, exc)
        return None

    summary = BulkSummary()
    for result in results:
        if result.error:
            summary.failed += 1
            summary.errors.append(result)
            log_event(
                "bulk_doc_rejected",
                level=logging.WARNING,
                logger=logger,
                operation=operation,
                id=result.id,
                error=result.error,
                reason=result.reason,
            )
        else:
            summary.succeeded += 1
    return summary


def log_snapset_deletion(body: str, context: Any) -> DeletionSummary:
    deleted = DeletionSummary(
        snapsets=len(context.snapset_prefs_safes),
        gpii_keys=len(context.gpii_keys),
    )
    logger.info(
        "Deleted %d Prefs Safes and %d associated GPII Keys",
        deleted.snapsets,
        deleted.gpii_keys,
    )
    summarize_bulk_results(body, operation="batch_delete")
    return deleted


def log_snapsets_upload(body: str, context: Any) -> str:
    logger.info("Bulk loading of build data from '%s'", context.build_data_dir)
    logger.info("Bulk loading of demo user data from '%s'", context.demo_user_dir)
    summarize_bulk_results(body, operation="batch_upload")
    return UPLOAD_CONFIRMATION
