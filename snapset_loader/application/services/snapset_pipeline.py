from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from snapset_loader.adapters.storage.couch_http_client import CouchHTTPClient
from snapset_loader.adapters.storage.directory_loader import load_directory
from snapset_loader.application.services.pipeline_context import PipelineContext
from snapset_loader.application.services.reporting import log_snapset_deletion, log_snapsets_upload
from snapset_loader.domain.record_matcher import mark_keys_for_deletion, mark_snapshots_for_deletion
from snapset_loader.domain.records import parse_view_result
from snapset_loader.exceptions import SnapsetLoaderError
from snapset_loader.logging import log_event

logger = logging.getLogger("snapset_loader.pipeline")

Step = Callable[[PipelineContext], Awaitable[Any]]
DirectoryLoader = Callable[[Path], Awaitable[List[Any]]]


def process_snapsets(body: str, context: PipelineContext) -> List[Dict[str, Any]]:
    """Mark every snapset Prefs Safe from the view response for deletion."""
    logger.info("Processing the snapset Prefs Safes records...")
    view_result = parse_view_result(body, source="findSnapsetPrefsSafes")
    context.snapset_prefs_safes.extend(mark_snapshots_for_deletion(view_result))
    logger.info("\tSnapset Prefs Safes marked for deletion.")
    return context.snapset_prefs_safes


def process_gpii_keys(body: str, context: PipelineContext) -> List[Dict[str, Any]]:
    """Mark the GPII keys that reference a snapset Prefs Safe for deletion."""
    logger.info("Processing the GPII Keys...")
    view_result = parse_view_result(body, source="findAllGpiiKeys")
    context.gpii_keys = mark_keys_for_deletion(view_result, context.snapset_prefs_safes)
    logger.info("\tGPII Keys associated with snapset Prefs Safes marked for deletion.")
    return context.gpii_keys


@dataclass
class PipelineResult:
    completed: List[str] = field(default_factory=list)
    results: Dict[str, Any] = field(default_factory=dict)


class SnapsetPipeline:
    """
    Fetch snapsets -> fetch keys -> batch delete -> batch upload.

    Steps run strictly one after another; each performs a single request and
    the first failure aborts the rest of the run.
    """

    def __init__(
        self,
        context: PipelineContext,
        *,
        gateway: Optional[CouchHTTPClient] = None,
        directory_loader: DirectoryLoader = load_directory,
    ) -> None:
        self.context = context
        self.gateway = gateway or CouchHTTPClient()
        self.directory_loader = directory_loader

    async def fetch_snapsets(self, context: PipelineContext) -> List[Dict[str, Any]]:
        return await self.gateway.query(
            context.prefs_safes_view_url,
            process_snapsets,
            context,
            error_prefix="Error retrieving snapsets Prefs Safes: ",
        )

    async def fetch_gpii_keys(self, context: PipelineContext) -> List[Dict[str, Any]]:
        return await self.gateway.query(
            context.gpii_keys_view_url,
            process_gpii_keys,
            context,
            error_prefix="Error finding snapset Prefs Safes associated GPII Keys: ",
        )

    async def batch_delete(self, context: PipelineContext):
        return await self.gateway.bulk_write(
            context.docs_to_remove,
            log_snapset_deletion,
            context,
            error_prefix="Error deleting snapset Prefs Safes and GPII Keys: ",
        )

    async def batch_upload(self, context: PipelineContext) -> str:
        build_data = await self.directory_loader(context.build_data_dir)
        demo_user_data = await self.directory_loader(context.demo_user_dir)
        return await self.gateway.bulk_write(
            build_data + demo_user_data,
            log_snapsets_upload,
            context,
            error_prefix="Error uploading snapsets and demo user preferences: ",
        )

    def build_sequence(self) -> List[Tuple[str, Step]]:
        sequence: List[Tuple[str, Step]] = [
            ("fetch_snapsets", self.fetch_snapsets),
            ("fetch_gpii_keys", self.fetch_gpii_keys),
            ("batch_delete", self.batch_delete),
        ]
        if not self.context.just_delete:
            sequence.append(("batch_upload", self.batch_upload))
        return sequence

    async def run(self) -> PipelineResult:
        outcome = PipelineResult()
        for name, step in self.build_sequence():
            try:
                outcome.results[name] = await step(self.context)
            except SnapsetLoaderError as exc:
                log_event(
                    "pipeline_step_failed",
                    level=logging.ERROR,
                    logger=logger,
                    step=name,
                    error_type=type(exc).__name__,
                    error=str(exc),
                )
                raise
            outcome.completed.append(name)
        logger.info("Done.")
        return outcome
