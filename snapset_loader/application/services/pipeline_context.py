from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx

from snapset_loader.exceptions import UsageError
from snapset_loader.settings import DEFAULT_BULK_DOCS_PATH

logger = logging.getLogger("snapset_loader.pipeline")

PREFS_SAFES_VIEW = "/_design/views/_view/findSnapsetPrefsSafes"
GPII_KEYS_VIEW = "/_design/views/_view/findAllGpiiKeys"


@dataclass
class PostOptions:
    """Request template shared by every bulk write; only Content-Length changes per call."""

    url: str
    method: str = "POST"
    headers: Dict[str, str] = field(
        default_factory=lambda: {
            "Accept": "application/json",
            "Content-Length": "0",
            "Content-Type": "application/json",
        }
    )


@dataclass
class PipelineContext:
    """
    Mutable state for a single pipeline run. Each step reads what earlier
    steps stored and adds its own results; nothing here is shared between runs.
    """

    couch_db_url: str
    build_data_dir: Path
    demo_user_dir: Path
    just_delete: bool = False
    prefs_safes_view_url: str = ""
    gpii_keys_view_url: str = ""
    post_options: Optional[PostOptions] = None
    snapset_prefs_safes: List[Dict[str, Any]] = field(default_factory=list)
    gpii_keys: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def docs_to_remove(self) -> List[Dict[str, Any]]:
        return self.snapset_prefs_safes + self.gpii_keys


def redact_url(couch_db_url: str) -> str:
    """Render the database URL for logs without any credentials."""
    parsed = httpx.URL(couch_db_url)
    port = parsed.port if parsed.port is not None else ("443" if parsed.scheme == "https" else "80")
    return f"{parsed.scheme}://{parsed.host}:{port}{parsed.path}"


def init_context(
    couch_db_url: str,
    build_data_dir: str | Path,
    demo_user_dir: str | Path,
    *,
    just_delete: bool = False,
    bulk_docs_path: str = DEFAULT_BULK_DOCS_PATH,
) -> PipelineContext:
    """Build the run context from the command-line values and the database constants."""
    couch_db_url = str(couch_db_url or "").strip().rstrip("/")
    try:
        parsed = httpx.URL(couch_db_url)
    except httpx.InvalidURL as exc:
        raise UsageError(f"Invalid COUCHDB_URL '{couch_db_url}': {exc}") from exc
    if parsed.scheme not in {"http", "https"} or not parsed.host:
        raise UsageError(f"COUCHDB_URL must be an absolute http(s) URL, got '{couch_db_url}'")

    # The bulk endpoint lives at the server root, not under the database path.
    bulk_docs_url = parsed.copy_with(path=bulk_docs_path, query=None, fragment=None)
    context = PipelineContext(
        couch_db_url=couch_db_url,
        build_data_dir=Path(build_data_dir),
        demo_user_dir=Path(demo_user_dir),
        just_delete=bool(just_delete),
        prefs_safes_view_url=couch_db_url + PREFS_SAFES_VIEW,
        gpii_keys_view_url=couch_db_url + GPII_KEYS_VIEW,
        post_options=PostOptions(url=str(bulk_docs_url)),
    )
    logger.info("COUCHDB_URL: '%s'", redact_url(couch_db_url))
    logger.info("BUILD_DATA_DIR: '%s'", context.build_data_dir)
    return context
