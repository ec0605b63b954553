import json
from pathlib import Path
from typing import Any, Dict, List

import httpx
import pytest

from snapset_loader.application.services.pipeline_context import init_context


class ViewBuilder:
    """Builds CouchDB view response bodies."""

    def __init__(self):
        self.rows: List[Dict[str, Any]] = []

    def with_doc(self, doc: Dict[str, Any]):
        self.rows.append({"id": doc.get("_id"), "key": doc.get("_id"), "value": dict(doc)})
        return self

    def with_snapset(self, doc_id: str):
        return self.with_doc({"_id": doc_id, "type": "prefsSafe", "prefsSafeType": "snapset"})

    def with_key(self, doc_id: str, prefs_safe_id: str):
        return self.with_doc({"_id": doc_id, "type": "gpiiKey", "prefsSafeId": prefs_safe_id})

    def body(self) -> str:
        return json.dumps({"total_rows": len(self.rows), "offset": 0, "rows": self.rows})


class FakeCouch:
    """
    In-memory stand-in for the database, served through httpx.MockTransport.
    Records every request it sees.
    """

    def __init__(self):
        self.snapsets = ViewBuilder()
        self.keys = ViewBuilder()
        self.requests: List[httpx.Request] = []
        self.bulk_payloads: List[Dict[str, Any]] = []
        self.overrides: Dict[str, httpx.Response] = {}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path in self.overrides:
            return self.overrides[path]
        if path.endswith("/findSnapsetPrefsSafes"):
            return httpx.Response(200, text=self.snapsets.body())
        if path.endswith("/findAllGpiiKeys"):
            return httpx.Response(200, text=self.keys.body())
        if path.endswith("/_bulk_docs"):
            payload = json.loads(request.content)
            self.bulk_payloads.append(payload)
            return httpx.Response(201, json=[{"ok": True, "id": doc.get("_id"), "rev": "1-a"} for doc in payload["docs"]])
        return httpx.Response(404, json={"error": "not_found", "reason": "missing"})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def write_records(directory: Path, name: str, records: Any) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_text(json.dumps(records), encoding="utf-8")
    return path


@pytest.fixture
def fake_couch():
    return FakeCouch()


@pytest.fixture
def data_dirs(tmp_path):
    build_dir = tmp_path / "build" / "dbData"
    demo_dir = tmp_path / "build" / "demoUserPrefs"
    write_records(build_dir, "snapsets.json", [
        {"_id": "snapset_1", "type": "prefsSafe", "prefsSafeType": "snapset"},
        {"_id": "snapset_1_key", "type": "gpiiKey", "prefsSafeId": "snapset_1"},
    ])
    write_records(demo_dir, "carla.json", [
        {"_id": "prefsSafe-carla", "type": "prefsSafe", "prefsSafeType": "user"},
    ])
    return build_dir, demo_dir


@pytest.fixture
def context(data_dirs):
    build_dir, demo_dir = data_dirs
    return init_context("http://localhost:5984/gpii", build_dir, demo_dir)
