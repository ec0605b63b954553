from __future__ import annotations

from collections.abc import Hashable
from typing import Any, Dict, List

from snapset_loader.domain.records import ViewResult


def mark_snapshots_for_deletion(view_result: ViewResult) -> List[Dict[str, Any]]:
    """
    Tombstone every document returned by the snapset Prefs Safes view.
    No row is skipped; the result keeps the row order.
    """
    marked: List[Dict[str, Any]] = []
    for row in view_result.rows:
        row.value["_deleted"] = True
        marked.append(row.value)
    return marked


def mark_keys_for_deletion(
    key_view_result: ViewResult,
    marked_snapshots: List[Dict[str, Any]],
) -> List[Dict[str, Any]]:
    """
    Given every GPII key in the database, return the ones whose prefsSafeId
    references one of the marked snapset Prefs Safes, each tombstoned.

    Duplicate snapshot ids collapse into one index entry, so a key is linked
    at most once. Ids that are lists or objects never match anything.
    """
    snapshot_ids = {
        snapshot_id
        for snapshot_id in (snapshot.get("_id") for snapshot in marked_snapshots)
        if snapshot_id is not None and isinstance(snapshot_id, Hashable)
    }

    keys_to_delete: List[Dict[str, Any]] = []
    for row in key_view_result.rows:
        gpii_key = row.value
        ref = gpii_key.get("prefsSafeId")
        if isinstance(ref, Hashable) and ref in snapshot_ids:
            gpii_key["_deleted"] = True
            keys_to_delete.append(gpii_key)
    return keys_to_delete
