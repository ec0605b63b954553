from __future__ import annotations

import json

import pytest

from snapset_loader.adapters.storage.directory_loader import load_directory
from snapset_loader.exceptions import FilesystemError, ParseError


def write_records(directory, name, records):
    path = directory / name
    path.write_text(json.dumps(records), encoding="utf-8")
    return path


@pytest.mark.asyncio
async def test_only_json_files_are_loaded(tmp_path):
    write_records(tmp_path, "a.json", [{"_id": "u1"}])
    (tmp_path / "b.txt").write_text('[{"_id": "ignored"}]', encoding="utf-8")

    assert await load_directory(tmp_path) == [{"_id": "u1"}]


@pytest.mark.asyncio
async def test_file_arrays_are_flattened_in_name_order(tmp_path):
    write_records(tmp_path, "b.json", [{"_id": "b1"}, {"_id": "b2"}])
    write_records(tmp_path, "a.json", [{"_id": "a1"}])
    write_records(tmp_path, "empty.json", [])

    assert await load_directory(tmp_path) == [{"_id": "a1"}, {"_id": "b1"}, {"_id": "b2"}]


@pytest.mark.asyncio
async def test_loading_twice_yields_equal_records(tmp_path):
    write_records(tmp_path, "one.json", [{"_id": "x", "nested": {"k": [1, 2]}}])
    write_records(tmp_path, "two.json", [{"_id": "y"}])

    first = await load_directory(tmp_path)
    second = await load_directory(tmp_path)

    assert first == second
    assert len(first) == 2


@pytest.mark.asyncio
async def test_subdirectories_named_like_json_are_skipped(tmp_path):
    (tmp_path / "nested.json").mkdir()
    write_records(tmp_path, "real.json", [{"_id": "r"}])

    assert await load_directory(tmp_path) == [{"_id": "r"}]


@pytest.mark.asyncio
async def test_missing_directory_raises_filesystem_error(tmp_path):
    missing = tmp_path / "does-not-exist"
    with pytest.raises(FilesystemError) as exc_info:
        await load_directory(missing)
    assert exc_info.value.path == str(missing)


@pytest.mark.asyncio
async def test_malformed_file_aborts_the_load(tmp_path):
    write_records(tmp_path, "good.json", [{"_id": "ok"}])
    (tmp_path / "zz_bad.json").write_text("[{not json", encoding="utf-8")

    with pytest.raises(ParseError) as exc_info:
        await load_directory(tmp_path)
    assert exc_info.value.source.endswith("zz_bad.json")
