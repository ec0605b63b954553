"""
Directory Loader

Reads every ``*.json`` file sitting directly inside a data directory and
flattens their top-level arrays into one list of records, ready to be sent
as a single bulk upload. Any unreadable directory or file, or any file that
is not valid JSON, aborts the whole load.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, List

import aiofiles
import aiofiles.os

from snapset_loader.exceptions import FilesystemError, ParseError

logger = logging.getLogger("snapset_loader.directory_loader")

DATA_FILE_SUFFIX = ".json"


async def list_data_files(data_dir: Path) -> List[Path]:
    data_dir = Path(data_dir)
    try:
        names = await aiofiles.os.listdir(data_dir)
    except OSError as exc:
        raise FilesystemError(f"Cannot list data directory '{data_dir}': {exc}", path=str(data_dir)) from exc

    files: List[Path] = []
    # Sorted so that repeated loads of an unchanged directory are identical.
    for name in sorted(names):
        if not name.endswith(DATA_FILE_SUFFIX):
            continue
        candidate = data_dir / name
        if await aiofiles.os.path.isfile(candidate):
            files.append(candidate)
    return files


async def read_data_file(path: Path) -> Any:
    try:
        async with aiofiles.open(path, "r", encoding="utf-8") as handle:
            text = await handle.read()
    except UnicodeDecodeError as exc:
        raise ParseError(f"Data file '{path}' is not UTF-8 text: {exc}", source=str(path)) from exc
    except OSError as exc:
        raise FilesystemError(f"Cannot read data file '{path}': {exc}", path=str(path)) from exc
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Data file '{path}' is not valid JSON: {exc}", source=str(path)) from exc


async def load_directory(data_dir: Path) -> List[Any]:
    records: List[Any] = []
    for path in await list_data_files(data_dir):
        content = await read_data_file(path)
        if isinstance(content, list):
            records.extend(content)
        else:
            records.append(content)
        logger.debug("Loaded %s", path)
    return records
