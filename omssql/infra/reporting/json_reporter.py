"""
JSON reporting utilities.

Simple wrappers for ensuring a directory exists and writing query
responses to JSON files.  Values JSON cannot encode natively
(``Decimal``, ``bytes``, ``ResultEnvelope``...) are converted first.
"""

from __future__ import annotations

import json
import logging
import os
from decimal import Decimal
from pathlib import Path
from typing import Any

from ...core.result import ResultEnvelope


def ensure_dir(directory: str) -> None:
    """Ensure a directory exists, creating it recursively if necessary."""
    if not directory:
        return
    logging.info("[jsonReporter] ensure_dir", extra={"dir": directory})
    Path(directory).mkdir(parents=True, exist_ok=True)


def to_jsonable(value: Any) -> Any:
    if isinstance(value, ResultEnvelope):
        return value.to_dict()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (bytes, bytearray)):
        return value.hex()
    if isinstance(value, BaseException):
        return f"{type(value).__name__}: {value}"
    return str(value)


def dumps(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False, default=to_jsonable)


def write_json(file_path: str, data: Any) -> None:
    """Write an object to a JSON file, ensuring the directory exists."""
    ensure_dir(os.path.dirname(file_path))
    logging.info("[jsonReporter] write_json", extra={"file": file_path})
    with open(file_path, 'w', encoding='utf-8') as f:
        f.write(dumps(data))
