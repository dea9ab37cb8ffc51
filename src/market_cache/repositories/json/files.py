"""Low-level JSON file helpers shared by the JSON repositories."""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def read_json_object(path: Path) -> dict[str, Any]:
    """
    Read a JSON object from disk.

    A missing, unreadable or non-object file reads as an empty dict.
    """
    if not path.exists():
        logger.info("No cache file at %s, starting empty", path)
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("Could not load %s, starting empty: %s", path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring %s: top-level value is not an object", path)
        return {}
    return data


def write_json_atomic(path: Path, data: dict[str, Any]) -> None:
    """
    Serialize data next to path and rename it into place.

    A crash mid-write leaves either the old file or the new one, never a
    truncated file. Raises OSError/TypeError on failure.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
