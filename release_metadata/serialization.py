"""
JSON serialization utilities shared by every document writer.

Release-notes documents are written with 2-space indentation, non-ASCII
characters preserved and a trailing newline, so regenerated files diff
cleanly against hand-edited ones.
"""

import json
from pathlib import Path
from typing import Any, Union

from .exceptions import FileProcessingError
from .logging_config import logger

INDENT = 2


def to_json(data: Any) -> str:
    """Serialize data in the release-notes house style, including the trailing newline."""
    return json.dumps(data, indent=INDENT, ensure_ascii=False) + "\n"


def write_json(data: Any, path: Union[str, Path]) -> None:
    """
    Write data as JSON to a file.

    Args:
        data: JSON-serializable data
        path: Destination file; parent directories are created

    Raises:
        FileProcessingError: If the file cannot be written
    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(to_json(data))
    except OSError as e:
        raise FileProcessingError(f"Failed to write {path}: {e}")
    logger.debug(f"Wrote {path}")


def read_json(path: Union[str, Path]) -> Any:
    """
    Read and decode a JSON file.

    Raises:
        FileProcessingError: If the file cannot be read or is not valid JSON
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise FileProcessingError(f"Invalid JSON in {path}: {e}")
    except OSError as e:
        raise FileProcessingError(f"Failed to read {path}: {e}")


def camel_to_snake(key: str) -> str:
    """Convert ``latestReleaseDate`` or ``latest-release-date`` to ``latest_release_date``."""
    out = []
    for ch in key:
        if ch.isupper():
            out.append("_")
            out.append(ch.lower())
        elif ch == "-":
            out.append("_")
        else:
            out.append(ch)
    return "".join(out)


def normalize_keys(data: dict) -> dict:
    """Return a shallow copy of ``data`` with camelCase and kebab-case keys turned into snake_case."""
    return {camel_to_snake(key): value for key, value in data.items()}
