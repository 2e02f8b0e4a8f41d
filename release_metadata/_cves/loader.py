"""Loading and writing cve.json documents from local paths or URLs."""

from datetime import date
from pathlib import Path
from typing import Optional, Union

import requests

from ..exceptions import DocumentValidationError
from ..http_client import DEFAULT_TIMEOUT, get_json, is_remote
from ..logging_config import logger
from ..serialization import read_json, write_json
from ..validation import validate_document
from .indexes import fill_missing_indexes
from .models import CveRecords

CVE_FILE_NAME = "cve.json"


def parse_cve_records(data: dict, source: str = "<data>", fill_indexes: bool = True) -> CveRecords:
    """
    Validate decoded cve.json data and build the model.

    Args:
        data: Decoded JSON object
        source: Label used in error messages
        fill_indexes: Generate absent lookup mappings from the primary lists

    Raises:
        DocumentValidationError: If the data does not match the cve.json schema
    """
    result = validate_document(data, "cve-records")
    if result.valid is False:
        raise DocumentValidationError(f"Invalid CVE document {source}: {result.describe()}")

    records = CveRecords.from_dict(data)
    if fill_indexes:
        records = fill_missing_indexes(records)
    return records


def load_cve_records(
    location: Union[str, Path],
    session: Optional[requests.Session] = None,
    timeout: float = DEFAULT_TIMEOUT,
    fill_indexes: bool = True,
) -> Optional[CveRecords]:
    """
    Load a cve.json document from a file path or http(s) URL.

    A document that does not exist (missing file, HTTP 404) is a normal
    condition for months without disclosures and yields None.

    Args:
        location: File path or URL
        session: Optional requests session for remote documents
        timeout: HTTP timeout in seconds
        fill_indexes: Generate absent lookup mappings from the primary lists

    Returns:
        CveRecords, or None when the document does not exist

    Raises:
        DocumentValidationError: If the document does not match the schema
        FileProcessingError: If a local file cannot be read or decoded
        APIError: If a remote document cannot be fetched
    """
    location = str(location)

    if is_remote(location):
        data = get_json(location, session=session, timeout=timeout, allow_missing=True)
        if data is None:
            logger.debug(f"No CVE document at {location}")
            return None
    else:
        path = Path(location)
        if not path.is_file():
            logger.debug(f"No CVE document at {path}")
            return None
        data = read_json(path)

    if not isinstance(data, dict):
        raise DocumentValidationError(f"CVE document {location} is not a JSON object")

    return parse_cve_records(data, source=location, fill_indexes=fill_indexes)


def load_cve_records_from_directory(directory: Union[str, Path], **kwargs) -> Optional[CveRecords]:
    """Load ``cve.json`` from a directory (or URL prefix)."""
    directory = str(directory)
    if is_remote(directory):
        return load_cve_records(f"{directory.rstrip('/')}/{CVE_FILE_NAME}", **kwargs)
    return load_cve_records(Path(directory) / CVE_FILE_NAME, **kwargs)


def timeline_directory(root: Union[str, Path], release_date: date) -> str:
    """Return the ``timeline/YYYY/MM`` location for a release date under ``root``."""
    root = str(root)
    year = f"{release_date.year:04d}"
    month = f"{release_date.month:02d}"
    if is_remote(root):
        return f"{root.rstrip('/')}/timeline/{year}/{month}"
    return str(Path(root) / "timeline" / year / month)


def load_cve_records_for_release_date(
    root: Union[str, Path], release_date: Union[date, str], **kwargs
) -> Optional[CveRecords]:
    """
    Load the CVE document for the month a release shipped in.

    Args:
        root: Release-notes root (path or URL)
        release_date: Release date, as a date or "YYYY-MM-DD"
    """
    if isinstance(release_date, str):
        try:
            release_date = date.fromisoformat(release_date[:10])
        except ValueError:
            raise DocumentValidationError(f"Invalid release date: {release_date}")
    return load_cve_records_from_directory(timeline_directory(root, release_date), **kwargs)


def write_cve_records(records: CveRecords, path: Union[str, Path]) -> None:
    """
    Write records as a snake_case cve.json document.

    Raises:
        FileProcessingError: If the file cannot be written
    """
    write_json(records.to_dict(), path)
    logger.info(f"Wrote CVE document with {len(records.disclosures)} disclosure(s) to {path}")
