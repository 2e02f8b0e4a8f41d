"""Access to release-notes documents on disk or over HTTP."""

from pathlib import Path
from typing import Any, Optional, Union

import requests

from ..exceptions import DocumentNotFoundError, DocumentValidationError
from ..http_client import DEFAULT_TIMEOUT, get_json, is_remote
from ..serialization import read_json
from .models import MajorReleaseOverview, PatchReleaseOverview, SupportedOSMatrix

RELEASE_NOTES_BASE_URL = "https://raw.githubusercontent.com/dotnet/core/main/release-notes"

RELEASES_FILE = "releases.json"
PATCH_RELEASE_FILE = "release.json"
SUPPORTED_OS_FILE = "supported-os.json"


def get_uri(file_name: str, version: Optional[str] = None, base: Optional[str] = None) -> str:
    """
    Build the location of a release-notes document.

    https bases produce "{base}/{version}/{file_name}"; anything else is
    treated as a directory and joined as a filesystem path.
    """
    base = base or RELEASE_NOTES_BASE_URL
    if is_remote(base):
        parts = [base.rstrip("/")] + ([version] if version else []) + [file_name]
        return "/".join(parts)
    if version:
        return str(Path(base) / version / file_name)
    return str(Path(base) / file_name)


def load_document(
    location: Union[str, Path],
    session: Optional[requests.Session] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> Any:
    """
    Read a JSON document from a path or URL.

    Raises:
        DocumentNotFoundError: If a local file does not exist
        APIError: If a remote document cannot be fetched
        FileProcessingError: If a local file cannot be read or decoded
    """
    location = str(location)
    if is_remote(location):
        return get_json(location, session=session, timeout=timeout)

    path = Path(location)
    if not path.is_file():
        raise DocumentNotFoundError(f"Document not found: {path}")
    return read_json(path)


def _load_object(location, kind: str, **kwargs) -> dict:
    data = load_document(location, **kwargs)
    if not isinstance(data, dict):
        raise DocumentValidationError(f"{kind} at {location} is not a JSON object")
    return data


def load_supported_os_matrix(location: Union[str, Path], **kwargs) -> SupportedOSMatrix:
    return SupportedOSMatrix.from_dict(_load_object(location, SUPPORTED_OS_FILE, **kwargs))


def load_major_release(location: Union[str, Path], **kwargs) -> MajorReleaseOverview:
    return MajorReleaseOverview.from_dict(_load_object(location, RELEASES_FILE, **kwargs))


def load_patch_release(location: Union[str, Path], **kwargs) -> PatchReleaseOverview:
    return PatchReleaseOverview.from_dict(_load_object(location, PATCH_RELEASE_FILE, **kwargs))
