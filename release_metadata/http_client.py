"""HTTP client utilities with consistent user agent."""

from typing import Optional

import requests

from . import __version__
from .exceptions import APIError

DEFAULT_TIMEOUT = 30  # seconds

USER_AGENT = f"release-metadata/{__version__}"


def get_default_headers(accept: Optional[str] = None) -> dict:
    """
    Get default HTTP headers with user agent.

    Args:
        accept: Optional Accept header value (e.g., "application/json")

    Returns:
        Dictionary of HTTP headers
    """
    headers = {"User-Agent": USER_AGENT}
    if accept:
        headers["Accept"] = accept
    return headers


def create_session() -> requests.Session:
    """Create a requests session with the default headers applied."""
    session = requests.Session()
    session.headers.update(get_default_headers(accept="application/json"))
    return session


def is_remote(location: str) -> bool:
    """Return True if the location is an http(s) URL rather than a file path."""
    return location.startswith("https://") or location.startswith("http://")


def get_json(
    url: str,
    session: Optional[requests.Session] = None,
    timeout: float = DEFAULT_TIMEOUT,
    allow_missing: bool = False,
):
    """
    Fetch a URL and decode its JSON body.

    Args:
        url: Absolute http(s) URL
        session: Optional session to reuse connections and headers
        timeout: Request timeout in seconds
        allow_missing: Return None instead of raising on HTTP 404

    Returns:
        The decoded JSON value

    Raises:
        APIError: If the request fails or the body is not JSON
    """
    getter = session.get if session is not None else requests.get
    try:
        response = getter(url, headers=get_default_headers(accept="application/json"), timeout=timeout)
    except requests.exceptions.ConnectionError:
        raise APIError(f"Failed to connect to {url}")
    except requests.exceptions.Timeout:
        raise APIError(f"Request to {url} timed out")

    if allow_missing and response.status_code == 404:
        return None

    if not response.ok:
        raise APIError(f"Failed to fetch {url}. [{response.status_code}]")

    try:
        return response.json()
    except ValueError as e:
        raise APIError(f"Invalid JSON returned by {url}: {e}")
