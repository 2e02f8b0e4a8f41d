"""endoflife.date client for distribution lifecycle cycles."""

from typing import Dict, List, Optional

import requests

from ..exceptions import APIError
from ..http_client import DEFAULT_TIMEOUT, create_session, get_json
from ..logging_config import logger
from .models import SupportCycle

ENDOFLIFE_API_BASE = "https://endoflife.date/api"

# Simple in-memory cache, keyed by "{base_url}/{product}"
_cache: Dict[str, List[SupportCycle]] = {}


def clear_cache() -> None:
    """Clear the endoflife.date cycle cache."""
    _cache.clear()


class EndOfLifeClient:
    """
    Fetches lifecycle cycles per product from endoflife.date.

    The product id is the distribution id used in supported-os.json
    (e.g. "ubuntu", "alpine", "rhel").
    """

    def __init__(
        self,
        base_url: str = ENDOFLIFE_API_BASE,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or create_session()
        self.timeout = timeout

    def product_url(self, product: str) -> str:
        return f"{self.base_url}/{product}.json"

    def get_cycles(self, product: str) -> List[SupportCycle]:
        """
        Fetch all cycles for a product.

        Args:
            product: endoflife.date product id

        Returns:
            Cycles in feed order (newest first on endoflife.date)

        Raises:
            APIError: If the feed cannot be fetched or is not a list of cycles
        """
        url = self.product_url(product)
        if url in _cache:
            logger.debug(f"Cache hit (endoflife.date): {product}")
            return _cache[url]

        logger.debug(f"Fetching endoflife.date cycles for: {product}")
        data = get_json(url, session=self.session, timeout=self.timeout)
        if not isinstance(data, list):
            raise APIError(f"Unexpected response from {url}: expected a list of cycles")

        cycles = [SupportCycle.from_dict(entry) for entry in data if isinstance(entry, dict)]
        _cache[url] = cycles
        return cycles

    def __call__(self, product: str) -> List[SupportCycle]:
        return self.get_cycles(product)
