"""BRON rank-tracking feed client."""

import logging
import re
from typing import Any, Dict, Optional, Tuple

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from app.core.config import settings

logger = logging.getLogger(__name__)

_ENDPOINT_NAME = re.compile(r"^[A-Za-z0-9_-]+$")


class BronService:
    """Fetches BRON feed data (articles, backlinks, rankings, ...) for a domain.

    Each call carries explicit timeouts. An upstream 429 is turned into a
    soft "rate limited" payload instead of an error.
    """

    FEED_BASE = "https://public.imagehosting.space/feed"
    TIMEOUT = httpx.Timeout(30.0, read=25.0)
    DEFAULT_RETRY_AFTER = 60  # seconds

    FEED_SCRIPTS = {
        "articles": "Article.php",
        "backlinks": "Backlink.php",
        "rankings": "Ranking.php",
        "keywords": "Keyword.php",
        "clusters": "Cluster.php",
        "deeplinks": "DeepLink.php",
        "authority": "Authority.php",
        "profile": "Profile.php",
        "stats": "Stats.php",
        "campaigns": "Campaign.php",
        "reports": "Report.php",
        "links": "Link.php",
        "all": "All.php",
    }

    # Fixed query parameters some feed scripts need
    FEED_PARAMS: Dict[str, Dict[str, str]] = {
        "articles": {"feedit": "1"},
    }

    def __init__(
        self,
        api_id: Optional[str] = None,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the BRON service.

        Raises:
            ValueError: If BRON credentials are not configured.
        """
        self.api_id = api_id if api_id is not None else settings.BRON_API_ID
        self.api_key = api_key if api_key is not None else settings.BRON_API_KEY
        self.api_secret = api_secret if api_secret is not None else settings.BRON_API_SECRET
        if not (self.api_id and self.api_key and self.api_secret):
            raise ValueError("BRON API credentials not configured")
        self._transport = transport

    def build_url(self, endpoint: str) -> str:
        """Resolve an endpoint name to its feed script URL.

        Unknown names are tried as ``<endpoint>.php``.

        Raises:
            ValueError: If the endpoint name is not a plain identifier.
        """
        script = self.FEED_SCRIPTS.get(endpoint)
        if script is None:
            if not _ENDPOINT_NAME.match(endpoint):
                raise ValueError(f"Invalid endpoint: {endpoint}")
            script = f"{endpoint}.php"
        return f"{self.FEED_BASE}/{script}"

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(httpx.ConnectError),
        reraise=True,
    )
    async def _get(self, url: str, params: Dict[str, str]) -> httpx.Response:
        """GET a feed URL, retrying only when the connection cannot be made."""
        async with httpx.AsyncClient(
            timeout=self.TIMEOUT,
            headers={
                "Accept": "application/json",
                "User-Agent": "SEO-Audit-Backend/1.0",
            },
            transport=self._transport,
        ) as client:
            return await client.get(url, params=params)

    async def fetch(self, domain: str, endpoint: str) -> Tuple[int, Dict[str, Any]]:
        """Fetch one feed for a domain.

        Returns:
            Tuple of (HTTP status for the caller, JSON payload).
        """
        url = self.build_url(endpoint)
        params = {
            **self.FEED_PARAMS.get(endpoint, {}),
            "domain": domain,
            "apiid": self.api_id,
            "apikey": self.api_key,
            "kkyy": self.api_secret,
        }
        logger.info(f"[BRON] Endpoint: {endpoint}, Domain: {domain}")

        response = await self._get(url, params)
        logger.info(f"[BRON] Response status: {response.status_code}")

        if response.status_code == 429:
            retry_after = self._retry_after(response)
            logger.warning(f"[BRON] Rate limited on {endpoint}, retry after {retry_after}s")
            return 200, {
                "success": False,
                "rateLimited": True,
                "retryAfter": retry_after,
                "error": f"rate limited, retry after {retry_after} seconds",
                "endpoint": endpoint,
            }

        text = response.text
        if not response.is_success:
            logger.error(f"[BRON] Error: {response.status_code} - {text[:200]}")
            return response.status_code, {
                "error": f"API returned {response.status_code}",
                "details": text,
                "endpoint": endpoint,
            }

        try:
            data: Any = response.json()
        except ValueError:
            logger.info("[BRON] Response is not JSON, wrapping text")
            data = {"raw": text, "parsed": False}

        return 200, {"success": True, "data": data, "endpoint": endpoint}

    def _retry_after(self, response: httpx.Response) -> int:
        """Read Retry-After seconds, falling back to the default."""
        header = response.headers.get("Retry-After", "")
        try:
            return max(1, int(header))
        except ValueError:
            return self.DEFAULT_RETRY_AFTER
