"""DataForSEO API client used by the audit refresh job and the proxy route."""

import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)


class DataForSEOError(Exception):
    """Raised when DataForSEO rejects a request.

    Attributes:
        message: The upstream ``status_message`` or a generic description.
        status_code: HTTP status of the response, if any.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


# Proxy actions -> (HTTP method, endpoint path)
ACTION_ENDPOINTS: Dict[str, Tuple[str, str]] = {
    # Account
    "user_data": ("GET", "/appendix/user_data"),
    # SERP API
    "serp_google_organic": ("POST", "/serp/google/organic/live/advanced"),
    "serp_google_maps": ("POST", "/serp/google/maps/live/advanced"),
    # Keywords Data API
    "keywords_search_volume": ("POST", "/keywords_data/google_ads/search_volume/live"),
    "keywords_for_site": ("POST", "/keywords_data/google_ads/keywords_for_site/live"),
    "keywords_for_keywords": ("POST", "/keywords_data/google_ads/keywords_for_keywords/live"),
    "google_trends": ("POST", "/keywords_data/google_trends/explore/live"),
    # Backlinks API
    "backlinks_summary": ("POST", "/backlinks/summary/live"),
    "backlinks_backlinks": ("POST", "/backlinks/backlinks/live"),
    "backlinks_anchors": ("POST", "/backlinks/anchors/live"),
    "backlinks_referring_domains": ("POST", "/backlinks/referring_domains/live"),
    "backlinks_history": ("POST", "/backlinks/history/live"),
    "backlinks_competitors": ("POST", "/backlinks/competitors/live"),
    "backlinks_bulk_ranks": ("POST", "/backlinks/bulk_ranks/live"),
    # DataForSEO Labs API
    "labs_ranked_keywords": ("POST", "/dataforseo_labs/google/ranked_keywords/live"),
    "labs_competitors_domain": ("POST", "/dataforseo_labs/google/competitors_domain/live"),
    "labs_domain_intersection": ("POST", "/dataforseo_labs/google/domain_intersection/live"),
    "labs_keyword_ideas": ("POST", "/dataforseo_labs/google/keyword_ideas/live"),
    "labs_related_keywords": ("POST", "/dataforseo_labs/google/related_keywords/live"),
    "labs_domain_rank_overview": ("POST", "/dataforseo_labs/google/domain_rank_overview/live"),
    # OnPage API
    "onpage_task_post": ("POST", "/on_page/task_post"),
    "onpage_pages": ("POST", "/on_page/pages"),
    "onpage_instant_pages": ("POST", "/on_page/instant_pages"),
    "onpage_lighthouse": ("POST", "/on_page/lighthouse/live/json"),
    # Domain analytics
    "domain_technologies": ("POST", "/domain_analytics/technologies/domain_technologies/live"),
    "domain_whois": ("POST", "/domain_analytics/whois/overview/live"),
    # Content analysis
    "content_search": ("POST", "/content_analysis/search/live"),
    "content_sentiment": ("POST", "/content_analysis/sentiment_analysis/live"),
}


def resolve_action(
    action: str,
    endpoint: Optional[str] = None,
    data: Any = None,
) -> Tuple[str, str, Any]:
    """Map a proxy action to the upstream method, path and body.

    Args:
        action: One of ACTION_ENDPOINTS, ``onpage_summary`` or ``custom``.
        endpoint: Path used by the ``custom`` action.
        data: Request payload.

    Returns:
        Tuple of (method, path, body). body is None for GET requests.

    Raises:
        ValueError: For unknown actions or missing parameters.
    """
    if action == "onpage_summary":
        task_id = data.get("task_id") if isinstance(data, dict) else None
        if not task_id:
            raise ValueError('onpage_summary requires "data.task_id"')
        return "GET", f"/on_page/summary/{task_id}", None

    if action == "custom":
        if not endpoint:
            raise ValueError('Custom endpoint requires "endpoint" parameter')
        if not endpoint.startswith("/"):
            endpoint = f"/{endpoint}"
        return ("POST", endpoint, data) if data else ("GET", endpoint, None)

    if action not in ACTION_ENDPOINTS:
        raise ValueError(f"Unknown action: {action}")

    method, path = ACTION_ENDPOINTS[action]
    return method, path, data if method == "POST" else None


class DataForSEOService:
    """Async client for the DataForSEO v3 REST API.

    Authenticates with HTTP Basic auth from settings. The audit job uses
    the typed helpers (domain rank overview, backlinks summary, bulk
    ranks); the proxy route uses ``request`` to pass calls through.
    """

    BASE_URL = "https://api.dataforseo.com/v3"
    REQUEST_TIMEOUT = 120.0  # seconds
    SUCCESS_CODE = 20000

    # Labs defaults: United States, English
    LOCATION_CODE = 2840
    LANGUAGE_CODE = "en"

    def __init__(
        self,
        login: Optional[str] = None,
        password: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the DataForSEO service.

        Raises:
            ValueError: If login or password is not configured.
        """
        self.login = login if login is not None else settings.DATAFORSEO_LOGIN
        self.password = password if password is not None else settings.DATAFORSEO_PASSWORD
        if not self.login or not self.password:
            raise ValueError("DATAFORSEO credentials not configured")
        self._transport = transport
        self.http_client: Optional[httpx.AsyncClient] = None

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self.http_client is None or self.http_client.is_closed:
            self.http_client = httpx.AsyncClient(
                base_url=self.BASE_URL,
                auth=httpx.BasicAuth(self.login, self.password),
                timeout=self.REQUEST_TIMEOUT,
                headers={"Content-Type": "application/json"},
                transport=self._transport,
            )
        return self.http_client

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        if self.http_client is not None and not self.http_client.is_closed:
            await self.http_client.aclose()

    async def request(
        self,
        method: str,
        path: str,
        body: Any = None,
    ) -> Tuple[int, Any]:
        """Send a raw request and return the status code and decoded JSON."""
        client = await self._get_http_client()
        logger.info(f"[DataForSEO] Calling: {method} {self.BASE_URL}{path}")
        response = await client.request(method, path, json=body)
        logger.info(f"[DataForSEO] Response status: {response.status_code}")
        return response.status_code, response.json()

    async def post(self, path: str, payload: List[Dict[str, Any]]) -> Dict[str, Any]:
        """POST a task list and validate the DataForSEO envelope.

        Raises:
            DataForSEOError: If the HTTP status is not 200 or the body
                status_code is not 20000.
        """
        status_code, data = await self.request("POST", path, payload)
        body_code = data.get("status_code") if isinstance(data, dict) else None
        if status_code != 200 or body_code != self.SUCCESS_CODE:
            message = data.get("status_message") if isinstance(data, dict) else None
            raise DataForSEOError(message or f"API error: {status_code}", status_code)
        return data

    @staticmethod
    def first_result(data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Return ``tasks[0].result[0]`` or None."""
        tasks = data.get("tasks") or []
        if not tasks:
            return None
        results = tasks[0].get("result") or []
        return results[0] if results else None

    async def domain_rank_overview(self, domain: str) -> Optional[Dict[str, Any]]:
        """Fetch Labs organic overview for a domain."""
        data = await self.post(
            "/dataforseo_labs/google/domain_rank_overview/live",
            [{
                "target": domain,
                "location_code": self.LOCATION_CODE,
                "language_code": self.LANGUAGE_CODE,
            }],
        )
        return self.first_result(data)

    async def backlinks_summary(self, domain: str) -> Optional[Dict[str, Any]]:
        """Fetch the backlinks summary for a domain, subdomains included."""
        data = await self.post(
            "/backlinks/summary/live",
            [{"target": domain, "include_subdomains": True}],
        )
        return self.first_result(data)

    async def bulk_ranks(self, domain: str) -> Optional[Dict[str, Any]]:
        """Fetch the raw backlink rank for a domain."""
        data = await self.post(
            "/backlinks/bulk_ranks/live",
            [{"targets": [domain]}],
        )
        return self.first_result(data)
