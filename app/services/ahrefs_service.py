"""Ahrefs Site Explorer client for on-demand domain audits."""

import logging
from typing import Any, Dict, Optional

import httpx

from app.core.config import settings
from app.schemas.domain_audit import AhrefsMetrics, DomainAuditResponse

logger = logging.getLogger(__name__)


class AhrefsService:
    """Fetches domain rating and backlink/organic metrics from Ahrefs v3.

    Upstream failures never raise: they are reported through
    ``ahrefsError`` in the response so the caller can render partial data.
    """

    BASE_URL = "https://api.ahrefs.com/v3/site-explorer"
    REQUEST_TIMEOUT = 30.0  # seconds

    STATUS_MESSAGES = {
        401: "Invalid Ahrefs API key",
        403: "Ahrefs API access denied - check your subscription",
        429: "Ahrefs API rate limit exceeded",
    }

    def __init__(
        self,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the Ahrefs service.

        Raises:
            ValueError: If AHREFS_API_KEY is not configured.
        """
        self.api_key = api_key if api_key is not None else settings.AHREFS_API_KEY
        if not self.api_key:
            raise ValueError("AHREFS_API_KEY not configured")
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        """Create an authenticated HTTP client."""
        return httpx.AsyncClient(
            base_url=self.BASE_URL,
            timeout=self.REQUEST_TIMEOUT,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Accept": "application/json",
            },
            transport=self._transport,
        )

    async def audit_domain(self, domain: str) -> DomainAuditResponse:
        """Fetch Ahrefs metrics for an already-cleaned domain.

        Args:
            domain: Bare domain, e.g. ``example.com``.

        Returns:
            DomainAuditResponse with either ``ahrefs`` or ``ahrefsError`` set.
        """
        logger.info(f"[Ahrefs] Fetching Ahrefs data for domain: {domain}")
        params = {"target": domain, "output": "json"}

        try:
            async with self._client() as client:
                dr_response = await client.get("/domain-rating", params=params)
                if not dr_response.is_success:
                    logger.error(
                        f"[Ahrefs] API error: {dr_response.status_code} - {dr_response.text}"
                    )
                    return DomainAuditResponse(
                        ahrefs=None,
                        ahrefsError=self.STATUS_MESSAGES.get(
                            dr_response.status_code,
                            f"Ahrefs API error: {dr_response.status_code}",
                        ),
                    )
                dr_data = dr_response.json()

                metrics_data: Dict[str, Any] = {}
                metrics_response = await client.get("/metrics", params=params)
                if metrics_response.is_success:
                    metrics_data = metrics_response.json()
                else:
                    logger.warning(
                        f"[Ahrefs] Metrics call failed: {metrics_response.status_code}"
                    )

            ahrefs = self._parse(dr_data, metrics_data)
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"[Ahrefs] Fetch error: {e}")
            return DomainAuditResponse(ahrefs=None, ahrefsError=str(e) or "Failed to fetch Ahrefs data")

        return DomainAuditResponse(ahrefs=ahrefs, ahrefsError=None)

    @staticmethod
    def _parse(dr_data: Dict[str, Any], metrics_data: Dict[str, Any]) -> AhrefsMetrics:
        """Combine domain-rating and metrics payloads.

        Raises:
            ValueError: If a payload is not a JSON object or a value does not
                fit the metric types.
        """
        if not isinstance(dr_data, dict) or not isinstance(metrics_data, dict):
            raise ValueError("Unexpected Ahrefs response format")
        metrics = metrics_data.get("metrics") or {}
        organic = metrics_data.get("organic") or {}
        domain_rating = dr_data.get("domain_rating") or dr_data.get("domainRating") or 0
        if isinstance(domain_rating, dict):
            # v3 nests the value: {"domain_rating": {"domain_rating": 71.0, ...}}
            domain_rating = domain_rating.get("domain_rating") or 0
        return AhrefsMetrics(
            domainRating=domain_rating,
            backlinks=metrics.get("backlinks") or metrics_data.get("backlinks") or 0,
            referringDomains=metrics.get("refdomains") or metrics_data.get("refdomains") or 0,
            organicTraffic=metrics.get("org_traffic") or organic.get("traffic") or 0,
            organicKeywords=metrics.get("org_keywords") or organic.get("keywords") or 0,
        )
