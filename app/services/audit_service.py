"""Audit refresh service: fetch SEO metrics per domain and persist them."""

import asyncio
import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import settings
from app.core.database import engine
from app.models.audit_history import AuditHistory
from app.models.saved_audit import METRIC_FIELDS, SavedAudit
from app.schemas.audit import AuditMetrics, AuditResult, AuditRunResponse
from app.services.audit_trends import round_half_up
from app.services.dataforseo_service import DataForSEOService
from app.services.domains import clean_domain, slugify_domain

logger = logging.getLogger(__name__)

Metrics = Dict[str, Any]


def apply_labs_overview(result: Dict[str, Any], metrics: Metrics) -> None:
    """Fill traffic, keyword and traffic value metrics from Labs data."""
    organic = (result.get("metrics") or {}).get("organic") or {}
    traffic = result.get("etv") or organic.get("etv") or None
    metrics["organic_traffic"] = traffic
    metrics["organic_keywords"] = organic.get("count") or result.get("keywords_count") or None
    metrics["traffic_value"] = organic.get("estimated_paid_traffic_cost") or (
        round_half_up(traffic * 0.5) if traffic else None
    )


def apply_backlinks_summary(result: Dict[str, Any], metrics: Metrics) -> None:
    """Fill link metrics and a provisional domain rating."""
    referring_domains = result.get("referring_domains") or None
    metrics["backlinks"] = result.get("backlinks") or None
    metrics["referring_domains"] = referring_domains
    metrics["rank_score"] = result.get("rank") or None
    if referring_domains:
        metrics["domain_rating"] = min(
            100, round_half_up(math.log10(referring_domains + 1) * 15)
        )


def apply_bulk_ranks(result: Dict[str, Any], metrics: Metrics) -> None:
    """Refine the domain rating from the raw backlink rank."""
    raw_rank = result.get("rank") or 0
    if raw_rank > 0:
        rating = round_half_up(math.log10(1_000_000 / max(1, raw_rank)) * 20)
        metrics["domain_rating"] = max(0, min(100, rating))
    metrics["rank_score"] = result.get("rank") or metrics.get("rank_score")


def finalize_metrics(metrics: Metrics) -> AuditMetrics:
    """Round float metrics and build the response model."""
    rounded = {}
    for field in METRIC_FIELDS:
        value = metrics.get(field)
        rounded[field] = round_half_up(value) if value else value
    return AuditMetrics(**rounded)


class AuditMetricsFetcher:
    """Fetches and normalizes the metric bundle for one domain.

    Each upstream source is called independently: a failing source leaves
    its fields as None and the remaining sources still contribute.
    """

    def __init__(self, dataforseo: DataForSEOService):
        """Initialize the fetcher with a DataForSEO client."""
        self.dataforseo = dataforseo

    def _sources(
        self,
    ) -> List[Tuple[str, Callable[[str], Awaitable[Optional[Dict[str, Any]]]], Callable[[Dict[str, Any], Metrics], None]]]:
        """Ordered (name, fetch, apply) triples. Bulk ranks refine backlinks."""
        return [
            ("Labs", self.dataforseo.domain_rank_overview, apply_labs_overview),
            ("Backlinks", self.dataforseo.backlinks_summary, apply_backlinks_summary),
            ("Bulk Ranks", self.dataforseo.bulk_ranks, apply_bulk_ranks),
        ]

    async def fetch(self, domain: str) -> AuditResult:
        """Run every metric source for a domain.

        Args:
            domain: Raw domain input; cleaned before any upstream call.

        Returns:
            AuditResult with success=False when the domain is invalid,
            every source failed, or the payloads could not be normalized.
        """
        logger.info(f"[AuditRefresh] Running audit for domain: {domain}")

        try:
            cleaned = clean_domain(domain)
        except ValueError as e:
            logger.error(f"[AuditRefresh] Error auditing {domain}: {e}")
            return AuditResult(domain=domain, success=False, error=str(e))

        try:
            return await self._collect(cleaned)
        except Exception as e:
            logger.error(f"[AuditRefresh] Error auditing {cleaned}: {e}")
            return AuditResult(domain=cleaned, success=False, error=str(e) or type(e).__name__)

    async def _collect(self, cleaned: str) -> AuditResult:
        """Call each source for an already-cleaned domain and merge the results."""
        metrics: Metrics = dict.fromkeys(METRIC_FIELDS)
        errors: List[str] = []
        sources = self._sources()

        for name, fetch, apply in sources:
            try:
                result = await fetch(cleaned)
                if result:
                    apply(result, metrics)
            except Exception as e:
                logger.warning(f"[AuditRefresh] {name} API error for {cleaned}: {e}")
                errors.append(f"{name}: {e}")

        if len(errors) == len(sources):
            logger.error(f"[AuditRefresh] All metric sources failed for {cleaned}")
            return AuditResult(domain=cleaned, success=False, error="; ".join(errors))

        bundle = finalize_metrics(metrics)
        logger.info(
            f"[AuditRefresh] Audit complete for {cleaned}: "
            f"DR={bundle.domain_rating}, Traffic={bundle.organic_traffic}"
        )
        return AuditResult(domain=cleaned, success=True, metrics=bundle)


class AuditRefreshService:
    """Refreshes saved audits and records history snapshots.

    The single-domain path upserts the audit by slug and records a
    ``manual`` snapshot. The batch path refreshes up to ``batch_limit``
    stale audits one at a time, pausing ``delay_seconds`` between domains,
    and records ``auto`` snapshots. The audit write and the history insert
    are separate commits.
    """

    def __init__(
        self,
        fetcher: AuditMetricsFetcher,
        session_factory: Optional[async_sessionmaker] = None,
        stale_days: Optional[int] = None,
        batch_limit: Optional[int] = None,
        delay_seconds: Optional[float] = None,
    ):
        """Initialize the refresh service, defaulting knobs from settings."""
        self.fetcher = fetcher
        self._session_factory = session_factory
        self.stale_days = stale_days if stale_days is not None else settings.AUDIT_STALE_DAYS
        self.batch_limit = batch_limit if batch_limit is not None else settings.AUDIT_BATCH_LIMIT
        self.delay_seconds = (
            delay_seconds if delay_seconds is not None else settings.AUDIT_BATCH_DELAY_SECONDS
        )

    def _get_session_factory(self) -> async_sessionmaker:
        """Get or create the session factory."""
        if self._session_factory is None:
            self._session_factory = async_sessionmaker(
                bind=engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )
        return self._session_factory

    async def aclose(self) -> None:
        """Release upstream HTTP resources."""
        await self.fetcher.dataforseo.aclose()

    async def refresh_domain(self, domain: str) -> AuditRunResponse:
        """Audit one domain and upsert it (single-domain mode)."""
        logger.info(f"[AuditRefresh] Single domain mode: {domain}")

        result = await self.fetcher.fetch(domain)
        if result.success and result.metrics is not None:
            audit_id = await self.save_audit(result)
            if audit_id is not None:
                await self.append_history(audit_id, result, AuditHistory.SOURCE_MANUAL)

        logger.info("[AuditRefresh] Completed. Processed 1 domains")
        return AuditRunResponse(processed=1, results=[result])

    async def refresh_stale(self) -> AuditRunResponse:
        """Refresh stale audits (batch mode).

        Raises:
            SQLAlchemyError: If the stale audit query fails.
        """
        logger.info(
            f"[AuditRefresh] Batch mode - refreshing audits older than {self.stale_days} days"
        )

        session_factory = self._get_session_factory()
        async with session_factory() as session:
            stale = await self.select_stale_audits(session, self.stale_days, self.batch_limit)
            targets = [(audit.domain, audit.slug) for audit in stale]

        logger.info(f"[AuditRefresh] Found {len(targets)} stale audits to refresh")

        results: List[AuditResult] = []
        for index, (domain, slug) in enumerate(targets):
            if index > 0 and self.delay_seconds > 0:
                # Pause between domains to avoid upstream rate limiting
                await asyncio.sleep(self.delay_seconds)

            try:
                result = await self._refresh_stale_audit(domain, slug)
            except Exception as e:
                logger.error(f"[AuditRefresh] Error refreshing {domain}: {e}")
                result = AuditResult(
                    domain=domain, success=False, error=str(e) or type(e).__name__
                )
            results.append(result)

        logger.info(f"[AuditRefresh] Completed. Processed {len(results)} domains")
        return AuditRunResponse(processed=len(results), results=results)

    async def _refresh_stale_audit(self, domain: str, slug: str) -> AuditResult:
        """Fetch one stale domain, update its audit and record an auto snapshot."""
        result = await self.fetcher.fetch(domain)
        if not result.success or result.metrics is None:
            return result

        updated, audit_id = await self.update_audit(slug, result)
        if updated:
            await self.append_history(audit_id, result, AuditHistory.SOURCE_AUTO)
        return result

    async def select_stale_audits(
        self,
        session: AsyncSession,
        stale_days: int,
        limit: int,
    ) -> List[SavedAudit]:
        """Return up to ``limit`` audits not refreshed for ``stale_days`` days, oldest first."""
        cutoff = datetime.now(timezone.utc) - timedelta(days=stale_days)
        result = await session.execute(
            select(SavedAudit)
            .where(SavedAudit.updated_at < cutoff)
            .order_by(SavedAudit.updated_at.asc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def save_audit(self, result: AuditResult) -> Optional[UUID]:
        """Upsert the audit for ``result.domain`` by slug.

        Returns:
            The audit id, or None if the write failed.
        """
        slug = slugify_domain(result.domain)
        metrics = result.metrics.model_dump() if result.metrics else {}
        session_factory = self._get_session_factory()

        try:
            async with session_factory() as session:
                query = await session.execute(
                    select(SavedAudit).where(SavedAudit.slug == slug)
                )
                audit = query.scalar_one_or_none()
                if audit is None:
                    audit = SavedAudit(domain=result.domain, slug=slug, category="other")
                    session.add(audit)
                audit.apply_metrics(metrics, datetime.now(timezone.utc))
                await session.commit()
                audit_id = audit.id
        except SQLAlchemyError as e:
            logger.error(f"[AuditRefresh] Error saving audit for {result.domain}: {e}")
            return None

        logger.info(f"[AuditRefresh] Saved audit for {result.domain}")
        return audit_id

    async def update_audit(
        self,
        slug: str,
        result: AuditResult,
    ) -> Tuple[bool, Optional[UUID]]:
        """Overwrite the metrics of an existing audit.

        Returns:
            Tuple of (write succeeded, audit id). The id is None when the
            row disappeared between selection and update.
        """
        metrics = result.metrics.model_dump() if result.metrics else {}
        session_factory = self._get_session_factory()

        try:
            async with session_factory() as session:
                query = await session.execute(
                    select(SavedAudit).where(SavedAudit.slug == slug)
                )
                audit = query.scalar_one_or_none()
                if audit is None:
                    logger.warning(f"[AuditRefresh] Audit {slug} vanished before update")
                    return True, None
                audit.apply_metrics(metrics, datetime.now(timezone.utc))
                await session.commit()
                return True, audit.id
        except SQLAlchemyError as e:
            logger.error(f"[AuditRefresh] Error updating audit for {result.domain}: {e}")
            return False, None

    async def append_history(
        self,
        audit_id: Optional[UUID],
        result: AuditResult,
        source: str,
    ) -> bool:
        """Insert a history snapshot. Never updates existing rows.

        Returns:
            True if the snapshot was written.

        Raises:
            ValueError: If source is not a known snapshot source.
        """
        if source not in AuditHistory.VALID_SOURCES:
            raise ValueError(f"Unknown snapshot source: {source}")

        metrics = result.metrics.model_dump() if result.metrics else {}
        session_factory = self._get_session_factory()

        try:
            async with session_factory() as session:
                session.add(
                    AuditHistory(
                        audit_id=audit_id,
                        domain=result.domain,
                        snapshot_at=datetime.now(timezone.utc),
                        source=source,
                        **{field: metrics.get(field) for field in METRIC_FIELDS},
                    )
                )
                await session.commit()
        except SQLAlchemyError as e:
            logger.error(f"[AuditRefresh] Error saving history for {result.domain}: {e}")
            return False

        logger.info(f"[AuditRefresh] Saved history snapshot for {result.domain}")
        return True


def build_audit_refresh_service() -> AuditRefreshService:
    """Create a refresh service wired to DataForSEO from settings.

    Raises:
        ValueError: If DataForSEO credentials are not configured.
    """
    return AuditRefreshService(fetcher=AuditMetricsFetcher(DataForSEOService()))
