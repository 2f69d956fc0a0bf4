from __future__ import annotations

import asyncio
import json
import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional
from uuid import UUID, uuid4

import httpx
import pytest

_DB_DIR = Path(tempfile.mkdtemp(prefix="seo-audit-tests-"))

# Settings are read at import time, so the environment is fixed before any
# app module is imported.
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR / 'test.sqlite3'}"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["DEBUG"] = "false"
for _key in (
    "DATAFORSEO_LOGIN",
    "DATAFORSEO_PASSWORD",
    "AHREFS_API_KEY",
    "BRON_API_ID",
    "BRON_API_KEY",
    "BRON_API_SECRET",
):
    os.environ[_key] = ""

from app.core.database import Base, engine  # noqa: E402
from app.models import AuditHistory, SavedAudit  # noqa: E402
from app.services.audit_service import AuditMetricsFetcher, AuditRefreshService  # noqa: E402
from app.services.dataforseo_service import DataForSEOService  # noqa: E402

LABS_PATH = "/dataforseo_labs/google/domain_rank_overview/live"
BACKLINKS_PATH = "/backlinks/summary/live"
RANKS_PATH = "/backlinks/bulk_ranks/live"

LABS_RESULT = {
    "target": "example.com",
    "metrics": {
        "organic": {"etv": 1234.6, "count": 321, "estimated_paid_traffic_cost": 987.4},
    },
}
BACKLINKS_RESULT = {"target": "example.com", "backlinks": 5000, "referring_domains": 99, "rank": 250}
RANKS_RESULT = {"target": "example.com", "rank": 1000}


def dataforseo_transport(
    responses: Dict[str, Any],
    calls: Optional[List[Dict[str, Any]]] = None,
) -> httpx.MockTransport:
    """Fake DataForSEO.

    ``responses`` maps an endpoint path to a result dict, a callable taking
    the posted task and returning a result dict, or an int HTTP status to
    fail with.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/v3")
        task = json.loads(request.content)[0] if request.content else {}
        if calls is not None:
            calls.append({"path": path, "task": task, "auth": request.headers.get("authorization")})

        outcome = responses.get(path)
        if outcome is None:
            return httpx.Response(404, json={"status_code": 40400, "status_message": "Not Found."})
        if isinstance(outcome, int):
            return httpx.Response(
                outcome,
                json={"status_code": 50000, "status_message": "Internal Error."},
            )
        result = outcome(task) if callable(outcome) else outcome
        return httpx.Response(
            200,
            json={"status_code": 20000, "status_message": "Ok.", "tasks": [{"result": [result]}]},
        )

    return httpx.MockTransport(handler)


@pytest.fixture(autouse=True)
def reset_database() -> None:
    async def _reset() -> None:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(_reset())


@pytest.fixture()
def make_refresh_service() -> Callable[..., AuditRefreshService]:
    def _make(
        responses: Optional[Dict[str, Any]] = None,
        calls: Optional[List[Dict[str, Any]]] = None,
        **kwargs: Any,
    ) -> AuditRefreshService:
        if responses is None:
            responses = {
                LABS_PATH: LABS_RESULT,
                BACKLINKS_PATH: BACKLINKS_RESULT,
                RANKS_PATH: RANKS_RESULT,
            }
        dataforseo = DataForSEOService(
            login="login",
            password="secret",
            transport=dataforseo_transport(responses, calls),
        )
        kwargs.setdefault("delay_seconds", 0)
        return AuditRefreshService(fetcher=AuditMetricsFetcher(dataforseo), **kwargs)

    return _make


@pytest.fixture()
def seed_audit() -> Callable[..., UUID]:
    """Insert a saved audit, optionally with history snapshots oldest first."""

    def _seed(
        domain: str,
        age_days: int = 0,
        history: Optional[List[Dict[str, Any]]] = None,
        **fields: Any,
    ) -> UUID:
        audit_id = uuid4()
        now = datetime.now(timezone.utc)
        snapshots = history or []

        async def _insert() -> None:
            async with engine.begin() as conn:
                await conn.execute(
                    SavedAudit.__table__.insert().values(
                        id=audit_id,
                        domain=domain,
                        slug=domain.replace(".", "-"),
                        updated_at=now - timedelta(days=age_days),
                        **fields,
                    )
                )
                for index, snapshot in enumerate(snapshots):
                    await conn.execute(
                        AuditHistory.__table__.insert().values(
                            id=uuid4(),
                            audit_id=audit_id,
                            domain=domain,
                            snapshot_at=now - timedelta(days=len(snapshots) - index),
                            **snapshot,
                        )
                    )

        asyncio.run(_insert())
        return audit_id

    return _seed


@pytest.fixture()
def fetch_rows() -> Callable[[Any], List[Any]]:
    """Run a select against the test database and return ORM rows."""
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    def _fetch(statement: Any) -> List[Any]:
        async def _run() -> List[Any]:
            factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
            async with factory() as session:
                result = await session.execute(statement)
                return list(result.scalars().all())

        return asyncio.run(_run())

    return _fetch


@pytest.fixture()
def client():
    from fastapi.testclient import TestClient

    from app.main import app

    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
