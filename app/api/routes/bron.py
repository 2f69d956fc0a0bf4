"""BRON feed proxy endpoint."""

import logging

import httpx
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.api.deps import BronDep
from app.schemas.proxy import BronRequest

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/bron")
async def bron_proxy(request: BronRequest, service: BronDep) -> JSONResponse:
    """Fetch one BRON feed for a domain.

    Args:
        request: Domain and feed endpoint name.
        service: BRON client, None when credentials are missing.

    Returns:
        JSONResponse with ``{success, data, endpoint}``, a soft rate-limit
        payload, or the upstream error status.
    """
    if not request.domain:
        return JSONResponse(status_code=400, content={"error": "Domain is required"})
    if not request.endpoint:
        return JSONResponse(status_code=400, content={"error": "Endpoint is required"})

    if service is None:
        return JSONResponse(
            status_code=500,
            content={"error": "BRON API credentials not configured"},
        )

    try:
        status_code, payload = await service.fetch(request.domain, request.endpoint)
    except ValueError as e:
        return JSONResponse(status_code=400, content={"error": str(e)})
    except httpx.TimeoutException:
        logger.error(f"[BRON] Timeout fetching {request.endpoint} for {request.domain}")
        return JSONResponse(
            status_code=504,
            content={"error": "BRON API timed out", "endpoint": request.endpoint},
        )
    except httpx.HTTPError as e:
        logger.error(f"[BRON] Error: {e}")
        return JSONResponse(status_code=502, content={"error": str(e) or "BRON API unreachable"})

    return JSONResponse(status_code=status_code, content=payload)
