"""DataForSEO pass-through proxy endpoint."""

import logging

import httpx
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.api.deps import DataForSEODep
from app.schemas.proxy import DataForSEORequest
from app.services.dataforseo_service import resolve_action

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/dataforseo")
async def dataforseo_proxy(request: DataForSEORequest, service: DataForSEODep) -> JSONResponse:
    """Forward a named DataForSEO action and pass the response through.

    The upstream status code and JSON body are returned unchanged.

    Args:
        request: Action, optional custom endpoint and payload.
        service: DataForSEO client, None when credentials are missing.

    Returns:
        JSONResponse mirroring the upstream response.
    """
    if service is None:
        return JSONResponse(
            status_code=500,
            content={"error": "DataForSEO credentials not configured"},
        )

    logger.info(f"[DataForSEO] Action: {request.action}, Endpoint: {request.endpoint}")

    try:
        method, path, body = resolve_action(request.action, request.endpoint, request.data)
    except ValueError as e:
        return JSONResponse(status_code=400, content={"error": str(e)})

    try:
        status_code, data = await service.request(method, path, body)
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"[DataForSEO] Error: {e}")
        return JSONResponse(status_code=500, content={"error": str(e) or "Upstream request failed"})

    return JSONResponse(status_code=status_code, content=data)
