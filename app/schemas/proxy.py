"""Pydantic schemas for the upstream proxy endpoints."""

from typing import Any, Optional

from pydantic import BaseModel, Field


class DataForSEORequest(BaseModel):
    """Request body for the DataForSEO proxy.

    Attributes:
        action: Named action mapped to a fixed upstream endpoint.
        endpoint: Upstream path for the ``custom`` action.
        data: Payload forwarded as the JSON body.
    """

    action: str = Field(..., min_length=1)
    endpoint: Optional[str] = None
    data: Any = None


class BronRequest(BaseModel):
    """Request body for the BRON feed proxy."""

    domain: Optional[str] = None
    endpoint: Optional[str] = None
