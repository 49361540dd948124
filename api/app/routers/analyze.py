from __future__ import annotations

from typing import Any, Dict, Optional

import httpx
from fastapi import APIRouter, Depends, Request

from ..core.config import Settings, get_settings
from ..services.analyzer import analyze, parse_request_body

router = APIRouter()


def get_upstream_client(request: Request) -> Optional[httpx.AsyncClient]:
    """Shared upstream client created at startup, if any."""
    return getattr(request.app.state, "upstream_client", None)


@router.post("/api/analyze")
async def analyze_content(
    request: Request,
    settings: Settings = Depends(get_settings),
    client: Optional[httpx.AsyncClient] = Depends(get_upstream_client),
) -> Dict[str, Any]:
    """
    Analyze text or an image against the brand guidelines.

    Body: `{"type": "text" | "image", "content": str, "mimeType"?: str}`.
    Returns the model's verdict object unchanged.
    """
    # Body is parsed by hand so that malformed JSON maps to a plain 400
    raw = await request.body()
    data = parse_request_body(raw)
    return await analyze(data, settings, client=client)
