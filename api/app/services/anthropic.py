"""Anthropic Messages API integration."""

import json
import logging
import time
from typing import Any, Dict, List, Optional, Union

import httpx

from ..core.config import Settings
from ..models.exceptions import UpstreamError
from ..models.schemas import (
    AnalysisRequest,
    ContentBlock,
    ImageBlock,
    ImageSource,
    TextBlock,
    UpstreamPayload,
    UserMessage,
)
from .prompts import BRAND_SYSTEM_PROMPT, IMAGE_INSTRUCTION, render_text_instruction

logger = logging.getLogger(__name__)


def _headers(settings: Settings, content_length: int) -> Dict[str, str]:
    """Build the provider headers for a body of `content_length` bytes."""
    return {
        "x-api-key": settings.anthropic_api_key or "",
        "anthropic-version": settings.anthropic_version,
        "content-type": "application/json",
        "content-length": str(content_length),
    }


def build_user_content(request: AnalysisRequest) -> Union[str, List[ContentBlock]]:
    """Shape the caller's content into the user message content.

    Images become an image block followed by the fixed instruction block;
    everything else is interpolated into the text instruction.
    """
    if request.is_image:
        return [
            ImageBlock(source=ImageSource(media_type=request.media_type, data=request.content)),
            TextBlock(text=IMAGE_INSTRUCTION),
        ]
    return render_text_instruction(request.content)


def build_payload(request: AnalysisRequest, settings: Settings) -> UpstreamPayload:
    return UpstreamPayload(
        model=settings.model,
        max_tokens=settings.max_tokens,
        system=BRAND_SYSTEM_PROMPT,
        messages=[UserMessage(content=build_user_content(request))],
    )


def encode_payload(payload: UpstreamPayload) -> bytes:
    return json.dumps(payload.model_dump(mode="json")).encode("utf-8")


def _extract_message_text(response: Dict[str, Any]) -> str:
    """Text of the first content item of a Messages API response."""
    content = response.get("content")
    if not isinstance(content, list) or not content:
        return ""
    first = content[0]
    if not isinstance(first, dict):
        return ""
    text = first.get("text")
    return text if isinstance(text, str) else ""


def _provider_error_message(error: Any, status_code: int) -> str:
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str) and error:
        return error
    return f"Upstream error (HTTP {status_code})"


async def call_messages(
    payload: UpstreamPayload,
    settings: Settings,
    client: Optional[httpx.AsyncClient] = None,
) -> Dict[str, Any]:
    """POST `payload` to the Messages endpoint and return the decoded body.

    One request, no retries. Raises UpstreamError on transport failure, on a
    body that is not JSON, and on a provider-reported error object.
    """
    body = encode_payload(payload)
    headers = _headers(settings, len(body))

    logger.debug(f"Anthropic request: model={payload.model}, bytes={len(body)}")
    start = time.time()
    try:
        if client is not None:
            response = await client.post(settings.messages_url, headers=headers, content=body)
        else:
            async with httpx.AsyncClient(timeout=settings.upstream_timeout) as owned:
                response = await owned.post(settings.messages_url, headers=headers, content=body)
    except httpx.HTTPError as e:
        logger.error(f"Anthropic request failed: {type(e).__name__}: {e}")
        raise UpstreamError(f"API request failed: {str(e) or type(e).__name__}", model=payload.model)

    elapsed_ms = int((time.time() - start) * 1000)
    logger.info(
        f"Anthropic responded {response.status_code} in {elapsed_ms}ms",
        extra={"model": payload.model, "upstream_status": response.status_code},
    )

    try:
        parsed = response.json()
    except ValueError as e:
        raise UpstreamError(
            f"Failed to parse API response: {e}",
            status_code=response.status_code,
            model=payload.model,
        )

    if not isinstance(parsed, dict):
        return {}

    if parsed.get("error"):
        message = _provider_error_message(parsed["error"], response.status_code)
        logger.warning(f"Anthropic reported an error: {message}")
        raise UpstreamError(message, status_code=response.status_code, model=payload.model)

    return parsed
