"""Brand analysis pipeline.

parse body -> configuration gate -> validate request -> build payload ->
upstream call -> recover the verdict JSON from the model text.
"""

import json
import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from ..core.config import Settings
from ..models.exceptions import ClientInputError, ConfigurationError, UpstreamError
from ..models.schemas import AnalysisRequest, AnalysisResult
from . import anthropic
from .json_extract import NoJSONFound, extract_json_object

logger = logging.getLogger(__name__)


def parse_request_body(raw: bytes) -> Any:
    """Decode the inbound body; only a JSON syntax error is rejected here."""
    try:
        return json.loads(raw)
    except (UnicodeDecodeError, ValueError):
        raise ClientInputError("Invalid JSON body")


def require_api_key(settings: Settings) -> str:
    if not settings.anthropic_api_key:
        raise ConfigurationError("ANTHROPIC_API_KEY")
    return settings.anthropic_api_key


def validate_request(data: Any) -> AnalysisRequest:
    """Shape-check the decoded body; runs after the configuration gate."""
    if not isinstance(data, dict):
        raise ClientInputError("Invalid JSON body")
    try:
        request = AnalysisRequest.model_validate(data)
        request.check_image()
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(p) for p in first.get("loc", ())) or None
        raise ClientInputError(f"Invalid request: {first.get('msg', 'invalid value')}", field=field)
    except ValueError as e:
        raise ClientInputError(f"Invalid request: {e}", field="content")
    return request


def recover_result(text: str, strict: bool = False) -> Dict[str, Any]:
    """Turn the model's free-form text into the verdict object."""
    try:
        result = extract_json_object(text)
    except NoJSONFound:
        raise UpstreamError("Could not parse model response as JSON")
    except json.JSONDecodeError as e:
        raise UpstreamError(f"Failed to parse API response: {e}")

    if strict:
        try:
            AnalysisResult.model_validate(result)
        except ValidationError as e:
            raise UpstreamError(
                f"Model response did not match the analysis schema: {e.error_count()} error(s)",
                details={"errors": e.errors(include_url=False)},
            )
    return result


async def analyze(
    data: Any,
    settings: Settings,
    client: Optional[httpx.AsyncClient] = None,
) -> Dict[str, Any]:
    """Run one analysis; every call makes exactly one upstream request."""
    require_api_key(settings)
    request = validate_request(data)

    payload = anthropic.build_payload(request, settings)
    logger.info(
        f"Analyzing {request.type} content",
        extra={"content_type": request.type, "content_length": len(request.content)},
    )

    response = await anthropic.call_messages(payload, settings, client=client)
    text = anthropic._extract_message_text(response)
    result = recover_result(text, strict=settings.strict_result_validation)

    logger.info(f"Analysis complete: verdict={result.get('verdict')}")
    return result
