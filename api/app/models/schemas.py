"""Pydantic models for the analysis request, upstream payload and result.

`AnalysisRequest` is what callers post to `/api/analyze`. `UpstreamPayload`
is the body sent to the Messages API. `AnalysisResult` describes the
verdict object the model is instructed to return; it is only enforced
when strict result validation is enabled.
"""

import base64
import binascii
from enum import Enum
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_IMAGE_MIME_TYPE = "image/png"


class ContentType(str, Enum):
    """Kinds of content a caller can submit."""
    TEXT = "text"
    IMAGE = "image"


class Verdict(str, Enum):
    ON_BRAND = "on_brand"
    NEEDS_WORK = "needs_work"
    OFF_BRAND = "off_brand"


class Severity(str, Enum):
    FAIL = "fail"
    WARN = "warn"


class Category(str, Enum):
    COPY = "Copy"
    DESIGN = "Design"
    COLOR = "Color"
    TYPOGRAPHY = "Typography"
    DATA_VIZ = "Data Viz"


class AnalysisRequest(BaseModel):
    """Inbound analysis request.

    Any `type` other than "image" is analysed as text, so `type` is kept as
    a plain string rather than restricted to `ContentType`.
    """

    model_config = ConfigDict(populate_by_name=True)

    type: str = Field(
        default=ContentType.TEXT.value,
        description="Kind of content: 'text' or 'image'",
        examples=["text"],
    )
    content: str = Field(
        default="",
        description="Raw text, or base64-encoded image data",
        examples=["Buy now!!! - amazing deal"],
    )
    mime_type: Optional[str] = Field(
        default=None,
        alias="mimeType",
        description="MIME type of the image, defaults to image/png",
        examples=["image/jpeg"],
    )

    @field_validator("type", mode="before")
    @classmethod
    def coerce_type(cls, v):
        return ContentType.TEXT.value if v is None else str(v)

    @field_validator("content", mode="before")
    @classmethod
    def coerce_content(cls, v):
        if v is None:
            return ""
        if not isinstance(v, str):
            raise ValueError("content must be a string")
        return v

    @property
    def is_image(self) -> bool:
        return self.type == ContentType.IMAGE.value

    @property
    def media_type(self) -> str:
        return self.mime_type or DEFAULT_IMAGE_MIME_TYPE

    def check_image(self) -> None:
        """Raise ValueError when an image request carries unusable data."""
        if not self.is_image:
            return
        if not self.media_type.startswith("image/"):
            raise ValueError(f"mimeType must be an image MIME type, got '{self.media_type}'")
        if not self.content:
            raise ValueError("content must not be empty for image requests")
        try:
            base64.b64decode(self.content, validate=True)
        except (binascii.Error, ValueError):
            raise ValueError("content must be valid base64 for image requests")


# Upstream payload

class ImageSource(BaseModel):
    type: Literal["base64"] = "base64"
    media_type: str
    data: str


class ImageBlock(BaseModel):
    type: Literal["image"] = "image"
    source: ImageSource


class TextBlock(BaseModel):
    type: Literal["text"] = "text"
    text: str


ContentBlock = Union[ImageBlock, TextBlock]


class UserMessage(BaseModel):
    role: Literal["user"] = "user"
    content: Union[str, List[ContentBlock]]


class UpstreamPayload(BaseModel):
    model: str
    max_tokens: int = Field(..., ge=1)
    system: str
    messages: List[UserMessage] = Field(..., min_length=1, max_length=1)


# Analysis result

class Issue(BaseModel):
    name: str
    severity: Severity
    category: Category
    excerpt: Optional[str] = None
    fix: str


class Pass(BaseModel):
    name: str
    category: Category


class AnalysisResult(BaseModel):
    """Verdict returned by the model for one piece of content."""

    model_config = ConfigDict(extra="allow")

    verdict: Verdict
    summary: str
    win_quote: str
    issues: List[Issue] = Field(default_factory=list)
    passes: List[Pass] = Field(default_factory=list)
