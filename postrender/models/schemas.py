"""
Pydantic Models and Schemas
===========================

Core data models for post generation requests, composed documents,
storage results and API responses.
"""

from typing import Annotated, Optional, Literal
from datetime import datetime, timezone
from enum import Enum

from pydantic import (
    AfterValidator,
    AnyUrl,
    BaseModel,
    ConfigDict,
    Field,
    StrictStr,
    TypeAdapter,
    ValidationError,
)
from pydantic_core import PydanticCustomError

DEFAULT_FOCUS_TEXT_COLOR = "#FF4500"
DEFAULT_LANGUAGE = "en"

HEX_COLOR_PATTERN = r"^#([0-9a-fA-F]{3}){1,2}$"
LANGUAGE_TAG_PATTERN = r"^[A-Za-z]{1,8}(-[A-Za-z0-9]{1,8})*$"
FILE_NAME_PATTERN = r"^processed_image_[0-9]+\.jpg$"

_URL_ADAPTER = TypeAdapter(AnyUrl)


def check_absolute_uri(value: str) -> str:
    """Reject values that do not parse as an absolute URI; the caller's spelling is kept."""
    try:
        _URL_ADAPTER.validate_python(value)
    except ValidationError as e:
        raise PydanticCustomError("uri", "must be a valid uri") from e
    return value


AbsoluteUri = Annotated[StrictStr, AfterValidator(check_absolute_uri)]


# Enums
class TextDirection(str, Enum):
    """Reading direction of the post text."""
    LTR = "ltr"
    RTL = "rtl"


# Request Models
class GenerationRequest(BaseModel):
    """Validated parameters for a single post image."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    image_url: AbsoluteUri = Field(..., alias="imageUrl", description="Background image URL")
    logo_url: AbsoluteUri = Field(..., alias="logoUrl", description="Logo image URL")
    text01: StrictStr = Field(..., min_length=1, description="Leading plain text")
    focus_text: StrictStr = Field(
        ..., alias="focusText", min_length=1, description="Highlighted text"
    )
    text02: StrictStr = Field(..., min_length=1, description="Trailing plain text")
    direction: TextDirection = Field(TextDirection.LTR, description="Text direction")
    language: StrictStr = Field(
        DEFAULT_LANGUAGE, pattern=LANGUAGE_TAG_PATTERN, description="Document locale tag"
    )
    focus_text_color: StrictStr = Field(
        DEFAULT_FOCUS_TEXT_COLOR,
        alias="focusTextColor",
        pattern=HEX_COLOR_PATTERN,
        description="Focus pill background color",
    )


class DeletionRequest(BaseModel):
    """Validated request to delete a previously generated image."""
    model_config = ConfigDict(frozen=True)

    file_name: StrictStr = Field(..., alias="fileName", pattern=FILE_NAME_PATTERN)


# Rendering Models
class ComposedDocument(BaseModel):
    """Fully laid-out HTML document ready for rasterization."""
    model_config = ConfigDict(frozen=True)

    html: str = Field(..., description="Self-contained HTML markup")
    width: int = Field(..., gt=0, description="Canvas width in pixels")
    height: int = Field(..., gt=0, description="Canvas height in pixels")
    direction: TextDirection = Field(..., description="Text direction")
    language: str = Field(..., description="Document locale tag")
    logo_side: Literal["left", "right"] = Field(..., description="Horizontal logo anchor")


class RenderArtifact(BaseModel):
    """Local JPEG written by the rasterizer."""
    path: str = Field(..., description="Local file path")
    file_name: str = Field(..., description="File name, processed_image_<ms>.jpg")
    file_size: int = Field(..., ge=0, description="File size in bytes")


# Storage Models
class UploadResult(BaseModel):
    """Remote location of an uploaded image."""
    secure_url: str = Field(..., description="Public HTTPS URL")
    public_id: str = Field(..., description="Storage identifier")


# API Response Models
class GenerationResponse(BaseModel):
    """Successful generation response."""
    model_config = ConfigDict(populate_by_name=True)

    image_url: str = Field(..., serialization_alias="imageUrl")
    file_name: str = Field(..., serialization_alias="fileName")


class MessageResponse(BaseModel):
    """Plain message response."""
    message: str


class HealthStatus(BaseModel):
    """Health check status."""
    service: str = Field(..., description="Service name")
    status: Literal["healthy", "degraded"] = Field(..., description="Overall status")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    version: str = Field(..., description="Application version")
    storage_configured: bool = Field(..., description="Cloudinary credentials present")


class ErrorResponse(BaseModel):
    """Standard error response model."""
    error: str = Field(..., description="Error message")
    error_code: Optional[str] = Field(None, description="Failure category")
    request_id: Optional[str] = Field(None, description="Request identifier for tracking")
