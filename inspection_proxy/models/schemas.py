"""Pydantic schemas for data validation."""

from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import TaskState
from ..utils.images import to_data_uri


# ============================================================================
# Kie.ai edit pipeline
# ============================================================================

class EditRequest(BaseModel):
    """An accepted edit: instruction plus the decoded source image."""
    model_config = ConfigDict(frozen=True)

    prompt: str = Field(..., min_length=1)
    image_bytes: bytes = Field(..., min_length=1)
    declared_mime: Optional[str] = None

    @field_validator("prompt")
    @classmethod
    def _prompt_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("prompt must not be blank")
        return value


class UploadedAsset(BaseModel):
    """Provider-hosted copy of the source image."""
    download_url: str


class EditTask(BaseModel):
    """Handle of the asynchronous job on the provider."""
    task_id: str


class TaskRecord(BaseModel):
    """One parsed recordInfo response."""
    state: TaskState
    raw_state: Optional[str] = None
    message: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)


class EditResult(BaseModel):
    """Edited image returned to the caller."""
    image_bytes: bytes
    mime_type: str = "image/png"
    task_id: Optional[str] = None
    poll_attempts: int = 0

    @property
    def data_uri(self) -> str:
        return to_data_uri(self.image_bytes, self.mime_type)


# ============================================================================
# HTTP request / response bodies
# ============================================================================

class KieEditBody(BaseModel):
    """POST /api/kie"""
    prompt: Optional[str] = None
    imageBase64: Optional[str] = None
    imageMime: Optional[str] = None


class ClaudeBody(BaseModel):
    """POST /api/claude"""
    promptText: Optional[str] = None
    imageBase64: Optional[str] = None
    imageMime: Optional[str] = None


class OpenAIEditBody(BaseModel):
    """POST /api/openai"""
    prompt: Optional[str] = None
    imageBase64: Optional[str] = None
    imageMime: Optional[str] = None
    aspectRatio: Optional[str] = None


class ImageResponse(BaseModel):
    image: str


class TextResponse(BaseModel):
    text: str


class ErrorResponse(BaseModel):
    error: str
