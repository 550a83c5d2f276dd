"""Data models and schemas for the inspection proxy."""

from .schemas import (
    EditRequest,
    UploadedAsset,
    EditTask,
    TaskRecord,
    EditResult,
    KieEditBody,
    ClaudeBody,
    OpenAIEditBody,
    ImageResponse,
    TextResponse,
    ErrorResponse,
)
from .enums import (
    TaskState,
    ModelProvider,
)

__all__ = [
    "EditRequest",
    "UploadedAsset",
    "EditTask",
    "TaskRecord",
    "EditResult",
    "KieEditBody",
    "ClaudeBody",
    "OpenAIEditBody",
    "ImageResponse",
    "TextResponse",
    "ErrorResponse",
    "TaskState",
    "ModelProvider",
]
