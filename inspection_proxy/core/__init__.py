"""Core business logic components."""

from .kie_editor import KieImageEditor
from .vision import VisionAnalyzer
from .openai_editor import OpenAIImageEditor

__all__ = [
    "KieImageEditor",
    "VisionAnalyzer",
    "OpenAIImageEditor",
]
