"""API provider clients for external services."""

from .kie import KieClient
from .anthropic import AnthropicClient
from .openai_images import OpenAIImagesClient

__all__ = [
    "KieClient",
    "AnthropicClient",
    "OpenAIImagesClient",
]
