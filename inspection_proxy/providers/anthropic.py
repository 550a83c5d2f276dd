"""Anthropic Messages API client for single-image vision prompts."""

import httpx
from typing import Any, Optional

from .base import BaseProvider
from ..models.enums import ModelProvider
from ..utils.config import AnthropicConfig
from ..utils.logger import get_logger
from ..utils.errors import ProviderError, UpstreamStatusError

logger = get_logger(__name__)


class AnthropicClient(BaseProvider):
    """Client for Claude vision requests."""

    provider = ModelProvider.ANTHROPIC.value

    def __init__(
        self,
        api_key: str,
        settings: Optional[AnthropicConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or AnthropicConfig()
        super().__init__(
            api_key=api_key,
            base_url=self.settings.base_url,
            timeout=self.settings.timeout_seconds,
            transport=transport,
        )

    def _get_default_headers(self) -> dict:
        return {
            "Content-Type": "application/json",
            "x-api-key": self.api_key,
            "anthropic-version": self.settings.version,
        }

    async def describe_image(
        self,
        prompt_text: str,
        image_base64: str,
        media_type: str,
    ) -> str:
        """
        Ask Claude about one image.

        Args:
            prompt_text: Instruction text sent before the image
            image_base64: Base64 payload without data URI prefix
            media_type: Detected MIME type of the image

        Returns:
            Text of the first text block in the reply

        Raises:
            UpstreamStatusError: Claude returned non-2xx
            ProviderError: Transport failure or reply without text
        """
        client = self._ensure_client()

        payload = {
            "model": self.settings.model,
            "max_tokens": self.settings.max_tokens,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": prompt_text},
                        {
                            "type": "image",
                            "source": {
                                "type": "base64",
                                "media_type": media_type,
                                "data": image_base64,
                            },
                        },
                    ],
                }
            ],
        }

        logger.info(
            "Sending vision request to Claude",
            extra={
                "model": self.settings.model,
                "media_type": media_type,
                "image_kb": len(image_base64) * 0.75 / 1024,
            }
        )

        try:
            response = await client.post(f"{self.base_url}/messages", json=payload)
        except httpx.RequestError as e:
            raise ProviderError(self.provider, f"Claude API request failed: {e}") from e

        if not self._is_success(response):
            logger.error(
                f"❌ Claude API error: {response.status_code}",
                extra={"status": response.status_code, "response": response.text[:500]}
            )
            raise UpstreamStatusError(
                self.provider,
                f"Claude API error: {response.status_code} {response.text}",
                response.status_code,
            )

        return self._first_text_block(self._json_or_none(response))

    def _first_text_block(self, data: Any) -> str:
        content = data.get("content") if isinstance(data, dict) else None
        if not isinstance(content, list) or not content:
            raise ProviderError(self.provider, "Invalid response from Claude API")

        for block in content:
            if isinstance(block, dict) and block.get("type") == "text":
                return block.get("text", "")

        raise ProviderError(self.provider, "No text content in Claude API response")
