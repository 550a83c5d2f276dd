"""OpenAI image edits client (multipart /images/edits)."""

import httpx
from typing import Optional

from .base import BaseProvider
from ..models.enums import ModelProvider
from ..utils.config import OpenAIConfig
from ..utils.logger import get_logger
from ..utils.errors import ProviderError, excerpt

logger = get_logger(__name__)


class OpenAIImagesClient(BaseProvider):
    """Client for the OpenAI image edits endpoint."""

    provider = ModelProvider.OPENAI.value

    def __init__(
        self,
        api_key: str,
        settings: Optional[OpenAIConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or OpenAIConfig()
        super().__init__(
            api_key=api_key,
            base_url=self.settings.base_url,
            timeout=self.settings.timeout_seconds,
            transport=transport,
        )

    def _get_default_headers(self) -> dict:
        # No Content-Type: httpx sets the multipart boundary itself
        return {"Authorization": f"Bearer {self.api_key}"}

    async def edit_image(self, prompt: str, image_png: bytes, mask_png: bytes) -> str:
        """
        Edit a square PNG; the mask marks the editable area.

        Returns:
            Base64 PNG from ``data[0].b64_json``

        Raises:
            ProviderError: Transport failure, non-2xx, or unexpected body
        """
        client = self._ensure_client()
        size = self.settings.size

        files = {
            "image": ("image.png", image_png, "image/png"),
            "mask": ("mask.png", mask_png, "image/png"),
        }
        data = {
            "prompt": prompt,
            "n": "1",
            "size": f"{size}x{size}",
            "response_format": "b64_json",
        }

        logger.info(
            "🔄 Using OpenAI image edits endpoint",
            extra={"image_mb": round(len(image_png) / 1024 / 1024, 2), "size": data["size"]}
        )

        try:
            response = await client.post(
                f"{self.base_url}/images/edits",
                data=data,
                files=files,
            )
        except httpx.RequestError as e:
            raise ProviderError(self.provider, f"Image editing failed: {e}") from e

        if not self._is_success(response):
            logger.error(
                f"❌ Image edits endpoint failed: {response.status_code}",
                extra={"status": response.status_code, "response": response.text[:300]}
            )
            raise ProviderError(
                self.provider,
                f"Image editing failed: {response.status_code} {excerpt(response.text)}",
                response.status_code,
            )

        body = self._json_or_none(response)
        items = body.get("data") if isinstance(body, dict) else None
        first = items[0] if isinstance(items, list) and items else None
        b64_json = first.get("b64_json") if isinstance(first, dict) else None

        if not b64_json:
            logger.warning(
                "Edits endpoint returned unexpected format",
                extra={"keys": sorted(body.keys()) if isinstance(body, dict) else None}
            )
            raise ProviderError(self.provider, "Edits endpoint returned unexpected format")

        return b64_json
