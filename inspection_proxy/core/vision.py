"""Claude vision analysis of inspection photos."""

from typing import Optional

from ..providers.anthropic import AnthropicClient
from ..utils.errors import ValidationError
from ..utils.images import decode_image_input
from ..utils.logger import get_logger

logger = get_logger(__name__)


class VisionAnalyzer:
    """Sends a prompt plus one photo to Claude and returns its text reply."""

    def __init__(self, anthropic_client: AnthropicClient):
        self.client = anthropic_client

    async def analyze(
        self,
        prompt_text: Optional[str],
        image_base64: Optional[str],
        image_mime: Optional[str] = None,
    ) -> str:
        if not prompt_text or not image_base64:
            raise ValidationError("Missing required fields: promptText and imageBase64")

        # Claude rejects a media_type that disagrees with the bytes
        decoded = decode_image_input(image_base64, image_mime, default_mime="image/jpeg")

        logger.info(
            "Image MIME type resolved",
            extra={
                "requested": image_mime,
                "detected": decoded.mime_type,
                "size_bytes": len(decoded.data),
            }
        )

        return await self.client.describe_image(
            prompt_text=prompt_text,
            image_base64=decoded.base64,
            media_type=decoded.mime_type,
        )
