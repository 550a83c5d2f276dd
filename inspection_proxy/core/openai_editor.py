"""OpenAI image edit of a whole photo."""

import asyncio
from typing import Optional

from ..providers.openai_images import OpenAIImagesClient
from ..utils.config import OpenAIConfig
from ..utils.errors import ImageProcessingError, ValidationError
from ..utils.images import decode_image_input, prepare_square_png, white_mask_png
from ..utils.logger import get_logger

logger = get_logger(__name__)


class OpenAIImageEditor:
    """Prepares a photo for /images/edits and returns the edit as a data URI.

    The endpoint wants a square PNG under the upload limit plus a mask of
    the same size; a fully white mask lets the model edit everything.
    """

    def __init__(self, openai_client: OpenAIImagesClient, settings: Optional[OpenAIConfig] = None):
        self.client = openai_client
        self.settings = settings or openai_client.settings

    async def edit(
        self,
        prompt: Optional[str],
        image_base64: Optional[str],
        image_mime: Optional[str] = None,
    ) -> str:
        if not prompt or not image_base64:
            raise ValidationError("Missing required fields: prompt and imageBase64")

        decoded = decode_image_input(image_base64, image_mime, default_mime="image/jpeg")
        size = self.settings.size

        try:
            image_png = await asyncio.to_thread(
                prepare_square_png, decoded.data, size, self.settings.max_upload_bytes
            )
        except ImageProcessingError as e:
            # Let OpenAI judge the original bytes
            logger.warning(
                f"⚠️ Could not prepare image, sending original: {e}",
                extra={"mime_type": decoded.mime_type, "size_bytes": len(decoded.data)}
            )
            image_png = decoded.data

        mask_png = await asyncio.to_thread(white_mask_png, size)

        b64_json = await self.client.edit_image(prompt, image_png, mask_png)
        logger.info("✅ Successfully edited image using edits endpoint")
        return f"data:image/png;base64,{b64_json}"
