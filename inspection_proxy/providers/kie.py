"""Kie.ai jobs API client (file upload, createTask, recordInfo)."""

import httpx
from typing import Any, Dict, Optional

from .base import BaseProvider
from ..models.enums import ModelProvider
from ..utils.config import KieConfig
from ..utils.logger import get_logger
from ..utils.errors import ResultFetchFailed, TaskCreationFailed, UploadFailed

logger = get_logger(__name__)


class KieClient(BaseProvider):
    """HTTP layer for the Kie.ai image edit jobs.

    Each method performs exactly one request. Response interpretation is
    left to the caller; only transport and status failures are raised here.
    """

    provider = ModelProvider.KIE.value

    def __init__(
        self,
        api_key: str,
        settings: Optional[KieConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or KieConfig()
        super().__init__(
            api_key=api_key,
            base_url=self.settings.api_base_url,
            timeout=self.settings.timeout_seconds,
            transport=transport,
        )
        self.upload_base_url = self.settings.upload_base_url.rstrip("/")

    def _get_default_headers(self) -> dict:
        # Auth is attached per request so result downloads never carry the key
        return {"Accept": "application/json"}

    def _auth_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def upload_base64(self, data_uri: str, file_name: str) -> Any:
        """
        Upload an image given as a data URI.

        Returns:
            Decoded JSON envelope of the upload response

        Raises:
            UploadFailed: On transport error, non-2xx or non-JSON body
        """
        client = self._ensure_client()
        payload = {
            "base64Data": data_uri,
            "uploadPath": self.settings.upload_path,
            "fileName": file_name,
        }

        try:
            response = await client.post(
                f"{self.upload_base_url}/api/file-base64-upload",
                json=payload,
                headers=self._auth_headers(),
            )
        except httpx.RequestError as e:
            logger.error(f"❌ Kie.ai upload error: {e}", extra={"file_name": file_name})
            raise UploadFailed(reason=str(e)) from e

        if not self._is_success(response):
            logger.error(
                f"❌ Kie.ai upload failed: {response.status_code}",
                extra={"status": response.status_code, "response": response.text[:500]}
            )
            raise UploadFailed(response.status_code, response.text)

        body = self._json_or_none(response)
        if body is None:
            raise UploadFailed(reason="upload response is not JSON")
        return body

    async def create_task(self, prompt: str, image_url: str) -> Any:
        """
        Create an edit job for an uploaded image.

        Raises:
            TaskCreationFailed: On transport error, non-2xx or non-JSON body
        """
        client = self._ensure_client()
        payload = {
            "model": self.settings.model,
            "input": {
                "prompt": prompt,
                "image_urls": [image_url],
                "output_format": self.settings.output_format,
                "image_size": self.settings.image_size,
            },
        }

        try:
            response = await client.post(
                f"{self.base_url}/api/v1/jobs/createTask",
                json=payload,
                headers=self._auth_headers(),
            )
        except httpx.RequestError as e:
            logger.error(f"❌ Kie.ai task creation error: {e}")
            raise TaskCreationFailed(reason=str(e)) from e

        if not self._is_success(response):
            logger.error(
                f"❌ Task creation failed: {response.status_code}",
                extra={"status": response.status_code, "response": response.text[:500]}
            )
            raise TaskCreationFailed(response.status_code, response.text)

        body = self._json_or_none(response)
        if body is None:
            raise TaskCreationFailed(reason="task response is not JSON")
        return body

    async def fetch_record(self, task_id: str) -> Optional[Any]:
        """
        Read the current job record.

        Returns:
            Decoded JSON body, or None when this attempt failed in transit
            (non-2xx, network error, non-JSON); the caller retries later.
        """
        client = self._ensure_client()

        try:
            response = await client.get(
                f"{self.base_url}/api/v1/jobs/recordInfo",
                params={"taskId": task_id},
                headers=self._auth_headers(),
            )
        except httpx.RequestError as e:
            logger.warning(
                f"⚠️ Poll request error: {e}",
                extra={"task_id": task_id, "error": str(e)}
            )
            return None

        if not self._is_success(response):
            logger.warning(
                f"⚠️ Poll returned {response.status_code}",
                extra={"task_id": task_id, "status": response.status_code}
            )
            return None

        return self._json_or_none(response)

    async def download_result(self, url: str) -> bytes:
        """
        Download the edited image (public URL, no auth).

        Raises:
            ResultFetchFailed: On transport error or non-2xx
        """
        client = self._ensure_client()
        logger.info(f"📥 Fetching result image from: {url[:100]}")

        try:
            response = await client.get(url)
        except httpx.RequestError as e:
            logger.error(f"❌ Result download failed: {e}")
            raise ResultFetchFailed(None, str(e)) from e

        if not self._is_success(response):
            raise ResultFetchFailed(response.status_code)

        return response.content
