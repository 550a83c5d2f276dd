"""Kie.ai asynchronous image edit: upload, create task, poll, fetch result."""

import asyncio
import time
import uuid
from typing import Awaitable, Callable, Optional, Tuple, Union

from pydantic import ValidationError as PydanticValidationError

from ..providers.kie import KieClient
from ..models.enums import TaskState
from ..models.schemas import EditRequest, EditResult, EditTask, TaskRecord, UploadedAsset
from ..utils.config import KieConfig
from ..utils.errors import (
    EditCancelled,
    MissingResultUrl,
    PollTimeout,
    TaskCreationFailed,
    TaskFailed,
    UploadFailed,
    ValidationError,
)
from ..utils.images import DecodedImage, decode_image_input, extension_for_mime, to_data_uri
from ..utils.logger import get_logger
from .record_parser import (
    Unrecognized,
    extract_result_url,
    parse_create_task_response,
    parse_task_record,
    parse_upload_response,
)

logger = get_logger(__name__)

PROGRESS_LOG_EVERY = 5


class KieImageEditor:
    """Turns an image plus an edit instruction into an edited PNG.

    The provider protocol is four strictly sequential steps. Upload,
    CreateTask and the result download are attempted once; only individual
    poll requests are retried, on the next interval. The editor keeps no
    per-request state, so one instance serves concurrent calls.
    """

    def __init__(
        self,
        kie_client: KieClient,
        settings: Optional[KieConfig] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Args:
            kie_client: Initialized Kie.ai HTTP client
            settings: Polling policy and request constants
            sleep: Awaitable used between polls (asyncio.sleep by default);
                raced against ``cancel_event`` when one is given
            clock: Monotonic clock for the optional poll deadline
        """
        self.client = kie_client
        self.settings = settings or kie_client.settings
        self._sleep = sleep or asyncio.sleep
        self._clock = clock or time.monotonic

    async def edit_image(
        self,
        prompt: Optional[str],
        image: Union[bytes, str, None],
        declared_mime: Optional[str] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> EditResult:
        """
        Edit an image with the configured Kie.ai model.

        Args:
            prompt: Natural-language edit instruction
            image: Raw bytes, base64, or a base64 data URI
            declared_mime: Caller's MIME claim; advisory only
            cancel_event: Setting it stops polling with EditCancelled

        Returns:
            EditResult holding the PNG bytes

        Raises:
            ValidationError: Missing prompt or image
            UploadFailed, TaskCreationFailed, TaskFailed, PollTimeout,
            MissingResultUrl, ResultFetchFailed, EditCancelled
        """
        request, decoded = self._accept(prompt, image, declared_mime)

        logger.info(
            "🔄 Starting Kie.ai image edit",
            extra={
                "model": self.settings.model,
                "prompt": request.prompt[:100],
                "mime_type": decoded.mime_type,
                "declared_mime": declared_mime,
                "size_mb": round(len(decoded.data) / 1024 / 1024, 2),
            }
        )

        asset = await self._upload(decoded)
        task = await self._create_task(request.prompt, asset)
        record, attempts = await self._poll(task, cancel_event)

        parsed_url = extract_result_url(record)
        if isinstance(parsed_url, Unrecognized):
            logger.error(
                "❌ No result URL found",
                extra={"task_id": task.task_id, "record": record.data}
            )
            raise MissingResultUrl()

        image_bytes = await self.client.download_result(parsed_url.value)

        logger.info(
            "✅ Successfully edited image using Kie.ai",
            extra={
                "task_id": task.task_id,
                "poll_attempts": attempts,
                "size_kb": len(image_bytes) / 1024,
            }
        )

        return EditResult(
            image_bytes=image_bytes,
            mime_type="image/png",
            task_id=task.task_id,
            poll_attempts=attempts,
        )

    def _accept(
        self,
        prompt: Optional[str],
        image: Union[bytes, str, None],
        declared_mime: Optional[str],
    ) -> Tuple[EditRequest, DecodedImage]:
        if not prompt or not isinstance(prompt, str) or not prompt.strip() or not image:
            raise ValidationError("Missing required fields: prompt and imageBase64")

        decoded = decode_image_input(image, declared_mime)
        try:
            request = EditRequest(
                prompt=prompt,
                image_bytes=decoded.data,
                declared_mime=declared_mime,
            )
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid edit request: {e.errors()[0]['msg']}") from e
        return request, decoded

    async def _upload(self, decoded: DecodedImage) -> UploadedAsset:
        file_name = (
            f"image_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"
            f".{extension_for_mime(decoded.mime_type)}"
        )
        logger.info("📤 Step 1: Uploading base64 image", extra={"file_name": file_name})

        body = await self.client.upload_base64(
            to_data_uri(decoded.data, decoded.mime_type), file_name
        )
        parsed = parse_upload_response(body)
        if isinstance(parsed, Unrecognized):
            logger.error(f"❌ {parsed.reason}", extra={"response": body})
            raise UploadFailed()

        logger.info("✅ Upload successful, got downloadUrl")
        return UploadedAsset(download_url=parsed.value)

    async def _create_task(self, prompt: str, asset: UploadedAsset) -> EditTask:
        logger.info("📝 Step 2: Creating edit task", extra={"model": self.settings.model})

        body = await self.client.create_task(prompt, asset.download_url)
        parsed = parse_create_task_response(body)
        if isinstance(parsed, Unrecognized):
            logger.error(f"❌ {parsed.reason}", extra={"response": body})
            raise TaskCreationFailed()

        logger.info(f"✅ Task created, taskId: {parsed.value}", extra={"task_id": parsed.value})
        return EditTask(task_id=parsed.value)

    async def _poll(
        self,
        task: EditTask,
        cancel_event: Optional[asyncio.Event],
    ) -> Tuple[TaskRecord, int]:
        """Poll until success; returns the record and the attempt count."""
        max_attempts = self.settings.poll_max_attempts
        deadline = self.settings.poll_deadline_seconds
        started = self._clock()

        logger.info(
            "⏳ Step 3: Polling for task result",
            extra={
                "task_id": task.task_id,
                "max_attempts": max_attempts,
                "interval_seconds": self.settings.poll_interval_seconds,
            }
        )

        for attempt in range(1, max_attempts + 1):
            if attempt > 1 and deadline is not None and self._clock() - started >= deadline:
                logger.error(
                    "❌ Poll deadline exceeded",
                    extra={"task_id": task.task_id, "attempts": attempt - 1}
                )
                raise PollTimeout(attempt - 1)

            await self._wait(self.settings.poll_interval_seconds, cancel_event, task.task_id)

            body = await self.client.fetch_record(task.task_id)
            if body is None:
                continue

            record = parse_task_record(body)

            if record.state is TaskState.SUCCESS:
                logger.info(
                    "✅ Task completed successfully",
                    extra={"task_id": task.task_id, "attempt": attempt}
                )
                return record, attempt

            if record.state.is_failure:
                message = record.message or "Task failed"
                logger.error(
                    f"❌ Task failed: {message}",
                    extra={"task_id": task.task_id, "state": record.raw_state}
                )
                raise TaskFailed(message)

            if record.state is TaskState.UNKNOWN:
                logger.warning(
                    f"⚠️ Unknown state: {record.raw_state}, continuing to poll",
                    extra={"task_id": task.task_id, "attempt": attempt}
                )
            elif attempt % PROGRESS_LOG_EVERY == 0:
                logger.info(
                    f"Still processing... (attempt {attempt}/{max_attempts})",
                    extra={"task_id": task.task_id, "state": record.state.value}
                )

        logger.error(
            "❌ Task polling timeout",
            extra={"task_id": task.task_id, "attempts": max_attempts}
        )
        raise PollTimeout(max_attempts)

    async def _wait(
        self,
        interval: float,
        cancel_event: Optional[asyncio.Event],
        task_id: str,
    ) -> None:
        if cancel_event is None:
            await self._sleep(interval)
            return

        if cancel_event.is_set():
            raise EditCancelled(task_id)

        sleeper = asyncio.ensure_future(self._sleep(interval))
        waiter = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait({sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for pending in (sleeper, waiter):
                pending.cancel()
            await asyncio.gather(sleeper, waiter, return_exceptions=True)

        if cancel_event.is_set():
            logger.info("Image edit cancelled while polling", extra={"task_id": task_id})
            raise EditCancelled(task_id)
