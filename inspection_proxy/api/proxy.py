"""AI provider proxy endpoints used by the inspection app."""

import asyncio

from fastapi import APIRouter, Depends, Request

from ..core import KieImageEditor, OpenAIImageEditor, VisionAnalyzer
from ..models.schemas import (
    ClaudeBody,
    ErrorResponse,
    ImageResponse,
    KieEditBody,
    OpenAIEditBody,
    TextResponse,
)
from ..utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()

DISCONNECT_CHECK_SECONDS = 1.0

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Missing or malformed prompt or image"},
    500: {"model": ErrorResponse, "description": "Provider API key not configured"},
    502: {"model": ErrorResponse, "description": "Provider request failed"},
}

KIE_ERROR_RESPONSES = {
    **ERROR_RESPONSES,
    499: {"model": ErrorResponse, "description": "Client disconnected while polling"},
    504: {"model": ErrorResponse, "description": "Task still processing after the polling budget"},
}


def get_kie_editor(request: Request) -> KieImageEditor:
    """Dependency to get the Kie editor; fails when KIE_API_KEY is unset."""
    request.app.state.config.require_key("kie_api_key", "KIE_API_KEY")
    return request.app.state.kie_editor


def get_vision_analyzer(request: Request) -> VisionAnalyzer:
    """Dependency to get the Claude analyzer; fails when no Anthropic key is set."""
    request.app.state.config.require_key("anthropic_api_key", "ANTHROPIC_API_KEY")
    return request.app.state.vision_analyzer


def get_openai_editor(request: Request) -> OpenAIImageEditor:
    """Dependency to get the OpenAI editor; fails when no OpenAI key is set."""
    request.app.state.config.require_key("openai_api_key", "OPENAI_API_KEY")
    return request.app.state.openai_editor


async def _watch_disconnect(request: Request, cancel_event: asyncio.Event) -> None:
    while not await request.is_disconnected():
        await asyncio.sleep(DISCONNECT_CHECK_SECONDS)
    logger.info("Client disconnected, cancelling image edit")
    cancel_event.set()


async def _stop_watcher(watcher: asyncio.Task) -> None:
    watcher.cancel()
    try:
        await watcher
    except asyncio.CancelledError:
        pass
    except Exception as e:
        logger.warning(f"⚠️ Disconnect watcher failed: {e}", extra={"error": str(e)})


@router.post("/kie", response_model=ImageResponse, responses=KIE_ERROR_RESPONSES)
async def kie_edit(
    body: KieEditBody,
    request: Request,
    editor: KieImageEditor = Depends(get_kie_editor),
):
    """
    Edit an image with Kie.ai (Google nano-banana edit).

    Blocks until the provider job finishes, up to the polling budget.
    Polling stops early if the caller disconnects.
    """
    cancel_event = asyncio.Event()
    watcher = asyncio.create_task(_watch_disconnect(request, cancel_event))
    try:
        result = await editor.edit_image(
            prompt=body.prompt,
            image=body.imageBase64,
            declared_mime=body.imageMime,
            cancel_event=cancel_event,
        )
    finally:
        await _stop_watcher(watcher)

    return ImageResponse(image=result.data_uri)


@router.post("/claude", response_model=TextResponse, responses=ERROR_RESPONSES)
async def claude_analyze(
    body: ClaudeBody,
    analyzer: VisionAnalyzer = Depends(get_vision_analyzer),
):
    """Ask Claude about one inspection photo."""
    text = await analyzer.analyze(
        prompt_text=body.promptText,
        image_base64=body.imageBase64,
        image_mime=body.imageMime,
    )
    return TextResponse(text=text)


@router.post("/openai", response_model=ImageResponse, responses=ERROR_RESPONSES)
async def openai_edit(
    body: OpenAIEditBody,
    editor: OpenAIImageEditor = Depends(get_openai_editor),
):
    """Edit an image with the OpenAI image edits endpoint."""
    if body.aspectRatio:
        logger.info("aspectRatio ignored; edits are always square", extra={"aspect_ratio": body.aspectRatio})

    image = await editor.edit(
        prompt=body.prompt,
        image_base64=body.imageBase64,
        image_mime=body.imageMime,
    )
    return ImageResponse(image=image)
