"""Tests for the OpenAI image edits proxy."""

import base64

import httpx
import pytest

from conftest import make_image
from inspection_proxy.core import OpenAIImageEditor
from inspection_proxy.providers import OpenAIImagesClient
from inspection_proxy.utils.config import OpenAIConfig
from inspection_proxy.utils.errors import ProviderError, ValidationError


class FakeOpenAI:

    def __init__(self, response: httpx.Response):
        self.response = response
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.response


async def edit_with(response: httpx.Response, prompt, image, mime=None):
    fake = FakeOpenAI(response)
    settings = OpenAIConfig(size=32)
    transport = httpx.MockTransport(fake.handler)
    async with OpenAIImagesClient("openai-key", settings=settings, transport=transport) as client:
        result = await OpenAIImageEditor(client).edit(prompt, image, mime)
    return result, fake


def edits_reply(b64: str = "RURJVEVE") -> httpx.Response:
    return httpx.Response(200, json={"created": 1, "data": [{"b64_json": b64}]})


@pytest.mark.asyncio
async def test_edit_returns_data_uri():
    source = base64.b64encode(make_image("JPEG", size=(40, 20))).decode()

    result, fake = await edit_with(edits_reply(), "make it night time", source, "image/jpeg")

    assert result == "data:image/png;base64,RURJVEVE"

    request = fake.requests[0]
    assert request.url == "https://api.openai.com/v1/images/edits"
    assert request.headers["Authorization"] == "Bearer openai-key"
    assert request.headers["Content-Type"].startswith("multipart/form-data")

    content = request.content
    assert b'name="image"; filename="image.png"' in content
    assert b'name="mask"; filename="mask.png"' in content
    assert b"make it night time" in content
    assert b"32x32" in content
    assert b"b64_json" in content


@pytest.mark.asyncio
async def test_unreadable_image_is_sent_unchanged():
    raw = b"\x89PNG\r\n\x1a\n-but-truncated"
    source = base64.b64encode(raw).decode()

    result, fake = await edit_with(edits_reply(), "edit", source)

    assert result.startswith("data:image/png;base64,")
    assert raw in fake.requests[0].content


@pytest.mark.asyncio
async def test_upstream_error():
    source = base64.b64encode(make_image("PNG")).decode()
    response = httpx.Response(400, json={"error": {"message": "Invalid image"}})

    with pytest.raises(ProviderError, match="Image editing failed: 400") as exc_info:
        await edit_with(response, "edit", source)

    assert exc_info.value.status_code == 400
    assert exc_info.value.http_status == 502


@pytest.mark.asyncio
async def test_unexpected_format():
    source = base64.b64encode(make_image("PNG")).decode()
    response = httpx.Response(200, json={"data": [{"url": "https://example.com/x.png"}]})

    with pytest.raises(ProviderError, match="unexpected format"):
        await edit_with(response, "edit", source)


@pytest.mark.asyncio
async def test_missing_prompt():
    with pytest.raises(ValidationError):
        await edit_with(edits_reply(), "", "AAAA")
