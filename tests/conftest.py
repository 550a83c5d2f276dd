"""Pytest configuration and shared fixtures."""

import json
from io import BytesIO
from typing import AsyncGenerator, Callable, List, Optional, Union

import httpx
import pytest
from PIL import Image

from inspection_proxy.core import KieImageEditor
from inspection_proxy.providers import KieClient
from inspection_proxy.utils.config import KieConfig


ResponseFactory = Callable[[httpx.Request], httpx.Response]
PollStep = Union[ResponseFactory, Exception]


def json_reply(status: int, body) -> ResponseFactory:
    """Build a fresh JSON response for every matching request."""
    return lambda request: httpx.Response(status, json=body)


def text_reply(status: int, text: str) -> ResponseFactory:
    return lambda request: httpx.Response(status, text=text)


def record(state: str, **fields) -> ResponseFactory:
    """recordInfo response in the provider's envelope."""
    return json_reply(200, {"code": 200, "data": {"taskId": "t1", "state": state, **fields}})


class FakeKieApi:
    """In-memory stand-in for the Kie upload, jobs and result hosts."""

    def __init__(self):
        self.upload: ResponseFactory = json_reply(
            200, {"code": 200, "data": {"downloadUrl": "https://u/1"}}
        )
        self.create: ResponseFactory = json_reply(
            200, {"code": 200, "data": {"taskId": "t1"}}
        )
        # The last step repeats once the list is exhausted
        self.polls: List[PollStep] = [record("processing")]
        self.result: ResponseFactory = lambda request: httpx.Response(
            200, content=b"\x89PNG\r\n\x1a\nedited"
        )
        self.requests: List[httpx.Request] = []
        self._poll_index = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path.endswith("/api/file-base64-upload"):
            return self.upload(request)
        if path.endswith("/api/v1/jobs/createTask"):
            return self.create(request)
        if path.endswith("/api/v1/jobs/recordInfo"):
            step = self.polls[min(self._poll_index, len(self.polls) - 1)]
            self._poll_index += 1
            if isinstance(step, Exception):
                raise step
            return step(request)
        return self.result(request)

    def calls(self, suffix: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith(suffix)]

    @property
    def uploads(self) -> List[httpx.Request]:
        return self.calls("/api/file-base64-upload")

    @property
    def creates(self) -> List[httpx.Request]:
        return self.calls("/api/v1/jobs/createTask")

    @property
    def poll_calls(self) -> List[httpx.Request]:
        return self.calls("/api/v1/jobs/recordInfo")

    @property
    def downloads(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.host not in ("kieai.redpandaai.co", "api.kie.ai")]

    @staticmethod
    def body(request: httpx.Request) -> dict:
        return json.loads(request.content)


class SleepRecorder:
    """Replaces asyncio.sleep between polls."""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def make_image(fmt: str = "PNG", size=(10, 10), color=(200, 30, 30)) -> bytes:
    buffer = BytesIO()
    Image.new("RGB", size, color).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    """A valid 10x10 PNG."""
    return make_image("PNG")


@pytest.fixture
def jpeg_bytes() -> bytes:
    """A valid 10x10 JPEG."""
    return make_image("JPEG")


@pytest.fixture
def kie_settings() -> KieConfig:
    return KieConfig(poll_interval_seconds=2.0, poll_max_attempts=60)


@pytest.fixture
def fake_kie() -> FakeKieApi:
    return FakeKieApi()


@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
async def kie_client(fake_kie, kie_settings) -> AsyncGenerator[KieClient, None]:
    """KieClient wired to the fake provider."""
    client = KieClient(
        api_key="test-key",
        settings=kie_settings,
        transport=httpx.MockTransport(fake_kie.handler),
    )
    await client.initialize()
    yield client
    await client.close()


@pytest.fixture
def kie_editor(kie_client, kie_settings, sleeper) -> KieImageEditor:
    return KieImageEditor(kie_client, settings=kie_settings, sleep=sleeper)
