"""Error classes keep message, status and fields through copy and pickle."""

import copy
import pickle

import pytest

from inspection_proxy.utils.errors import (
    EditCancelled,
    MissingResultUrl,
    PollTimeout,
    ProviderError,
    ResultFetchFailed,
    TaskCreationFailed,
    TaskFailed,
    UploadFailed,
    UpstreamStatusError,
)


ERRORS = [
    ProviderError("openai", "Image editing failed: 400 bad", 400),
    UpstreamStatusError("anthropic", "Claude API error: 429 rate limited", 429),
    UploadFailed(500, "boom"),
    UploadFailed(reason="connection reset"),
    TaskCreationFailed(401, "unauthorized"),
    TaskCreationFailed(),
    TaskFailed("nsfw"),
    PollTimeout(60),
    MissingResultUrl(),
    ResultFetchFailed(404),
    ResultFetchFailed(None, "timed out"),
    EditCancelled("t1"),
]


@pytest.mark.parametrize("error", ERRORS, ids=lambda e: type(e).__name__)
@pytest.mark.parametrize("clone", [copy.deepcopy, lambda e: pickle.loads(pickle.dumps(e))], ids=["deepcopy", "pickle"])
def test_clone_keeps_message_and_status(error, clone):
    cloned = clone(error)

    assert type(cloned) is type(error)
    assert str(cloned) == str(error)
    assert cloned.http_status == error.http_status
    assert cloned.status_code == error.status_code
    assert cloned.__dict__ == error.__dict__


def test_upstream_status_is_forwarded():
    assert UpstreamStatusError("anthropic", "x", 401).http_status == 401
    assert UpstreamStatusError("anthropic", "x", 302).http_status == 502


def test_upload_failed_messages():
    assert str(UploadFailed()) == "Upload response missing downloadUrl"
    assert str(UploadFailed(500, "boom")) == "Upload failed: 500 boom"
    assert str(UploadFailed(reason="reset")) == "Upload error: reset"
    assert len(UploadFailed(500, "x" * 1000).body) == 100
