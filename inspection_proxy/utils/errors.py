"""Custom exception classes for the inspection proxy."""

from typing import Optional


EXCERPT_LENGTH = 100


def excerpt(text: Optional[str], length: int = EXCERPT_LENGTH) -> str:
    """Shorten an upstream response body for error messages."""
    if not text:
        return ""
    return text[:length]


class ProxyError(Exception):
    """Base exception for all proxy errors."""

    http_status = 500


class ConfigurationError(ProxyError):
    """Configuration or initialization errors."""
    pass


class ValidationError(ProxyError):
    """Caller supplied a missing or malformed prompt or image."""

    http_status = 400


class ImageProcessingError(ProxyError):
    """Error processing image data."""

    http_status = 400


class ProviderError(ProxyError):
    """Generic provider API error with status code."""

    http_status = 502

    def __init__(self, provider: str, message: str, status_code: Optional[int] = None):
        self.provider = provider
        self.status_code = status_code
        self.detail = message
        super().__init__(message)

    def __reduce__(self):
        return (self.__class__, (self.provider, self.detail, self.status_code), self.__dict__)


class UpstreamStatusError(ProviderError):
    """Provider rejected the request; its status is passed through."""

    def __init__(self, provider: str, message: str, status_code: int):
        super().__init__(provider, message, status_code)
        if 400 <= status_code < 600:
            self.http_status = status_code


# ============================================================================
# Kie.ai image edit flow
# ============================================================================

class EditError(ProviderError):
    """Base class for failures of a single Kie image edit."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__("kie", message, status_code)

    def __reduce__(self):
        return (self.__class__, (self.detail, self.status_code), self.__dict__)


class UploadFailed(EditError):
    """Upload step returned non-2xx or no downloadUrl."""

    def __init__(
        self,
        status_code: Optional[int] = None,
        body: str = "",
        reason: Optional[str] = None,
    ):
        self.body = excerpt(body)
        self.reason = reason
        if reason:
            message = f"Upload error: {reason}"
        elif status_code is None:
            message = "Upload response missing downloadUrl"
        else:
            message = f"Upload failed: {status_code} {self.body}".rstrip()
        super().__init__(message, status_code)

    def __reduce__(self):
        return (self.__class__, (self.status_code, self.body, self.reason), self.__dict__)


class TaskCreationFailed(EditError):
    """Task creation returned non-2xx or no taskId."""

    def __init__(
        self,
        status_code: Optional[int] = None,
        body: str = "",
        reason: Optional[str] = None,
    ):
        self.body = excerpt(body)
        self.reason = reason
        if reason:
            message = f"Task creation error: {reason}"
        elif status_code is None:
            message = "Task response missing taskId"
        else:
            message = f"Task creation failed: {status_code} {self.body}".rstrip()
        super().__init__(message, status_code)

    def __reduce__(self):
        return (self.__class__, (self.status_code, self.body, self.reason), self.__dict__)


class TaskFailed(EditError):
    """Provider reported the task as failed."""

    def __init__(self, provider_message: str):
        self.provider_message = provider_message
        super().__init__(f"Task failed: {provider_message}")

    def __reduce__(self):
        return (self.__class__, (self.provider_message,), self.__dict__)


class PollTimeout(EditError):
    """Polling budget exhausted before a terminal state."""

    http_status = 504

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(
            f"Task polling timeout after {attempts} attempts - task may still be processing"
        )

    def __reduce__(self):
        return (self.__class__, (self.attempts,), self.__dict__)


class MissingResultUrl(EditError):
    """Task succeeded but no result URL could be found."""

    def __init__(self):
        super().__init__("No result URL in task response")

    def __reduce__(self):
        return (self.__class__, (), self.__dict__)


class ResultFetchFailed(EditError):
    """Downloading the edited image failed."""

    def __init__(self, status_code: Optional[int], reason: str = ""):
        self.reason = reason
        if status_code is None:
            message = f"Failed to fetch result image: {reason}"
        else:
            message = f"Failed to fetch result image: {status_code}"
        super().__init__(message, status_code)

    def __reduce__(self):
        return (self.__class__, (self.status_code, self.reason), self.__dict__)


class EditCancelled(EditError):
    """Caller cancelled the edit while it was polling."""

    http_status = 499

    def __init__(self, task_id: Optional[str] = None):
        self.task_id = task_id
        super().__init__("Image edit cancelled")

    def __reduce__(self):
        return (self.__class__, (self.task_id,), self.__dict__)
