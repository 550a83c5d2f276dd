"""Parsing of Kie.ai response envelopes.

Kie responses are loosely shaped: fields move between nesting levels and
``resultJson`` arrives either as a JSON string or as an object. Each
extraction below is a single function returning ``Parsed`` or
``Unrecognized`` so the orchestrator never chains speculative lookups.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Generic, Optional, TypeVar, Union

from ..models.enums import TaskState
from ..models.schemas import TaskRecord

T = TypeVar("T")


@dataclass(frozen=True)
class Parsed(Generic[T]):
    value: T


@dataclass(frozen=True)
class Unrecognized:
    reason: str


ParseResult = Union[Parsed[T], Unrecognized]


def _data_section(body: Any) -> Dict[str, Any]:
    if isinstance(body, dict) and isinstance(body.get("data"), dict):
        return body["data"]
    return {}


def _non_empty_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _first_url(value: Any) -> Optional[str]:
    if isinstance(value, list) and value:
        return _non_empty_str(value[0])
    return None


def parse_upload_response(body: Any) -> ParseResult[str]:
    """Extract ``data.downloadUrl`` from a file-base64-upload response."""
    url = _non_empty_str(_data_section(body).get("downloadUrl"))
    if url is None:
        return Unrecognized("Upload response missing downloadUrl")
    return Parsed(url)


def parse_create_task_response(body: Any) -> ParseResult[str]:
    """Extract ``data.taskId`` from a createTask response."""
    task_id = _data_section(body).get("taskId")
    if isinstance(task_id, int) and not isinstance(task_id, bool):
        task_id = str(task_id)
    task_id = _non_empty_str(task_id)
    if task_id is None:
        return Unrecognized("Task response missing taskId")
    return Parsed(task_id)


def parse_task_record(body: Any) -> TaskRecord:
    """Interpret one recordInfo response; missing fields yield UNKNOWN."""
    data = _data_section(body)
    raw_state = data.get("state")

    message = None
    for key in ("failMsg", "error", "message", "errorMessage"):
        message = _non_empty_str(data.get(key))
        if message:
            break

    return TaskRecord(
        state=TaskState.parse(raw_state),
        raw_state=raw_state if isinstance(raw_state, str) else None,
        message=message,
        data=data,
    )


def parse_result_json(record: TaskRecord) -> Dict[str, Any]:
    """
    Decode ``resultJson`` whether it is a string or already an object.

    A string that is not valid JSON falls back to the record data itself.
    """
    result_json = record.data.get("resultJson")
    if isinstance(result_json, str):
        try:
            result_json = json.loads(result_json)
        except ValueError:
            return record.data
    if isinstance(result_json, dict):
        return result_json
    return record.data


def extract_result_url(record: TaskRecord) -> ParseResult[str]:
    """Find the edited image URL under any of its known aliases."""
    result_json = parse_result_json(record)

    candidates = (
        _first_url(result_json.get("resultUrls")),
        _non_empty_str(result_json.get("resultUrl")),
        _first_url(record.data.get("resultUrls")),
        _non_empty_str(record.data.get("resultUrl")),
    )
    for url in candidates:
        if url:
            return Parsed(url)

    return Unrecognized("No result URL in task response")
