"""Test parsing of Kie.ai response envelopes."""

import json

import pytest

from inspection_proxy.core.record_parser import (
    Parsed,
    Unrecognized,
    extract_result_url,
    parse_create_task_response,
    parse_result_json,
    parse_task_record,
    parse_upload_response,
)
from inspection_proxy.models.enums import TaskState


class TestEnvelopes:

    def test_upload_download_url(self):
        body = {"code": 200, "data": {"downloadUrl": "https://u/1", "fileName": "x.png"}}
        assert parse_upload_response(body) == Parsed("https://u/1")

    @pytest.mark.parametrize("body", [None, [], {"data": None}, {"data": {"downloadUrl": ""}}])
    def test_upload_unrecognized(self, body):
        assert isinstance(parse_upload_response(body), Unrecognized)

    def test_task_id(self):
        assert parse_create_task_response({"data": {"taskId": "t1"}}) == Parsed("t1")

    def test_numeric_task_id_becomes_string(self):
        assert parse_create_task_response({"data": {"taskId": 42}}) == Parsed("42")

    def test_task_id_missing(self):
        result = parse_create_task_response({"code": 401, "msg": "Unauthorized"})
        assert result == Unrecognized("Task response missing taskId")


class TestTaskRecord:

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("pending", TaskState.PENDING),
            ("processing", TaskState.PROCESSING),
            ("running", TaskState.RUNNING),
            ("success", TaskState.SUCCESS),
            ("SUCCESS", TaskState.SUCCESS),
            ("failed", TaskState.FAILED),
            ("fail", TaskState.FAILED),
            ("error", TaskState.ERROR),
            ("waiting", TaskState.UNKNOWN),
            (None, TaskState.UNKNOWN),
            (3, TaskState.UNKNOWN),
        ],
    )
    def test_state_mapping(self, raw, expected):
        record = parse_task_record({"data": {"state": raw}})
        assert record.state is expected

    def test_terminal_states(self):
        terminal = {s for s in TaskState if s.is_terminal}
        assert terminal == {TaskState.SUCCESS, TaskState.FAILED, TaskState.ERROR}
        assert not TaskState.UNKNOWN.is_terminal

    def test_message_preference(self):
        record = parse_task_record(
            {"data": {"state": "fail", "failMsg": "nsfw", "message": "generic"}}
        )
        assert record.message == "nsfw"

    def test_non_dict_body(self):
        record = parse_task_record("oops")
        assert record.state is TaskState.UNKNOWN
        assert record.data == {}


class TestResultUrl:

    def test_result_json_string(self):
        record = parse_task_record(
            {"data": {"state": "success", "resultJson": json.dumps({"resultUrls": ["http://x"]})}}
        )
        assert parse_result_json(record) == {"resultUrls": ["http://x"]}
        assert extract_result_url(record) == Parsed("http://x")

    def test_result_json_object(self):
        record = parse_task_record(
            {"data": {"state": "success", "resultJson": {"resultUrl": "http://y"}}}
        )
        assert extract_result_url(record) == Parsed("http://y")

    def test_invalid_json_falls_back_to_data(self):
        record = parse_task_record(
            {"data": {"state": "success", "resultJson": "{broken", "resultUrls": ["http://z"]}}
        )
        assert parse_result_json(record) is record.data
        assert extract_result_url(record) == Parsed("http://z")

    def test_first_alias_wins(self):
        record = parse_task_record(
            {
                "data": {
                    "state": "success",
                    "resultJson": json.dumps({"resultUrls": ["http://a"], "resultUrl": "http://b"}),
                    "resultUrls": ["http://c"],
                }
            }
        )
        assert extract_result_url(record) == Parsed("http://a")

    def test_no_url(self):
        record = parse_task_record({"data": {"state": "success", "resultJson": "{}"}})
        assert isinstance(extract_result_url(record), Unrecognized)
