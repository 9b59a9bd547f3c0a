"""Tests for the urBackend log client."""

import json
import unittest
from unittest.mock import MagicMock

import requests

from errlocal.exceptions import BackendError
from errlocal.log_backend import UrBackendClient, build_record, recent_records
from errlocal.state import Analysis, SessionState


def make_response(status_code=200, payload=None, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.text = text or (json.dumps(payload) if payload is not None else "")
    if payload is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = payload
    return response


class TestBuildRecord(unittest.TestCase):
    def test_record_fields(self):
        state = SessionState(
            command="node app.js",
            error="TypeError: x",
            analysis=Analysis(error_type="TypeError", hints=["a", "b"], final_explanation="c"),
            timestamp="2026-01-01T00:00:00+00:00",
        )
        record = build_record(state)
        self.assertEqual(record["command"], "node app.js")
        self.assertEqual(record["errorType"], "TypeError")
        self.assertEqual(json.loads(record["hints"]), ["a", "b"])
        self.assertEqual(record["status"], "OPEN")
        self.assertEqual(record["timestamp"], "2026-01-01T00:00:00+00:00")


class TestUrBackendClient(unittest.TestCase):
    def setUp(self):
        self.client = UrBackendClient("key-123", base_url="https://backend.test/")
        self.client.session = MagicMock()

    def test_missing_key_raises(self):
        with self.assertRaises(BackendError):
            UrBackendClient("")

    def test_api_key_header(self):
        client = UrBackendClient("key-123")
        self.assertEqual(client.session.headers["x-api-key"], "key-123")

    def test_create_returns_id(self):
        self.client.session.request.return_value = make_response(201, {"_id": "abc"})

        self.assertEqual(self.client.create({"command": "x"}), "abc")
        method, url = self.client.session.request.call_args.args
        self.assertEqual(method, "POST")
        self.assertEqual(url, "https://backend.test/api/data/error_logs")

    def test_create_nested_id(self):
        self.client.session.request.return_value = make_response(200, {"data": {"id": 42}})
        self.assertEqual(self.client.create({}), "42")

    def test_create_provisions_missing_collection_and_retries(self):
        self.client.session.request.side_effect = [
            make_response(404, text="Collection not found"),
            make_response(201, {"ok": True}),
            make_response(201, {"_id": "new"}),
        ]

        self.assertEqual(self.client.create({"command": "x"}), "new")

        calls = self.client.session.request.call_args_list
        self.assertEqual(len(calls), 3)
        self.assertEqual(calls[1].args[1], "https://backend.test/api/collections")
        self.assertEqual(calls[1].kwargs["json"]["name"], "error_logs")
        self.assertIn("errorType", calls[1].kwargs["json"]["schema"])

    def test_create_retries_after_failed_provisioning(self):
        self.client.session.request.side_effect = [
            make_response(404, text="Collection not found"),
            make_response(500, text="cannot create collection"),
            make_response(201, {"_id": "retried"}),
        ]

        with self.assertLogs("errlocal.log_backend", level="WARNING"):
            self.assertEqual(self.client.create({"command": "x"}), "retried")

        calls = self.client.session.request.call_args_list
        self.assertEqual(len(calls), 3)
        self.assertEqual(calls[2].args, ("POST", "https://backend.test/api/data/error_logs"))

    def test_create_retries_after_provisioning_network_error(self):
        self.client.session.request.side_effect = [
            make_response(404, text="Collection not found"),
            requests.ConnectionError("reset by peer"),
            make_response(503, text="still missing"),
        ]

        with self.assertLogs("errlocal.log_backend", level="WARNING"):
            with self.assertRaises(BackendError) as ctx:
                self.client.create({"command": "x"})

        self.assertEqual(ctx.exception.status_code, 503)
        calls = self.client.session.request.call_args_list
        self.assertEqual(len(calls), 3)
        self.assertEqual(calls[1].args[1], "https://backend.test/api/collections")
        self.assertEqual(calls[2].args, ("POST", "https://backend.test/api/data/error_logs"))

    def test_create_error_raises(self):
        self.client.session.request.return_value = make_response(500, text="server down")
        with self.assertRaises(BackendError) as ctx:
            self.client.create({})
        self.assertEqual(ctx.exception.status_code, 500)

    def test_create_without_id_raises(self):
        self.client.session.request.return_value = make_response(200, {"ok": True})
        with self.assertRaises(BackendError):
            self.client.create({})

    def test_network_error_raises(self):
        self.client.session.request.side_effect = requests.ConnectionError("offline")
        with self.assertRaises(BackendError):
            self.client.list()

    def test_list_plain_and_wrapped(self):
        self.client.session.request.return_value = make_response(200, [{"_id": "1"}])
        self.assertEqual(self.client.list(), [{"_id": "1"}])

        self.client.session.request.return_value = make_response(200, {"data": [{"_id": "2"}]})
        self.assertEqual(self.client.list(), [{"_id": "2"}])

    def test_list_unexpected_shape_raises(self):
        self.client.session.request.return_value = make_response(200, {"items": "nope"})
        with self.assertRaises(BackendError):
            self.client.list()

    def test_update(self):
        self.client.session.request.return_value = make_response(200, {"ok": True})

        self.client.update("abc", {"status": "SOLVED", "solution": "awaited it"})

        call = self.client.session.request.call_args
        self.assertEqual(call.args, ("PUT", "https://backend.test/api/data/error_logs/abc"))
        self.assertEqual(call.kwargs["json"], {"status": "SOLVED", "solution": "awaited it"})


class TestRecentRecords(unittest.TestCase):
    def test_newest_first_limited(self):
        records = [{"timestamp": f"2026-01-0{i}T00:00:00Z", "n": i} for i in range(1, 9)]
        recent = recent_records(records)
        self.assertEqual([r["n"] for r in recent], [8, 7, 6, 5, 4])

    def test_fewer_than_limit(self):
        self.assertEqual(len(recent_records([{"timestamp": "x"}])), 1)

    def test_missing_timestamp_sorts_last(self):
        recent = recent_records([{"n": 1}, {"timestamp": "2026-01-01", "n": 2}])
        self.assertEqual(recent[0]["n"], 2)


if __name__ == "__main__":
    unittest.main()
