"""Tests for the shared HTTP helpers."""

import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from common.errors import RemoteIOError
from common.http_client import get_json, post_json
from constants import Constants


def response(status, body=None, headers=None):
    res = MagicMock()
    res.status_code = status
    res.text = json.dumps(body) if body is not None else ""
    res.headers = headers or {}
    return res


class TestRequestJson:
    """Test request, parse and error mapping."""

    @patch("common.http_client.requests.request")
    def test_get_parses_json(self, mock_request):
        mock_request.return_value = response(200, {"ok": True}, {"X-Test": "1"})
        status, headers, data = get_json("https://api.test/x", context="test", headers={"A": "b"})
        assert (status, headers, data) == (200, {"X-Test": "1"}, {"ok": True})
        mock_request.assert_called_once_with(
            "GET", "https://api.test/x", headers={"A": "b"}, json=None, timeout=Constants.REQUEST_TIMEOUT
        )

    @patch("common.http_client.requests.request")
    def test_post_sends_payload(self, mock_request):
        mock_request.return_value = response(201, {"sha": "abc"})
        status, _, data = post_json("https://api.test/x", {"k": "v"}, context="test")
        assert status == 201
        assert data == {"sha": "abc"}
        assert mock_request.call_args[1]["json"] == {"k": "v"}

    @patch("common.http_client.requests.request")
    def test_error_status_is_returned(self, mock_request):
        mock_request.return_value = response(404, {"message": "Not Found"})
        status, _, data = get_json("https://api.test/x", context="test")
        assert status == 404
        assert data["message"] == "Not Found"

    @patch("common.http_client.requests.request")
    def test_non_json_body(self, mock_request):
        res = response(502)
        res.text = "<html>bad gateway</html>"
        mock_request.return_value = res
        status, _, data = get_json("https://api.test/x", context="test")
        assert status == 502
        assert data is None

    @patch("common.http_client.requests.request")
    def test_timeout(self, mock_request):
        mock_request.side_effect = requests.Timeout("slow")
        with pytest.raises(RemoteIOError, match="timed out"):
            get_json("https://api.test/x", context="test")

    @patch("common.http_client.requests.request")
    def test_connection_error_is_not_retried(self, mock_request):
        mock_request.side_effect = requests.ConnectionError("refused")
        with pytest.raises(RemoteIOError, match="refused"):
            post_json("https://api.test/x", {}, context="test")
        assert mock_request.call_count == 1
