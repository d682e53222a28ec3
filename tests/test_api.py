"""Tests for api.py: security helpers, HTTP error handling, token validation."""

import io
import urllib.error
from unittest.mock import MagicMock, patch

import pytest

from notion_cli.api import (
    _build_url,
    _check_token,
    _http_request,
    _is_idempotent,
    _is_sampled_request,
    _mask_token,
    _parse_retry_after,
    _safe_json_parse,
    _sanitize_error,
    _sanitize_url_for_log,
    _try_call,
    api_request,
    get,
    post,
)
from notion_cli.exceptions import CliError, HTTPError, SetupError

# ---------------------------------------------------------------------------
# Security helpers
# ---------------------------------------------------------------------------


class TestMaskToken:
    def test_long_token(self):
        assert _mask_token("secret_abcdef") == "secret..."

    def test_short_token(self):
        assert _mask_token("abc") == "abc"

    def test_exactly_six(self):
        assert _mask_token("abcdef") == "abcdef"


class TestSanitizeUrlForLog:
    def test_masks_token_param(self):
        url = "https://api.notion.com/v1/search?token=abc&page_size=5"
        safe = _sanitize_url_for_log(url)
        assert "abc" not in safe
        assert "token=%2A%2A%2A" in safe
        assert "page_size=5" in safe

    def test_no_query(self):
        assert _sanitize_url_for_log("https://x.io/a") == "https://x.io/a"


class TestSampling:
    def test_sample_rate_zero_disables(self, monkeypatch):
        monkeypatch.setattr("notion_cli.api.config.HTTP_LOG_SAMPLE_RATE", 0.0)
        assert _is_sampled_request("req-1") is False

    def test_sample_rate_one_enables(self, monkeypatch):
        monkeypatch.setattr("notion_cli.api.config.HTTP_LOG_SAMPLE_RATE", 1.0)
        assert _is_sampled_request("req-1") is True

    def test_sampling_is_deterministic(self, monkeypatch):
        monkeypatch.setattr("notion_cli.api.config.HTTP_LOG_SAMPLE_RATE", 0.5)
        assert _is_sampled_request("req-abc") == _is_sampled_request("req-abc")


class TestSafeJsonParse:
    def test_valid_json(self):
        assert _safe_json_parse('{"a": 1}') == {"a": 1}

    def test_invalid_json(self):
        with pytest.raises(CliError, match="Invalid JSON in --filter"):
            _safe_json_parse("{nope", "--filter")


class TestSanitizeError:
    def test_notion_error_body(self):
        body = '{"object": "error", "code": "validation_error", "message": "bad filter"}'
        assert _sanitize_error(body) == "validation_error: bad filter"

    def test_strips_html(self):
        assert _sanitize_error("<h1>Bad</h1>  <p>gateway</p>") == "Bad gateway"

    def test_truncates_long_body(self):
        assert _sanitize_error("x" * 600).endswith("... [truncated]")

    def test_empty_body(self):
        assert _sanitize_error("") == ""


class TestTryCall:
    def test_returns_value(self):
        assert _try_call(lambda x: x * 2, 3) == 6

    def test_catches_cli_error(self):
        def boom():
            raise CliError("[ERROR] nope")

        assert _try_call(boom) is None

    def test_setup_error_is_a_cli_error(self):
        def boom():
            raise SetupError("[SETUP_NEEDED] x")

        assert _try_call(boom) is None


# ---------------------------------------------------------------------------
# Request helpers
# ---------------------------------------------------------------------------


class TestBuildUrl:
    def test_drops_none_params(self):
        url = _build_url("/users", {"page_size": 10, "start_cursor": None})
        assert url == "https://api.notion.com/v1/users?page_size=10"

    def test_no_params(self):
        assert _build_url("pages/abc") == "https://api.notion.com/v1/pages/abc"


class TestIsIdempotent:
    @pytest.mark.parametrize(
        "method,path,expected",
        [
            ("GET", "users/me", True),
            ("POST", "search", True),
            ("POST", "databases/abc/query", True),
            ("POST", "pages", False),
            ("PATCH", "pages/abc", False),
            ("DELETE", "blocks/abc", False),
        ],
    )
    def test_classification(self, method, path, expected):
        assert _is_idempotent(method, path) is expected


class TestParseRetryAfter:
    def test_seconds(self):
        assert _parse_retry_after({"Retry-After": "3"}) == 3

    def test_missing_or_invalid(self):
        assert _parse_retry_after(None) is None
        assert _parse_retry_after({"Retry-After": "soon"}) is None


# ---------------------------------------------------------------------------
# api_request
# ---------------------------------------------------------------------------


class TestApiRequest:
    @patch("notion_cli.api._http_request")
    def test_sends_notion_headers(self, mock_http):
        mock_http.return_value = {"object": "user"}
        api_request("users/me")
        url, data, headers, method = mock_http.call_args.args
        assert url == "https://api.notion.com/v1/users/me"
        assert data is None
        assert method == "GET"
        assert headers["Authorization"] == "Bearer secret_fake-token"
        assert headers["Notion-Version"] == "2022-06-28"
        assert headers["X-Request-Id"]
        assert mock_http.call_args.kwargs == {"idempotent": True}

    @patch("notion_cli.api._http_request")
    def test_writes_are_not_idempotent(self, mock_http):
        mock_http.return_value = {}
        api_request("pages", {"a": 1}, method="post")
        assert mock_http.call_args.args[3] == "POST"
        assert mock_http.call_args.kwargs == {"idempotent": False}

    def test_missing_token(self, monkeypatch):
        monkeypatch.setattr("notion_cli.api.config.TOKEN", "")
        with pytest.raises(SetupError, match="SETUP_NEEDED"):
            api_request("users/me")

    @patch("notion_cli.api._http_request")
    def test_401_is_token_expired(self, mock_http):
        mock_http.side_effect = HTTPError(401, "Unauthorized", "")
        with pytest.raises(SetupError) as exc_info:
            api_request("users/me")
        assert "[TOKEN_EXPIRED]" in str(exc_info.value)
        assert "secret..." in str(exc_info.value)
        assert exc_info.value.exit_code == 2

    @patch("notion_cli.api._http_request")
    def test_404_mentions_sharing(self, mock_http):
        mock_http.side_effect = HTTPError(404, "Not Found", "")
        with pytest.raises(CliError, match="shared with the integration"):
            api_request("pages/abc")

    @patch("notion_cli.api._http_request")
    def test_429_rate_limit(self, mock_http):
        mock_http.side_effect = HTTPError(429, "Too Many Requests", "")
        with pytest.raises(CliError, match="Rate limit"):
            api_request("search", {}, method="POST")

    @patch("notion_cli.api._http_request")
    def test_other_errors_use_envelope(self, mock_http):
        body = '{"code": "validation_error", "message": "body failed validation"}'
        mock_http.side_effect = HTTPError(400, "Bad Request", body, {"X-Request-Id": "srv-1"})
        with pytest.raises(CliError) as exc_info:
            api_request("pages", {}, method="POST")
        msg = str(exc_info.value)
        assert "Notion API Error 400" in msg
        assert "status=400" in msg
        assert "request_id=srv-1" in msg
        assert "validation_error: body failed validation" in msg


class TestResponseShapeValidation:
    @patch("notion_cli.api.api_request")
    def test_get_rejects_non_object(self, mock_request):
        mock_request.return_value = []
        with pytest.raises(CliError, match="Unexpected GET response shape"):
            get("users")

    @patch("notion_cli.api.api_request")
    def test_post_sends_empty_body(self, mock_request):
        mock_request.return_value = {"results": []}
        post("search")
        assert mock_request.call_args.args == ("search", {})


# ---------------------------------------------------------------------------
# _http_request
# ---------------------------------------------------------------------------


def _http_error(code, reason, body=b"busy", headers=None):
    return urllib.error.HTTPError(
        "https://api.notion.com/v1/search", code, reason, headers or {}, io.BytesIO(body)
    )


def _ok_response(payload=b'{"ok": true}'):
    cm = MagicMock()
    resp = cm.__enter__.return_value
    resp.status = 200
    resp.headers.get.return_value = "application/json"
    resp.read.return_value = payload
    return cm


class TestHttpRetries:
    @patch("notion_cli.api.time.sleep")
    @patch("notion_cli.api.urllib.request.urlopen")
    def test_retries_429_for_idempotent_request(self, mock_urlopen, mock_sleep, monkeypatch):
        monkeypatch.setattr("notion_cli.api.config.HTTP_MAX_RETRIES", 2)
        mock_urlopen.side_effect = [
            _http_error(429, "Too Many Requests", headers={"Retry-After": "0"}),
            _ok_response(),
        ]
        result = _http_request("https://api.notion.com/v1/search", {}, idempotent=True)
        assert result["ok"] is True
        assert mock_urlopen.call_count == 2
        mock_sleep.assert_called_once_with(0)

    @patch("notion_cli.api.urllib.request.urlopen")
    def test_does_not_retry_writes(self, mock_urlopen, monkeypatch):
        monkeypatch.setattr("notion_cli.api.config.HTTP_MAX_RETRIES", 2)
        mock_urlopen.side_effect = _http_error(503, "Unavailable")
        with pytest.raises(HTTPError) as exc_info:
            _http_request("https://api.notion.com/v1/pages", {"x": 1}, idempotent=False)
        assert exc_info.value.code == 503
        assert exc_info.value.body == "busy"
        assert mock_urlopen.call_count == 1

    @patch("notion_cli.api.urllib.request.urlopen")
    def test_timeout(self, mock_urlopen):
        mock_urlopen.side_effect = TimeoutError()
        with pytest.raises(CliError, match="timed out"):
            _http_request("https://api.notion.com/v1/users/me")

    @patch("notion_cli.api.urllib.request.urlopen")
    def test_connection_error(self, mock_urlopen):
        mock_urlopen.side_effect = urllib.error.URLError("no route")
        with pytest.raises(CliError, match="Connection failed: no route"):
            _http_request("https://api.notion.com/v1/users/me")

    @patch("notion_cli.api.urllib.request.urlopen")
    def test_response_size_limit(self, mock_urlopen, monkeypatch):
        monkeypatch.setattr("notion_cli.api.config.HTTP_MAX_RESPONSE_BYTES", 4)
        mock_urlopen.return_value = _ok_response(b"12345")
        with pytest.raises(CliError, match="Response too large"):
            _http_request("https://api.notion.com/v1/users/me")

    @patch("notion_cli.api.urllib.request.urlopen")
    def test_non_finite_body_is_rejected_before_sending(self, mock_urlopen):
        body = {"filter": {"property": "Points", "number": {"equals": float("nan")}}}
        with pytest.raises(CliError, match="NaN or Infinity"):
            _http_request("https://api.notion.com/v1/databases/x/query", body)
        mock_urlopen.assert_not_called()


class TestContentTypeCheck:
    @patch("notion_cli.api.urllib.request.urlopen")
    def test_html_content_type_gives_proxy_message(self, mock_urlopen):
        cm = _ok_response(b"<html>Error</html>")
        cm.__enter__.return_value.headers.get.return_value = "text/html; charset=utf-8"
        mock_urlopen.return_value = cm
        with pytest.raises(CliError, match="proxy"):
            _http_request("https://api.notion.com/v1/users/me")

    @patch("notion_cli.api.urllib.request.urlopen")
    def test_json_content_type_gives_json_message(self, mock_urlopen):
        mock_urlopen.return_value = _ok_response(b"not valid json{{")
        with pytest.raises(CliError, match="not valid JSON"):
            _http_request("https://api.notion.com/v1/users/me")


class TestHttpLogging:
    @patch("notion_cli.api.urllib.request.urlopen")
    def test_logs_request_and_response(self, mock_urlopen, monkeypatch, capsys):
        monkeypatch.setattr("notion_cli.api.config.HTTP_LOG_ENABLED", True)
        monkeypatch.setattr("notion_cli.api.config.HTTP_LOG_SAMPLE_RATE", 1.0)
        mock_urlopen.return_value = _ok_response()
        _http_request("https://api.notion.com/v1/users/me", headers={"X-Request-Id": "r1"})
        err = capsys.readouterr().err
        assert err.count("[HTTP] ") == 2
        assert '"phase": "request"' in err
        assert '"request_id": "r1"' in err


# ---------------------------------------------------------------------------
# Token validation
# ---------------------------------------------------------------------------


class TestCheckToken:
    def test_no_token(self, monkeypatch):
        monkeypatch.setattr("notion_cli.api.config.TOKEN", "")
        with pytest.raises(SetupError, match="No Notion API token"):
            _check_token()

    @patch("notion_cli.api.get")
    def test_bot_user(self, mock_get):
        mock_get.return_value = {"object": "user", "type": "bot"}
        assert _check_token()["type"] == "bot"
        mock_get.assert_called_once_with("users/me")

    @patch("notion_cli.api.get")
    def test_unexpected_response(self, mock_get):
        mock_get.return_value = {"object": "list"}
        with pytest.raises(SetupError, match="TOKEN_EXPIRED"):
            _check_token()
