"""Tests for the curl output parser."""

from curlpad.builder import build_command
from curlpad.parser import parse_request
from curlpad.response import (
    ResponseResult,
    parse_curl_output,
    parse_header_lines,
    split_headers_and_body,
    status_text_for,
)


class TestStatusText:
    """Tests for the status phrase lookup."""

    def test_known_codes(self):
        assert status_text_for(200) == "OK"
        assert status_text_for(404) == "Not Found"
        assert status_text_for(422) == "Unprocessable Entity"
        assert status_text_for(503) == "Service Unavailable"

    def test_unknown_code(self):
        assert status_text_for(418) == "Unknown"


class TestParseCurlOutput:
    """Tests for parse_curl_output."""

    def test_marker_response(self):
        stdout = (
            "HTTP/1.1 200 OK\r\n"
            "Content-Type: application/json\r\n"
            "\r\n"
            '{"a":1}\n'
            "HTTPSTATUS:200"
        )
        result = parse_curl_output(stdout, "")
        assert result.status_code == 200
        assert result.status_text == "OK"
        assert result.headers["Content-Type"] == "application/json"
        assert result.body == '{"a":1}'

    def test_built_command_round_trip(self):
        """The marker requested by build_command is what the parser reads back."""
        cmd = build_command(parse_request('curl "https://a.b/c"'))
        assert "HTTPSTATUS:%{http_code}" in cmd
        stdout = (
            "HTTP/1.1 200 OK\r\nContent-Type: application/json\r\n\r\n"
            '{"a":1}\nHTTPSTATUS:200'
        )
        result = parse_curl_output(stdout, "")
        assert (result.status_code, result.body) == (200, '{"a":1}')

    def test_marker_only(self):
        result = parse_curl_output("HTTPSTATUS:404", "")
        assert result.status_code == 404
        assert result.status_text == "Not Found"
        assert dict(result.headers) == {}
        assert result.body == ""

    def test_empty_output(self):
        result = parse_curl_output("", "")
        assert result.status_code == 0
        assert result.status_text == "Unknown"
        assert dict(result.headers) == {}
        assert result.body == ""

    def test_stderr_is_ignored_without_status_line(self):
        result = parse_curl_output("   ", "curl: (6) Could not resolve host")
        assert result.status_code == 0
        assert result.body == ""

    def test_stderr_used_when_stdout_empty(self):
        stderr = "HTTP/1.1 201 Created\nLocation: /items/7\n\ncreated"
        result = parse_curl_output("", stderr)
        assert result.status_code == 201
        assert result.headers["Location"] == "/items/7"
        assert result.body == "created"

    def test_marker_wins_over_status_line(self):
        stdout = (
            "HTTP/1.1 301 Moved Permanently\r\n"
            "Location: https://x.io/new\r\n"
            "\r\n"
            "moved\nHTTPSTATUS:200"
        )
        result = parse_curl_output(stdout, "")
        assert result.status_code == 200
        assert result.status_text == "OK"

    def test_status_line_with_phrase(self):
        result = parse_curl_output("HTTP/1.1 418 I'm a teapot\n\nshort", "")
        assert result.status_code == 418
        assert result.status_text == "I'm a teapot"
        assert result.body == "short"

    def test_http2_status_line_without_phrase(self):
        stdout = "HTTP/2 204\r\ndate: Mon, 01 Jan 2024 00:00:00 GMT\r\n\r\n"
        result = parse_curl_output(stdout, "")
        assert result.status_code == 204
        assert result.status_text == "No Content"
        assert result.headers["Date"] == "Mon, 01 Jan 2024 00:00:00 GMT"

    def test_http2_status_line_with_trailing_space(self):
        result = parse_curl_output("HTTP/2 200 \r\nx-a: 1\r\n\r\nok", "")
        assert result.status_code == 200
        assert result.status_text == "OK"

    def test_verbose_status_line(self):
        stdout = "* Connected\n< HTTP/1.1 500 Server Exploded\n< x: y"
        result = parse_curl_output(stdout, "")
        assert result.status_code == 500
        assert result.status_text == "Server Exploded"

    def test_first_line_three_digits(self):
        result = parse_curl_output("status 502 from proxy\nbody text", "")
        assert result.status_code == 502
        assert result.status_text == "Bad Gateway"

    def test_no_blank_line_heuristic_split(self):
        stdout = "HTTP/1.1 200 OK\nContent-Type: text/plain\nhello world"
        result = parse_curl_output(stdout, "")
        assert result.headers["Content-Type"] == "text/plain"
        assert result.body == "hello world"

    def test_status_line_not_in_headers(self):
        result = parse_curl_output("HTTP/1.1 200 OK\r\nA: 1\r\n\r\nx", "")
        assert dict(result.headers) == {"A": "1"}

    def test_header_with_colon_in_value(self):
        stdout = "HTTP/1.1 200 OK\nSet-Cookie: a=b:c\nLink: <http://x>\n\nok"
        result = parse_curl_output(stdout, "")
        assert result.headers["Set-Cookie"] == "a=b:c"
        assert result.headers["Link"] == "<http://x>"

    def test_headers_are_case_insensitive(self):
        stdout = "HTTP/1.1 200 OK\r\ncontent-type: text/html\r\n\r\n<p/>"
        result = parse_curl_output(stdout, "")
        assert result.headers["Content-Type"] == "text/html"

    def test_body_keeps_inner_blank_lines(self):
        stdout = "HTTP/1.1 200 OK\n\nline1\n\nline2\nHTTPSTATUS:200\n"
        result = parse_curl_output(stdout, "")
        assert result.body == "line1\n\nline2"


class TestSplitHeadersAndBody:
    """Tests for the header/body boundary search."""

    def test_crlf_boundary_preferred(self):
        head, body = split_headers_and_body("A: 1\r\n\r\nx\n\ny")
        assert head == "A: 1"
        assert body == "x\n\ny"

    def test_lf_boundary(self):
        assert split_headers_and_body("A: 1\n\nbody") == ("A: 1", "body")

    def test_headers_only(self):
        head, body = split_headers_and_body("HTTP/1.1 200 OK\nA: 1")
        assert head == "HTTP/1.1 200 OK\nA: 1"
        assert body == ""


class TestParseHeaderLines:
    """Tests for parse_header_lines."""

    def test_colon_less_lines_dropped(self):
        assert parse_header_lines("A: 1\ngarbage\n: novalue\nB:2") == {
            "A": "1",
            "B": "2",
        }


class TestResponseResult:
    """Tests for the ResponseResult container."""

    def test_defaults(self):
        result = ResponseResult()
        assert result.status_code == 0
        assert result.status_text == "Unknown"
        assert result.body == ""
        assert result.error is None

    def test_repr(self):
        assert "404" in repr(ResponseResult(404, "Not Found"))
