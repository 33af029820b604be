"""
Unit tests for response resolution.
"""

import pytest

from mockserver.errors import (
    ConfigFileOpenError,
    ConfigParsingError,
    ConfigRequiredHeadersError,
    ConfigRequiredQueriesError,
    ParsingError,
)
from mockserver.http import (
    HTTPStatus,
    Outcome,
    ResponseResolver,
    RouteTable,
    parse_request,
    resolve,
)


def table(*routes) -> RouteTable:
    return RouteTable.from_list(list(routes))


HELLO = {"path": "/hello", "method": "GET", "result_type": "direct", "result": '{"ok":true}'}


class TestScenarios:
    """End-to-end resolution of parsed request bytes."""

    def test_direct_body(self):
        request = parse_request(b"GET /hello HTTP/1.1\r\nHost: localhost\r\n\r\n")
        response = resolve(request, table(HELLO))

        assert response.status == HTTPStatus.OK
        assert response.body == b'{"ok":true}'
        assert response.headers["Content-Length"] == "11"
        assert response.headers["Host"] == "localhost"

    def test_method_mismatch(self):
        request = parse_request(b"POST /hello HTTP/1.1\r\nHost: localhost\r\n\r\n")
        response = resolve(request, table(HELLO))

        assert response.status == 405
        assert response.body == b"Method Not Allowed"

    def test_download(self, body_files):
        pdf = body_files["pdf"]
        request = parse_request(b"GET /dl HTTP/1.1\r\n\r\n")
        response = resolve(request, table(
            {"path": "/dl", "method": "GET", "result_type": "dl", "result": str(pdf)},
        ))

        assert response.body == pdf.read_bytes()
        assert response.headers["Content-Type"] == "application/pdf"
        assert response.headers["Accept-Ranges"] == "None"
        assert response.headers["Content-Disposition"] == "attachment; filename=report.pdf"

    def test_header_without_colon(self):
        with pytest.raises(ParsingError):
            parse_request(b"GET /hello HTTP/1.1\r\nX-Test\r\n\r\n")

    def test_no_route(self):
        request = parse_request(b"GET /unknown HTTP/1.1\r\n\r\n")
        response = resolve(request, table(HELLO))

        assert response.status == 404
        assert response.body == b"Path not found"
        assert response.headers == {}

    def test_missing_required_query(self):
        request = parse_request(b"GET /item HTTP/1.1\r\n\r\n")
        routes = table({"path": "/item", "method": "GET", "queries": ["id"], "result_type": "direct"})

        with pytest.raises(ConfigRequiredQueriesError):
            resolve(request, routes)


class TestResponseResolver:

    def resolve(self, raw: bytes, routes: RouteTable):
        return ResponseResolver(routes).resolve(parse_request(raw))

    def test_matched(self, route_table):
        resolution = self.resolve(b"GET /hello HTTP/1.1\r\n\r\n", route_table)

        assert resolution.outcome is Outcome.MATCHED
        assert resolution.ok
        assert resolution.entry.path == "/hello"

    def test_no_route(self, route_table):
        resolution = self.resolve(b"GET /nowhere HTTP/1.1\r\n\r\n", route_table)

        assert resolution.outcome is Outcome.NO_ROUTE
        assert resolution.entry is None
        assert resolution.ok

    def test_unrecognized_method_is_bad_request(self, route_table):
        resolution = self.resolve(b"BREW /hello HTTP/1.1\r\n\r\n", route_table)

        assert resolution.outcome is Outcome.BAD_METHOD
        assert resolution.response.status == 400
        assert resolution.response.body == b"Bad Request"

    def test_unrecognized_method_on_unknown_path_is_not_found(self, route_table):
        resolution = self.resolve(b"BREW /nowhere HTTP/1.1\r\n\r\n", route_table)

        assert resolution.outcome is Outcome.NO_ROUTE

    def test_method_checked_before_preconditions(self, route_table):
        resolution = self.resolve(b"POST /secure HTTP/1.1\r\n\r\n", route_table)

        assert resolution.outcome is Outcome.METHOD_MISMATCH
        assert resolution.response.status == 405

    def test_first_match_wins_even_on_method_mismatch(self):
        routes = table(
            {"path": "/dup", "method": "GET", "result_type": "direct", "result": "get"},
            {"path": "/dup", "method": "POST", "result_type": "direct", "result": "post"},
        )
        resolution = self.resolve(b"POST /dup HTTP/1.1\r\n\r\n", routes)

        assert resolution.outcome is Outcome.METHOD_MISMATCH

    def test_missing_header(self, route_table):
        resolution = self.resolve(b"GET /secure?id=1 HTTP/1.1\r\n\r\n", route_table)

        assert resolution.outcome is Outcome.PRECONDITION_FAILED
        assert isinstance(resolution.error, ConfigRequiredHeadersError)
        assert resolution.response.status == 400
        assert b"X-Token" in resolution.response.body

    def test_required_header_is_case_sensitive(self, route_table):
        resolution = self.resolve(b"GET /secure?id=1 HTTP/1.1\r\nx-token: a\r\n\r\n", route_table)

        assert resolution.outcome is Outcome.PRECONDITION_FAILED

    def test_missing_query(self, route_table):
        resolution = self.resolve(b"GET /secure HTTP/1.1\r\nX-Token: a\r\n\r\n", route_table)

        assert isinstance(resolution.error, ConfigRequiredQueriesError)
        with pytest.raises(ConfigRequiredQueriesError):
            resolution.unwrap()

    def test_preconditions_met(self, route_table):
        resolution = self.resolve(b"GET /secure?id=1 HTTP/1.1\r\nX-Token: a\r\n\r\n", route_table)

        assert resolution.outcome is Outcome.MATCHED
        assert resolution.response.body == b"secret"

    def test_missing_body_file(self, route_table):
        resolution = self.resolve(b"GET /missing HTTP/1.1\r\n\r\n", route_table)

        assert resolution.outcome is Outcome.BODY_SOURCE_ERROR
        assert isinstance(resolution.error, ConfigFileOpenError)
        assert resolution.response.status == 500
        assert resolution.response.body == b"Internal Server Error"


class TestBuildResponse:

    def test_configured_status_code(self, route_table):
        response = resolve(parse_request(b"POST /created HTTP/1.1\r\n\r\n"), route_table)

        assert response.status == HTTPStatus.CREATED

    def test_unknown_status_code_is_ok(self):
        routes = table({"path": "/", "method": "GET", "result_type": "direct", "status_code": 418})
        response = resolve(parse_request(b"GET / HTTP/1.1\r\n\r\n"), routes)

        assert response.status is HTTPStatus.OK

    def test_result_headers_override(self):
        routes = table({
            "path": "/",
            "method": "GET",
            "result_type": "direct",
            "result": "abc",
            "result_headers": ["Content-Length: 99", "Host: mock", "X-Extra: a:b"],
        })
        response = resolve(parse_request(b"GET / HTTP/1.1\r\nHost: real\r\n\r\n"), routes)

        assert response.headers["Content-Length"] == "99"
        assert response.headers["Host"] == "mock"
        assert response.headers["X-Extra"] == "a:b"

    def test_header_order(self, body_files):
        routes = table({
            "path": "/dl",
            "method": "GET",
            "result_type": "dl",
            "result": str(body_files["pdf"]),
            "result_headers": ["X-Mock: yes"],
        })
        response = resolve(parse_request(b"GET /dl HTTP/1.1\r\nHost: h\r\n\r\n"), routes)

        assert list(response.headers) == [
            "Content-Type",
            "Accept-Ranges",
            "Content-Disposition",
            "Content-Length",
            "Host",
            "X-Mock",
        ]

    def test_no_host_header_without_request_host(self, route_table):
        response = resolve(parse_request(b"GET /hello HTTP/1.1\r\n\r\n"), route_table)

        assert "Host" not in response.headers

    def test_invalid_result_header(self):
        routes = table({
            "path": "/",
            "method": "GET",
            "result_type": "direct",
            "result_headers": ["NoColon"],
        })

        with pytest.raises(ConfigParsingError):
            resolve(parse_request(b"GET / HTTP/1.1\r\n\r\n"), routes)

    def test_file_body_is_byte_exact(self, route_table, body_files):
        response = resolve(parse_request(b"GET /text HTTP/1.1\r\n\r\n"), route_table)

        assert response.body == b"hello\r\nworld\n"
        assert response.headers["Content-Length"] == "13"
        assert "Content-Disposition" not in response.headers

    def test_file_body_must_be_utf8(self, body_files):
        routes = table({"path": "/", "method": "GET", "result_type": "file", "result": str(body_files["pdf"])})

        with pytest.raises(ConfigFileOpenError):
            resolve(parse_request(b"GET / HTTP/1.1\r\n\r\n"), routes)

    def test_direct_body_has_no_download_headers(self, route_table):
        response = resolve(parse_request(b"GET /hello HTTP/1.1\r\n\r\n"), route_table)

        assert "Content-Disposition" not in response.headers
        assert "Content-Type" not in response.headers

    def test_dl_unknown_extension(self, body_files):
        routes = table({"path": "/", "method": "GET", "result_type": "dl", "result": str(body_files["noext"])})
        response = resolve(parse_request(b"GET / HTTP/1.1\r\n\r\n"), routes)

        assert response.headers["Content-Type"] == ""
        assert response.headers["Content-Disposition"] == "attachment; filename=README"

    def test_dl_is_binary_safe(self, body_files):
        routes = table({"path": "/", "method": "GET", "result_type": "dl", "result": str(body_files["blob"])})
        response = resolve(parse_request(b"GET / HTTP/1.1\r\n\r\n"), routes)

        assert response.body == b"\x00\x01\x02"
        assert response.headers["Content-Type"] == "application/octet-stream"

    def test_unknown_result_type_has_empty_body(self):
        routes = table({"path": "/", "method": "GET", "result_type": "stream", "result": "ignored"})
        response = resolve(parse_request(b"GET / HTTP/1.1\r\n\r\n"), routes)

        assert response.body == b""
        assert response.headers["Content-Length"] == "0"

    def test_utf8_direct_body_length_in_bytes(self):
        routes = table({"path": "/", "method": "GET", "result_type": "direct", "result": "héllo"})
        response = resolve(parse_request(b"GET / HTTP/1.1\r\n\r\n"), routes)

        assert response.headers["Content-Length"] == "6"
