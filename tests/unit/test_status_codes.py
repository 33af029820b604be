"""
Unit tests for the status registry.
"""

import pytest

from mockserver.http import HTTPStatus


class TestHTTPStatus:

    @pytest.mark.parametrize("code,phrase", [
        (200, "OK"),
        (201, "Created"),
        (400, "Bad Request"),
        (401, "Unauthorized"),
        (402, "Payment Required"),
        (403, "Forbidden"),
        (404, "Not Found"),
        (405, "Method Not Allowed"),
        (406, "Not Acceptable"),
        (422, "Unprocessable Entity"),
        (500, "Internal Server Error"),
    ])
    def test_known_codes(self, code, phrase):
        status = HTTPStatus.from_code(code)
        assert status.code == code
        assert status.phrase == phrase
        assert status.message == phrase

    def test_exactly_eleven_codes(self):
        assert len(HTTPStatus) == 11

    @pytest.mark.parametrize("code", [204, 302, 418, 503, 999, -1])
    def test_unknown_code_falls_back_to_ok(self, code):
        assert HTTPStatus.from_code(code) is HTTPStatus.OK

    def test_non_integer_falls_back_to_ok(self):
        assert HTTPStatus.from_code(None) is HTTPStatus.OK

    def test_ok(self):
        assert HTTPStatus.ok() == 200
        assert HTTPStatus.ok().phrase == "OK"

    def test_compares_to_int(self):
        assert HTTPStatus.NOT_FOUND == 404
