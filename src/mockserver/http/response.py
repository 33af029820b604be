"""
=============================================================================
HTTP RESPONSE
=============================================================================

The resolver produces a Response; the server turns it into bytes.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP RESPONSE STRUCTURE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    HTTP/1.1 200 OK\r\n                        ← status line         │
    │    Content-Length: 12\r\n                     ← headers             │
    │    Host: localhost\r\n                                               │
    │    \r\n                                       ← blank line          │
    │    {"ok":true}                                ← body bytes          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Bodies are always fully buffered: the mock server never streams.

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Optional

from .status_codes import HTTPStatus


@dataclass
class Response:
    """
    Represents an HTTP response to be sent to the client.

    Attributes:
        status:  Status code with its reason phrase
        headers: Response headers, insertion ordered
        body:    Raw body bytes
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @classmethod
    def text(cls, status: HTTPStatus, text: str) -> "Response":
        """
        Build a plain-text response with no extra headers.

        Used for the fixed answers (404 "Path not found",
        405 "Method Not Allowed") and for error responses.
        """
        return cls(status=status, body=text.encode("utf-8"))

    @property
    def status_line(self) -> str:
        """"HTTP/1.1 404 Not Found" style status line."""
        return f"{self.version} {self.status.code} {self.status.phrase}"

    def set_header(self, name: str, value: str) -> "Response":
        """Set a header, returning self for chaining."""
        self.headers[name] = value
        return self

    def to_bytes(self, server_name: Optional[str] = None) -> bytes:
        """
        Serialize the response for socket.sendall().

        Content-Length is added when the header mapping lacks it, so the
        client always knows where the body ends. Date and Server are added
        unless the route already set them.

        Args:
            server_name: Value for the Server header, omitted when None.
        """
        # Copy headers to avoid modifying the resolved response
        response_headers = dict(self.headers)

        if "Content-Length" not in response_headers:
            response_headers["Content-Length"] = str(len(self.body))

        if "Date" not in response_headers:
            response_headers["Date"] = format_http_date(datetime.now(timezone.utc))

        if server_name and "Server" not in response_headers:
            response_headers["Server"] = server_name

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        header_bytes = "\r\n".join(lines).encode("utf-8") + b"\r\n"
        return header_bytes + self.body


def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP date (RFC 7231 IMF-fixdate).

        Thu, 15 Jan 2026 12:30:45 GMT
    """
    weekday = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"][dt.weekday()]
    month = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
             "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"][dt.month - 1]
    return f"{weekday}, {dt.day:02d} {month} {dt.year} {dt:%H:%M:%S} GMT"
