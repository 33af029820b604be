"""
Small parsing helpers shared by the request parser and the response resolver.
"""

from ..errors import ParsingError


def split_key_value(line: str, delimiter: str) -> tuple[str, str]:
    """
    Split a line into a trimmed (key, value) pair on the FIRST delimiter.

    Used for every "key<delim>value" shape the server sees:

        "Host: localhost:8080"   delimiter ":"  → ("Host", "localhost:8080")
        "page=1"                 delimiter "="  → ("page", "1")
        "X-Mock:  yes "          delimiter ":"  → ("X-Mock", "yes")

    Args:
        line: The raw line (no trailing CRLF).
        delimiter: Single-character separator.

    Returns:
        Tuple of (key, value) with surrounding whitespace stripped.

    Raises:
        ParsingError: If the delimiter does not occur in the line.
    """
    key, sep, value = line.partition(delimiter)
    if not sep:
        raise ParsingError(f"missing '{delimiter}' in line: {line!r}")
    return key.strip(), value.strip()
