"""
=============================================================================
CONTENT-TYPE RESOLVER
=============================================================================

Maps file extensions to MIME types for "dl" (download) routes.

When a route serves a file as a download, the client needs to know what it
is receiving:

    HTTP/1.1 200 OK
    Content-Type: application/pdf                    ← from this table
    Accept-Ranges: None
    Content-Disposition: attachment; filename=report.pdf

Unlike a static file server, the mock never guesses: an extension that is
not in the table produces an EMPTY Content-Type rather than
application/octet-stream. Route authors who need something else can set the
header explicitly through "result_headers".

=============================================================================
"""

from pathlib import Path


# =============================================================================
# MIME TYPE TABLE
# =============================================================================
#
# Keys are lowercase extensions WITHOUT the leading dot.
#
# =============================================================================

MIME_TYPES = {
    # -------------------------------------------------------------------------
    # TEXT
    # -------------------------------------------------------------------------
    "html": "text/html",
    "htm": "text/html",
    "css": "text/css",
    "js": "text/javascript",
    "mjs": "text/javascript",
    "json": "application/json",
    "xml": "application/xml",
    "txt": "text/plain",
    "md": "text/markdown",
    "csv": "text/csv",
    "yaml": "text/yaml",
    "yml": "text/yaml",

    # -------------------------------------------------------------------------
    # IMAGES
    # -------------------------------------------------------------------------
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "svg": "image/svg+xml",
    "ico": "image/x-icon",
    "webp": "image/webp",
    "bmp": "image/bmp",

    # -------------------------------------------------------------------------
    # FONTS
    # -------------------------------------------------------------------------
    "woff": "font/woff",
    "woff2": "font/woff2",
    "ttf": "font/ttf",
    "otf": "font/otf",

    # -------------------------------------------------------------------------
    # AUDIO / VIDEO
    # -------------------------------------------------------------------------
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
    "ogg": "audio/ogg",
    "mp4": "video/mp4",
    "webm": "video/webm",
    "avi": "video/x-msvideo",
    "mov": "video/quicktime",

    # -------------------------------------------------------------------------
    # DOCUMENTS
    # -------------------------------------------------------------------------
    "pdf": "application/pdf",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "xls": "application/vnd.ms-excel",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "ppt": "application/vnd.ms-powerpoint",
    "pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",

    # -------------------------------------------------------------------------
    # ARCHIVES
    # -------------------------------------------------------------------------
    "zip": "application/zip",
    "tar": "application/x-tar",
    "gz": "application/gzip",
    "rar": "application/vnd.rar",
    "7z": "application/x-7z-compressed",

    # -------------------------------------------------------------------------
    # BINARIES
    # -------------------------------------------------------------------------
    "wasm": "application/wasm",
    "bin": "application/octet-stream",
    "exe": "application/octet-stream",
}

# Returned for unmapped extensions (and for files without an extension)
UNKNOWN_MIME_TYPE = ""


def get_mime_type(extension: str) -> str:
    """
    Get the MIME type for a file extension.

    Args:
        extension: Extension without the leading dot ("pdf").
                   A leading dot and uppercase letters are tolerated.

    Returns:
        The MIME type, or "" if the extension is not mapped.

    Examples:
        >>> get_mime_type("pdf")
        'application/pdf'

        >>> get_mime_type(".PNG")
        'image/png'

        >>> get_mime_type("xyz")
        ''
    """
    return MIME_TYPES.get(extension.lstrip(".").lower(), UNKNOWN_MIME_TYPE)


def mime_type_for_path(path: str | Path) -> str:
    """
    Get the MIME type for a file path based on its suffix.

    Only the last suffix counts ("backup.tar.gz" → "gz").
    """
    suffix = Path(path).suffix
    if not suffix:
        return UNKNOWN_MIME_TYPE
    return get_mime_type(suffix)
