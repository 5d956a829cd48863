"""Request body and URL encoding helpers for HTTP clients.

These are pure functions: they build the query string and multipart form
body that a caller hands to whatever HTTP stack it uses. The multipart
boundary is always supplied per call.
"""

from enum import Enum
from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote

from tolerant_xml.shared import get_logger

FILENAME_SUFFIX = "-filename"

logger = get_logger(__name__, component="transport_encoding")


class HTTPMethod(Enum):
    """HTTP request methods."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


class HTTPContentType(Enum):
    """Content types used when sending request bodies."""

    WWW_FORM_URL_ENCODED = "application/x-www-form-urlencoded"
    JSON = "application/json"
    OCTET_STREAM = "application/octet-stream"
    TEXT_PLAIN = "text/plain"
    MULTIPART_FORM_DATA = "multipart/form-data"  # needs "; boundary=..."


class HTTPHeaderField(Enum):
    """Header names set by request builders."""

    CONTENT_TYPE = "Content-Type"
    CONTENT_LENGTH = "Content-Length"


def multipart_content_type(boundary: str) -> str:
    """Content-Type header value for a multipart body with ``boundary``."""
    return f"{HTTPContentType.MULTIPART_FORM_DATA.value}; boundary={boundary}"


def build_query_string(base_url: str, params: Optional[Mapping[Any, Any]]) -> str:
    """Append ``params`` to ``base_url`` as a percent-encoded query string.

    Keys and values are converted with ``str()``, so strings, numbers and
    booleans work best.

    Examples:
        >>> build_query_string("https://example.com/api", {"q": "a b", "page": 2})
        'https://example.com/api?q=a%20b&page=2'
    """
    if not params:
        return base_url

    pairs = [
        f"{quote(str(key), safe='')}={quote(str(value), safe='')}"
        for key, value in params.items()
    ]
    return f"{base_url}?{'&'.join(pairs)}"


def build_multipart_body(
    boundary: str, params: Optional[Mapping[str, Any]]
) -> Optional[bytes]:
    """Encode ``params`` as a ``multipart/form-data`` body.

    Bytes values are sent as files (``application/octet-stream``); anything
    else is sent as ``text/plain`` using ``str()``. A file's name is taken
    from the companion ``"<key>-filename"`` entry when one exists, otherwise
    from the key itself.

    Args:
        boundary: Part separator; should be a long random alphanumeric string
        params: Form fields, or None

    Returns:
        The encoded body, or None when ``params`` is None

    Examples:
        >>> build_multipart_body("XyZ", {"note": "hi"})
        b'--XyZ\\r\\nContent-Disposition: form-data; name="note"\\r\\nContent-Type: text/plain\\r\\n\\r\\nhi\\r\\n--XyZ--\\r\\n'
    """
    if params is None:
        return None
    if not boundary:
        raise ValueError("Multipart boundary cannot be empty")

    fields: Dict[str, Any] = dict(params)
    file_names: Dict[str, str] = {}
    for key in list(fields):
        name_key = f"{key}{FILENAME_SUFFIX}"
        if name_key in params:
            file_names[key] = str(params[name_key])
    for key in file_names:
        fields.pop(f"{key}{FILENAME_SUFFIX}", None)

    body = bytearray()
    for key, value in fields.items():
        is_file = isinstance(value, (bytes, bytearray, memoryview))
        disposition = f'Content-Disposition: form-data; name="{key}"'
        if is_file:
            disposition += f'; filename="{file_names.get(key, key)}"'
            content_type = HTTPContentType.OCTET_STREAM.value
        else:
            content_type = HTTPContentType.TEXT_PLAIN.value

        body += f"--{boundary}\r\n".encode("utf-8")
        body += f"{disposition}\r\n".encode("utf-8")
        body += f"Content-Type: {content_type}\r\n\r\n".encode("utf-8")
        body += bytes(value) if is_file else str(value).encode("utf-8")
        body += b"\r\n"

    if fields:
        body += f"--{boundary}--\r\n".encode("utf-8")

    logger.debug(
        "Built multipart body",
        extra={"part_count": len(fields), "size_bytes": len(body)}
    )
    return bytes(body)
