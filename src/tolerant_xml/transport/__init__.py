"""HTTP request encoding helpers.

Key Components:
    build_query_string: Appends percent-encoded parameters to a URL
    build_multipart_body: Encodes form fields and files as multipart/form-data
"""

from .encoding import (
    HTTPContentType,
    HTTPHeaderField,
    HTTPMethod,
    build_multipart_body,
    build_query_string,
    multipart_content_type,
)

__all__ = [
    "HTTPContentType",
    "HTTPHeaderField",
    "HTTPMethod",
    "build_multipart_body",
    "build_query_string",
    "multipart_content_type",
]
