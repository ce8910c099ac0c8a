"""
=============================================================================
HTTP WIRE LAYER
=============================================================================

Everything that deals with HTTP as bytes lives here, so the rest of the
package can think in environs and triples:

    request.py       bytes → HTTPRequest
    response.py      Response triple → bytes
    status_codes.py  status integers and their reason phrases

A handler never imports from this package. Only the hosting server does.

=============================================================================
"""

from .request import HTTPRequest, RequestParser, HTTPParseError, parse_request
from .response import serialize_response, error_response, encode_body, format_http_date
from .status_codes import HTTPStatus, reason_phrase, is_valid_status, status_allows_body

__all__ = [
    # Request parsing
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",
    "parse_request",

    # Response serialization
    "serialize_response",
    "error_response",
    "encode_body",
    "format_http_date",

    # Status codes
    "HTTPStatus",
    "reason_phrase",
    "is_valid_status",
    "status_allows_body",
]
