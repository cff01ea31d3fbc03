"""Content negotiation: maps handler return values to Response objects.

isinstance-based dispatch through ``match``, no magic, fully
predictable. ``negotiate`` implements the HTML convention and
``negotiate_json`` the JSON-only convention; both share the tuple
forms ``(value, status)`` and ``(value, status, headers)``.
"""

import html
import json as json_module
from typing import Any

from switchyard.http.response import Response

_HTML = "text/html; charset=utf-8"
_JSON = "application/json; charset=utf-8"


def _json_response(payload: Any) -> Response:
    return Response(body=json_module.dumps(payload, default=str), content_type=_JSON)


def negotiate(value: Any) -> Response:
    """Convert a handler's return value to an HTML-first Response.

    Dispatch order:

    1. ``Response``               -> pass through
    2. ``str``                    -> 200, text/html
    3. ``bytes``                  -> 200, application/octet-stream
    4. ``dict`` / ``list``        -> 200, application/json
    5. ``None``                   -> 200, empty body
    6. ``int`` / ``float`` / ``bool`` -> 200, text/html with the escaped value
    7. ``(value, int)``           -> negotiate value, override status
    8. ``(value, int, dict)``     -> negotiate value, override status + headers
    """
    match value:
        case Response():
            return value
        case str():
            return Response(body=value, content_type=_HTML)
        case bytes():
            return Response(body=value, content_type="application/octet-stream")
        case dict() | list():
            return _json_response(value)
        case None:
            return Response(body="", content_type=_HTML)
        case bool() | int() | float():
            return Response(body=html.escape(str(value)), content_type=_HTML)
        case (inner, int() as status):
            return negotiate(inner).with_status(status)
        case (inner, int() as status, dict() as headers):
            return negotiate(inner).with_status(status).with_headers(headers)
        case _:
            msg = (
                f"Cannot convert {type(value).__name__} to a response. "
                "Return str, bytes, dict, list, a scalar, or a Response."
            )
            raise TypeError(msg)


def negotiate_json(value: Any) -> Response:
    """Convert a handler's return value to a JSON Response.

    ``Response`` and ``bytes`` pass through, ``dict`` and ``list`` are
    encoded as they are, and every other value (strings, numbers,
    ``None``) is wrapped as ``{"data": value}``.
    """
    match value:
        case Response():
            return value
        case bytes():
            return Response(body=value, content_type="application/octet-stream")
        case dict() | list():
            return _json_response(value)
        case (inner, int() as status):
            return negotiate_json(inner).with_status(status)
        case (inner, int() as status, dict() as headers):
            return negotiate_json(inner).with_status(status).with_headers(headers)
        case str() | bool() | int() | float() | None:
            return _json_response({"data": value})
        case _:
            msg = (
                f"Cannot convert {type(value).__name__} to a JSON response. "
                "Return dict, list, a scalar, or a Response."
            )
            raise TypeError(msg)
