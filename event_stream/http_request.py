"""Decides whether a captured request token is an HTTP request line or a body."""

import json
import re

from event_stream.models import OsDocument

_REQUEST_LINE_RE = re.compile(r"^[A-Z]+\s+\S.*\s+HTTP/\d")
_VERSION_PREFIX = "HTTP/"


def resolve_request_body(document: OsDocument, raw_token: str) -> None:
    """Populate either the request-line fields or the body content, never both.

    ``GET /foo HTTP/1.1`` sets method, ``url.original`` and protocol versions.
    Anything else is un-escaped and stored as ``http.request.body.content``;
    a JSON-RPC body also sets ``network.protocol.*``.
    """
    value = raw_token.strip()
    if _REQUEST_LINE_RE.match(value):
        _set_request_line(document, value)
    else:
        _set_body(document, value)


def _set_request_line(document: OsDocument, value: str) -> None:
    first = _first_space(value)
    last = _last_space(value)
    method = value[:first]
    target = value[first:last].strip()
    marker = value[last:].strip()

    document.set("http.request.method", method)
    document.set("url.original", target)
    if marker.upper().startswith(_VERSION_PREFIX):
        version = marker[len(_VERSION_PREFIX):]
        document.set("network.protocol.name", "http")
        document.set("network.protocol.version", version)
        document.set("http.version", version)


def _first_space(value: str) -> int:
    for i, ch in enumerate(value):
        if ch.isspace():
            return i
    return len(value)


def _last_space(value: str) -> int:
    for i in range(len(value) - 1, -1, -1):
        if value[i].isspace():
            return i
    return len(value)


def _set_body(document: OsDocument, value: str) -> None:
    content = value.replace('\\"', '"').replace("\\n", "\n")
    document.set("http.request.body.content", content)

    if not (content.startswith("{") and '"jsonrpc"' in content):
        return
    try:
        body = json.loads(content)
    except ValueError:
        return
    if isinstance(body, dict) and body.get("jsonrpc") is not None:
        document.set("network.protocol.name", "jsonrpc")
        document.set("network.protocol.version", str(body["jsonrpc"]))
