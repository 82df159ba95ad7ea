"""URL normalisation parsers: collapse repeated slashes, split into ECS url fields."""

import posixpath
import re
from urllib.parse import urlsplit

from event_stream.models import OsDocument
from event_stream.parsers.base import toggle

_REPEATED_SLASHES = re.compile(r"(?<!:)/{2,}")


class DeslashParser:
    exclusive = False

    def matches(self, document: OsDocument) -> bool:
        return toggle(document, "deslash")

    def apply(self, document: OsDocument) -> None:
        original = document.get("url.original")
        if not isinstance(original, str):
            return
        collapsed = _REPEATED_SLASHES.sub("/", original)
        if collapsed != original:
            document.set("url.original", collapsed)


class UrlExplodeParser:
    """Splits ``url.original`` into path, query, fragment and extension."""

    exclusive = False

    def matches(self, document: OsDocument) -> bool:
        return toggle(document, "urlExplode")

    def apply(self, document: OsDocument) -> None:
        original = document.get("url.original")
        if not isinstance(original, str):
            return
        try:
            parts = urlsplit(original)
            port = parts.port
        except ValueError:
            return

        if parts.scheme:
            document.set("url.scheme", parts.scheme)
        if parts.hostname:
            document.set("url.domain", parts.hostname)
        if port is not None:
            document.set("url.port", port)
        if parts.path:
            document.set("url.path", parts.path)
            ext = posixpath.splitext(posixpath.basename(parts.path))[1]
            if len(ext) > 1:
                document.set("url.extension", ext[1:].lower())
        if parts.query:
            document.set("url.query", parts.query)
        if parts.fragment:
            document.set("url.fragment", parts.fragment)
