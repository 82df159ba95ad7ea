"""Tomcat access-log parser (standard ``localhost_access_log`` format)."""

from event_stream.http_request import resolve_request_body
from event_stream.models import OsDocument
from event_stream.parsers.base import QUOTED, to_int_fields, toggle
from event_stream.regex_engine import RegexService, compile_pattern

_TOMCAT_LOCALHOST_ACCESS = compile_pattern(
    r'^(?P<source__ip>[^ ]+) - - '
    r'\[(?P<extract_timestamp>[^\]]+)\] '
    r'"(?P<extract_httpRequest>' + QUOTED + r')" '
    r'(?:-|(?P<http__response__status_code>\d+))? '
    r'(?:-|(?P<http__response__bytes>\d+))?$'
)

PATTERNS = [_TOMCAT_LOCALHOST_ACCESS]


class TomcatAccessParser:
    """Parses ``event.original`` of documents tagged ``tomcatLog``."""

    exclusive = True

    def __init__(self, regex_service: RegexService):
        self._regex = regex_service

    def matches(self, document: OsDocument) -> bool:
        return toggle(document, "tomcatLog")

    def apply(self, document: OsDocument) -> None:
        extracted = self._regex.apply_regex(document, "event.original", PATTERNS)
        if not extracted:
            return

        to_int_fields(document, ("http.response.status_code", "http.response.bytes"))
        if "timestamp" in extracted.derived:
            document.set("@metadata.timestamp", extracted.derived["timestamp"])
        if "httpRequest" in extracted.derived:
            resolve_request_body(document, extracted.derived["httpRequest"])
