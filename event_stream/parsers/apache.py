"""Apache access-log parser.

Handles the combined log format (with an optional trailing time-taken
field) and the NRM load balancer format, whose request field may carry an
escaped request body instead of a request line.

reference:
- https://github.com/elastic/beats/tree/master/filebeat/module/apache/access
"""

import re

from event_stream.http_request import resolve_request_body
from event_stream.models import OsDocument
from event_stream.parsers.base import QUOTED, to_int_fields, toggle
from event_stream.regex_engine import RegexService, compile_pattern

_NRM_LB_ACCESS = compile_pattern(
    r'^v(?P<apache__access__format_version>[\d.]+) '
    r'(?P<apache__access__format_date>\d+) '
    r'"(?P<server__address>[^"]*)" '
    r'"(?P<source__address>[^"]*)" '
    r'\[(?P<extract_timestamp>[^\]]+)\] '
    r'"(?P<extract_httpRequest>' + QUOTED + r')" '
    r'(?:-|(?P<http__response__status_code>\d+)) '
    r'(?P<http__request__bytes>\d+) bytes '
    r'(?P<http__response__bytes>\d+) bytes '
    r'"(?:-|(?P<http__request__referrer>' + QUOTED + r'))" '
    r'"(?:-|(?P<user_agent__original>' + QUOTED + r'))" '
    r'(?P<apache__access__time_taken_ms>\d+) ms, '
    r'"(?P<extract_tlsVersion>[^"]*)" '
    r'"(?P<tls__cipher>[^"]*)"$'
)

_COMBINED_ACCESS = compile_pattern(
    r'^(?P<source__address>\S+) \S+ (?:-|(?P<user__name>\S+)) '
    r'\[(?P<extract_timestamp>[^\]]+)\] '
    r'"(?P<extract_httpRequest>' + QUOTED + r')" '
    r'(?:-|(?P<http__response__status_code>\d+)) '
    r'(?:-|(?P<http__response__body__bytes>\d+))'
    r'(?: "(?:-|(?P<http__request__referrer>' + QUOTED + r'))"'
    r' "(?:-|(?P<user_agent__original>' + QUOTED + r'))")?'
    r'(?: (?P<apache__access__time_taken>\d+))?$'
)

PATTERNS = [_NRM_LB_ACCESS, _COMBINED_ACCESS]

_INT_FIELDS = (
    "http.response.status_code",
    "http.response.body.bytes",
    "http.response.bytes",
    "http.request.bytes",
    "apache.access.time_taken",
    "apache.access.time_taken_ms",
)

_TLS_VERSION_RE = re.compile(r"^(?P<protocol>[A-Za-z]+?)v?(?P<version>\d[\d.]*)$")


class ApacheAccessParser:
    """Parses ``event.original`` of documents tagged ``apacheAccessLog``."""

    exclusive = True

    def __init__(self, regex_service: RegexService):
        self._regex = regex_service

    def matches(self, document: OsDocument) -> bool:
        return toggle(document, "apacheAccessLog")

    def apply(self, document: OsDocument) -> None:
        extracted = self._regex.apply_regex(document, "event.original", PATTERNS)
        if not extracted:
            return

        to_int_fields(document, _INT_FIELDS)
        timestamp = extracted.derived.get("timestamp")
        if timestamp is not None:
            document.set("@metadata.timestamp", timestamp)
        request = extracted.derived.get("httpRequest")
        if request is not None:
            resolve_request_body(document, request)
        tls = extracted.derived.get("tlsVersion")
        if tls:
            _set_tls_version(document, tls)


def _set_tls_version(document: OsDocument, raw: str) -> None:
    m = _TLS_VERSION_RE.match(raw)
    if m:
        document.set("tls.version_protocol", m.group("protocol").lower())
        document.set("tls.version", m.group("version"))
    else:
        document.set("tls.version", raw)
