"""Parser chain registry.

Order matters: dotted keys are expanded before the access-log parsers read
``event.original``, and the URL/outcome enrichers run on what those
parsers extracted.
"""

from event_stream.parsers.apache import ApacheAccessParser
from event_stream.parsers.base import Parser
from event_stream.parsers.key_as_path import KeyAsPathParser
from event_stream.parsers.outcome import HttpStatusOutcomeParser
from event_stream.parsers.timestamp import TimestampParser
from event_stream.parsers.tomcat import TomcatAccessParser
from event_stream.parsers.url import DeslashParser, UrlExplodeParser
from event_stream.regex_engine import RegexService


def default_parsers(regex_service: RegexService) -> list[Parser]:
    return [
        KeyAsPathParser(),
        ApacheAccessParser(regex_service),
        TomcatAccessParser(regex_service),
        TimestampParser(),
        DeslashParser(),
        UrlExplodeParser(),
        HttpStatusOutcomeParser(),
    ]


__all__ = [
    "ApacheAccessParser",
    "DeslashParser",
    "HttpStatusOutcomeParser",
    "KeyAsPathParser",
    "Parser",
    "TimestampParser",
    "TomcatAccessParser",
    "UrlExplodeParser",
    "default_parsers",
]
