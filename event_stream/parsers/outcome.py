"""Derives ``event.outcome`` from the HTTP response status."""

from event_stream.models import OsDocument
from event_stream.parsers.base import toggle


def outcome_from_status(status: int) -> str:
    return "success" if status < 400 else "failure"


class HttpStatusOutcomeParser:
    exclusive = False

    def matches(self, document: OsDocument) -> bool:
        return toggle(document, "httpStatusOutcome")

    def apply(self, document: OsDocument) -> None:
        if document.has("event.outcome"):
            return
        status = document.get("http.response.status_code")
        try:
            code = int(status)
        except (TypeError, ValueError):
            return
        document.set("event.outcome", outcome_from_status(code))
