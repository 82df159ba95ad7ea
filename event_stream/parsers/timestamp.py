"""Converts the raw timestamp captured by an access-log parser into ``@timestamp``."""

import logging
from datetime import datetime, timezone

from event_stream.models import OsDocument

logger = logging.getLogger(__name__)


class TimestampParser:
    """Parses ``@metadata.timestamp`` with ``@metadata.timestampFormat``.

    Formats without a UTC offset are read as UTC. A record's own
    ``@timestamp`` (the shipper's read time) moves to ``event.created``.
    """

    exclusive = False

    def matches(self, document: OsDocument) -> bool:
        fmt = document.metadata.get("timestampFormat")
        return isinstance(fmt, str) and bool(fmt)

    def apply(self, document: OsDocument) -> None:
        meta = document.metadata
        raw, fmt = meta.get("timestamp"), meta.get("timestampFormat")
        if not isinstance(raw, str) or not isinstance(fmt, str):
            return
        try:
            dt = datetime.strptime(raw, fmt)
        except ValueError:
            logger.debug("Timestamp %r does not match format %r", raw, fmt)
            return
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)

        previous = document.get("@timestamp")
        if previous is not None and not document.has("event.created"):
            document.set("event.created", previous)
        document.set("@timestamp", dt.isoformat(timespec="milliseconds"))
