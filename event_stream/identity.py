"""Document identity: content hash, document id and destination index name.

Index templates mix two token styles::

    nrm-logs-<!=labels.application=!>-<%=YYYY.MM.DD=%>

``<%= ... =%>`` holds date tokens (YYYY, MM, DD) rendered from the
document's ``@timestamp``; ``<!= ... =!>`` holds a field path whose value
is substituted as-is.
"""

import hashlib
import json
import re
from datetime import datetime, timezone
from typing import Any

from event_stream.models import OsDocument

HASH_SEPARATOR = "|"
MISSING_TOKEN = "unknown"

_DATE_TOKEN_RE = re.compile(r"<%=\s*([^%]*?)\s*=%>")
_FIELD_TOKEN_RE = re.compile(r"<!=\s*([^!]*?)\s*=!>")
_DATE_PARTS = (("YYYY", "%Y"), ("MM", "%m"), ("DD", "%d"))


def parse_field_list(fields: Any) -> list[str]:
    """``"a.b, c"`` -> ``["a.b", "c"]``. Anything but a string yields no paths."""
    if not isinstance(fields, str):
        return []
    return [part.strip() for part in fields.split(",") if part.strip()]


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, sort_keys=True, separators=(",", ":"))
    return str(value)


def hash_fields(document: OsDocument, paths: list[str]) -> str | None:
    """SHA-256 over the ``|``-joined values at *paths*; None if no path resolves."""
    if not any(document.has(p) for p in paths):
        return None
    joined = HASH_SEPARATOR.join(_stringify(document.get(p)) for p in paths)
    return hashlib.sha256(joined.encode("utf-8")).hexdigest()


def document_time(document: OsDocument, now: datetime | None = None) -> datetime:
    raw = document.get("@timestamp")
    if isinstance(raw, str):
        try:
            dt = datetime.fromisoformat(raw.replace("Z", "+00:00"))
            return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)
        except ValueError:
            pass
    return now or datetime.now(timezone.utc)


def render_index(template: str, document: OsDocument, now: datetime | None = None) -> str:
    """Render *template* for *document*. Index names are lower-cased."""
    when = document_time(document, now)

    def _date(m: re.Match) -> str:
        token = m.group(1)
        for name, directive in _DATE_PARTS:
            token = token.replace(name, when.strftime(directive))
        return token

    def _field(m: re.Match) -> str:
        value = document.get(m.group(1))
        return MISSING_TOKEN if value is None or value == "" else _stringify(value)

    rendered = _FIELD_TOKEN_RE.sub(_field, template)
    rendered = _DATE_TOKEN_RE.sub(_date, rendered)
    return rendered.lower()


def assign_identity(
    document: OsDocument, default_index: str, now: datetime | None = None
) -> None:
    """Fill ``hash``, ``id`` and ``index`` from the document's ``@metadata``.

    The hash is written to ``event.hash`` first, so ``docId`` lists may
    reference it.
    """
    meta = document.metadata

    hash_paths = parse_field_list(meta.get("hash"))
    if hash_paths:
        document.hash = hash_fields(document, hash_paths)
        if document.hash is not None:
            document.set("event.hash", document.hash)

    id_paths = parse_field_list(meta.get("docId"))
    if id_paths:
        document.id = hash_fields(document, id_paths)

    template = meta.get("index")
    if not isinstance(template, str) or not template:
        template = default_index
    document.index = render_index(template, document, now)
