"""Expands dotted top-level keys (``"log.file.name": ...``) into nested fields."""

from event_stream.fieldpath import split_path
from event_stream.models import METADATA_KEY, OsDocument
from event_stream.parsers.base import toggle


class KeyAsPathParser:
    exclusive = False

    def matches(self, document: OsDocument) -> bool:
        return toggle(document, "keyAsPath")

    def apply(self, document: OsDocument) -> None:
        dotted = [
            key for key in document.data
            if "." in key and key != METADATA_KEY and not key.startswith("@") and split_path(key)
        ]
        for key in dotted:
            value = document.data.pop(key)
            document.set(key, value)
