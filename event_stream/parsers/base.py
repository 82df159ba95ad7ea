"""Parser capability and shared helpers for access-log parsers."""

from typing import Protocol

from event_stream.models import OsDocument

# Fragment for a double-quoted field that may contain backslash escapes.
# Linear: each step consumes one plain char or one escape pair.
QUOTED = r'(?:[^"\\]|\\.)*'


class Parser(Protocol):
    """Two-method capability every parser in the chain implements.

    ``exclusive`` parsers claim the whole document: at most one of them is
    applied per document.
    """

    exclusive: bool

    def matches(self, document: OsDocument) -> bool:
        ...

    def apply(self, document: OsDocument) -> None:
        ...


def toggle(document: OsDocument, name: str) -> bool:
    return bool(document.metadata.get(name))


def to_int_fields(document: OsDocument, paths: tuple[str, ...]) -> None:
    """Convert captured digit strings at *paths* to ints, in place."""
    for path in paths:
        value = document.get(path)
        if isinstance(value, str) and value.isdigit():
            document.set(path, int(value))
