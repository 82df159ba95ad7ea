"""Document and bulk-result dataclasses shared across the pipeline."""

from dataclasses import dataclass, field
from typing import Any

from event_stream import fieldpath
from event_stream.errors import FrozenDocumentError

METADATA_KEY = "@metadata"


@dataclass
class OsDocument:
    """The mutable working unit built from one raw record.

    ``data`` is the nested field tree sent to the store (minus ``@metadata``).
    ``id``, ``hash`` and ``index`` are filled in once parsing is done.
    """

    data: dict = field(default_factory=dict)
    category: str = "unknown"
    id: str | None = None
    hash: str | None = None
    index: str | None = None
    _frozen: bool = field(default=False, repr=False, compare=False)

    @property
    def metadata(self) -> dict:
        meta = self.data.get(METADATA_KEY)
        return meta if isinstance(meta, dict) else {}

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, path: str, default: Any = None) -> Any:
        return fieldpath.get_path(self.data, path, default)

    def has(self, path: str) -> bool:
        return fieldpath.has_path(self.data, path)

    def set(self, path: str, value: Any) -> None:
        self._check_mutable()
        fieldpath.set_path(self.data, path, value)

    def freeze(self) -> None:
        self._frozen = True

    def source(self) -> dict:
        """Field tree as stored: everything except the ``@metadata`` subtree."""
        return {k: v for k, v in self.data.items() if k != METADATA_KEY}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "index": self.index,
            "hash": self.hash,
            "category": self.category,
            "data": self.data,
        }

    def _check_mutable(self) -> None:
        if self._frozen:
            raise FrozenDocumentError(
                f"document {self.id or '<no id>'} was already submitted"
            )


@dataclass(frozen=True)
class BulkFailure:
    document: OsDocument
    status: int | None
    error: str


@dataclass
class BulkResult:
    """Positional partition of a submitted batch into added and failed documents."""

    documents: list[OsDocument] = field(default_factory=list)
    failures: list[BulkFailure] = field(default_factory=list)

    @property
    def submitted(self) -> int:
        return len(self.documents) + len(self.failures)


@dataclass(frozen=True)
class BatchSummary:
    submitted: int = 0
    added: int = 0
    failed: int = 0
    messages: tuple[str, ...] = ()

    @classmethod
    def from_result(cls, result: BulkResult) -> "BatchSummary":
        return cls(
            submitted=result.submitted,
            added=len(result.documents),
            failed=len(result.failures),
            messages=tuple(f.error for f in result.failures),
        )

    def to_dict(self) -> dict:
        return {
            "submitted": self.submitted,
            "added": self.added,
            "failed": self.failed,
            "messages": list(self.messages),
        }
