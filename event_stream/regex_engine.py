"""Regex extraction engine.

Capture group names encode destination paths: ``__`` separates path
segments, so ``http__request__method`` lands at ``http.request.method``.
Groups prefixed with ``extract_`` are derived values (a raw timestamp, an
embedded request line) that the calling parser post-processes; they are
returned to the caller and never merged into the document.

Access-log lines are attacker-influenced. Patterns used here must be
anchored and built from negated character classes, and every application
runs under a RegexBudget.
"""

import logging
import re
import time
from dataclasses import dataclass, field

from event_stream.models import OsDocument

logger = logging.getLogger(__name__)

DERIVED_PREFIX = "extract_"
PATH_SEPARATOR = "__"


@dataclass(frozen=True)
class RegexBudget:
    max_input_length: int = 65536
    time_budget_ms: float = 50.0


@dataclass
class ExtractedFields:
    fields: dict = field(default_factory=dict)
    derived: dict = field(default_factory=dict)
    pattern_index: int | None = None

    @property
    def matched(self) -> bool:
        return self.pattern_index is not None

    def __bool__(self) -> bool:
        return self.matched


def group_to_path(name: str) -> str:
    return name.replace(PATH_SEPARATOR, ".")


class RegexService:
    """Applies ordered candidate patterns to a document field."""

    def __init__(self, budget: RegexBudget | None = None):
        self._budget = budget or RegexBudget()

    def apply_regex(
        self, document: OsDocument, field_path: str, patterns: list[re.Pattern]
    ) -> ExtractedFields:
        """Match *patterns* in order against ``document[field_path]``.

        The first matching pattern's literal captures are written into the
        document; its ``extract_`` captures are returned in ``derived``.
        Returns an empty result when nothing matches.
        """
        value = document.get(field_path)
        if not isinstance(value, str):
            logger.debug("Field %s absent or not a string, skipping", field_path)
            return ExtractedFields()

        if len(value) > self._budget.max_input_length:
            logger.warning(
                "Field %s is %d chars, over the %d char limit; not matched",
                field_path,
                len(value),
                self._budget.max_input_length,
            )
            return ExtractedFields()

        deadline = time.monotonic() + self._budget.time_budget_ms / 1000.0
        for idx, pattern in enumerate(patterns):
            if idx > 0 and time.monotonic() >= deadline:
                logger.warning(
                    "Regex budget of %.0f ms spent on %s after %d pattern(s)",
                    self._budget.time_budget_ms,
                    field_path,
                    idx,
                )
                return ExtractedFields()

            m = pattern.match(value)
            if not m:
                continue

            result = ExtractedFields(pattern_index=idx)
            for name, captured in m.groupdict().items():
                if captured is None:
                    continue
                if name.startswith(DERIVED_PREFIX):
                    result.derived[name[len(DERIVED_PREFIX):]] = captured
                else:
                    path = group_to_path(name)
                    result.fields[path] = captured
                    document.set(path, captured)
            return result

        logger.debug("No pattern matched %s (%d tried)", field_path, len(patterns))
        return ExtractedFields()


def compile_pattern(source: str) -> re.Pattern:
    """Compile *source*, rejecting patterns that are not start-anchored."""
    if not source.startswith("^"):
        raise ValueError(f"pattern must be anchored with '^': {source[:40]}")
    return re.compile(source)
