"""Transform orchestrator: raw envelopes in, classified and enriched documents out."""

import copy
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime

from event_stream.fieldpath import merge_defaults
from event_stream.fingerprints import FingerprintRegistry
from event_stream.identity import assign_identity
from event_stream.models import METADATA_KEY, OsDocument
from event_stream.parsers import Parser

logger = logging.getLogger(__name__)


class EcsTransformer:
    """Turns a batch of raw records into ECS-style OsDocuments.

    Per record: classify, merge ``@metadata`` defaults, run the parser
    chain, assign hash/id/index. Output order always matches input order.
    """

    def __init__(
        self,
        registry: FingerprintRegistry,
        parsers: list[Parser],
        default_index: str,
        workers: int = 1,
    ):
        self._registry = registry
        self._parsers = list(parsers)
        self._default_index = default_index
        self._workers = workers

    def transform(self, records: list[dict], now: datetime | None = None) -> list[OsDocument]:
        if self._workers <= 1 or len(records) <= 1:
            return [self.transform_one(r, now) for r in records]
        with ThreadPoolExecutor(max_workers=self._workers) as executor:
            # map() yields results in submission order
            return list(executor.map(lambda r: self.transform_one(r, now), records))

    def transform_one(self, record: dict, now: datetime | None = None) -> OsDocument:
        rule = self._registry.classify(record)
        data = copy.deepcopy(record) if isinstance(record, dict) else {"message": record}
        meta = data.get(METADATA_KEY)
        if not isinstance(meta, dict):
            meta = {}
            data[METADATA_KEY] = meta
        merge_defaults(meta, rule.metadata)

        document = OsDocument(data=data, category=rule.category)
        self._run_parsers(document)
        assign_identity(document, self._default_index, now)
        return document

    def _run_parsers(self, document: OsDocument) -> None:
        claimed_by = None
        for parser in self._parsers:
            if not parser.matches(document):
                continue
            name = type(parser).__name__
            if parser.exclusive:
                if claimed_by is not None:
                    logger.warning(
                        "%s skipped: document (%s) already claimed by %s",
                        name,
                        document.category,
                        claimed_by,
                    )
                    continue
                claimed_by = name
            try:
                parser.apply(document)
            except Exception:
                logger.warning(
                    "%s failed on %s document, continuing with the next parser",
                    name,
                    document.category,
                    exc_info=True,
                )
                continue
            logger.debug("%s applied to %s document", name, document.category)
