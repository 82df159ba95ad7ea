"""Stream handler: one invocation processes one batch end to end."""

import logging

from event_stream.bulk import OpenSearchBulkWriter, create_client
from event_stream.config import Config
from event_stream.fingerprints import load_registry
from event_stream.models import BatchSummary, OsDocument
from event_stream.parsers import default_parsers
from event_stream.regex_engine import RegexBudget, RegexService
from event_stream.summary import log_messages, log_summary
from event_stream.transformer import EcsTransformer

logger = logging.getLogger(__name__)


class StreamHandler:
    """Wires the transformer and bulk writer together for a single batch.

    Store-communication failures (BulkSubmissionError) propagate to the
    caller; everything else degrades per document.
    """

    def __init__(self, transformer: EcsTransformer, writer: OpenSearchBulkWriter):
        self._transformer = transformer
        self._writer = writer

    def transform(self, records: list[dict]) -> list[OsDocument]:
        logger.info("Transforming %d records to OS documents", len(records))
        return self._transformer.transform(records)

    def handle(self, records: list[dict]) -> BatchSummary:
        documents = self.transform(records)

        logger.info("Submitting %d documents to OS", len(documents))
        result = self._writer.bulk(documents)

        logger.info("%d documents added", len(result.documents))
        logger.info("%d documents failed", len(result.failures))

        summary = BatchSummary.from_result(result)
        log_summary(summary)
        log_messages(summary)
        return summary


def build_handler(config: Config, client=None) -> StreamHandler:
    """Build a StreamHandler from *config*; *client* overrides the OpenSearch client."""
    regex_service = RegexService(
        RegexBudget(
            max_input_length=config.regex_max_input_length,
            time_budget_ms=config.regex_time_budget_ms,
        )
    )
    transformer = EcsTransformer(
        registry=load_registry(config.fingerprints_file),
        parsers=default_parsers(regex_service),
        default_index=config.default_index,
        workers=config.workers,
    )
    writer = OpenSearchBulkWriter(client or create_client(config), config.timeout)
    return StreamHandler(transformer, writer)
