"""Bulk writer: one bulk request per batch, per-document result accounting."""

import json
import logging
from itertools import zip_longest

from opensearchpy import OpenSearch
from opensearchpy.exceptions import OpenSearchException

from event_stream.config import Config
from event_stream.errors import BulkSubmissionError
from event_stream.models import BulkFailure, BulkResult, OsDocument

logger = logging.getLogger(__name__)


def create_client(config: Config) -> OpenSearch:
    """OpenSearch client without internal retries; retry policy lives upstream."""
    auth = (config.opensearch_user, config.opensearch_pass) if config.opensearch_user else None
    return OpenSearch(
        hosts=[config.opensearch_url],
        http_auth=auth,
        timeout=config.timeout,
        max_retries=0,
        retry_on_timeout=False,
    )


def build_bulk_body(documents: list[OsDocument]) -> str:
    """Newline-delimited (action, source) pairs, terminated by a newline."""
    lines = []
    for doc in documents:
        action = {"_index": doc.index}
        if doc.id:
            action["_id"] = doc.id
        lines.append(json.dumps({"index": action}, separators=(",", ":")))
        lines.append(json.dumps(doc.source(), separators=(",", ":"), default=str))
    return "\n".join(lines) + "\n"


def _describe_error(item: dict) -> str:
    error = item.get("error")
    status = item.get("status")
    if isinstance(error, dict):
        detail = f"{error.get('type', 'error')}: {error.get('reason', '')}".rstrip(": ")
    elif error:
        detail = str(error)
    else:
        detail = "rejected"
    return f"{item.get('_index', '?')}/{item.get('_id', '?')} [{status}] {detail}"


class OpenSearchBulkWriter:
    """Submits a batch in a single bulk call and partitions the response."""

    def __init__(self, client: OpenSearch, timeout: float):
        self._client = client
        self._timeout = timeout

    def bulk(self, documents: list[OsDocument]) -> BulkResult:
        if not documents:
            return BulkResult()

        for doc in documents:
            doc.freeze()

        try:
            response = self._client.bulk(
                body=build_bulk_body(documents), request_timeout=self._timeout
            )
        except OpenSearchException as exc:
            raise BulkSubmissionError(
                f"bulk request for {len(documents)} documents failed: {exc}",
                submitted=len(documents),
            ) from exc

        return self.partition(documents, response)

    @staticmethod
    def partition(documents: list[OsDocument], response: dict) -> BulkResult:
        """Match response items to *documents* by position.

        A document without a corresponding error item counts as added.
        """
        result = BulkResult()
        items = []
        if isinstance(response, dict):
            items = response.get("items") or []
        for doc, entry in zip_longest(documents, items[: len(documents)]):
            item = next(iter(entry.values()), {}) if isinstance(entry, dict) else {}
            status = item.get("status")
            failed = bool(item.get("error")) or (isinstance(status, int) and status >= 300)
            if failed:
                result.failures.append(BulkFailure(doc, status, _describe_error(item)))
            else:
                result.documents.append(doc)
        return result
