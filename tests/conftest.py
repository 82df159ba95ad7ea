from unittest.mock import MagicMock

import pytest

from event_stream.bulk import OpenSearchBulkWriter
from event_stream.fingerprints import default_registry
from event_stream.handler import StreamHandler
from event_stream.parsers import default_parsers
from event_stream.regex_engine import RegexService
from event_stream.transformer import EcsTransformer
from samples import bulk_response


@pytest.fixture
def regex_service():
    return RegexService()


@pytest.fixture
def transformer(regex_service):
    return EcsTransformer(
        registry=default_registry(),
        parsers=default_parsers(regex_service),
        default_index="nrm-unknown-<%=YYYY.MM.DD=%>",
    )


@pytest.fixture
def os_client():
    """Stand-in for the OpenSearch client; every item succeeds by default."""
    client = MagicMock()

    def _bulk(body, request_timeout=None):
        actions = [line for line in body.split("\n") if line][::2]
        return bulk_response([201] * len(actions))

    client.bulk.side_effect = _bulk
    return client


@pytest.fixture
def handler(transformer, os_client):
    return StreamHandler(transformer, OpenSearchBulkWriter(os_client, timeout=5.0))
