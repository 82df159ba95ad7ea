"""Tests for the transform orchestrator."""

import copy
import logging
from unittest.mock import MagicMock

from event_stream import fingerprints
from event_stream.fingerprints import FingerprintRegistry, FingerprintRule, default_registry
from event_stream.parsers import default_parsers
from event_stream.transformer import EcsTransformer
from samples import FIXED_NOW, JSONRPC_LINE, apache_record, metric_record, tomcat_record


class TestTransform:
    def test_apache_end_to_end(self, transformer):
        [doc] = transformer.transform([apache_record()])
        assert doc.category == fingerprints.APACHE_ACCESS_LOGS
        assert doc.get("http.request.method") == "GET"
        assert doc.get("url.original") == "/foo"
        assert doc.get("http.version") == "1.1"
        assert not doc.has("http.request.body")

    def test_apache_enrichment(self, transformer):
        [doc] = transformer.transform([apache_record()])
        assert doc.get("@timestamp") == "2025-09-01T10:00:00.000-07:00"
        assert doc.get("event.created") == "2025-09-01T17:00:05.000Z"
        assert doc.get("event.outcome") == "success"
        assert doc.get("url.path") == "/foo"
        assert doc.index == "nrm-logs-access-2025.09.01"
        assert doc.hash is not None
        assert doc.id is not None

    def test_jsonrpc_end_to_end(self, transformer):
        [doc] = transformer.transform([apache_record(JSONRPC_LINE)])
        assert doc.get("network.protocol.name") == "jsonrpc"
        assert doc.get("event.outcome") == "failure"
        assert not doc.has("url")

    def test_tomcat_record(self, transformer):
        [doc] = transformer.transform([tomcat_record()])
        assert doc.category == fingerprints.TOMCAT_ACCESS_LOGS
        assert doc.get("http.request.method") == "POST"
        assert doc.index == "nrm-access-internal-2025.09.02"

    def test_metric_record_untouched_by_parsers(self, transformer):
        [doc] = transformer.transform([metric_record()])
        assert doc.category == fingerprints.METRICS
        assert doc.get("host.cpu.usage") == 0.42
        assert doc.index == "nrm-metrics-2025.09.03"
        assert doc.id is not None

    def test_unknown_record_uses_default_index(self, transformer):
        [doc] = transformer.transform([{"message": "hello"}], now=FIXED_NOW)
        assert doc.category == fingerprints.UNKNOWN
        assert doc.index == "nrm-unknown-2025.09.01"
        assert doc.id is None

    def test_output_order_matches_input(self, transformer):
        records = [apache_record(sequence=i) for i in range(5)] + [metric_record()]
        docs = transformer.transform(records)
        assert [d.get("event.sequence") for d in docs[:5]] == [0, 1, 2, 3, 4]
        assert docs[5].category == fingerprints.METRICS

    def test_empty_batch(self, transformer):
        assert transformer.transform([]) == []

    def test_input_record_not_mutated(self, transformer):
        record = apache_record()
        snapshot = copy.deepcopy(record)
        transformer.transform([record])
        assert record == snapshot


class TestMetadataDefaults:
    def test_defaults_merged(self, transformer):
        [doc] = transformer.transform([apache_record()])
        assert doc.metadata["apacheAccessLog"] is True
        assert doc.metadata["index"] == "nrm-logs-access-<%=YYYY.MM.DD=%>"

    def test_record_values_not_overwritten(self, transformer):
        record = apache_record()
        record["@metadata"] = {"index": "custom-<%=YYYY=%>", "urlExplode": False}
        [doc] = transformer.transform([record])
        assert doc.index == "custom-2025"
        assert not doc.has("url.path")

    def test_metadata_excluded_from_source(self, transformer):
        [doc] = transformer.transform([apache_record()])
        assert "@metadata" not in doc.source()


class TestIdempotence:
    def test_same_batch_same_ids(self, transformer):
        records = [apache_record(sequence=i) for i in range(3)]
        first = [d.id for d in transformer.transform(records)]
        second = [d.id for d in transformer.transform(records)]
        assert first == second
        assert len(set(first)) == 3

    def test_parallel_transform_matches_sequential(self, regex_service):
        records = [apache_record(sequence=i) for i in range(20)] + [tomcat_record()]
        sequential = EcsTransformer(default_registry(), default_parsers(regex_service), "idx")
        parallel = EcsTransformer(default_registry(), default_parsers(regex_service), "idx",
                                  workers=4)
        assert [d.id for d in parallel.transform(records)] == \
            [d.id for d in sequential.transform(records)]


class TestParserExclusivity:
    def _parser(self, exclusive):
        parser = MagicMock()
        parser.exclusive = exclusive
        parser.matches.return_value = True
        return parser

    def test_only_first_exclusive_parser_applies(self):
        first, second, enricher = self._parser(True), self._parser(True), self._parser(False)
        registry = FingerprintRegistry([FingerprintRule("unknown")])
        EcsTransformer(registry, [first, second, enricher], "idx").transform([{}])
        first.apply.assert_called_once()
        second.apply.assert_not_called()
        enricher.apply.assert_called_once()

    def test_non_matching_parser_skipped(self):
        parser = self._parser(True)
        parser.matches.return_value = False
        registry = FingerprintRegistry([FingerprintRule("unknown")])
        EcsTransformer(registry, [parser], "idx").transform([{}])
        parser.apply.assert_not_called()


class TestFaultIsolation:
    def test_failing_parser_does_not_drop_batch(self, caplog):
        broken = MagicMock()
        broken.exclusive = False
        broken.matches.return_value = True
        broken.apply.side_effect = RuntimeError("boom")
        after = MagicMock()
        after.exclusive = False
        after.matches.return_value = True
        registry = FingerprintRegistry([FingerprintRule("unknown")])

        with caplog.at_level(logging.WARNING, logger="event_stream"):
            docs = EcsTransformer(registry, [broken, after], "idx").transform([{}, {}])

        assert len(docs) == 2
        assert after.apply.call_count == 2
        assert any("failed on unknown document" in r.getMessage() for r in caplog.records)

    def test_key_of_only_dots(self, transformer):
        record = apache_record()
        record["."] = "x"
        docs = transformer.transform([metric_record(), record])
        assert len(docs) == 2
        assert docs[1].get("http.request.method") == "GET"
        assert docs[1].data["."] == "x"

    def test_non_string_identity_metadata(self, transformer):
        record = metric_record()
        record["@metadata"] = {"hash": 123, "docId": ["kinesis.eventID"], "index": 7}
        [doc] = transformer.transform([record])
        assert doc.hash is None
        assert doc.id is None
        assert doc.index == "nrm-unknown-2025.09.03"

    def test_non_string_timestamp_format(self, transformer):
        record = apache_record()
        record["@metadata"] = {"timestampFormat": 5}
        [doc] = transformer.transform([record])
        assert doc.get("@timestamp") == "2025-09-01T17:00:05.000Z"
        assert doc.get("http.request.method") == "GET"
