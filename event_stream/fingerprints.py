"""Fingerprint registry: ordered structural rules that classify raw records.

Rules are evaluated top to bottom and the first match wins. The last rule
must be the catch-all (``predicate is None``), so every record gets a
category and a set of ``@metadata`` defaults.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

import jsonschema
import yaml

from event_stream import fieldpath
from event_stream.errors import FingerprintConfigError

logger = logging.getLogger(__name__)

APACHE_ACCESS_LOGS = "apache_access_logs"
TOMCAT_ACCESS_LOGS = "tomcat_access_logs"
TOMCAT_LOCALHOST_LOGS = "tomcat_localhost_logs"
TOMCAT_CATALINA_LOGS = "tomcat_catalina_logs"
VAULT_AUDIT_LOGS = "vault_audit_logs"
METRICS = "metrics"
UNKNOWN = "unknown"

APACHE_TIME_FORMAT = "%d/%b/%Y:%H:%M:%S %z"
TOMCAT_TIME_FORMAT = "%d-%b-%Y %H:%M:%S.%f"

_ACCESS_HASH = "host.hostname,log.file.name,event.sequence,event.original"
_ACCESS_DOC_ID = "log.file.name,event.sequence,event.hash"

RULES_SCHEMA = {
    "type": "array",
    "minItems": 1,
    "items": {
        "type": "object",
        "required": ["category"],
        "properties": {
            "category": {"type": "string", "minLength": 1},
            "fingerprint": {"type": ["object", "null"]},
            "metadata": {
                "type": "object",
                "properties": {
                    "hash": {"type": "string"},
                    "docId": {"type": "string"},
                    "index": {"type": "string"},
                    "timestampFormat": {"type": "string"},
                },
            },
        },
        "additionalProperties": False,
    },
}


@dataclass(frozen=True)
class FingerprintRule:
    category: str
    predicate: dict | None = None
    metadata: dict = field(default_factory=dict)

    @property
    def is_catch_all(self) -> bool:
        return self.predicate is None

    def matches(self, record: dict) -> bool:
        if self.predicate is None:
            return True
        if not isinstance(record, dict):
            return False
        return all(
            _leaf_matches(fieldpath.get_path(record, path, _ABSENT), expected)
            for path, expected in _flatten(self.predicate)
        )


_ABSENT = object()


def _flatten(predicate: dict, prefix: str = "") -> list[tuple[str, Any]]:
    leaves = []
    for key, value in predicate.items():
        path = f"{prefix}.{key}" if prefix else key
        if isinstance(value, dict):
            leaves.extend(_flatten(value, path))
        else:
            leaves.append((path, value))
    return leaves


def _leaf_matches(actual: Any, expected: Any) -> bool:
    if actual is _ABSENT:
        return False
    if isinstance(expected, list):
        if isinstance(actual, list):
            return all(item in actual for item in expected)
        return actual in expected
    return actual == expected


class FingerprintRegistry:
    """Ordered, immutable rule list with a guaranteed catch-all."""

    def __init__(self, rules):
        rules = tuple(rules)
        if not rules:
            raise FingerprintConfigError("fingerprint registry is empty")
        catch_alls = [i for i, r in enumerate(rules) if r.is_catch_all]
        if catch_alls != [len(rules) - 1]:
            raise FingerprintConfigError(
                "exactly one catch-all rule is required and it must be last"
            )
        self._rules = rules

    @property
    def rules(self) -> tuple[FingerprintRule, ...]:
        return self._rules

    def classify(self, record: dict) -> FingerprintRule:
        """Return the first rule whose predicate matches *record*."""
        for rule in self._rules:
            if rule.matches(record):
                return rule
        # Unreachable: the constructor guarantees a trailing catch-all.
        return self._rules[-1]

    def __len__(self) -> int:
        return len(self._rules)


def _access_defaults(**toggles) -> dict:
    meta = {
        "hash": _ACCESS_HASH,
        "docId": _ACCESS_DOC_ID,
        "appClassification": True,
        "deslash": True,
        "urlExplode": True,
        "geoIp": True,
        "httpStatusOutcome": True,
        "threatPhp": True,
        "userAgent": True,
        "keyAsPath": True,
    }
    meta.update(toggles)
    return meta


def _web(dataset: str) -> dict:
    return {"event": {"kind": "event", "category": "web", "dataset": dataset}}


def _metric(dataset: str) -> dict:
    return {"event": {"kind": "metric", "dataset": dataset}}


DEFAULT_RULES = (
    FingerprintRule(
        APACHE_ACCESS_LOGS,
        _web("apache.access"),
        _access_defaults(
            index="nrm-logs-access-<%=YYYY.MM.DD=%>",
            timestampFormat=APACHE_TIME_FORMAT,
            apacheAccessLog=True,
        ),
    ),
    FingerprintRule(
        APACHE_ACCESS_LOGS,
        _web("express.access"),
        {
            "hash": "@timestamp,host.hostname,event.sequence,event.original",
            "docId": "labels.project,service.name,event.sequence,event.hash",
            "index": "nrm-logs-access-<%=YYYY.MM.DD=%>",
            "geoIp": True,
            "httpStatusOutcome": True,
            "userAgent": True,
        },
    ),
    FingerprintRule(
        TOMCAT_ACCESS_LOGS,
        _web("tomcat.access"),
        _access_defaults(
            index="nrm-access-internal-<%=YYYY.MM.DD=%>",
            timestampFormat=APACHE_TIME_FORMAT,
            tomcatLog=True,
        ),
    ),
    FingerprintRule(
        TOMCAT_LOCALHOST_LOGS,
        _web("tomcat.localhost"),
        _access_defaults(
            index="nrm-logs-<!=labels.application=!>-<%=YYYY.MM.DD=%>",
            timestampFormat=TOMCAT_TIME_FORMAT,
        ),
    ),
    FingerprintRule(
        TOMCAT_CATALINA_LOGS,
        _web("tomcat.catalina"),
        _access_defaults(
            index="nrm-logs-<!=labels.application=!>-<%=YYYY.MM.DD=%>",
            timestampFormat=TOMCAT_TIME_FORMAT,
        ),
    ),
    FingerprintRule(
        VAULT_AUDIT_LOGS,
        _web("vault.audit"),
        {
            "hash": "service.name,response.data_json",
            "docId": "kinesis.eventID,event.hash",
            "index": "nrm-audit-vault-<%=YYYY.MM=%>",
        },
    ),
    FingerprintRule(
        METRICS,
        {"event": {"kind": "event", "category": ["configuration"], "type": ["installation"]}},
        {
            "hash": "host.hostname,log.file.name,event.sequence,@timestamp",
            "docId": "log.file.name,event.sequence,event.hash",
            "index": "nrm-deploy-<%=YYYY.MM=%>",
        },
    ),
    FingerprintRule(
        METRICS,
        _metric("host.cpu"),
        {"docId": "kinesis.eventID", "index": "nrm-metrics-<%=YYYY.MM.DD=%>"},
    ),
    FingerprintRule(
        METRICS,
        _metric("host.memory"),
        {"docId": "kinesis.eventID", "index": "nrm-metrics-<%=YYYY.MM.DD=%>"},
    ),
    FingerprintRule(
        METRICS,
        _metric("host.disk_usage"),
        {"docId": "kinesis.eventID", "index": "nrm-metrics-<%=YYYY.MM.DD=%>"},
    ),
    # Unknown should be last
    FingerprintRule(UNKNOWN, None, {"docId": "kinesis.eventID,event.hash"}),
)


def default_registry() -> FingerprintRegistry:
    return FingerprintRegistry(DEFAULT_RULES)


def rules_from_list(items: list) -> list[FingerprintRule]:
    """Validate a list of rule dicts against RULES_SCHEMA and build rules."""
    try:
        jsonschema.Draft202012Validator(RULES_SCHEMA).validate(items)
    except jsonschema.ValidationError as exc:
        raise FingerprintConfigError(f"invalid fingerprint rules: {exc.message}") from exc
    return [
        FingerprintRule(
            category=item["category"],
            predicate=item.get("fingerprint"),
            metadata=dict(item.get("metadata") or {}),
        )
        for item in items
    ]


def load_registry(path: str | None) -> FingerprintRegistry:
    """Load rules from a YAML file, or the built-in rules when *path* is empty."""
    if not path:
        return default_registry()
    try:
        with open(path, "r", encoding="utf-8") as f:
            items = yaml.safe_load(f)
    except FileNotFoundError as exc:
        raise FingerprintConfigError(f"fingerprint file {path} not found") from exc
    except yaml.YAMLError as exc:
        raise FingerprintConfigError(f"invalid YAML in {path}: {exc}") from exc
    registry = FingerprintRegistry(rules_from_list(items))
    logger.info("Loaded %d fingerprint rules from %s", len(registry), path)
    return registry
