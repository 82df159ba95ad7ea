"""Configuration module: frozen dataclass loaded from environment variables."""

import argparse
import os
from dataclasses import dataclass, replace


@dataclass(frozen=True)
class Config:
    opensearch_url: str = "http://localhost:9200"
    opensearch_user: str | None = None
    opensearch_pass: str | None = None
    timeout: float = 30.0
    default_index: str = "nrm-unknown-<%=YYYY.MM.DD=%>"
    fingerprints_file: str | None = None
    workers: int = 1
    regex_max_input_length: int = 65536
    regex_time_budget_ms: float = 50.0
    log_level: str = "INFO"
    app_host: str = "0.0.0.0"
    app_port: int = 3000


def load_config() -> Config:
    """Build Config from environment variables with sensible defaults."""
    cfg = Config(
        opensearch_url=os.environ.get("OPENSEARCH_URL", Config.opensearch_url),
        opensearch_user=os.environ.get("OPENSEARCH_USER") or None,
        opensearch_pass=os.environ.get("OPENSEARCH_PASS") or None,
        timeout=float(os.environ.get("OPENSEARCH_TIMEOUT", Config.timeout)),
        default_index=os.environ.get("DEFAULT_INDEX", Config.default_index),
        fingerprints_file=os.environ.get("FINGERPRINTS_FILE") or None,
        workers=int(os.environ.get("TRANSFORM_WORKERS", Config.workers)),
        regex_max_input_length=int(
            os.environ.get("REGEX_MAX_INPUT_LENGTH", Config.regex_max_input_length)
        ),
        regex_time_budget_ms=float(
            os.environ.get("REGEX_TIME_BUDGET_MS", Config.regex_time_budget_ms)
        ),
        log_level=os.environ.get("LOG_LEVEL", Config.log_level).upper(),
        app_host=os.environ.get("APP_HOST", Config.app_host),
        app_port=int(os.environ.get("APP_PORT", Config.app_port)),
    )
    _validate(cfg)
    return cfg


def _validate(cfg: Config) -> None:
    if cfg.timeout <= 0:
        raise ValueError(f"OPENSEARCH_TIMEOUT must be positive, got {cfg.timeout}")
    if cfg.workers < 1:
        raise ValueError(f"TRANSFORM_WORKERS must be at least 1, got {cfg.workers}")
    if cfg.regex_max_input_length < 1:
        raise ValueError("REGEX_MAX_INPUT_LENGTH must be at least 1")


def load_cli_config(argv=None) -> tuple[Config, argparse.Namespace]:
    """Build Config from environment variables, then override with CLI args.

    Pass argv for testability; when None, argparse reads sys.argv.
    """
    cfg = load_config()

    parser = argparse.ArgumentParser(
        description="Classify, enrich and bulk-index a batch of event records"
    )
    parser.add_argument("records", help="JSON-lines file, one envelope per line ('-' for stdin)")
    parser.add_argument("--print", dest="print_only", action="store_true", default=False,
                        help="print transformed documents instead of submitting them")
    parser.add_argument("--opensearch-url", type=str, default=None)
    parser.add_argument("--timeout", type=float, default=None)
    parser.add_argument("--workers", type=int, default=None)
    parser.add_argument("--fingerprints", type=str, default=None)
    parser.add_argument("--log-level", type=str, default=None)

    args = parser.parse_args(argv)

    overrides = {}
    if args.opensearch_url is not None:
        overrides["opensearch_url"] = args.opensearch_url
    if args.timeout is not None:
        overrides["timeout"] = args.timeout
    if args.workers is not None:
        overrides["workers"] = args.workers
    if args.fingerprints is not None:
        overrides["fingerprints_file"] = args.fingerprints
    if args.log_level is not None:
        overrides["log_level"] = args.log_level.upper()

    cfg = replace(cfg, **overrides)
    _validate(cfg)
    return cfg, args
