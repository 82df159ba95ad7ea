"""Command-line entry point: process one batch of records from a JSON-lines file."""

import json
import logging
import sys

from event_stream.config import load_cli_config
from event_stream.errors import BulkSubmissionError
from event_stream.handler import build_handler


def read_records(path: str) -> list[dict]:
    """Read one JSON envelope per non-blank line."""
    stream = sys.stdin if path == "-" else open(path, "r", encoding="utf-8")
    try:
        return [json.loads(line) for line in stream if line.strip()]
    finally:
        if stream is not sys.stdin:
            stream.close()


def main(argv=None) -> int:
    config, args = load_cli_config(argv)
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger = logging.getLogger(__name__)

    records = read_records(args.records)
    handler = build_handler(config)

    if args.print_only:
        for doc in handler.transform(records):
            print(json.dumps(doc.to_dict(), default=str))
        return 0

    try:
        summary = handler.handle(records)
    except BulkSubmissionError as exc:
        logger.error("Batch submission failed: %s", exc)
        return 1

    print(json.dumps(summary.to_dict()))
    return 0


if __name__ == "__main__":
    sys.exit(main())
