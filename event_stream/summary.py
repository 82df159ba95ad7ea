"""Batch summary logging."""

import logging

from event_stream.models import BatchSummary

logger = logging.getLogger(__name__)


def log_summary(summary: BatchSummary) -> None:
    logger.info(
        "Batch summary: submitted=%d added=%d failed=%d",
        summary.submitted,
        summary.added,
        summary.failed,
    )


def log_messages(summary: BatchSummary) -> None:
    """Log each per-document failure message at warning level."""
    for message in summary.messages:
        logger.warning("Bulk failure: %s", message)
