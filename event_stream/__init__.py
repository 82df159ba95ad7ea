"""Event stream processing: fingerprint, enrich and bulk-index log records."""

__version__ = "0.1.0"
