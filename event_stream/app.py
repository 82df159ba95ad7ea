"""Flask endpoint for feeding batches to the pipeline during local development."""

import logging

from flask import Flask, jsonify, request

from event_stream.errors import BulkSubmissionError
from event_stream.handler import StreamHandler

logger = logging.getLogger(__name__)


def _records_from_body(body) -> list | None:
    if isinstance(body, list):
        return body
    if isinstance(body, dict) and isinstance(body.get("records"), list):
        return body["records"]
    return None


def create_app(handler: StreamHandler) -> Flask:
    app = Flask(__name__)

    @app.route("/", methods=["POST"])
    def handle_data():
        records = _records_from_body(request.get_json(silent=True))
        if records is None:
            return jsonify(error="expected a JSON array or {\"records\": [...]}"), 400

        if request.args.get("print") == "true":
            documents = handler.transform(records)
            return jsonify(documents=[d.to_dict() for d in documents], count=len(documents))

        try:
            summary = handler.handle(records)
        except BulkSubmissionError as exc:
            logger.error("Batch of %d records not submitted: %s", len(records), exc)
            return jsonify(error=str(exc), submitted=exc.submitted), 502
        return jsonify(summary.to_dict())

    @app.route("/health")
    def health():
        return jsonify(status="ok")

    return app
