"""Development web entry point: starts the Flask batch endpoint."""

import logging

from event_stream.app import create_app
from event_stream.config import load_config
from event_stream.handler import build_handler


def main() -> None:
    cfg = load_config()
    logging.basicConfig(
        level=cfg.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    app = create_app(build_handler(cfg))
    app.run(host=cfg.app_host, port=cfg.app_port, use_reloader=False)


if __name__ == "__main__":
    main()
