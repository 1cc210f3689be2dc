"""Development server entry point."""

import logging
import os

from waitress import serve

from prometheus_starter import create_app
from prometheus_starter.config import Settings


def main() -> None:
    settings = Settings.load()

    logging.basicConfig(
        level=logging.DEBUG if settings.is_debug else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    app = create_app(settings)

    host = os.getenv("HOST", "0.0.0.0")
    port = int(settings.server_port or 8080)

    if settings.is_debug:
        app.logger.info("Running in debug mode")
        app.run(host=host, port=port, debug=True)
    else:
        threads = int(os.getenv("WAITRESS_THREADS", 8))
        app.logger.info(f"Using Waitress WSGI server with {threads} threads")
        serve(app, host=host, port=port, threads=threads)


if __name__ == "__main__":
    main()
