"""Command-line entrypoint that serves the API with uvicorn."""

import logging

import uvicorn

from photo_restore.api.app import create_app
from photo_restore.app_logging import configure_logging
from photo_restore.config import Settings
from photo_restore.containers import build_container


def main() -> None:
    """Bind on all interfaces so hosted platforms can route traffic."""
    settings = Settings()
    configure_logging(settings.log_level)
    app = create_app(build_container(settings))
    logging.getLogger(__name__).info(
        "PhotoRestore listening on 0.0.0.0:%s (try http://127.0.0.1:%s locally)",
        settings.port,
        settings.port,
    )
    uvicorn.run(app, host="0.0.0.0", port=settings.port)  # noqa: S104


if __name__ == "__main__":
    main()
