"""Process entry point serving the Pub/Sub push endpoint."""

import uvicorn

from buildnotifier.core.config import get_settings
from buildnotifier.core.logging import get_logger, setup_logging

logger = get_logger(__name__)


def main() -> None:
    """Run the notifier HTTP server."""
    settings = get_settings()
    setup_logging()
    logger.info("Starting notifier server", host=settings.host, port=settings.port)

    uvicorn.run(
        "buildnotifier.api.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        log_config=None,
    )


if __name__ == "__main__":
    main()
