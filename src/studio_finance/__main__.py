"""Entry point for running the application with uvicorn."""

import uvicorn

from studio_finance.config import get_settings
from studio_finance.logging_config import configure_logging


def main() -> None:
    """Run the application."""
    settings = get_settings()
    configure_logging()
    uvicorn.run(
        "studio_finance.api.app:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
