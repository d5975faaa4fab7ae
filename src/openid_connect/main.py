"""Application entry point.

Usage:
    # Development with auto-reload
    uvicorn openid_connect.main:app --reload

    # Installed console script
    openid-connect
"""

from openid_connect.core.config import get_settings
from openid_connect.factory import create_app


# Create the application instance
app = create_app()


def run() -> None:
    """Run the application with uvicorn."""
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "openid_connect.main:app",
        host=settings.server.host,
        port=settings.server.port,
        reload=settings.is_development,
        log_level=settings.logging.level.lower(),
    )


if __name__ == "__main__":
    run()
