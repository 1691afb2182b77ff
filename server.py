"""
Retail Analytics API Server - Main entry point for the FastAPI application.
"""

from app.core.config import get_settings
from app.core.logging_config import configure_logging


def main():
    """Run the API server."""
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)

    print(f"Starting {settings.app_name} v{settings.app_version} on http://{settings.host}:{settings.port}")
    print(f"API documentation available at http://{settings.host}:{settings.port}/docs")
    print("Press Ctrl+C to stop the server")

    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    main()
