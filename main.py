"""
Main entry point for PDF Vault

Builds settings and the application, then hands them to uvicorn. This is the
only module that binds a port.

@.architecture
Incoming: none --- {entry point for uvicorn server}
Processing: main() --- {2 jobs: config_loading, server_startup}
Outgoing: uvicorn server, Network (HTTP) --- {FastAPI application instance, HTTP server}
"""

from app import create_app
from config.settings import get_settings


def main() -> None:
    import uvicorn

    settings = get_settings()
    app = create_app(settings)

    uvicorn.run(
        app,
        host=settings.server.host,
        port=settings.server.port,
        log_level=(settings.monitoring.log_level or "info").lower()
    )


if __name__ == "__main__":
    main()
