"""ASGI entry-point.

Re-exports the application from ``app.server`` so both
``uvicorn app.main:app`` and ``python -m app.main`` work.
"""

from app.server import app  # noqa: F401 – re-export for uvicorn

if __name__ == "__main__":
    import logging
    import uvicorn
    from app.config import settings

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    uvicorn.run(
        "app.main:app",
        host=settings.fastapi_host,
        port=settings.fastapi_port,
        reload=(settings.app_env == "development"),
    )
