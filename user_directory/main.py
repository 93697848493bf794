from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse

from user_directory.deps import build_user_store, get_settings_dep
from user_directory.logging_config import configure_logging
from user_directory.routers.users import router as users_router
from user_directory.settings import Settings, get_settings
from user_directory.user_store import SqlUserStore

logger = logging.getLogger("user_directory")

APP_VERSION = "1.0.0"


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the API with its own user store.

    Each call gets a fresh store, so tests can create isolated apps.
    """
    s = settings or get_settings()
    configure_logging(s.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("User directory started (store backend: %s)", s.user_store_backend)
        yield
        store = app.state.user_store
        if isinstance(store, SqlUserStore):
            store.dispose()
        logger.info("User directory stopped")

    # OpenAPI/docs only in debug mode.
    docs_kwargs = {} if s.debug else {"openapi_url": None, "docs_url": None, "redoc_url": None}
    application = FastAPI(title="User Directory", version=APP_VERSION, lifespan=lifespan, **docs_kwargs)
    application.state.settings = s
    application.state.user_store = build_user_store(s)
    application.include_router(users_router)

    @application.get("/healthz")
    def healthz(settings: Settings = Depends(get_settings_dep)):
        return JSONResponse(
            {
                "ok": True,
                "service": "user-directory",
                "version": APP_VERSION,
                "store_backend": settings.user_store_backend,
            }
        )

    return application


app = create_app()


def run() -> None:
    import uvicorn

    s = get_settings()
    uvicorn.run("user_directory.main:app", host=s.host, port=s.port, log_level=s.log_level.lower())


if __name__ == "__main__":
    run()
