from __future__ import annotations

import logging

from fastapi import Depends, Request

from user_directory.directory import DirectoryService
from user_directory.settings import Settings, get_settings
from user_directory.user_store import InMemoryUserStore, SqlUserStore, UserStore

logger = logging.getLogger(__name__)


def get_settings_dep(request: Request) -> Settings:
    """Settings the running app was built with.

    Falls back to user_directory.settings.get_settings for apps assembled
    without ``create_app``.
    """
    return getattr(request.app.state, "settings", None) or get_settings()


def build_user_store(settings: Settings) -> UserStore:
    backend = settings.user_store_backend
    if backend == "memory":
        return InMemoryUserStore()
    if backend == "sql":
        store = SqlUserStore.from_url(settings.database_url)
        store.create_schema()
        return store
    raise ValueError(f"Unknown USER_STORE_BACKEND: {backend!r} (expected 'memory' or 'sql')")


# NOTE: The store is owned by the application (app.state.user_store) and lives for
# the whole process. Tests swap it through app.dependency_overrides.


def get_user_store(request: Request) -> UserStore:
    return request.app.state.user_store


def get_directory_service(store: UserStore = Depends(get_user_store)) -> DirectoryService:
    return DirectoryService(store)
