"""Dependency injection providers for FastAPI."""

from functools import lru_cache

from vesper.config import get_settings
from vesper.pipeline.manager import SessionManager
from vesper.registry.catalog import ModelRegistry


@lru_cache
def get_session_manager() -> SessionManager:
    return SessionManager(settings=get_settings(), registry=get_registry())


@lru_cache
def get_registry() -> ModelRegistry:
    return ModelRegistry()
