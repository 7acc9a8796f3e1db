"""Scholaris Infra Persistence -- async PostgreSQL engine and session factory."""

from scholaris.infra.persistence.database import (
    DatabaseManager,
    DatabaseSettings,
    dispose_engine,
    get_database_manager,
    get_engine,
    get_session_factory,
)
from scholaris.infra.persistence.lifespan import lifespan_contribution

__all__ = [
    "DatabaseManager",
    "DatabaseSettings",
    "dispose_engine",
    "get_database_manager",
    "get_engine",
    "get_session_factory",
    "lifespan_contribution",
]
