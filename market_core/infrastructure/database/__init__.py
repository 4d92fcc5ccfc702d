"""Persistence: SQLAlchemy models, repositories and the Unit of Work."""
from .config import (
    DatabaseSettings,
    close_database,
    create_engine,
    create_session_factory,
    get_engine,
    get_session_factory,
    init_database,
)
from .unit_of_work import UnitOfWork, create_uow

__all__ = [
    "DatabaseSettings",
    "UnitOfWork",
    "close_database",
    "create_engine",
    "create_session_factory",
    "create_uow",
    "get_engine",
    "get_session_factory",
    "init_database",
]
