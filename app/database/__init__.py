"""Database module: SQLAlchemy async engine, sessions and ORM models."""

from .connection import (
    close_database,
    close_sqlalchemy_engine,
    db_healthcheck,
    get_async_database_url,
    get_session,
    get_session_factory,
    init_database,
    init_sqlalchemy_engine,
)
from .orm import (
    AppUser,
    Base,
    FgiHourly,
    Indicator,
    IndicatorData,
    IndicatorView,
)


__all__ = [
    "init_sqlalchemy_engine",
    "close_sqlalchemy_engine",
    "get_session",
    "get_session_factory",
    "get_async_database_url",
    "db_healthcheck",
    "init_database",
    "close_database",
    "Base",
    "AppUser",
    "Indicator",
    "IndicatorData",
    "IndicatorView",
    "FgiHourly",
]
