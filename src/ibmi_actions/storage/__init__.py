"""Persistence for Action usage rankings."""

from ibmi_actions.storage.engine import create_session_factory, create_usage_engine, init_db
from ibmi_actions.storage.usage import InMemoryUsageRanking, SqliteUsageRanking

__all__ = [
    "InMemoryUsageRanking",
    "SqliteUsageRanking",
    "create_session_factory",
    "create_usage_engine",
    "init_db",
]
