"""SQLAlchemy ORM schema for Action usage.

Defines the tables: action_usage, _ibmi_actions_meta.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ibmi-actions ORM models."""

    pass


class ActionUsageRow(Base):
    """When an Action was last chosen. Keyed by Action name."""

    __tablename__ = "action_usage"

    name: Mapped[str] = mapped_column(String(255), primary_key=True)
    last_used: Mapped[datetime] = mapped_column(DateTime, nullable=False)


class MetaRow(Base):
    """Key/value store for schema metadata."""

    __tablename__ = "_ibmi_actions_meta"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[str] = mapped_column(String(255), nullable=False)
