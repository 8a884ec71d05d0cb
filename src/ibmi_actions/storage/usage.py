"""Last-used rankings for Actions.

InMemoryUsageRanking is the default; SqliteUsageRanking persists the
timestamps so the most recently used Actions are offered first across
sessions.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import datetime, timezone

from sqlalchemy import Engine, select
from sqlalchemy.orm import Session, sessionmaker

from ibmi_actions.storage.engine import create_session_factory, create_usage_engine, init_db
from ibmi_actions.storage.schema import ActionUsageRow


class InMemoryUsageRanking:
    """UsageRanking kept in a dict for the lifetime of the process."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._last_used: dict[str, float] = {}

    def last_used(self, name: str) -> float:
        return self._last_used.get(name, 0.0)

    def mark_used(self, name: str) -> None:
        self._last_used[name] = self._clock()


class SqliteUsageRanking:
    """UsageRanking stored in the ``action_usage`` table."""

    def __init__(
        self,
        engine: Engine | None = None,
        *,
        db_path: str = ":memory:",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._engine = engine if engine is not None else create_usage_engine(db_path)
        init_db(self._engine)
        self._session_factory: sessionmaker[Session] = create_session_factory(self._engine)
        self._clock = clock

    def last_used(self, name: str) -> float:
        with self._session_factory() as session:
            row = session.execute(
                select(ActionUsageRow).where(ActionUsageRow.name == name)
            ).scalar_one_or_none()
        if row is None:
            return 0.0
        return row.last_used.replace(tzinfo=timezone.utc).timestamp()

    def mark_used(self, name: str) -> None:
        now = datetime.fromtimestamp(self._clock(), tz=timezone.utc).replace(tzinfo=None)
        with self._session_factory() as session:
            row = session.get(ActionUsageRow, name)
            if row is None:
                session.add(ActionUsageRow(name=name, last_used=now))
            else:
                row.last_used = now
            session.commit()

    def close(self) -> None:
        self._engine.dispose()
