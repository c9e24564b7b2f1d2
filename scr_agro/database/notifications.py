"""
Table Change Notifications

Delivers "table X changed" notifications from the backend database to
in-process subscribers:
- Postgres triggers publish a JSON payload with pg_notify on every write
- A dedicated asyncpg connection LISTENs on the channel
- Notifications fan out to the subscribers registered for the table

Subscribers own what happens next (typically invalidating cached values);
the feed itself keeps no derived state.
"""

import asyncio
import json
import re
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Set

import asyncpg
import structlog
from prometheus_client import Counter
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection

from scr_agro.database.models import WATCHED_TABLES

logger = structlog.get_logger(__name__)

ALL_TABLES = "*"

# operation of the notification published after the listener reconnects
RESYNC = "RESYNC"

CHANGES_RECEIVED = Counter(
    "scr_agro_table_changes_total",
    "Table change notifications received",
    ["table", "operation"],
)

CHANGES_DROPPED = Counter(
    "scr_agro_table_changes_dropped_total",
    "Change notifications dropped because the payload could not be read",
)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass(frozen=True)
class ChangeNotification:
    """A write observed on one backend table"""
    table: str
    operation: str = "UNKNOWN"
    received_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_payload(cls, payload: str) -> "ChangeNotification":
        """
        Parse a pg_notify payload.

        Raises:
            ValueError: If the payload is not a JSON object naming a table
        """
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid change payload: {e}") from e

        if not isinstance(data, dict) or not data.get("table"):
            raise ValueError("Change payload does not name a table")

        return cls(table=str(data["table"]), operation=str(data.get("operation") or "UNKNOWN").upper())


ChangeCallback = Callable[[ChangeNotification], Awaitable[None]]


class ChangeFeed:
    """
    In-process fan-out of change notifications keyed by table name.

    Example:
        feed = ChangeFeed()
        unsubscribe = feed.subscribe("orders", on_orders_changed)
        await feed.publish(ChangeNotification(table="orders", operation="INSERT"))
    """

    def __init__(self):
        self._subscribers: Dict[str, List[ChangeCallback]] = defaultdict(list)

    def subscribe(self, table: str, callback: ChangeCallback) -> Callable[[], None]:
        """Register a callback for one table ("*" for every table); returns an unsubscribe function"""
        self._subscribers[table].append(callback)

        def unsubscribe() -> None:
            callbacks = self._subscribers.get(table, [])
            if callback in callbacks:
                callbacks.remove(callback)

        return unsubscribe

    async def publish(self, notification: ChangeNotification) -> int:
        """
        Deliver a notification to every matching subscriber.

        A failing subscriber is logged and does not prevent delivery to the
        others.

        Returns:
            Number of subscribers that handled the notification
        """
        callbacks = list(self._subscribers.get(notification.table, []))
        if notification.table != ALL_TABLES:
            callbacks += self._subscribers.get(ALL_TABLES, [])

        delivered = 0
        for callback in callbacks:
            try:
                await callback(notification)
                delivered += 1
            except Exception as e:
                logger.error(
                    "Change subscriber failed",
                    table=notification.table,
                    error=str(e),
                    error_type=type(e).__name__,
                )
        return delivered


class PostgresChangeListener:
    """
    LISTENs on a Postgres channel and publishes into a ChangeFeed.

    Uses its own asyncpg connection since LISTEN is tied to a session.
    A dropped connection is re-opened after `reconnect_delay` seconds.
    """

    def __init__(
        self,
        feed: ChangeFeed,
        dsn: str,
        channel: str = "table_changes",
        reconnect_delay: float = 5.0,
    ):
        if not _IDENTIFIER.match(channel):
            raise ValueError(f"Invalid channel name: {channel!r}")
        self.feed = feed
        self.dsn = dsn
        self.channel = channel
        self.reconnect_delay = reconnect_delay
        self._connection: Optional[asyncpg.Connection] = None
        self._tasks: Set[asyncio.Task] = set()
        self._stopping = False

    @property
    def is_listening(self) -> bool:
        return self._connection is not None and not self._connection.is_closed()

    async def start(self) -> None:
        self._stopping = False
        await self._connect()

    async def stop(self) -> None:
        self._stopping = True
        for task in list(self._tasks):
            task.cancel()
        if self._connection is not None and not self._connection.is_closed():
            await self._connection.remove_listener(self.channel, self._on_notify)
            await self._connection.close()
        self._connection = None
        logger.info("Change listener stopped", channel=self.channel)

    async def _connect(self) -> None:
        self._connection = await asyncpg.connect(self.dsn)
        self._connection.add_termination_listener(self._on_terminate)
        await self._connection.add_listener(self.channel, self._on_notify)
        logger.info("Listening for table changes", channel=self.channel)

    def _spawn(self, coro: Awaitable) -> None:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _on_notify(self, connection, pid: int, channel: str, payload: str) -> None:
        try:
            notification = ChangeNotification.from_payload(payload)
        except ValueError as e:
            CHANGES_DROPPED.inc()
            logger.warning("Dropping change notification", channel=channel, error=str(e))
            return

        CHANGES_RECEIVED.labels(table=notification.table, operation=notification.operation).inc()
        logger.debug("Table change received", table=notification.table, operation=notification.operation)
        self._spawn(self.feed.publish(notification))

    def _on_terminate(self, connection) -> None:
        if self._stopping:
            return
        logger.warning("Change listener connection lost", channel=self.channel)
        self._connection = None
        self._spawn(self._reconnect())

    async def _reconnect(self) -> None:
        """
        Re-open the LISTEN connection until it succeeds or the listener stops.

        Writes made while disconnected were never delivered, so a RESYNC
        notification for every table is published once listening again.
        """
        while not self._stopping:
            await asyncio.sleep(self.reconnect_delay)
            try:
                await self._connect()
            except Exception as e:
                logger.error("Change listener reconnect failed", error=str(e), error_type=type(e).__name__)
                continue
            await self.feed.publish(ChangeNotification(table=ALL_TABLES, operation=RESYNC))
            return


TRIGGER_FUNCTION_SQL = """
CREATE OR REPLACE FUNCTION notify_table_change() RETURNS trigger AS $$
BEGIN
    PERFORM pg_notify(
        TG_ARGV[0],
        CAST(json_build_object('table', TG_TABLE_NAME, 'operation', TG_OP) AS text)
    );
    RETURN NULL;
END;
$$ LANGUAGE plpgsql
"""


def trigger_statements(tables: Iterable[str], channel: str) -> List[str]:
    """DDL statements creating one change trigger per watched table"""
    if not _IDENTIFIER.match(channel):
        raise ValueError(f"Invalid channel name: {channel!r}")

    statements = [TRIGGER_FUNCTION_SQL]
    for table in tables:
        if table not in WATCHED_TABLES:
            raise ValueError(f"Table is not watched: {table!r}")
        statements.append(f"DROP TRIGGER IF EXISTS {table}_change_notify ON {table}")
        statements.append(
            f"CREATE TRIGGER {table}_change_notify "
            f"AFTER INSERT OR UPDATE OR DELETE ON {table} "
            f"FOR EACH STATEMENT EXECUTE FUNCTION notify_table_change('{channel}')"
        )
    return statements


async def install_change_triggers(
    conn: AsyncConnection,
    tables: Iterable[str] = WATCHED_TABLES,
    channel: str = "table_changes",
) -> None:
    """Install the pg_notify triggers on the watched tables"""
    tables = list(tables)
    for statement in trigger_statements(tables, channel):
        await conn.execute(text(statement))
    logger.info("Change triggers installed", tables=tables, channel=channel)
