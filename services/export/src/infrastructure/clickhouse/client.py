"""ClickHouse event store used by the export pipeline."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import clickhouse_connect
from src.core.config import settings
from src.core.logger import get_logger
from src.core.metrics import QUERY_LATENCY
from src.domain.models import AggregatedRow, ExportWindow
from src.infrastructure.clickhouse import queries
from src.utils.concurrency import run_blocking

from shared.constants import EventTables

logger = get_logger("clickhouse_client")


def to_clickhouse_datetime(value: datetime) -> str:
    """Format a datetime as a UTC ``YYYY-MM-DD HH:MM:SS`` literal."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%d %H:%M:%S")


def window_parameters(window: ExportWindow) -> Dict[str, str]:
    return {
        "start_time": to_clickhouse_datetime(window.start),
        "end_time": to_clickhouse_datetime(window.end),
    }


class ClickHouseEventStore:
    """Read-only access to the analytics event streams.

    Wraps the synchronous clickhouse-connect HTTP client; every public
    coroutine runs the blocking call in a worker thread so the four export
    pipelines can query concurrently.
    """

    def __init__(self, client: Any = None, database: Optional[str] = None):
        self.database = database or settings.clickhouse_db
        self.client = client or clickhouse_connect.get_client(
            host=settings.clickhouse_host,
            port=settings.clickhouse_port,
            database=self.database,
            username=settings.clickhouse_user,
            password=settings.clickhouse_password,
            interface="http",
            # Allows concurrent queries from one client (no shared session).
            autogenerate_session_id=False,
            connect_timeout=10,
            send_receive_timeout=settings.clickhouse_query_timeout_seconds,
        )

    def table(self, name: str) -> str:
        return EventTables.qualified(self.database, name)

    def _query(
        self, name: str, query: str, parameters: Optional[Dict[str, Any]] = None
    ) -> List[AggregatedRow]:
        started = time.perf_counter()
        try:
            result = self.client.query(query, parameters=parameters)
            return list(result.named_results())
        finally:
            QUERY_LATENCY.labels(query=name).observe(time.perf_counter() - started)

    async def query_rows(
        self, name: str, query: str, parameters: Optional[Dict[str, Any]] = None
    ) -> List[AggregatedRow]:
        return await run_blocking(self._query, name, query, parameters)

    async def count_rows(self, table: str, window: ExportWindow) -> int:
        rows = await self.query_rows(
            f"count_{table}",
            queries.render(queries.COUNT_QUERY, self.table(table)),
            window_parameters(window),
        )
        return int(rows[0].get("count") or 0) if rows else 0

    async def table_stats(self, table: str) -> Dict[str, Any]:
        rows = await self.query_rows(
            f"stats_{table}",
            queries.render(queries.TABLE_STATS_QUERY, self.table(table)),
        )
        if not rows:
            return {"total": 0, "latest": None}
        return {"total": int(rows[0].get("total") or 0), "latest": rows[0].get("latest")}

    async def aggregate(
        self, data_type: str, table: str, window: ExportWindow
    ) -> List[AggregatedRow]:
        template = queries.AGGREGATE_QUERIES[data_type]
        return await self.query_rows(
            f"aggregate_{data_type}",
            queries.render(template, self.table(table)),
            window_parameters(window),
        )

    async def ping(self) -> bool:
        return bool(await run_blocking(self.client.ping))

    def close(self) -> None:
        try:
            self.client.close()
        except Exception as e:  # noqa: BLE001
            logger.warning("clickhouse_close_failed", extra={"error": str(e)})
