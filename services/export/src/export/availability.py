import asyncio
from datetime import timedelta
from typing import List, Optional, Sequence

from src.core.logger import get_logger
from src.core.metrics import EXPORT_ERRORS
from src.domain.errors import ProbeError
from src.domain.models import ExportWindow
from src.infrastructure.clickhouse.client import ClickHouseEventStore

from shared.constants import EventTables

logger = get_logger("export.availability")


class DataAvailabilityCheck:
    """Cheap COUNT probe run before the aggregation queries."""

    def __init__(
        self,
        store: ClickHouseEventStore,
        tables: Sequence[str] = tuple(EventTables.all_tables()),
    ):
        self.store = store
        self.tables = tuple(tables)

    async def _count(self, table: str, window: ExportWindow) -> int:
        count = await self.store.count_rows(table, window)
        logger.debug(
            "table_window_count",
            extra={"table": table, "count": count, **window.log_fields()},
        )
        if count == 0:
            await self._log_table_stats(table)
        return count

    async def _log_table_stats(self, table: str) -> None:
        try:
            stats = await self.store.table_stats(table)
        except Exception as e:  # noqa: BLE001 - diagnostics only
            logger.debug("table_stats_unavailable", extra={"table": table, "error": str(e)})
            return
        logger.debug(
            "table_stats",
            extra={"table": table, "total": stats["total"], "latest": stats["latest"]},
        )

    async def _counts(self, window: ExportWindow) -> List[int]:
        try:
            return await asyncio.gather(
                *(self._count(table, window) for table in self.tables)
            )
        except Exception as e:
            raise ProbeError(str(e)) from e

    async def has_data(self, window: ExportWindow) -> bool:
        """True iff any source table has rows in the window; True on probe failure."""
        try:
            counts = await self._counts(window)
        except ProbeError as e:
            EXPORT_ERRORS.labels(stage=e.stage).inc()
            logger.error(
                "availability_probe_failed",
                extra={"error": str(e), "assume_data": True, **window.log_fields()},
            )
            return True
        return sum(counts) > 0

    async def has_recent_data(
        self, window: ExportWindow, hours: int = 1
    ) -> Optional[bool]:
        """Diagnostic: does anything exist in the last ``hours`` before window end?

        Returns None when the counts cannot be read; never touches probe metrics.
        """
        recent = ExportWindow(start=window.end - timedelta(hours=hours), end=window.end)
        try:
            counts = await self._counts(recent)
        except ProbeError as e:
            logger.debug(
                "recent_data_check_unavailable",
                extra={"error": str(e), "hours": hours},
            )
            return None
        return sum(counts) > 0
