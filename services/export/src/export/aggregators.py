from typing import List, Tuple

from src.core.logger import get_logger
from src.core.metrics import EXPORT_ERRORS
from src.domain.datasets import ALL_DATA_TYPES, DataType
from src.domain.errors import AggregationError
from src.domain.models import AggregatedRow, ExportWindow
from src.infrastructure.clickhouse.client import ClickHouseEventStore

logger = get_logger("export.aggregators")


class Aggregator:
    """Runs the grouped query for one data type over an export window."""

    def __init__(self, data_type: DataType, store: ClickHouseEventStore):
        self.data_type = data_type
        self.store = store

    @property
    def name(self) -> str:
        return self.data_type.name

    @property
    def columns(self) -> Tuple[str, ...]:
        return self.data_type.columns

    async def _fetch(self, window: ExportWindow) -> List[AggregatedRow]:
        try:
            return await self.store.aggregate(
                self.data_type.name, self.data_type.table, window
            )
        except Exception as e:
            raise AggregationError(self.data_type.name, str(e)) from e

    async def aggregate(self, window: ExportWindow) -> List[AggregatedRow]:
        """Aggregated rows for the window, or [] if the query fails."""
        try:
            rows = await self._fetch(window)
        except AggregationError as e:
            EXPORT_ERRORS.labels(stage=e.stage).inc()
            logger.error(
                "aggregation_failed",
                extra={"data_type": e.data_type, "error": str(e), **window.log_fields()},
            )
            return []
        logger.debug(
            "aggregation_completed",
            extra={"data_type": self.name, "record_count": len(rows)},
        )
        return rows


def build_aggregators(store: ClickHouseEventStore) -> List[Aggregator]:
    return [Aggregator(data_type, store) for data_type in ALL_DATA_TYPES]
