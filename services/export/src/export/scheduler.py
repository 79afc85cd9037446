import asyncio
from typing import Awaitable, Callable, List, Optional

from src.core.logger import get_logger
from src.domain.models import CycleResult
from src.export.exporter import ExportService

logger = get_logger("export.scheduler")

Sleep = Callable[[float], Awaitable[None]]


class ExportScheduler:
    """Drives export cycles from two timers plus an on-demand trigger.

    The startup trigger fires once after ``startup_delay_seconds`` so the
    event store connection can settle; the periodic trigger fires every
    ``interval_seconds`` from process start until ``stop()``.
    """

    def __init__(
        self,
        exporter: ExportService,
        interval_seconds: float,
        startup_delay_seconds: float,
        sleep: Sleep = asyncio.sleep,
    ):
        self.exporter = exporter
        self.interval_seconds = interval_seconds
        self.startup_delay_seconds = startup_delay_seconds
        self._sleep = sleep
        self._tasks: List[asyncio.Task] = []
        self.last_result: Optional[CycleResult] = None

    @property
    def running(self) -> bool:
        return any(not t.done() for t in self._tasks)

    def start(self) -> None:
        if self.running:
            return
        logger.info(
            "export_scheduler_starting",
            extra={
                "interval_s": self.interval_seconds,
                "startup_delay_s": self.startup_delay_seconds,
            },
        )
        self._tasks = [
            asyncio.create_task(self._startup_trigger(), name="export-startup"),
            asyncio.create_task(self._periodic_trigger(), name="export-periodic"),
        ]

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            try:
                await task
            except asyncio.CancelledError:  # expected during shutdown
                logger.debug("export_trigger_cancelled", extra={"task": task.get_name()})
        self._tasks = []
        logger.info("export_scheduler_stopped")

    async def _startup_trigger(self) -> None:
        await self._sleep(self.startup_delay_seconds)
        await self._tick("startup")

    async def _periodic_trigger(self) -> None:
        while True:
            await self._sleep(self.interval_seconds)
            await self._tick("periodic")

    async def _tick(self, trigger: str) -> None:
        logger.info("export_tick", extra={"trigger": trigger})
        try:
            self.last_result = await self.exporter.run_export_cycle()
        except Exception as e:  # noqa: BLE001 - keep the timer alive
            logger.exception("export_tick_failed", extra={"trigger": trigger, "error": str(e)})
            return
        logger.info(
            "export_tick_finished",
            extra={"trigger": trigger, **self.last_result.to_response()},
        )

    async def trigger_now(self) -> CycleResult:
        """Run one cycle immediately (manual/administrative trigger)."""
        logger.info("export_manual_trigger")
        self.last_result = await self.exporter.run_export_cycle()
        return self.last_result
