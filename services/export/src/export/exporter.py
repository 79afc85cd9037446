"""Export cycle orchestration.

One cycle: compute the window, probe for data, fan out the four
aggregate/encode/upload pipelines, then advance the watermark. Failures are
isolated per pipeline; a cycle never raises to its caller.
"""

from __future__ import annotations

import asyncio
import time
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from src.core.logger import get_logger
from src.core.metrics import (
    CYCLE_DURATION,
    CYCLE_IN_PROGRESS,
    EXPORT_CYCLES,
    EXPORT_ERRORS,
    EXPORT_ROWS,
    EXPORT_UPLOADS,
)
from src.domain.datasets import DataType
from src.domain.errors import CycleError, UploadError
from src.domain.models import CycleResult, ExportArtifact, ExportWindow
from src.export.aggregators import Aggregator
from src.export.availability import DataAvailabilityCheck
from src.export.csv_encoder import to_csv
from src.export.window import WindowTracker
from src.infrastructure.s3.sink import S3UploadSink

logger = get_logger("export.exporter")

NO_MEANINGFUL_DATA = "no_meaningful_data"
CYCLE_IN_PROGRESS_REASON = "cycle_in_progress"


def compact_timestamp(moment: datetime) -> str:
    """``2025-03-01T10:15:00.123Z`` -> ``2025-03-01_101500123``."""
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%d_%H%M%S") + f"{moment.microsecond // 1000:03d}"


def date_folder(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%d")


def build_object_key(data_type: DataType, window_end: datetime, stamp: str) -> str:
    return f"{data_type.folder}/{date_folder(window_end)}/{data_type.name}_{stamp}.csv"


class ExportService:
    def __init__(
        self,
        tracker: WindowTracker,
        availability: DataAvailabilityCheck,
        aggregators: Sequence[Aggregator],
        sink: S3UploadSink,
    ):
        self.tracker = tracker
        self.availability = availability
        self.aggregators = list(aggregators)
        self.sink = sink
        self._lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    async def run_export_cycle(self) -> CycleResult:
        if self._lock.locked():
            EXPORT_CYCLES.labels(outcome="busy").inc()
            logger.warning("export_cycle_already_running")
            return CycleResult.skip(CYCLE_IN_PROGRESS_REASON, success=False)

        async with self._lock:
            CYCLE_IN_PROGRESS.set(1)
            started = time.perf_counter()
            try:
                return await self._run_cycle()
            except Exception as e:  # noqa: BLE001 - a tick must never raise
                error = CycleError(str(e) or type(e).__name__)
                EXPORT_ERRORS.labels(stage=error.stage).inc()
                EXPORT_CYCLES.labels(outcome="failed").inc()
                logger.exception("export_cycle_failed", extra={"error": str(error)})
                return CycleResult.failed(str(error))
            finally:
                CYCLE_DURATION.observe(time.perf_counter() - started)
                CYCLE_IN_PROGRESS.set(0)

    async def _run_cycle(self) -> CycleResult:
        now = self.tracker.now()
        window = self.tracker.compute_window(now)
        stamp = compact_timestamp(now)
        logger.info("export_cycle_started", extra=window.log_fields())

        if not await self.availability.has_data(window):
            recent = await self.availability.has_recent_data(window)
            logger.info(
                "export_skipped_no_data",
                extra={"data_in_last_hour": recent, **window.log_fields()},
            )
            self.tracker.advance(window.end)
            EXPORT_CYCLES.labels(outcome="skipped").inc()
            return CycleResult.skip(NO_MEANINGFUL_DATA)

        outcomes = await asyncio.gather(
            *(self._export_one(agg, window, stamp) for agg in self.aggregators),
            return_exceptions=True,
        )
        attempted, succeeded = self._tally(outcomes)

        if succeeded:
            logger.info(
                "export_cycle_completed",
                extra={"uploaded": succeeded, "attempted": attempted, **window.log_fields()},
            )
        else:
            logger.info("export_cycle_nothing_uploaded", extra={"attempted": attempted})

        self.tracker.advance(window.end)
        EXPORT_CYCLES.labels(outcome="uploaded").inc()
        return CycleResult(
            success=True, uploads=succeeded, total=attempted, timestamp=stamp
        )

    @staticmethod
    def _tally(outcomes: List[object]) -> tuple[int, int]:
        attempted = succeeded = 0
        for outcome in outcomes:
            if outcome is None:
                continue  # nothing to upload for this data type
            attempted += 1
            if isinstance(outcome, BaseException):
                EXPORT_ERRORS.labels(stage="pipeline").inc()
                logger.error("export_pipeline_crashed", extra={"error": repr(outcome)})
            elif outcome is True:
                succeeded += 1
        return attempted, succeeded

    async def _export_one(
        self, aggregator: Aggregator, window: ExportWindow, stamp: str
    ) -> Optional[bool]:
        """None when there was nothing to upload, else whether the upload worked."""
        data_type = aggregator.data_type
        rows = await aggregator.aggregate(window)
        body = to_csv(rows, aggregator.columns)
        if not body:
            logger.info(
                "nothing_to_upload",
                extra={"data_type": data_type.name, "label": data_type.label},
            )
            EXPORT_UPLOADS.labels(data_type=data_type.name, status="empty").inc()
            return None

        artifact = ExportArtifact.build(
            key=build_object_key(data_type, window.end, stamp),
            body=body,
            data_type=data_type.name,
            record_count=len(rows),
        )
        try:
            await self.sink.upload(artifact)
        except UploadError as e:
            EXPORT_ERRORS.labels(stage=e.stage).inc()
            EXPORT_UPLOADS.labels(data_type=data_type.name, status="failed").inc()
            logger.error(
                "artifact_upload_failed",
                extra={"data_type": data_type.name, "error": str(e)},
            )
            return False

        EXPORT_UPLOADS.labels(data_type=data_type.name, status="uploaded").inc()
        EXPORT_ROWS.labels(data_type=data_type.name).inc(len(rows))
        logger.info(
            "artifact_uploaded",
            extra={
                "data_type": data_type.name,
                "record_count": len(rows),
                "s3_path": self.sink.s3_uri(artifact.key),
            },
        )
        return True
