from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from src.api.router import api_router
from src.core.config import settings
from src.core.logger import configure_logging, get_logger
from src.export.aggregators import build_aggregators
from src.export.availability import DataAvailabilityCheck
from src.export.exporter import ExportService
from src.export.scheduler import ExportScheduler
from src.export.window import WindowTracker
from src.infrastructure.clickhouse.client import ClickHouseEventStore
from src.infrastructure.s3.sink import S3UploadSink
from src.utils.concurrency import run_blocking

from shared.utils.retry import retry_async

# Configure logging once and get service logger
configure_logging()
logger = get_logger("export.main")


def build_export_service(
    store: ClickHouseEventStore, sink: S3UploadSink, tracker: WindowTracker
) -> ExportService:
    return ExportService(
        tracker=tracker,
        availability=DataAvailabilityCheck(store),
        aggregators=build_aggregators(store),
        sink=sink,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "export_service_starting",
        extra={
            "bucket": settings.s3_bucket_name,
            "interval_min": settings.upload_interval_minutes,
        },
    )
    app.state.store = await _init_store_with_retry()
    app.state.sink = S3UploadSink()
    app.state.tracker = WindowTracker()
    app.state.exporter = build_export_service(
        app.state.store, app.state.sink, app.state.tracker
    )
    app.state.scheduler = ExportScheduler(
        app.state.exporter,
        interval_seconds=settings.upload_interval_seconds,
        startup_delay_seconds=settings.export_startup_delay_seconds,
    )
    logger.info(
        "watermark_initialised",
        extra={"last_upload": app.state.tracker.last_upload_time.isoformat()},
    )
    if settings.export_check_connection_on_startup:
        await app.state.sink.check_connection()
    if settings.export_scheduler_enabled:
        app.state.scheduler.start()
    try:
        yield
    finally:
        logger.info("export_service_stopping")
        await app.state.scheduler.stop()
        app.state.store.close()


app = FastAPI(title="Analytics Export Service", version="0.1.0", lifespan=lifespan)
app.include_router(api_router)


async def _init_store_with_retry() -> ClickHouseEventStore:
    async def _connect():
        return await run_blocking(ClickHouseEventStore)

    async def _on_retry(attempt: int, exc: BaseException, sleep_for: float):
        logger.warning(
            "clickhouse_connect_retry",
            extra={
                "attempt": attempt,
                "error": str(exc),
                "sleep_for": round(sleep_for, 2),
            },
        )

    store = await retry_async(
        _connect,
        retries=settings.clickhouse_connect_retries,
        base_delay=0.5,
        max_delay=8.0,
        jitter=0.2,
        on_retry=_on_retry,
    )
    logger.info("clickhouse_connected", extra={"host": settings.clickhouse_host})
    return store


@app.get("/metrics")
async def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


def main() -> None:  # pragma: no cover - small wrapper
    uvicorn.run(app, host="0.0.0.0", port=settings.export_http_port, log_config=None)


if __name__ == "__main__":  # pragma: no cover
    main()
