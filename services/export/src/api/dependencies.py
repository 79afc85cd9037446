from fastapi import Request
from src.export.scheduler import ExportScheduler
from src.export.window import WindowTracker
from src.infrastructure.clickhouse.client import ClickHouseEventStore


def get_scheduler(request: Request) -> ExportScheduler:
    return request.app.state.scheduler  # type: ignore[return-value]


def get_tracker(request: Request) -> WindowTracker:
    return request.app.state.tracker  # type: ignore[return-value]


def get_store(request: Request) -> ClickHouseEventStore:
    return request.app.state.store  # type: ignore[return-value]
