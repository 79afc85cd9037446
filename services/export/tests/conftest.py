from datetime import datetime, timedelta, timezone

import pytest
from src.domain.errors import UploadError
from src.domain.models import ExportWindow
from src.export.aggregators import build_aggregators
from src.export.availability import DataAvailabilityCheck
from src.export.exporter import ExportService
from src.export.window import WindowTracker

T0 = datetime(2025, 3, 1, 10, 0, 0, tzinfo=timezone.utc)
T1 = T0 + timedelta(minutes=10, milliseconds=123)


class FakeEventStore:
    """In-memory stand-in for ClickHouseEventStore."""

    def __init__(self, rows=None, counts=None):
        self.rows = rows or {}  # data_type -> list[dict]
        self.counts = counts or {}  # table -> int
        self.failing_aggregates: set[str] = set()
        self.count_error: Exception | None = None
        self.count_calls: list[tuple] = []
        self.aggregate_calls: list[tuple] = []

    async def count_rows(self, table, window):
        self.count_calls.append((table, window))
        if self.count_error is not None:
            raise self.count_error
        return self.counts.get(table, 0)

    async def table_stats(self, table):
        return {"total": 0, "latest": None}

    async def aggregate(self, data_type, table, window):
        self.aggregate_calls.append((data_type, table, window))
        if data_type in self.failing_aggregates:
            raise RuntimeError(f"{data_type} query timed out")
        return list(self.rows.get(data_type, []))

    async def ping(self):
        return True


class FakeSink:
    """Records uploads; keys containing a failing data type raise UploadError."""

    bucket = "test-bucket"

    def __init__(self):
        self.uploaded = []
        self.failing: set[str] = set()

    def s3_uri(self, object_path):
        return f"s3://{self.bucket}/{object_path}"

    async def upload(self, artifact):
        if artifact.metadata["dataType"] in self.failing:
            raise UploadError(artifact.key, "AccessDenied")
        self.uploaded.append(artifact)
        return {"ETag": '"abc"'}


@pytest.fixture
def window():
    return ExportWindow(start=T0, end=T1)


@pytest.fixture
def store():
    return FakeEventStore()


@pytest.fixture
def sink():
    return FakeSink()


@pytest.fixture
def tracker():
    return WindowTracker(clock=lambda: T1, start=T0)


@pytest.fixture
def exporter(store, sink, tracker):
    return ExportService(
        tracker=tracker,
        availability=DataAvailabilityCheck(store),
        aggregators=build_aggregators(store),
        sink=sink,
    )


@pytest.fixture
def page_view_rows():
    return [
        {
            "page_url": "https://lugx.example/games",
            "page_title": "Games, all of them",
            "view_count": 5,
            "unique_users": 3,
            "unique_sessions": 4,
            "avg_time_on_page": 12.5,
            "device": "desktop",
            "referrer": None,
            "time_bucket": "2025-03-01 10:05:00",
            "date": "2025-03-01",
            "hour": 10,
            "minute": 5,
        },
        {
            "page_url": "https://lugx.example/",
            "page_title": "Home",
            "view_count": 2,
            "device": "mobile",
            "time_bucket": "2025-03-01 10:04:00",
            "date": "2025-03-01",
            "hour": 10,
            "minute": 4,
        },
        {
            "page_url": "https://lugx.example/cart",
            "page_title": "Cart",
            "view_count": 1,
            "device": "tablet",
            "time_bucket": "2025-03-01 10:01:00",
            "date": "2025-03-01",
            "hour": 10,
            "minute": 1,
        },
    ]


@pytest.fixture
def t0():
    return T0


@pytest.fixture
def t1():
    return T1
