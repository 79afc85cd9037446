import pytest
from fastapi.testclient import TestClient
from src.domain.models import CycleResult
from src.export.scheduler import ExportScheduler
from src.main import app


class StubStore:
    def __init__(self, healthy=True):
        self.healthy = healthy

    async def ping(self):
        if not self.healthy:
            raise ConnectionError("clickhouse down")
        return True


class StubExporter:
    def __init__(self, result: CycleResult):
        self.result = result
        self.is_running = False

    async def run_export_cycle(self):
        return self.result


@pytest.fixture
def client(tracker):
    app.state.store = StubStore()
    app.state.tracker = tracker
    app.state.scheduler = ExportScheduler(
        StubExporter(CycleResult(success=True, uploads=1, total=1)), 600, 30
    )
    # No context manager: the lifespan (real ClickHouse/S3) is not started.
    return TestClient(app)


def test_trigger_returns_cycle_result(client):
    resp = client.post("/export/trigger")
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "uploads": 1, "total": 1}


def test_trigger_skipped_cycle(client):
    app.state.scheduler.exporter.result = CycleResult.skip("no_meaningful_data")
    resp = client.post("/export/trigger")
    assert resp.status_code == 200
    assert resp.json() == {
        "success": True,
        "skipped": True,
        "reason": "no_meaningful_data",
    }


def test_trigger_failed_cycle_returns_500(client):
    app.state.scheduler.exporter.result = CycleResult.failed("boom")
    resp = client.post("/export/trigger")
    assert resp.status_code == 500
    assert resp.json() == {"success": False, "error": "boom"}


def test_trigger_while_running_returns_409(client):
    app.state.scheduler.exporter.result = CycleResult.skip(
        "cycle_in_progress", success=False
    )
    resp = client.post("/export/trigger")
    assert resp.status_code == 409


def test_status_reports_watermark_and_config(client, t0):
    client.post("/export/trigger")
    body = client.get("/export/status").json()
    assert body["lastUpload"] == t0.isoformat()
    assert body["uploadIntervalMinutes"] == 10
    assert body["bucketName"] == "lugx-analytics"
    assert body["schedulerRunning"] is False
    assert body["lastResult"] == {"success": True, "uploads": 1, "total": 1}


def test_health_endpoints(client):
    assert client.get("/health").json()["status"] == "healthy"
    assert client.get("/healthz").status_code == 200


def test_healthz_reports_clickhouse_failure(client):
    app.state.store = StubStore(healthy=False)
    resp = client.get("/healthz")
    assert resp.status_code == 503
    assert "clickhouse down" in resp.text


def test_metrics_exposition(client):
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert "export_watermark_timestamp_seconds" in resp.text
