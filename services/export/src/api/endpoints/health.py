import time

from fastapi import APIRouter, Depends, Response
from src.api.dependencies import get_store
from src.infrastructure.clickhouse.client import ClickHouseEventStore

router = APIRouter()
_start_time = time.time()


@router.get("/health")
def health():
    return {
        "status": "healthy",
        "service": "export",
        "uptime_s": time.time() - _start_time,
    }


@router.get("/healthz")
async def healthz(store: ClickHouseEventStore = Depends(get_store)):
    try:
        ok = await store.ping()
    except Exception as e:  # noqa: BLE001
        return Response(status_code=503, content=str(e))
    if not ok:
        return Response(status_code=503, content="clickhouse ping failed")
    return {"status": "ok", "clickhouse": "connected"}
