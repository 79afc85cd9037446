from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from src.api.dependencies import get_scheduler, get_tracker
from src.core.config import settings
from src.export.exporter import CYCLE_IN_PROGRESS_REASON
from src.export.scheduler import ExportScheduler
from src.export.window import WindowTracker

router = APIRouter(prefix="/export")


@router.post("/trigger")
async def trigger_export(scheduler: ExportScheduler = Depends(get_scheduler)):
    """Run one export cycle now and return its outcome."""
    result = await scheduler.trigger_now()
    if result.success:
        status_code = 200
    elif result.reason == CYCLE_IN_PROGRESS_REASON:
        status_code = 409
    else:
        status_code = 500
    return JSONResponse(status_code=status_code, content=result.to_response())


@router.get("/status")
def export_status(
    tracker: WindowTracker = Depends(get_tracker),
    scheduler: ExportScheduler = Depends(get_scheduler),
):
    last = scheduler.last_result
    return {
        "service": "export",
        "lastUpload": tracker.last_upload_time.isoformat(),
        "uploadIntervalMinutes": settings.upload_interval_minutes,
        "startupDelaySeconds": settings.export_startup_delay_seconds,
        "bucketName": settings.s3_bucket_name,
        "clickhouseHost": settings.clickhouse_host,
        "schedulerRunning": scheduler.running,
        "cycleInProgress": scheduler.exporter.is_running,
        "lastResult": last.to_response() if last else None,
    }
