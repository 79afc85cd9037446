from datetime import datetime, timezone
from typing import Callable, Optional

from src.core.metrics import WATERMARK
from src.domain.models import ExportWindow

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class WindowTracker:
    """Holds the export watermark and hands out the next window.

    The watermark lives in memory only and starts at construction time, so a
    restart forgets what was already exported.
    """

    def __init__(self, clock: Clock = utc_now, start: Optional[datetime] = None):
        self._clock = clock
        self._last_upload_time = start or clock()
        WATERMARK.set(self._last_upload_time.timestamp())

    @property
    def last_upload_time(self) -> datetime:
        return self._last_upload_time

    def now(self) -> datetime:
        return self._clock()

    def compute_window(self, now: Optional[datetime] = None) -> ExportWindow:
        end = now or self._clock()
        # Wall clock moved backwards: emit an empty window instead of failing.
        if end < self._last_upload_time:
            end = self._last_upload_time
        return ExportWindow(start=self._last_upload_time, end=end)

    def advance(self, end: datetime) -> None:
        self._last_upload_time = end
        WATERMARK.set(end.timestamp())
