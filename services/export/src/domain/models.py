from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, model_validator

AggregatedRow = Dict[str, Any]


class ExportWindow(BaseModel):
    """Half-open time range ``[start, end)`` processed by one export cycle."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @model_validator(mode="after")
    def _check_order(self) -> "ExportWindow":
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise ValueError("window bounds must be timezone-aware")
        if self.start > self.end:
            raise ValueError("window start must not be after window end")
        return self

    @property
    def duration_seconds(self) -> float:
        return (self.end - self.start).total_seconds()

    def log_fields(self) -> Dict[str, Any]:
        return {
            "window_start": self.start.isoformat(),
            "window_end": self.end.isoformat(),
            "duration_s": round(self.duration_seconds),
        }


class ExportArtifact(BaseModel):
    """One CSV file built for one data type in one cycle."""

    model_config = ConfigDict(frozen=True)

    key: str
    body: str
    content_type: str = "text/csv"
    metadata: Dict[str, str]

    @classmethod
    def build(
        cls,
        key: str,
        body: str,
        data_type: str,
        record_count: int,
        uploaded_at: Optional[datetime] = None,
    ) -> "ExportArtifact":
        uploaded_at = uploaded_at or datetime.now(timezone.utc)
        return cls(
            key=key,
            body=body,
            metadata={
                "dataType": data_type,
                "recordCount": str(record_count),
                "uploadedAt": uploaded_at.isoformat(),
            },
        )


class CycleResult(BaseModel):
    """Outcome of ``run_export_cycle``; also the manual trigger response body."""

    success: bool
    uploads: Optional[int] = None
    total: Optional[int] = None
    skipped: Optional[bool] = None
    reason: Optional[str] = None
    error: Optional[str] = None
    timestamp: Optional[str] = None

    @classmethod
    def skip(cls, reason: str, success: bool = True) -> "CycleResult":
        return cls(success=success, skipped=True, reason=reason)

    @classmethod
    def failed(cls, error: str) -> "CycleResult":
        return cls(success=False, error=error)

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)
