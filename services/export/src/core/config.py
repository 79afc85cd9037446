from pydantic import field_validator

from shared.config import BaseServiceConfig
from shared.constants import Environment


class Settings(BaseServiceConfig):
    # S3 export sink
    s3_bucket_name: str = "lugx-analytics"
    aws_region: str = "us-east-1"
    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None
    s3_endpoint_url: str | None = None  # MinIO / LocalStack
    s3_timeout_seconds: int = 30

    # Scheduling
    upload_interval_minutes: int = 10
    export_startup_delay_seconds: float = 30.0
    export_scheduler_enabled: bool = True
    export_check_connection_on_startup: bool = True
    export_http_port: int = 3004

    # ClickHouse startup connect retries
    clickhouse_connect_retries: int = 6

    otel_service_name: str = "export"
    app_environment: str = "production"

    @field_validator("upload_interval_minutes")
    @classmethod
    def _positive_interval(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("upload_interval_minutes must be positive")
        return v

    @field_validator("export_startup_delay_seconds")
    @classmethod
    def _non_negative_delay(cls, v: float) -> float:
        if v < 0:
            raise ValueError("export_startup_delay_seconds must be >= 0")
        return v

    @field_validator("app_environment")
    @classmethod
    def _known_environment(cls, v: str) -> str:
        return Environment.parse(v).value

    @property
    def upload_interval_seconds(self) -> float:
        return self.upload_interval_minutes * 60.0


settings = Settings()
