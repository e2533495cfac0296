import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    database_url: str = os.getenv("DATABASE_URL", "sqlite+pysqlite:///./performance.db")
    db_pool_size: int = int(os.getenv("DB_POOL_SIZE", "15"))
    db_max_overflow: int = int(os.getenv("DB_MAX_OVERFLOW", "20"))
    db_pool_timeout: int = int(os.getenv("DB_POOL_TIMEOUT", "30"))
    db_pool_recycle: int = int(os.getenv("DB_POOL_RECYCLE", "1800"))

    # Celery
    celery_broker_url: str = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
    celery_result_backend: str = os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/1")

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_json: bool = os.getenv("LOG_JSON", "").lower() in {"1", "true", "yes", "on"}

    # Tracing
    otel_enabled: bool = os.getenv("OTEL_ENABLED", "false").lower() in {"1", "true", "yes", "on"}
    otel_service_name: str = os.getenv("OTEL_SERVICE_NAME", "performance_engine")
    otel_exporter_endpoint: str | None = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT") or None

    # Weekly report generation
    # Worker pool size should not exceed the DB pool, each unit holds one connection.
    performance_max_workers: int = int(os.getenv("PERFORMANCE_MAX_WORKERS", "8"))
    performance_report_timeout_seconds: float = float(os.getenv("PERFORMANCE_REPORT_TIMEOUT_SECONDS", "120"))
    performance_top_performers: int = int(os.getenv("PERFORMANCE_TOP_PERFORMERS", "3"))
    # 0 = Monday (ISO week) ... 6 = Sunday
    performance_week_start_day: int = int(os.getenv("PERFORMANCE_WEEK_START_DAY", "0"))
    performance_low_score_threshold: float = float(os.getenv("PERFORMANCE_LOW_SCORE_THRESHOLD", "50"))
    performance_overdue_ratio_threshold: float = float(os.getenv("PERFORMANCE_OVERDUE_RATIO_THRESHOLD", "0.2"))


settings = Settings()
