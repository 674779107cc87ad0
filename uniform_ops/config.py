from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_database: str = "uniform-ordering"
    mongodb_timeout_ms: int = 5000

    # Application
    environment: str = "development"
    log_level: str = "info"

    # Identifiers
    canonical_code_length: int = 6
    canonical_code_start: int = 100001

    # Reports
    report_preview_size: int = 30
    report_dir: str = "reports"
    backup_dir: str = "backups"

    # Migration log
    migration_log_collection: str = "status_migration_logs"
    migration_log_enabled: bool = True

    # Redis / Celery
    celery_broker_url: str = "redis://localhost:6379/0"
    celery_result_backend: str = "redis://localhost:6379/1"

    # Scheduled audits (UTC hour)
    audit_schedule_hour: int = 2


settings = Settings()
