"""Application settings."""

from enum import StrEnum
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogLevel(StrEnum):
    """Log levels accepted for the worker log."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables."""

    app_name: str = "Transfer Queue"
    api_prefix: str = ""
    host: str = "127.0.0.1"
    port: int = 8085
    state_dir: Path = Field(default_factory=lambda: Path.home() / ".transfer_queue")
    queue_file_name: str = "queue.json"
    lock_file_name: str = "queue.lock"
    worker_pid_file_name: str = "worker.pid"
    log_file_name: str = "transfer_queue.log"
    log_level: LogLevel = LogLevel.INFO
    max_retries: int = 3
    connection_ceiling: int = 2
    poll_interval_seconds: float = 5.0
    idle_poll_limit: int = 12
    launch_stagger_seconds: float = 1.0
    batch_cooldown_seconds: float = 2.0
    worker_stop_timeout_seconds: float = 10.0
    auto_start_worker: bool = True
    rclone_binary: str = "rclone"
    rclone_timeout: str = "5m"
    rclone_connect_timeout: str = "60s"
    rclone_low_level_retries: int = 3
    rclone_retries: int = 1
    rclone_stats_interval: str = "30s"
    rclone_log_level: str = "INFO"

    @property
    def queue_path(self) -> Path:
        return self.state_dir / self.queue_file_name

    @property
    def lock_path(self) -> Path:
        return self.state_dir / self.lock_file_name

    @property
    def worker_pid_path(self) -> Path:
        return self.state_dir / self.worker_pid_file_name

    @property
    def log_path(self) -> Path:
        return self.state_dir / self.log_file_name

    @model_validator(mode="after")
    def validate_worker_settings(self) -> "Settings":
        """Ensure scheduling and engine settings are usable."""

        if self.max_retries < 1:
            raise ValueError("TRANSFER_QUEUE_MAX_RETRIES must be >= 1.")
        if self.connection_ceiling < 1:
            raise ValueError("TRANSFER_QUEUE_CONNECTION_CEILING must be >= 1.")
        if self.poll_interval_seconds <= 0:
            raise ValueError("TRANSFER_QUEUE_POLL_INTERVAL_SECONDS must be > 0.")
        if self.idle_poll_limit < 1:
            raise ValueError("TRANSFER_QUEUE_IDLE_POLL_LIMIT must be >= 1.")
        if self.launch_stagger_seconds < 0:
            raise ValueError("TRANSFER_QUEUE_LAUNCH_STAGGER_SECONDS must be >= 0.")
        if self.batch_cooldown_seconds < 0:
            raise ValueError("TRANSFER_QUEUE_BATCH_COOLDOWN_SECONDS must be >= 0.")
        if self.worker_stop_timeout_seconds <= 0:
            raise ValueError("TRANSFER_QUEUE_WORKER_STOP_TIMEOUT_SECONDS must be > 0.")
        if not 1 <= self.port <= 65535:
            raise ValueError("TRANSFER_QUEUE_PORT must be between 1 and 65535.")
        if self.rclone_low_level_retries < 0 or self.rclone_retries < 0:
            raise ValueError("TRANSFER_QUEUE_RCLONE_*_RETRIES must be >= 0.")
        if len({self.queue_file_name, self.lock_file_name, self.worker_pid_file_name}) != 3:
            raise ValueError(
                "Queue, lock, and worker PID file names must be distinct."
            )
        return self

    model_config = SettingsConfigDict(env_prefix="TRANSFER_QUEUE_", extra="ignore")


__all__ = ["LogLevel", "Settings"]
