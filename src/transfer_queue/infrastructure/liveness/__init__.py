"""Worker liveness tokens."""

from transfer_queue.infrastructure.liveness.pid_liveness_token import (
    PidLivenessToken,
    pid_is_running,
)

__all__ = ["PidLivenessToken", "pid_is_running"]
