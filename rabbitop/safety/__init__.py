from rabbitop.safety.guard import TerminationGuard
from rabbitop.safety.prestop import (
    RETRY_INTERVAL_SECONDS,
    TERMINATION_GRACE_PERIOD_SECONDS,
    pre_stop_command,
    readiness_command,
)

__all__ = [
    "TerminationGuard",
    "RETRY_INTERVAL_SECONDS",
    "TERMINATION_GRACE_PERIOD_SECONDS",
    "pre_stop_command",
    "readiness_command",
]
