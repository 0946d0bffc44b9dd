"""RabbitMQ diagnostic commands and how their exit codes are read.

The broker CLIs exit 0 when the checked condition is fine and 69
(EX_UNAVAILABLE) when the node is in a critical state, for example the
only in-sync replica of a quorum queue. Anything else means the check
itself failed.
"""

from enum import Enum
from typing import List, NamedTuple, Optional, Sequence

SENTINEL_EXIT_CODE = 69

PORT_CONNECTIVITY_COMMAND = ["rabbitmq-diagnostics", "check_port_connectivity"]
QUORUM_CRITICAL_COMMAND = ["rabbitmq-queues", "check_if_node_is_quorum_critical"]
MIRROR_SYNC_CRITICAL_COMMAND = ["rabbitmq-queues", "check_if_node_is_mirror_sync_critical"]
ENABLE_FEATURE_FLAGS_COMMAND = ["rabbitmqctl", "enable_feature_flag", "all"]

LOG_LEVELS = ("debug", "info", "warning", "error", "critical", "none")


class DiagnosticResult(Enum):
    SAFE = "safe"
    CRITICAL = "critical"
    UNKNOWN = "unknown"


def classify_exit_code(exit_code: Optional[int]) -> DiagnosticResult:
    if exit_code == 0:
        return DiagnosticResult.SAFE
    if exit_code == SENTINEL_EXIT_CODE:
        return DiagnosticResult.CRITICAL
    return DiagnosticResult.UNKNOWN


class DiagnosticOutcome(NamedTuple):
    """A finished diagnostic command."""

    command: Sequence[str]
    exit_code: Optional[int]
    output: str = ""

    @property
    def result(self) -> DiagnosticResult:
        return classify_exit_code(self.exit_code)

    @property
    def ok(self) -> bool:
        return self.result is DiagnosticResult.SAFE


def set_log_level_command(level: str) -> List[str]:
    if level not in LOG_LEVELS:
        raise ValueError(
            f"Invalid log level {level!r}, expected one of {', '.join(LOG_LEVELS)}"
        )
    return ["rabbitmqctl", "set_log_level", level]
