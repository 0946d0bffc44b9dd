"""Shell commands embedded in the broker pod template.

The pre-stop hook blocks pod termination while this node is the last
healthy replica of any quorum queue or the last synchronised mirror of any
classic mirrored queue. It loops until both checks stop reporting a
critical state; the pod's termination grace period is the only bound.
"""

import shlex
from typing import List, Sequence

from rabbitop.admin.diagnostics import (
    MIRROR_SYNC_CRITICAL_COMMAND,
    PORT_CONNECTIVITY_COMMAND,
    QUORUM_CRITICAL_COMMAND,
    SENTINEL_EXIT_CODE,
)

RETRY_INTERVAL_SECONDS = 2

# One week; bounds how long the pre-stop loop may hold a pod
TERMINATION_GRACE_PERIOD_SECONDS = 60 * 60 * 24 * 7


def _join(command: Sequence[str]) -> str:
    return " ".join(shlex.quote(part) for part in command)


def _critical_check(command: Sequence[str], interval: int) -> str:
    return (
        f"{_join(command)} 2>&1; "
        f"if [ $(echo $?) -eq {SENTINEL_EXIT_CODE} ]; then sleep {interval}; continue; fi;"
    )


def pre_stop_command(interval: int = RETRY_INTERVAL_SECONDS) -> List[str]:
    script = " ".join(
        [
            "while true; do",
            _critical_check(QUORUM_CRITICAL_COMMAND, interval),
            _critical_check(MIRROR_SYNC_CRITICAL_COMMAND, interval),
            "break; done",
        ]
    )
    return ["/bin/bash", "-c", script]


def readiness_command() -> List[str]:
    return ["/bin/sh", "-c", _join(PORT_CONNECTIVITY_COMMAND)]
