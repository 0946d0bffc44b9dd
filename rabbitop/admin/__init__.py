from rabbitop.admin.diagnostics import (
    SENTINEL_EXIT_CODE,
    DiagnosticOutcome,
    DiagnosticResult,
    classify_exit_code,
)
from rabbitop.admin.runners import LocalCommandRunner, PodExecCommandRunner
from rabbitop.admin.client import ClusterAdmin

__all__ = [
    "SENTINEL_EXIT_CODE",
    "DiagnosticOutcome",
    "DiagnosticResult",
    "classify_exit_code",
    "LocalCommandRunner",
    "PodExecCommandRunner",
    "ClusterAdmin",
]
