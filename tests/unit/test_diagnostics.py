"""Unit tests for diagnostic commands, exit code handling and command runners."""

from unittest.mock import AsyncMock, patch

import pytest
from rabbitop.admin import ClusterAdmin, LocalCommandRunner
from rabbitop.admin.diagnostics import (
    DiagnosticOutcome,
    DiagnosticResult,
    classify_exit_code,
    set_log_level_command,
)
from rabbitop.admin.runners import PodExecCommandRunner, parse_exec_output
from rabbitop.safety.prestop import pre_stop_command


@pytest.mark.parametrize(
    "code,result",
    [
        (0, DiagnosticResult.SAFE),
        (69, DiagnosticResult.CRITICAL),
        (1, DiagnosticResult.UNKNOWN),
        (127, DiagnosticResult.UNKNOWN),
        (None, DiagnosticResult.UNKNOWN),
    ],
)
def test_classify_exit_code(code, result):
    assert classify_exit_code(code) is result


def test_outcome_ok():
    assert DiagnosticOutcome(["x"], 0).ok
    assert not DiagnosticOutcome(["x"], 69).ok


def test_parse_exec_output():
    assert parse_exec_output("all good\n__EXIT_CODE__0\n") == (0, "all good")
    assert parse_exec_output("critical\n__EXIT_CODE__69") == (69, "critical")
    assert parse_exec_output("no marker") == (None, "no marker")
    assert parse_exec_output(None) == (None, "")


def test_pod_exec_wraps_command():
    runner = PodExecCommandRunner("default", "my-cluster-server-0")
    assert runner.wrap(["rabbitmqctl", "set_log_level", "debug"]) == [
        "/bin/sh",
        "-c",
        'rabbitmqctl set_log_level debug 2>&1; echo "__EXIT_CODE__$?"',
    ]


def test_set_log_level_command():
    assert set_log_level_command("debug") == ["rabbitmqctl", "set_log_level", "debug"]
    with pytest.raises(ValueError):
        set_log_level_command("verbose")


def test_pre_stop_command():
    assert pre_stop_command() == [
        "/bin/bash",
        "-c",
        "while true; do "
        "rabbitmq-queues check_if_node_is_quorum_critical 2>&1; "
        "if [ $(echo $?) -eq 69 ]; then sleep 2; continue; fi; "
        "rabbitmq-queues check_if_node_is_mirror_sync_critical 2>&1; "
        "if [ $(echo $?) -eq 69 ]; then sleep 2; continue; fi; "
        "break; done",
    ]


@pytest.mark.asyncio
async def test_cluster_admin_runs_commands():
    runner = AsyncMock()
    runner.run.return_value = DiagnosticOutcome(["rabbitmqctl"], 0)
    admin = ClusterAdmin(runner)
    await admin.enable_all_feature_flags()
    runner.run.assert_awaited_once_with(["rabbitmqctl", "enable_feature_flag", "all"])


@pytest.mark.asyncio
async def test_local_runner_missing_binary():
    with patch(
        "asyncio.create_subprocess_exec",
        AsyncMock(side_effect=FileNotFoundError("rabbitmq-queues")),
    ):
        outcome = await LocalCommandRunner().run(["rabbitmq-queues", "x"])
    assert outcome.exit_code == 127
    assert outcome.result is DiagnosticResult.UNKNOWN
