from rabbitop.admin.diagnostics import (
    ENABLE_FEATURE_FLAGS_COMMAND,
    MIRROR_SYNC_CRITICAL_COMMAND,
    PORT_CONNECTIVITY_COMMAND,
    QUORUM_CRITICAL_COMMAND,
    DiagnosticOutcome,
    set_log_level_command,
)
from rabbitop.admin.runners import CommandRunner


class ClusterAdmin:
    """Runs broker diagnostics and admin commands on one node.

    Where the commands execute is up to the runner: locally inside the
    broker container or remotely through pod exec.
    """

    def __init__(self, runner: CommandRunner) -> None:
        self.runner = runner

    async def check_port_connectivity(self) -> DiagnosticOutcome:
        return await self.runner.run(PORT_CONNECTIVITY_COMMAND)

    async def check_quorum_critical(self) -> DiagnosticOutcome:
        return await self.runner.run(QUORUM_CRITICAL_COMMAND)

    async def check_mirror_sync_critical(self) -> DiagnosticOutcome:
        return await self.runner.run(MIRROR_SYNC_CRITICAL_COMMAND)

    async def set_log_level(self, level: str) -> DiagnosticOutcome:
        return await self.runner.run(set_log_level_command(level))

    async def enable_all_feature_flags(self) -> DiagnosticOutcome:
        return await self.runner.run(ENABLE_FEATURE_FLAGS_COMMAND)
