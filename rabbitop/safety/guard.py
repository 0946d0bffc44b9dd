import asyncio
import logging
from typing import Optional

from rabbitop.admin.client import ClusterAdmin
from rabbitop.admin.diagnostics import DiagnosticOutcome, DiagnosticResult
from rabbitop.safety.prestop import RETRY_INTERVAL_SECONDS
from rabbitop.utils.errors import SafetyCheckTimeout

logger = logging.getLogger(__name__)


class TerminationGuard:
    """Blocks until a broker node can be stopped without losing data.

    Each round runs the quorum check and then the mirror-sync check. A
    critical answer from either sleeps ``interval`` seconds and starts a new
    round; only a round where neither is critical lets shutdown proceed.
    A check that fails outright (exit code other than 0 or 69) does not
    hold shutdown back, it is logged and treated as passed.

    The wait is cancellable and, when ``timeout`` is given, bounded.
    """

    def __init__(
        self,
        admin: ClusterAdmin,
        interval: float = RETRY_INTERVAL_SECONDS,
        logger: logging.Logger = logger,
    ) -> None:
        self.admin = admin
        self.interval = interval
        self.logger = logger
        self.attempts = 0

    async def wait_until_safe(self, timeout: Optional[float] = None) -> int:
        """Wait for a safe state and return the number of rounds it took.

        Raises:
            SafetyCheckTimeout: if ``timeout`` seconds pass first.
        """
        self.attempts = 0
        try:
            await asyncio.wait_for(self._poll(), timeout)
        except asyncio.TimeoutError as ex:
            raise SafetyCheckTimeout(timeout, self.attempts) from ex
        return self.attempts

    async def _poll(self) -> None:
        while True:
            self.attempts += 1
            if self._is_critical(await self.admin.check_quorum_critical()):
                await asyncio.sleep(self.interval)
                continue
            if self._is_critical(await self.admin.check_mirror_sync_critical()):
                await asyncio.sleep(self.interval)
                continue
            return

    def _is_critical(self, outcome: DiagnosticOutcome) -> bool:
        result = outcome.result
        command = " ".join(outcome.command)
        if result is DiagnosticResult.CRITICAL:
            self.logger.info(f"`{command}` reports a critical node, waiting {self.interval}s")
            return True
        if result is DiagnosticResult.UNKNOWN:
            self.logger.warning(
                f"`{command}` failed with exit code {outcome.exit_code}, not blocking shutdown: {outcome.output}"
            )
        return False
