"""Run the termination guard inside a broker container.

Usage:
    python -m rabbitop.safety [--interval SECONDS] [--timeout SECONDS]

Exits 0 once the node is safe to stop and 1 if the timeout passes first.
"""

import argparse
import asyncio
import logging
import sys

from rabbitop.admin import ClusterAdmin, LocalCommandRunner
from rabbitop.safety.guard import TerminationGuard
from rabbitop.safety.prestop import (
    RETRY_INTERVAL_SECONDS,
    TERMINATION_GRACE_PERIOD_SECONDS,
)
from rabbitop.utils.errors import SafetyCheckTimeout

logger = logging.getLogger("rabbitop.safety")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="python -m rabbitop.safety")
    parser.add_argument("--interval", type=float, default=RETRY_INTERVAL_SECONDS)
    parser.add_argument(
        "--timeout", type=float, default=float(TERMINATION_GRACE_PERIOD_SECONDS)
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    guard = TerminationGuard(ClusterAdmin(LocalCommandRunner()), interval=args.interval)
    try:
        attempts = asyncio.run(guard.wait_until_safe(timeout=args.timeout))
    except SafetyCheckTimeout as ex:
        logger.error(str(ex))
        return 1
    logger.info(f"Node is safe to stop after {attempts} check rounds")
    return 0


if __name__ == "__main__":
    sys.exit(main())
