import os
from typing import Any

_TRUE, _FALSE = {"True", "true", "yes", "1"}, {"False", "false", "no", "0"}


def _getenv(name: str, *default: Any) -> Any:
    try:
        v = os.environ[name]
        if v in _TRUE:
            return True
        elif v in _FALSE:
            return False
        else:
            return v
    except KeyError:
        pass
    if default:
        return default[0]
    raise KeyError(name)


# ------------------------------------------------
# ---- Defaults and environment variables ----
# ------------------------------------------------

#: RabbitMQ image used when a cluster does not specify one
DEFAULT_IMAGE = _getenv("DEFAULT_IMAGE", "rabbitmq:3.8.9-management")

#: Persistent storage requested per replica when a cluster does not specify it
DEFAULT_STORAGE_SIZE = _getenv("DEFAULT_STORAGE_SIZE", "10Gi")

#: Seconds kopf waits before retrying a failed reconciliation
RETRY_DELAY_SECONDS = int(_getenv("RETRY_DELAY_SECONDS", 30))

#: Number of times a reconcile pass is redone after a write conflict
CONFLICT_RETRY_LIMIT = int(_getenv("CONFLICT_RETRY_LIMIT", 3))

#: Seconds between periodic reconciliations of every cluster
PERIODIC_RECONCILE_INTERVAL_SECONDS = float(
    _getenv("PERIODIC_RECONCILE_INTERVAL_SECONDS", 60.0)
)

#: Maximum number of clusters reconciled concurrently
WORKER_LIMIT = int(_getenv("WORKER_LIMIT", 4))

#: Enable all feature flags on a cluster once a new image has rolled out
FEATURE_FLAGS_AUTO_ENABLE = bool(_getenv("FEATURE_FLAGS_AUTO_ENABLE", True))


class Settings:
    """Operator settings"""

    default_image: str = DEFAULT_IMAGE
    default_storage_size: str = DEFAULT_STORAGE_SIZE
    retry_delay_seconds: int = RETRY_DELAY_SECONDS
    conflict_retry_limit: int = CONFLICT_RETRY_LIMIT
    periodic_reconcile_interval_seconds: float = PERIODIC_RECONCILE_INTERVAL_SECONDS
    worker_limit: int = WORKER_LIMIT
    feature_flags_auto_enable: bool = FEATURE_FLAGS_AUTO_ENABLE

    def __init__(
        self,
        *args,
        default_image: str = None,
        default_storage_size: str = None,
        retry_delay_seconds: int = None,
        conflict_retry_limit: int = None,
        periodic_reconcile_interval_seconds: float = None,
        worker_limit: int = None,
        feature_flags_auto_enable: bool = None,
        **kwargs,
    ):
        if default_image is not None:
            self.default_image = default_image

        if default_storage_size is not None:
            self.default_storage_size = default_storage_size

        if retry_delay_seconds is not None:
            self.retry_delay_seconds = retry_delay_seconds

        if conflict_retry_limit is not None:
            self.conflict_retry_limit = conflict_retry_limit

        if periodic_reconcile_interval_seconds is not None:
            self.periodic_reconcile_interval_seconds = (
                periodic_reconcile_interval_seconds
            )

        if worker_limit is not None:
            self.worker_limit = worker_limit

        if feature_flags_auto_enable is not None:
            self.feature_flags_auto_enable = feature_flags_auto_enable
