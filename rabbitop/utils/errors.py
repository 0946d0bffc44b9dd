import json
import kopf
import kubernetes_asyncio

_ALREADY_EXISTS = "alreadyexists"
_NOT_FOUND = "notfound"
_CONFLICT = "conflict"


class ConstructionError(Exception):
    """A desired object could not be derived from the cluster spec.

    Raised for malformed derived values (for example an unparsable resource
    quantity) and for ownership failures. Aborts the reconcile pass.
    """


class ConflictError(Exception):
    """A write lost an optimistic concurrency race.

    The object changed between read and write, or was created by someone
    else between an absent read and our create. The pass is redone.
    """

    def __init__(self, kind: str, name: str, reason: str = None) -> None:
        self.kind = kind
        self.name = name
        self.reason = reason
        message = f"Conflict writing {kind} {name}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ValidationWarning(UserWarning):
    """Non-fatal policy concern about the desired state."""


class SafetyCheckTimeout(Exception):
    """The termination guard's deadline passed before a safe state was seen."""

    def __init__(self, timeout: float, attempts: int) -> None:
        self.timeout = timeout
        self.attempts = attempts
        super().__init__(
            f"Node was still critical after {attempts} checks within {timeout}s"
        )


def _reason(ex: kubernetes_asyncio.client.ApiException) -> str:
    try:
        err = json.loads(ex.body)
    except (TypeError, ValueError):
        return ""
    if not isinstance(err, dict):
        return ""
    return (err.get("reason") or "").lower()


def not_found_error(ex: kubernetes_asyncio.client.ApiException) -> bool:
    if not isinstance(ex, kubernetes_asyncio.client.ApiException):
        return False
    return ex.status == 404 or _reason(ex) == _NOT_FOUND


def conflict_error(ex: kubernetes_asyncio.client.ApiException) -> bool:
    """True for both stale resourceVersion conflicts and create races."""
    if not isinstance(ex, kubernetes_asyncio.client.ApiException):
        return False
    return ex.status == 409 or _reason(ex) in (_CONFLICT, _ALREADY_EXISTS)


def convert_api_exception(ex: kubernetes_asyncio.client.ApiException, permanent: bool = None, delay: float = 30):
    """
    Convert kubernetes ApiException to a Kopf-friendly exception.

    Args:
        ex: The ApiException to convert
        permanent: If True, raises PermanentError (won't retry). If False, raises TemporaryError (will retry).
                   If None, automatically determines based on status code.
        delay: Seconds kopf waits before retrying a TemporaryError.

    Raises:
        kopf.TemporaryError or kopf.PermanentError with serializable error details
    """
    if not isinstance(ex, kubernetes_asyncio.client.ApiException):
        raise ex

    error_msg = f"Kubernetes API error ({ex.status}): {ex.reason}"

    try:
        if ex.body:
            body = json.loads(ex.body)
            if "message" in body:
                error_msg = f"{error_msg} - {body['message']}"
    except (json.JSONDecodeError, AttributeError, TypeError):
        pass

    # 4xx errors (except 408, 409, 429) are typically permanent
    if permanent is None:
        is_permanent = ex.status is not None and 400 <= ex.status < 500 and ex.status not in [408, 409, 429]
    else:
        is_permanent = permanent

    if is_permanent:
        raise kopf.PermanentError(error_msg) from ex
    raise kopf.TemporaryError(error_msg, delay=delay) from ex
