"""Unit tests for Kubernetes API error classification."""

import json

import kopf
import pytest
from kubernetes_asyncio.client import ApiException
from rabbitop.utils.errors import (
    ConflictError,
    conflict_error,
    convert_api_exception,
    not_found_error,
)


def api_exception(status, reason=None, message=None):
    ex = ApiException(status=status, reason=reason)
    if message or reason:
        ex.body = json.dumps({"reason": reason, "message": message})
    return ex


def test_classification():
    assert not_found_error(api_exception(404, "NotFound"))
    assert conflict_error(api_exception(409, "Conflict"))
    assert conflict_error(api_exception(409, "AlreadyExists"))
    assert not conflict_error(api_exception(500))
    assert not conflict_error(ValueError("x"))


@pytest.mark.parametrize("status", [400, 403, 422])
def test_client_errors_are_permanent(status):
    with pytest.raises(kopf.PermanentError):
        convert_api_exception(api_exception(status, "Invalid", "spec.replicas: Invalid value"))


@pytest.mark.parametrize("status", [409, 429, 500, 503])
def test_other_errors_are_temporary(status):
    with pytest.raises(kopf.TemporaryError) as info:
        convert_api_exception(api_exception(status), delay=5)
    assert info.value.delay == 5


def test_message_is_included():
    with pytest.raises(kopf.PermanentError, match="Invalid value"):
        convert_api_exception(api_exception(422, "Invalid", "spec.replicas: Invalid value"))


def test_conflict_error_message():
    assert str(ConflictError("StatefulSet", "my-cluster-server", "modified concurrently")) == (
        "Conflict writing StatefulSet my-cluster-server: modified concurrently"
    )
