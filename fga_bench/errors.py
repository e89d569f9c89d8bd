"""
Error taxonomy for the benchmark suite.

Library code (fixture builders, pools, the client, workloads) raises
these exceptions and never exits the process.  Only the outermost
drivers -- :func:`fga_bench.runner.main` and the Locust harness --
decide whether an error terminates the run.

Hierarchy::

    BenchmarkError
    ├── ConfigurationError          bad arguments, sizing or pairing
    │   └── PoolExhaustedError      a fixture pool ran dry mid-run
    ├── ServiceError                non-2xx answer from the service
    │   └── TransportError          the request never got an answer
    └── VerdictMismatchError        a check disagreed with the fixture
"""

from __future__ import annotations

from typing import Any

# Validation error code OpenFGA returns for writes/deletes it rejects.
INVALID_WRITE_INPUT_CODE = "write_failed_due_to_invalid_input"
MISSING_TUPLE_MESSAGE = "cannot delete a tuple which does not exist"


class BenchmarkError(Exception):
    """Base class for every error raised by the benchmark suite."""


class ConfigurationError(BenchmarkError, ValueError):
    """Invalid count/depth/batch arguments or an invalid sizing profile."""


class PoolExhaustedError(ConfigurationError):
    """
    A workload pool was empty when an invocation needed a fixture.

    This is a sizing mistake, not a runtime condition: the pool must
    hold at least as many fixtures as the harness runs invocations.
    """

    def __init__(self, pool_name: str, sizing_field: str | None = None):
        self.pool_name = pool_name
        self.sizing_field = sizing_field
        message = f"Failed to retrieve tuple from {pool_name}. The pool is empty."
        if sizing_field:
            message += f" Try increasing {sizing_field}."
        super().__init__(message)


class ServiceError(BenchmarkError):
    """
    The authorization service answered with a non-2xx status.

    Attributes:
        status_code: HTTP status, or ``None`` when no response arrived.
        code: The service's error code from the JSON body, if any.
        message: The service's error message, if any.
        raw: The raw response body as text.
    """

    def __init__(
        self,
        operation: str,
        status_code: int | None,
        *,
        code: str | None = None,
        message: str | None = None,
        raw: str = "",
    ):
        self.operation = operation
        self.status_code = status_code
        self.code = code
        self.message = message
        self.raw = raw
        super().__init__(f"Failed to {operation} (status={status_code}): {raw or message}")

    @classmethod
    def from_body(cls, operation: str, status_code: int, body: Any, raw: str) -> ServiceError:
        """Build an error from a decoded JSON error body."""
        code = message = None
        if isinstance(body, dict):
            code = body.get("code")
            message = body.get("message")
        return cls(operation, status_code, code=code, message=message, raw=raw)

    @property
    def is_missing_tuple_delete(self) -> bool:
        """True when the service refused to delete a tuple that does not exist."""
        return self.code == INVALID_WRITE_INPUT_CODE and MISSING_TUPLE_MESSAGE in (self.message or "")


class TransportError(ServiceError):
    """The request failed below HTTP (timeout, refused connection, DNS)."""

    def __init__(self, operation: str, reason: str):
        super().__init__(operation, None, message=reason)


class VerdictMismatchError(BenchmarkError, AssertionError):
    """A check's allowed/denied verdict disagreed with the fixture's ground truth."""

    def __init__(self, user: str, relation: str, obj: str, *, expected: bool, raw: str = ""):
        self.user = user
        self.relation = relation
        self.object = obj
        self.expected = expected
        self.raw = raw
        if expected:
            summary = "Relationship does not exist, but it should"
        else:
            summary = "Relationship exists, but it should not"
        super().__init__(f"{summary}: {user} {relation} {obj}")
