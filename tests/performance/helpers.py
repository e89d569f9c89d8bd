"""
Helper utilities for the Locust benchmark scenarios.

Locust only records what it is told about, and our workloads talk to
OpenFGA through :class:`~fga_bench.client.FgaClient` rather than a
Locust ``HttpSession``.  These helpers time one workload invocation,
report it through Locust's ``request`` event, and stop the whole run
when the invocation fails -- a failed benchmark invocation means the
fixture data can no longer be trusted.

Key Concepts Demonstrated:
- Reporting non-HTTP calls to Locust via ``events.request.fire``
- Fail-fast shutdown with a non-zero process exit code
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

from fga_bench.errors import BenchmarkError

logger = logging.getLogger(__name__)

REQUEST_TYPE = "openfga"


def report_invocation(environment: Any, name: str, operation: Callable[[], None]) -> bool:
    """
    Run ``operation`` once, reporting its latency to Locust.

    Args:
        environment: The Locust ``Environment``.
        name: Request name shown in Locust statistics.
        operation: The bound workload invocation.

    Returns:
        ``True`` on success, ``False`` when the run has been stopped.
    """
    started = time.perf_counter()
    exception: BaseException | None = None
    try:
        operation()
    except BenchmarkError as exc:
        exception = exc

    environment.events.request.fire(
        request_type=REQUEST_TYPE,
        name=name,
        response_time=(time.perf_counter() - started) * 1000.0,
        response_length=0,
        exception=exception,
        context={},
    )

    if exception is not None:
        stop_run(environment, f"{name} failed: {exception}")
        return False
    return True


def stop_run(environment: Any, reason: str) -> None:
    """Log ``reason``, mark the process as failed and quit the runner."""
    logger.error("Stopping benchmark run: %s", reason)
    environment.process_exit_code = 1
    if environment.runner is not None:
        environment.runner.quit()
