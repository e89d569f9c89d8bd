# ruff: noqa: E402
"""
Locust entrypoint for the OpenFGA benchmarks.

This is the file that the ``locust`` CLI discovers and loads.  It
imports every concrete user class and wires up three event listeners:

- ``init`` builds the :class:`~fga_bench.context.BenchmarkContext`
  (fresh store + model) and narrows the user classes to the requested
  ``--tags``.
- ``test_start`` runs each selected workload's setup once, before any
  user spawns.
- ``test_stop`` runs teardown and, when configured, deletes the store.

Run it as a single local process; setup is not coordinated across
``--master``/``--worker`` processes.

Usage examples::

    # Time relationship writes with 8 concurrent users:
    locust -f tests/performance/locustfile.py --headless -u 8 -r 8 \\
        --run-time 1m --tags create

    # Direct lookups, both existing and non-existing relationships:
    locust -f tests/performance/locustfile.py --headless -u 8 -r 8 \\
        --run-time 1m --tags lookup-existent lookup-nonexistent

Connection settings come from ``OPENFGA_API_URL`` / ``OPENFGA_API_TOKEN``
and pool sizes from ``FGA_BENCH_SIZING`` (a YAML profile), see
:mod:`fga_bench.config`.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

from locust import events
from locust.runners import MasterRunner

# Locust may be invoked from any directory.  Inserting the project root
# onto ``sys.path`` guarantees that ``from tests.performance.…`` imports
# always resolve.
PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from fga_bench import create_context
from fga_bench.errors import BenchmarkError
from fga_bench.workloads import get_benchmark
from tests.performance.helpers import stop_run
from tests.performance.scenarios.lookups import (
    ExistingLookupUser,
    NonexistentLookupUser,
    TransitiveLookupUser,
)
from tests.performance.scenarios.relationships import (
    RelationshipCreationUser,
    RelationshipDeletionUser,
)

logger = logging.getLogger(__name__)

__all__ = [
    "RelationshipCreationUser",
    "RelationshipDeletionUser",
    "ExistingLookupUser",
    "NonexistentLookupUser",
    "TransitiveLookupUser",
]

# Maps CLI ``--tags`` values to concrete user classes.  Every benchmark
# preloads a large fixture pool, so running all of them by accident is
# expensive: without tags only the create benchmark runs.
TAG_TO_USER_CLASS = {
    "create": RelationshipCreationUser,
    "delete": RelationshipDeletionUser,
    "lookup-existent": ExistingLookupUser,
    "lookup-nonexistent": NonexistentLookupUser,
    "transitive-lookup": TransitiveLookupUser,
}
DEFAULT_TAGS = ("create",)


@events.init.add_listener
def _prepare_context(environment, **_kwargs):
    """Select user classes from ``--tags`` and bootstrap a fresh store."""
    parsed = environment.parsed_options
    selected_tags = set(getattr(parsed, "tags", None) or DEFAULT_TAGS)
    environment.user_classes = [
        user_class for tag, user_class in TAG_TO_USER_CLASS.items() if tag in selected_tags
    ]
    environment.fga_workloads = {}

    if isinstance(environment.runner, MasterRunner):
        return

    try:
        environment.fga_context = create_context(sizing_path=os.environ.get("FGA_BENCH_SIZING"))
    except BenchmarkError as exc:
        environment.fga_context = None
        stop_run(environment, f"could not bootstrap the store: {exc}")


@events.test_start.add_listener
def _setup_workloads(environment, **_kwargs):
    """Run setup once per workload class needed by the selected users."""
    context = getattr(environment, "fga_context", None)
    if context is None:
        return

    for user_class in environment.user_classes:
        benchmark = get_benchmark(user_class.benchmark_name)
        if benchmark.workload_class in environment.fga_workloads:
            continue

        workload = benchmark.workload_class(context)
        try:
            workload.setup()
        except BenchmarkError as exc:
            stop_run(environment, f"setup of {benchmark.name} failed: {exc}")
            return
        environment.fga_workloads[benchmark.workload_class] = workload


@events.test_stop.add_listener
def _teardown_workloads(environment, **_kwargs):
    """Delete every persisted fixture, then release the context."""
    context = getattr(environment, "fga_context", None)
    if context is None:
        return

    if environment.process_exit_code:
        # A failed run leaves its fixtures in the run's own store.
        logger.warning("Skipping teardown after a failed run")
    else:
        for workload in environment.fga_workloads.values():
            try:
                workload.teardown()
            except BenchmarkError as exc:
                logger.error("Teardown of %s failed: %s", workload.name, exc)
                environment.process_exit_code = 1

    environment.fga_workloads = {}
    environment.fga_context = None
    context.close()
