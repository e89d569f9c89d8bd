"""
Benchmark workloads.

Each workload prepares fixtures in :meth:`Workload.setup`, exposes one
or more invocation methods that the harness calls concurrently and
times, and cleans the service up in :meth:`Workload.teardown`.

Setup and teardown run single-threaded.  During the measured phase the
pools are the only shared mutable state; every invocation takes exactly
one fixture from a pool and makes exactly one timed API call.

Key Concepts Demonstrated:
- Setup / invoke / teardown lifecycle decoupled from any one harness
- Pre-generated fixture pools so invocations measure only the API call
- Ground-truth verification of every check verdict
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from fga_bench.batching import create_hierarchies, create_user_reader_tuples
from fga_bench.config import Sizing
from fga_bench.context import BenchmarkContext
from fga_bench.errors import ConfigurationError, VerdictMismatchError
from fga_bench.hierarchy import PAIR_PREVIOUS_ROOT, derive_transitive_workload
from fga_bench.pools import WorkloadQueue
from fga_bench.tuples import RelationshipTuple, new_id

logger = logging.getLogger(__name__)


class Workload:
    """
    Base workload bound to one :class:`BenchmarkContext`.

    Subclasses override :meth:`setup` and :meth:`teardown` and define
    the invocation methods listed in :data:`BENCHMARKS`.
    """

    name = "workload"
    # Sizing field bounding how many invocations one setup can serve.
    sizing_field = ""

    def __init__(self, context: BenchmarkContext):
        self.context = context
        self.client = context.client
        self.writer = context.writer
        self.sizing = context.sizing

    @classmethod
    def capacity(cls, sizing: Sizing) -> int:
        """Maximum invocations one setup of this workload can serve."""
        return getattr(sizing, cls.sizing_field)

    def setup(self) -> None:
        """Prepare fixtures before the measured phase."""

    def teardown(self) -> None:
        """Remove every tuple this workload persisted."""

    def _verify(self, relationship: RelationshipTuple, *, expected: bool) -> None:
        result = self.client.check_tuple(relationship)
        if result.allowed != expected:
            raise VerdictMismatchError(
                relationship.user,
                relationship.relation,
                relationship.object,
                expected=expected,
                raw=result.raw,
            )


class CreateWorkload(Workload):
    """Time writing one new relationship per invocation."""

    name = "create"
    sizing_field = "create_pool"

    def __init__(self, context: BenchmarkContext):
        super().__init__(context)
        # Pre-generated, not yet written.
        self.write_queue: WorkloadQueue[RelationshipTuple] = WorkloadQueue("write_queue", "create_pool")
        # Written during the run; removed at teardown.
        self.delete_queue: WorkloadQueue[RelationshipTuple] = WorkloadQueue("delete_queue")

    def setup(self) -> None:
        self.write_queue.populate(create_user_reader_tuples(self.sizing.create_pool))
        logger.info("Pre-generated %d relationships to create", len(self.write_queue))

    def invoke(self) -> None:
        relationship = self.write_queue.take()
        self.client.write(writes=[relationship])
        self.delete_queue.push(relationship)

    def teardown(self) -> None:
        created = self.delete_queue.drain()
        self.writer.delete(created)
        self.write_queue.clear()
        logger.info("Deleted %d created relationships", len(created))


class DeleteWorkload(Workload):
    """Time deleting one existing relationship per invocation."""

    name = "delete"
    sizing_field = "delete_pool"

    def __init__(self, context: BenchmarkContext):
        super().__init__(context)
        self.delete_queue: WorkloadQueue[RelationshipTuple] = WorkloadQueue("delete_queue", "delete_pool")

    def setup(self) -> None:
        self.delete_queue.populate(create_user_reader_tuples(self.sizing.delete_pool, self.writer))
        logger.info("Persisted %d relationships to delete", len(self.delete_queue))

    def invoke(self) -> None:
        relationship = self.delete_queue.take()
        self.client.write(deletes=[relationship])

    def teardown(self) -> None:
        remaining = self.delete_queue.drain()
        self.writer.delete(remaining)
        logger.info("Deleted %d leftover relationships", len(remaining))


class LookupWorkload(Workload):
    """
    Time direct checks for relationships that do and do not exist.

    Both pools are sized by ``lookup_pool``.  Only the existent pool is
    persisted; its tuples are remembered separately so teardown removes
    them even after the pool itself has been drained.
    """

    name = "lookup"
    sizing_field = "lookup_pool"

    def __init__(self, context: BenchmarkContext):
        super().__init__(context)
        self.existent_queue: WorkloadQueue[RelationshipTuple] = WorkloadQueue("existent_lookup_queue", "lookup_pool")
        self.nonexistent_queue: WorkloadQueue[RelationshipTuple] = WorkloadQueue(
            "nonexistent_lookup_queue", "lookup_pool"
        )
        self._persisted: list[RelationshipTuple] = []

    def setup(self) -> None:
        self._persisted = create_user_reader_tuples(self.sizing.lookup_pool, self.writer)
        self.existent_queue.populate(self._persisted)
        self.nonexistent_queue.populate(create_user_reader_tuples(self.sizing.lookup_pool))
        logger.info("Prepared %d existent and %d non-existent lookups", len(self.existent_queue), len(self.nonexistent_queue))

    def invoke_existent(self) -> None:
        self._verify(self.existent_queue.take(), expected=True)

    def invoke_nonexistent(self) -> None:
        self._verify(self.nonexistent_queue.take(), expected=False)

    def teardown(self) -> None:
        self.writer.delete(self._persisted)
        logger.info("Deleted %d lookup relationships", len(self._persisted))
        self._persisted = []
        self.existent_queue.clear()
        self.nonexistent_queue.clear()


class TransitiveLookupWorkload(Workload):
    """
    Time checks that must traverse a group hierarchy.

    Setup builds ``hierarchies`` chains of ``hierarchy_depth`` subgroup
    links, grants one shared report to each chain's root and queues a
    ``leaf reader report`` check per chain.  Which root a leaf is paired
    with follows ``sizing.pairing``.

    Against a real OpenFGA server these checks are denied and every
    invocation fails with :class:`VerdictMismatchError`.  OpenFGA resolves
    a check from the object towards its users: the report's grant names
    ``group:<root>``, and a root only ever appears as the user of a
    subgroup tuple, never as an object.  No authorization model can
    therefore lead from the report's grant down to a leaf.  The verdict
    expected here is the one the fixture layout intends, a leaf reading
    every report granted to its chain's root.
    """

    name = "transitive-lookup"
    sizing_field = "hierarchies"

    def __init__(self, context: BenchmarkContext):
        super().__init__(context)
        self.lookup_queue: WorkloadQueue[RelationshipTuple] = WorkloadQueue("lookup_queue", "hierarchies")
        # Shared by every capstone, just to make things easy.
        self.report_id = new_id()
        self._persisted: list[RelationshipTuple] = []

    @classmethod
    def capacity(cls, sizing: Sizing) -> int:
        if sizing.pairing == PAIR_PREVIOUS_ROOT:
            return sizing.hierarchies - 1
        return sizing.hierarchies

    def setup(self) -> None:
        sizing = self.sizing
        if sizing.pairing == PAIR_PREVIOUS_ROOT and sizing.hierarchies < 2:
            raise ConfigurationError("previous-root pairing needs at least 2 hierarchies.")

        groups = create_hierarchies(
            sizing.hierarchies,
            sizing.hierarchy_depth,
            self.writer,
            sizing.hierarchies_per_batch,
        )
        self._persisted.extend(groups)

        workload = derive_transitive_workload(
            groups,
            sizing.hierarchies,
            sizing.hierarchy_depth,
            self.report_id,
            sizing.pairing,
        )
        self.writer.write(workload.capstones)
        self._persisted.extend(workload.capstones)
        self.lookup_queue.populate(workload.lookups)
        logger.info(
            "Persisted %d hierarchies of depth %d with %d capstones",
            sizing.hierarchies,
            sizing.hierarchy_depth,
            len(workload.capstones),
        )

    def invoke(self) -> None:
        self._verify(self.lookup_queue.take(), expected=True)

    def teardown(self) -> None:
        # Cleanup is best-effort: a batch holding an already-missing tuple is skipped.
        self.writer.delete(self._persisted, tolerate_missing=True)
        logger.info("Deleted %d hierarchy relationships", len(self._persisted))
        self._persisted = []
        self.lookup_queue.clear()


@dataclass(frozen=True)
class Benchmark:
    """
    A named benchmark: which workload to build and which method to time.

    Attributes:
        name: CLI / Locust tag name.
        workload_class: Workload providing setup and teardown.
        method: Name of the invocation method to call per iteration.
    """

    name: str
    workload_class: type[Workload]
    method: str

    @property
    def sizing_field(self) -> str:
        return self.workload_class.sizing_field

    def capacity(self, context: BenchmarkContext) -> int:
        """Maximum invocations the workload's pool can serve."""
        return self.workload_class.capacity(context.sizing)

    def bind(self, workload: Workload) -> Callable[[], None]:
        return getattr(workload, self.method)


BENCHMARKS: dict[str, Benchmark] = {
    benchmark.name: benchmark
    for benchmark in (
        Benchmark("create", CreateWorkload, "invoke"),
        Benchmark("delete", DeleteWorkload, "invoke"),
        Benchmark("lookup-existent", LookupWorkload, "invoke_existent"),
        Benchmark("lookup-nonexistent", LookupWorkload, "invoke_nonexistent"),
        Benchmark("transitive-lookup", TransitiveLookupWorkload, "invoke"),
    )
}


def get_benchmark(name: str) -> Benchmark:
    """Look up a registered benchmark, raising ConfigurationError if unknown."""
    try:
        return BENCHMARKS[name]
    except KeyError:
        raise ConfigurationError(f"Unknown benchmark {name!r}; choose from {', '.join(BENCHMARKS)}") from None
