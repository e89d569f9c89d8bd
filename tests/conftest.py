"""
Shared pytest fixtures for the benchmark test suite.

Provides an in-memory stand-in for the OpenFGA API so workloads,
batching and the runner can be exercised end to end without a server.
The fake records every write request and enforces OpenFGA's refusal to
delete tuples that do not exist.  By default it answers checks by
walking subgroup links from a leaf up to its root, the traversal the
transitive benchmark intends; with ``follow_subgroups=False`` it answers
the way a real OpenFGA server does for these tuples, direct grants only.

Key SDET Concepts Demonstrated:
- Hand-written fakes for an external service with a fixed contract
- Fixture factories for contexts with tailored sizing
- Environment variable overrides applied before importing the package
"""

from __future__ import annotations

# Locust monkey-patches ssl via gevent on import; it must load before
# requests/urllib3 (pulled in by fga_bench) import ssl.
import locust  # noqa: F401, E402

import json
import os
import threading
from collections.abc import Iterable
from dataclasses import replace

import pytest

os.environ["FGA_BENCH_ENV"] = "testing"

from fga_bench.batching import BatchWriter
from fga_bench.client import CheckResult, WriteResult
from fga_bench.config import TestingConfig
from fga_bench.context import BenchmarkContext
from fga_bench.errors import INVALID_WRITE_INPUT_CODE, MISSING_TUPLE_MESSAGE, ServiceError
from fga_bench.tuples import GROUP_TYPE, SUBGROUP, RelationshipTuple, split_ref


class FakeFgaClient:
    """
    In-memory OpenFGA double matching :class:`fga_bench.client.FgaClient`.

    Checks are allowed when the tuple was written directly, or, while
    ``follow_subgroups`` is set, when the user is a group and a group
    reachable beneath it through subgroup links holds the relation on
    the object.  No OpenFGA model resolves checks that way.
    """

    def __init__(self, follow_subgroups: bool = True):
        self.follow_subgroups = follow_subgroups
        self.store_id = "01HSTORETEST"
        self.authorization_model_id = "01HMODELTEST"
        self.tuples: set[RelationshipTuple] = set()
        self.write_calls: list[tuple[list[RelationshipTuple], list[RelationshipTuple]]] = []
        self.check_calls: list[RelationshipTuple] = []
        self.closed = False
        self.store_deleted = False
        self.fail_writes_with: ServiceError | None = None
        self._lock = threading.Lock()

    # ---- write -------------------------------------------------------

    def write(
        self,
        writes: Iterable[RelationshipTuple] = (),
        deletes: Iterable[RelationshipTuple] = (),
    ) -> WriteResult:
        writes = list(writes)
        deletes = list(deletes)
        with self._lock:
            self.write_calls.append((writes, deletes))
            if self.fail_writes_with is not None:
                raise self.fail_writes_with

            missing = [t for t in deletes if t not in self.tuples]
            if missing:
                first = missing[0]
                message = (
                    f"{MISSING_TUPLE_MESSAGE}: user: '{first.user}', relation: "
                    f"'{first.relation}', object: '{first.object}': invalid write input"
                )
                body = {"code": INVALID_WRITE_INPUT_CODE, "message": message}
                raise ServiceError.from_body("delete relationship", 400, body, json.dumps(body))

            self.tuples.update(writes)
            self.tuples.difference_update(deletes)
        return WriteResult(status_code=200, raw="{}")

    @property
    def written_batches(self) -> list[int]:
        return [len(writes) for writes, _ in self.write_calls if writes]

    @property
    def deleted_batches(self) -> list[int]:
        return [len(deletes) for _, deletes in self.write_calls if deletes]

    # ---- check -------------------------------------------------------

    def _reachable_groups(self, group: str) -> set[str]:
        seen = {group}
        frontier = [group]
        while frontier:
            current = frontier.pop()
            for t in self.tuples:
                if t.relation == SUBGROUP and t.object == current and t.user not in seen:
                    seen.add(t.user)
                    frontier.append(t.user)
        return seen

    def check(self, user: str, relation: str, obj: str) -> CheckResult:
        with self._lock:
            self.check_calls.append(RelationshipTuple(user, relation, obj))
            allowed = RelationshipTuple(user, relation, obj) in self.tuples
            if not allowed and self.follow_subgroups and split_ref(user)[0] == GROUP_TYPE:
                allowed = any(
                    RelationshipTuple(group, relation, obj) in self.tuples
                    for group in self._reachable_groups(user)
                )
        return CheckResult(status_code=200, allowed=allowed, raw=json.dumps({"allowed": allowed}))

    def check_tuple(self, relationship: RelationshipTuple) -> CheckResult:
        return self.check(relationship.user, relationship.relation, relationship.object)

    # ---- lifecycle ---------------------------------------------------

    def delete_store(self) -> None:
        self.store_deleted = True
        self.store_id = None

    def close(self) -> None:
        self.closed = True


@pytest.fixture(scope="function")
def fake_client():
    """Provide a fresh in-memory OpenFGA double for each test."""
    return FakeFgaClient()


@pytest.fixture(scope="function")
def make_context(fake_client):
    """
    Factory fixture building a context around ``fake_client``.

    Keyword arguments override fields of the testing config's sizing.

    Usage:
        def test_example(make_context):
            context = make_context(create_pool=3)
    """

    def _make_context(**sizing_overrides) -> BenchmarkContext:
        sizing = replace(TestingConfig.SIZING, **sizing_overrides)
        return BenchmarkContext(
            client=fake_client,
            writer=BatchWriter(fake_client, sizing.batch_size),
            sizing=sizing,
            config=TestingConfig,
        )

    return _make_context


@pytest.fixture(scope="function")
def context(make_context):
    """Provide a context with the testing config's default sizing."""
    return make_context()
