"""
Group hierarchy fixtures for the transitive lookup benchmark.

A hierarchy is a chain of ``depth`` subgroup tuples in which each
tuple's object is the next tuple's user::

    group:g0 subgroup group:g1
    group:g1 subgroup group:g2
    ...
    group:g{d-1} subgroup group:g{d}

The chain's *root* is ``group:g0`` (user of the first tuple) and its
*leaf* is ``group:g{d}`` (object of the last tuple).

:func:`build_hierarchies` concatenates ``count`` independent chains
into one flat list.  Hierarchy ``i`` always occupies positions
``[i*depth, (i+1)*depth)``, its root tuple sits at ``i*depth`` and its
leaf tuple at ``(i+1)*depth - 1``.  The lookup workload relies on that
layout to find roots and leaves without any bookkeeping.

Key Concepts Demonstrated:
- Shape invariants that hold regardless of the random ids generated
- Index arithmetic over a flattened sequence of fixed-size chunks
- Argument validation that fails before any output is produced
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from fga_bench.errors import ConfigurationError
from fga_bench.tuples import (
    RelationshipTuple,
    new_group_reader_tuple,
    new_id,
    new_subgroup_tuple,
    split_ref,
)

PAIR_OWN_ROOT = "own"
PAIR_PREVIOUS_ROOT = "previous"
PAIRINGS = (PAIR_OWN_ROOT, PAIR_PREVIOUS_ROOT)


def _require_positive(name: str, value: int) -> None:
    if value < 1:
        raise ConfigurationError(f"{name} must be greater than or equal to 1.")


def build_hierarchy(depth: int) -> list[RelationshipTuple]:
    """Build one chain of ``depth`` subgroup tuples, ordered root to leaf."""
    _require_positive("depth", depth)

    group_ids = [new_id() for _ in range(depth + 1)]
    return [new_subgroup_tuple(group_ids[j], group_ids[j + 1]) for j in range(depth)]


def build_hierarchies(count: int, depth: int) -> list[RelationshipTuple]:
    """
    Build ``count`` independent hierarchies as one flattened list.

    Args:
        count: Number of hierarchies, at least 1.
        depth: Subgroup links per hierarchy, at least 1.

    Returns:
        ``count * depth`` subgroup tuples; each hierarchy's tuples are
        contiguous and ordered root to leaf.

    Raises:
        ConfigurationError: If ``count`` or ``depth`` is below 1.
    """
    _require_positive("count", count)
    _require_positive("depth", depth)

    tuples: list[RelationshipTuple] = []
    for _ in range(count):
        tuples.extend(build_hierarchy(depth))
    return tuples


def _check_index(tuples: Sequence[RelationshipTuple], index: int, depth: int) -> None:
    _require_positive("depth", depth)
    count = len(tuples) // depth
    if not 0 <= index < count:
        raise ConfigurationError(f"Hierarchy index {index} is out of range for {count} hierarchies.")


def root_of(tuples: Sequence[RelationshipTuple], index: int, depth: int) -> str:
    """Return the root group (``group:<id>``) of hierarchy ``index``."""
    _check_index(tuples, index, depth)
    return tuples[index * depth].user


def leaf_of(tuples: Sequence[RelationshipTuple], index: int, depth: int) -> str:
    """Return the leaf group (``group:<id>``) of hierarchy ``index``."""
    _check_index(tuples, index, depth)
    return tuples[(index + 1) * depth - 1].object


@dataclass
class TransitiveWorkload:
    """
    Fixtures for the transitive lookup benchmark.

    Attributes:
        lookups: ``group:<leaf> reader report:<id>`` checks, one per paired
            hierarchy, each expected to be allowed.
        capstones: ``group:<root> reader report:<id>`` grants that must be
            written so the lookups can succeed.
    """

    lookups: list[RelationshipTuple] = field(default_factory=list)
    capstones: list[RelationshipTuple] = field(default_factory=list)


def derive_transitive_workload(
    tuples: Sequence[RelationshipTuple],
    count: int,
    depth: int,
    report_id: str,
    pairing: str = PAIR_OWN_ROOT,
) -> TransitiveWorkload:
    """
    Pair hierarchy leaves with capstone grants on hierarchy roots.

    With ``pairing="own"`` every hierarchy contributes a lookup from its
    leaf and a capstone on its own root.  With ``pairing="previous"``
    hierarchy 0 is skipped and hierarchy ``i``'s leaf is paired with
    hierarchy ``i - 1``'s root, yielding ``count - 1`` pairs.

    Args:
        tuples: Output of :func:`build_hierarchies`.
        count: Number of hierarchies in ``tuples``.
        depth: Links per hierarchy.
        report_id: Id of the single report every capstone grants.
        pairing: ``"own"`` or ``"previous"``.

    Returns:
        Parallel lists of lookups and capstones.

    Raises:
        ConfigurationError: On a bad pairing or a sequence whose length
            is not ``count * depth``.
    """
    _require_positive("count", count)
    _require_positive("depth", depth)
    if pairing not in PAIRINGS:
        raise ConfigurationError(f"Unknown pairing {pairing!r}; expected one of {PAIRINGS}.")
    if len(tuples) != count * depth:
        raise ConfigurationError(
            f"Expected {count * depth} hierarchy tuples for {count}x{depth}, got {len(tuples)}."
        )

    offset = 0 if pairing == PAIR_OWN_ROOT else 1
    workload = TransitiveWorkload()
    for i in range(offset, count):
        _, leaf_id = split_ref(leaf_of(tuples, i, depth))
        _, root_id = split_ref(root_of(tuples, i - offset, depth))

        workload.lookups.append(new_group_reader_tuple(leaf_id, report_id))
        workload.capstones.append(new_group_reader_tuple(root_id, report_id))
    return workload
