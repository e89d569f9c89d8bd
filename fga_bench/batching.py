"""
Batched persistence of fixture tuples.

The OpenFGA API caps how many tuples one write request may carry, so
every bulk write or delete in the suite goes through
:class:`BatchWriter`, which slices its input into bounded chunks and
sends them one request at a time.

The two provisioning helpers generate fixtures and persist them as they
go, so a large pool never has to be held twice in memory.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from typing import TYPE_CHECKING

from fga_bench.errors import ConfigurationError, ServiceError
from fga_bench.hierarchy import build_hierarchies
from fga_bench.tuples import RelationshipTuple, new_user_reader_tuple

if TYPE_CHECKING:
    from fga_bench.client import FgaClient

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 1000


def chunked(items: Sequence[RelationshipTuple], size: int) -> Iterator[Sequence[RelationshipTuple]]:
    """Yield consecutive slices of ``items`` holding at most ``size`` elements."""
    if size < 1:
        raise ConfigurationError("batch_size must be greater than or equal to 1.")
    for start in range(0, len(items), size):
        yield items[start:start + size]


class BatchWriter:
    """
    Writes and deletes tuples in chunks of at most ``batch_size``.

    Attributes:
        client: The client every chunk is sent through.
        batch_size: Maximum tuples per request.
    """

    def __init__(self, client: FgaClient, batch_size: int = DEFAULT_BATCH_SIZE):
        if batch_size < 1:
            raise ConfigurationError("batch_size must be greater than or equal to 1.")
        self.client = client
        self.batch_size = batch_size

    def write(self, tuples: Sequence[RelationshipTuple]) -> int:
        """Persist ``tuples``; returns the number of requests sent."""
        requests_sent = 0
        for batch in chunked(tuples, self.batch_size):
            self.client.write(writes=batch)
            requests_sent += 1
            logger.debug("Wrote batch of %d tuples", len(batch))
        return requests_sent

    def delete(self, tuples: Sequence[RelationshipTuple], *, tolerate_missing: bool = False) -> int:
        """
        Delete ``tuples``; returns the number of requests that succeeded.

        Args:
            tuples: Tuples to remove.
            tolerate_missing: Log and skip a chunk the service rejects
                because one of its tuples no longer exists, instead of
                raising.

        Raises:
            ServiceError: For any failure not covered by
                ``tolerate_missing``.
        """
        deleted = 0
        for batch in chunked(tuples, self.batch_size):
            try:
                self.client.write(deletes=batch)
            except ServiceError as exc:
                if not (tolerate_missing and exc.is_missing_tuple_delete):
                    raise
                logger.warning("Skipping delete batch of %d tuples: %s", len(batch), exc.message)
                continue
            deleted += 1
            logger.debug("Deleted batch of %d tuples", len(batch))
        return deleted


def create_user_reader_tuples(total: int, writer: BatchWriter | None = None) -> list[RelationshipTuple]:
    """
    Generate ``total`` user-reader tuples, persisting them if ``writer`` is set.

    Tuples are generated and written one batch at a time, so 2500 tuples
    with a batch size of 1000 produce writes of 1000, 1000 and 500.

    Raises:
        ConfigurationError: If ``total`` is below 1.
    """
    if total < 1:
        raise ConfigurationError("total must be greater than or equal to 1.")

    batch_size = writer.batch_size if writer else total
    users: list[RelationshipTuple] = []
    remaining = total
    while remaining > 0:
        batch = [new_user_reader_tuple() for _ in range(min(remaining, batch_size))]
        if writer:
            writer.write(batch)
        users.extend(batch)
        remaining -= len(batch)
    return users


def create_hierarchies(
    count: int,
    depth: int,
    writer: BatchWriter,
    hierarchies_per_batch: int = 100,
) -> list[RelationshipTuple]:
    """
    Build and persist ``count`` hierarchies of ``depth`` links.

    Hierarchies are generated ``hierarchies_per_batch`` at a time and
    each group is persisted before the next is built.  The returned list
    keeps the flattened layout of
    :func:`~fga_bench.hierarchy.build_hierarchies`.
    """
    if count < 1:
        raise ConfigurationError("count must be greater than or equal to 1.")
    if hierarchies_per_batch < 1:
        raise ConfigurationError("hierarchies_per_batch must be greater than or equal to 1.")
    if depth < 1:
        raise ConfigurationError("depth must be greater than or equal to 1.")

    groups: list[RelationshipTuple] = []
    remaining = count
    while remaining > 0:
        batch_count = min(remaining, hierarchies_per_batch)
        batch = build_hierarchies(batch_count, depth)
        writer.write(batch)
        groups.extend(batch)
        remaining -= batch_count
        logger.debug("Persisted %d hierarchies, %d remaining", batch_count, remaining)
    return groups
