"""Per-run handle threaded through every workload."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fga_bench.batching import BatchWriter
from fga_bench.client import FgaClient
from fga_bench.config import Config, Sizing

logger = logging.getLogger(__name__)


@dataclass
class BenchmarkContext:
    """
    Everything a workload needs to talk to the service.

    Owned by the harness (runner or Locust environment) and passed to
    each workload explicitly.

    Attributes:
        client: Client bound to this run's store and model.
        writer: Batch writer sharing ``client``.
        sizing: Pool sizes for every workload.
        config: The configuration class the context was built from.
    """

    client: FgaClient
    writer: BatchWriter
    sizing: Sizing
    config: type[Config] = Config

    def close(self) -> None:
        """Release the HTTP session, deleting the store first if configured to."""
        try:
            if self.config.DELETE_STORE_ON_EXIT and self.client.store_id:
                self.client.delete_store()
        finally:
            self.client.close()
