"""
OpenFGA relationship benchmarks -- Context Factory.

This module provides :func:`create_context`, the single place where a
benchmark run is wired together: logging, the HTTP client, a fresh
uniquely-named store, the authorization model, and the workload sizing.
Every workload receives the resulting
:class:`~fga_bench.context.BenchmarkContext` explicitly; nothing in the
package holds a client in module scope.

Key Concepts Demonstrated:
- Factory pattern (create_context) mirroring an application factory
- Environment-aware configuration loading via get_config
- One isolated store per run so fixtures never leak between runs
"""

from __future__ import annotations

import logging
from pathlib import Path

from fga_bench.batching import BatchWriter
from fga_bench.client import FgaClient
from fga_bench.config import get_config, load_sizing
from fga_bench.context import BenchmarkContext
from fga_bench.model import load_authorization_model
from fga_bench.tuples import new_id

__all__ = ["BenchmarkContext", "create_context"]

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def create_context(
    config_name: str | None = None,
    *,
    sizing_path: str | Path | None = None,
    client: FgaClient | None = None,
    bootstrap: bool = True,
) -> BenchmarkContext:
    """
    Construct a ready-to-use benchmark context.

    Args:
        config_name: Optional environment key ("development", "testing",
            "production").  When *None*, the FGA_BENCH_ENV environment
            variable is consulted, defaulting to "development".
        sizing_path: Optional YAML profile overriding the config's sizing.
        client: Pre-built client; one is created from config if omitted.
        bootstrap: Create a store and write the authorization model.
            Pass ``False`` when ``client`` is already bound to a store.

    Returns:
        A :class:`BenchmarkContext` whose client is bound to a fresh store.
    """
    config_class = get_config(config_name)
    configure_logging(config_class.LOG_LEVEL)
    logger.info("Creating benchmark context with config: %s", config_class.__name__)

    sizing = load_sizing(sizing_path, config_class.SIZING)
    if client is None:
        client = FgaClient(
            config_class.API_URL,
            api_token=config_class.API_TOKEN or None,
            timeout=config_class.REQUEST_TIMEOUT,
        )

    if bootstrap:
        # The model can only be written once a store exists.
        client.create_store(new_id())
        client.write_authorization_model(load_authorization_model(config_class.AUTHORIZATION_MODEL_PATH))

    return BenchmarkContext(
        client=client,
        writer=BatchWriter(client, sizing.batch_size),
        sizing=sizing,
        config=config_class,
    )
