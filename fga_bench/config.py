"""
Benchmark suite -- Configuration.

Defines environment-specific configuration classes for talking to the
OpenFGA API, plus the :class:`Sizing` parameters that decide how many
fixtures each workload pre-creates.  The ``get_config`` factory selects
the right class from the ``FGA_BENCH_ENV`` environment variable (or an
explicit key), and :func:`load_sizing` overlays an optional YAML
profile on top of the class defaults.

Key Concepts Demonstrated:
- Class-based configuration with inheritance for DRY defaults
- Environment-variable overrides for 12-factor deployability
- Explicit, validated pool sizes instead of guessed constants
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

from fga_bench.errors import ConfigurationError
from fga_bench.hierarchy import PAIR_OWN_ROOT, PAIRINGS


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Sizing:
    """
    How many fixtures each workload prepares before the measured phase.

    Every pool must hold at least as many fixtures as the harness runs
    invocations against it; a pool that runs dry aborts the run with a
    :class:`~fga_bench.errors.PoolExhaustedError` naming the field to
    raise here.

    Attributes:
        batch_size: Maximum tuples per write/delete request.
        create_pool: Tuples pre-generated for the create benchmark.
        delete_pool: Tuples persisted for the delete benchmark.
        lookup_pool: Tuples in each of the lookup benchmark's pools.
        hierarchies: Hierarchies built for the transitive lookup.
        hierarchy_depth: Subgroup links per hierarchy.
        hierarchies_per_batch: Hierarchies persisted per write request.
        pairing: ``"own"`` or ``"previous"`` root pairing.
    """

    batch_size: int = 1000
    create_pool: int = 40_000
    delete_pool: int = 40_000
    lookup_pool: int = 100_000
    hierarchies: int = 60_000
    hierarchy_depth: int = 5
    hierarchies_per_batch: int = 100
    pairing: str = PAIR_OWN_ROOT

    def __post_init__(self) -> None:
        for item in fields(self):
            value = getattr(self, item.name)
            if item.name == "pairing":
                if value not in PAIRINGS:
                    raise ConfigurationError(f"pairing must be one of {PAIRINGS}, got {value!r}")
                continue
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ConfigurationError(f"{item.name} must be an integer >= 1, got {value!r}")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class Config:
    """
    Base (shared) configuration for the benchmark suite.

    Individual settings can be overridden by environment variables,
    following 12-factor conventions.
    """

    # Base URL of the OpenFGA HTTP API.
    API_URL: str = os.environ.get("OPENFGA_API_URL", "http://localhost:8080")

    # Static bearer token; left empty for an unauthenticated local server.
    API_TOKEN: str = os.environ.get("OPENFGA_API_TOKEN", "")

    REQUEST_TIMEOUT: float = float(os.environ.get("OPENFGA_REQUEST_TIMEOUT", "10"))

    # Optional JSON model replacing the bundled one.
    AUTHORIZATION_MODEL_PATH: str | None = os.environ.get("FGA_BENCH_MODEL_PATH") or None

    # Each run creates a uniquely named store; deleting it is opt-in.
    DELETE_STORE_ON_EXIT: bool = _env_flag("FGA_BENCH_DELETE_STORE")

    LOG_LEVEL: str = os.environ.get("FGA_BENCH_LOG_LEVEL", "INFO")

    SIZING: Sizing = Sizing()


class DevelopmentConfig(Config):
    """
    Local runs against a developer's OpenFGA container.

    This is the default environment.  Pools are a tenth of the full
    size and logging is at DEBUG; use ``FGA_BENCH_ENV=production`` or a
    sizing profile for full-size runs.
    """

    LOG_LEVEL: str = os.environ.get("FGA_BENCH_LOG_LEVEL", "DEBUG")
    SIZING: Sizing = Sizing(
        create_pool=4_000,
        delete_pool=4_000,
        lookup_pool=10_000,
        hierarchies=6_000,
    )


class TestingConfig(Config):
    """
    Test-suite overrides.

    Points the API at a non-routable host so unit tests never reach a
    real server, and shrinks every pool so fixtures build instantly.
    """

    API_URL: str = os.environ.get("TEST_OPENFGA_API_URL", "http://openfga.test")
    API_TOKEN: str = "test-token"
    REQUEST_TIMEOUT: float = 1
    DELETE_STORE_ON_EXIT: bool = False
    SIZING: Sizing = Sizing(
        batch_size=10,
        create_pool=25,
        delete_pool=25,
        lookup_pool=25,
        hierarchies=12,
        hierarchy_depth=3,
        hierarchies_per_batch=4,
    )


class ProductionConfig(Config):
    """Full-size pools; all connection settings come from the environment."""


# Lookup table mapping environment name strings to their config classes.
config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}


def get_config(env: str | None = None) -> type[Config]:
    """
    Return the configuration class for the given environment.

    Args:
        env: One of ``"development"``, ``"testing"``, or
            ``"production"``.  When *None*, the ``FGA_BENCH_ENV``
            environment variable is consulted, falling back to
            ``"development"`` if unset.

    Returns:
        The ``Config`` subclass matching the requested environment,
        or ``DevelopmentConfig`` if the key is unrecognised.
    """
    if env is None:
        env = os.environ.get("FGA_BENCH_ENV", "development")
    return config.get(env, config["default"])


def load_sizing(path: str | Path | None = None, base: Sizing | None = None) -> Sizing:
    """
    Overlay a YAML sizing profile on ``base``.

    The profile is a flat mapping of :class:`Sizing` field names, e.g.::

        create_pool: 5000
        hierarchies: 2000
        pairing: previous

    Args:
        path: YAML file to read; ``None`` returns ``base`` unchanged.
        base: Starting values, defaulting to ``Sizing()``.

    Returns:
        A validated :class:`Sizing`.

    Raises:
        ConfigurationError: If the file is unreadable, is not a mapping,
            names an unknown field, or holds an invalid value.
    """
    base = base or Sizing()
    if path is None:
        return base

    try:
        with Path(path).open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Could not read sizing profile {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigurationError(f"Sizing profile {path} must be a mapping")

    known = {item.name for item in fields(Sizing)}
    unknown = sorted(map(str, set(data) - known))
    if unknown:
        raise ConfigurationError(f"Unknown sizing keys in {path}: {', '.join(unknown)}")

    return replace(base, **data)
