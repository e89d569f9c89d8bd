"""
Thread-pool benchmark runner and ``fga-bench`` CLI.

Runs one named benchmark: setup, ``iterations`` concurrent invocations
spread over ``threads`` worker threads, then teardown.  Each invocation
is timed with :func:`time.perf_counter`; the first error cancels every
invocation that has not started yet and is re-raised.

This module is the only place in the package that turns an exception
into a process exit code.

Exit codes:

- ``0`` -- every invocation succeeded
- ``1`` -- a benchmark error (service failure, wrong verdict)
- ``2`` -- a configuration error (unknown benchmark, bad sizing, a pool
  that ran dry)

Usage examples::

    fga-bench create --iterations 5000 --threads 8
    fga-bench transitive-lookup --sizing profiles/small.yml --env production
"""

from __future__ import annotations

import argparse
import logging
import math
import statistics
import sys
import time
from collections.abc import Callable, Sequence
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from dataclasses import dataclass

from fga_bench import create_context
from fga_bench.context import BenchmarkContext
from fga_bench.errors import BenchmarkError, ConfigurationError
from fga_bench.workloads import BENCHMARKS, get_benchmark

logger = logging.getLogger(__name__)

EXIT_PASS = 0
EXIT_BENCHMARK_ERROR = 1
EXIT_USAGE_ERROR = 2


@dataclass(frozen=True)
class RunSummary:
    """Latency summary of one benchmark run, in milliseconds."""

    benchmark: str
    count: int
    mean_ms: float
    p50_ms: float
    p95_ms: float
    max_ms: float

    @classmethod
    def from_latencies(cls, benchmark: str, latencies_ms: Sequence[float]) -> RunSummary:
        if not latencies_ms:
            return cls(benchmark, 0, 0.0, 0.0, 0.0, 0.0)

        ordered = sorted(latencies_ms)
        # Nearest-rank percentile.
        p95_index = max(0, math.ceil(0.95 * len(ordered)) - 1)
        return cls(
            benchmark=benchmark,
            count=len(ordered),
            mean_ms=statistics.fmean(ordered),
            p50_ms=statistics.median(ordered),
            p95_ms=ordered[p95_index],
            max_ms=ordered[-1],
        )


def _timed(operation: Callable[[], None]) -> float:
    started = time.perf_counter()
    operation()
    return (time.perf_counter() - started) * 1000.0


def run_benchmark(
    context: BenchmarkContext,
    name: str,
    *,
    iterations: int,
    threads: int = 1,
) -> RunSummary:
    """
    Run benchmark ``name`` against ``context``.

    Args:
        context: Context bound to the store under test.
        name: A key of :data:`~fga_bench.workloads.BENCHMARKS`.
        iterations: Invocations to run; must not exceed the pool size.
        threads: Worker threads sharing the invocations.

    Returns:
        The latency summary of the measured phase.

    Raises:
        ConfigurationError: Before any setup when the arguments cannot
            be satisfied.
        BenchmarkError: The first error raised by setup or an
            invocation.  Teardown is skipped in that case.
    """
    benchmark = get_benchmark(name)
    if iterations < 1 or threads < 1:
        raise ConfigurationError("iterations and threads must be greater than or equal to 1.")

    capacity = benchmark.capacity(context)
    if iterations > capacity:
        raise ConfigurationError(
            f"{name} can serve at most {capacity} invocations; increase {benchmark.sizing_field} "
            f"or lower --iterations (asked for {iterations})."
        )

    workload = benchmark.workload_class(context)
    logger.info("Setting up %s", name)
    workload.setup()

    operation = benchmark.bind(workload)
    logger.info("Running %d invocations of %s on %d threads", iterations, name, threads)
    with ThreadPoolExecutor(max_workers=threads, thread_name_prefix="fga-bench") as pool:
        futures = [pool.submit(_timed, operation) for _ in range(iterations)]
        _, not_done = wait(futures, return_when=FIRST_EXCEPTION)
        for future in not_done:
            future.cancel()

    latencies: list[float] = []
    for future in futures:
        if future.cancelled():
            continue
        # Re-raises the first failure.
        latencies.append(future.result())

    logger.info("Tearing down %s", name)
    workload.teardown()
    return RunSummary.from_latencies(name, latencies)


def print_summary(summary: RunSummary) -> None:
    """Print a human-readable results table to stdout."""
    print(f"Benchmark: {summary.benchmark}")
    print("-" * 48)
    print(f"{'Invocations':<20}{summary.count:>14}")
    print(f"{'Mean (ms)':<20}{summary.mean_ms:>14.2f}")
    print(f"{'P50 (ms)':<20}{summary.p50_ms:>14.2f}")
    print(f"{'P95 (ms)':<20}{summary.p95_ms:>14.2f}")
    print(f"{'Max (ms)':<20}{summary.max_ms:>14.2f}")
    print("-" * 48)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments for the benchmark runner."""
    parser = argparse.ArgumentParser(
        prog="fga-bench",
        description="Benchmark relationship writes, deletes and checks against OpenFGA.",
    )
    parser.add_argument("benchmark", choices=sorted(BENCHMARKS), help="Benchmark to run")
    parser.add_argument("--iterations", type=int, default=1000, help="Invocations to run")
    parser.add_argument("--threads", type=int, default=4, help="Concurrent worker threads")
    parser.add_argument("--sizing", default=None, help="YAML profile overriding pool sizes")
    parser.add_argument("--env", default=None, help="Config environment (development, testing, production)")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    """
    Entry point: build a context, run one benchmark, print the summary.

    Returns:
        One of ``EXIT_PASS``, ``EXIT_BENCHMARK_ERROR`` or ``EXIT_USAGE_ERROR``.
    """
    args = parse_args(argv)

    try:
        context = create_context(args.env, sizing_path=args.sizing)
    except ConfigurationError as exc:
        logger.error("Invalid configuration: %s", exc)
        return EXIT_USAGE_ERROR
    except BenchmarkError as exc:
        logger.error("Could not bootstrap the store: %s", exc)
        return EXIT_BENCHMARK_ERROR

    try:
        summary = run_benchmark(context, args.benchmark, iterations=args.iterations, threads=args.threads)
    except ConfigurationError as exc:
        logger.error("%s", exc)
        return EXIT_USAGE_ERROR
    except BenchmarkError as exc:
        logger.error("Benchmark %s failed: %s", args.benchmark, exc)
        return EXIT_BENCHMARK_ERROR
    finally:
        context.close()

    print_summary(summary)
    return EXIT_PASS


if __name__ == "__main__":
    sys.exit(main())
