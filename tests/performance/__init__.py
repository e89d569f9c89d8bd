"""
Performance testing package (Locust-based).

Contains the Locust user classes and helper utilities that drive the
:mod:`fga_bench.workloads` against a live OpenFGA server.  Each Locust
task performs exactly one timed API call on a pre-generated fixture, so
the statistics Locust reports are the service's latency for that
operation and nothing else.

Key Concepts Demonstrated:
- Non-HTTP clients reported through Locust's ``request`` event
- Tagged scenarios so a run selects its benchmarks via ``--tags``
- Fixture setup and teardown hooked to ``test_start`` / ``test_stop``
"""
