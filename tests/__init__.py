"""
Test suite for the OpenFGA relationship benchmarks.

This package contains:
- unit/: pure tests for tuples, hierarchies, pools, batching and config
- integration/: client, workloads and runner driven against fakes
- performance/: the Locust harness that drives a live server
"""
