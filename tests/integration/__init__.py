"""
Integration tests for the benchmark package.

Tests exercise the HTTP client against a scripted ``requests`` session
and the workloads and runner against the in-memory OpenFGA double from
``tests/conftest.py``.
"""
