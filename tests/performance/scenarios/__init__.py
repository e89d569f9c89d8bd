"""
Locust scenario user classes.

Each module in this package groups the ``User`` subclasses for one
family of benchmarks:

- :mod:`.relationships` -- relationship creation and deletion
- :mod:`.lookups` -- direct and transitive relationship checks

All concrete scenarios inherit from :class:`.base.WorkloadUser`, which
binds the user to the workload prepared at test start.
"""
