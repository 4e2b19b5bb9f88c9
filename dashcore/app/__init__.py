"""Scheduling and lifetime primitives shared by dashboard views.

Modules in this package own timers, loading counters and teardown hooks;
they never perform data I/O themselves.
"""
