"""Adapter package for external I/O facing types.

Purpose:
    Typed REST failures produced by dashboard data fetchers and concrete
    implementations of the host ports (translation tables).

Dependencies:
    ``api_errors`` depends on ``requests`` exception types; the rest is pure.

Call context:
    Imported by the error classifier and by tests that simulate backend
    failures.
"""
