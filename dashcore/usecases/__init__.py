"""Use-case layer for error classification and retrying data loads.

Modules here coordinate domain value objects and host ports without
performing transport I/O directly; fetch callables are injected by views.
"""
