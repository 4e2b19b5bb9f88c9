"""ViewModel package for dashboard UI state and command surfaces.

Call context:
    View modules (NiceGUI pages, Tk frames) construct a ``DashboardVM`` per
    view instance, bind its observables, and close it on teardown.

Dependencies:
    Domain value objects, scheduling primitives from ``dashcore.app`` and the
    retrying invoker from ``dashcore.usecases``. Fetch callables are injected.
"""
