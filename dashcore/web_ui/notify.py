"""NiceGUI toast notifier for the web runtime."""

from __future__ import annotations

from nicegui import ui


def notify_error(message: str) -> None:
    """Show ``message`` as a dismissible error toast in the current client."""
    ui.notify(str(message), color="negative", close_button="OK")


__all__ = ["notify_error"]
