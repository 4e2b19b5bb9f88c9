"""NiceGUI entrypoint serving one resilient dashboard page.

The page polls a JSON endpoint through ``DashboardVM``: failures are retried
per ``ResilienceSettings``, surfaced as a banner plus toast, and the whole VM
is closed when the browser tab disconnects.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Optional, Sequence

import requests
from nicegui import Client, ui

from dashcore.adapters.api_errors import error_from_response, error_from_transport
from dashcore.domain.settings import ResilienceSettings
from dashcore.utils.logging import configure_root
from dashcore.viewmodels.dashboard_vm import DashboardVM
from dashcore.web_ui.notify import notify_error

LOGGER = logging.getLogger(__name__)

DATASET = "stats"


def build_dashboard_vm(settings: Optional[ResilienceSettings] = None, **kwargs: Any) -> DashboardVM:
    """Create a VM whose user-visible errors are NiceGUI toasts."""
    return DashboardVM(
        notify=notify_error,
        settings=settings or ResilienceSettings.from_env(),
        **kwargs,
    )


def fetch_json(
    url: str,
    *,
    session: Optional[requests.Session] = None,
    timeout: float = 5.0,
) -> Callable[[], Awaitable[Any]]:
    """Return an async fetcher for ``url`` that raises typed API errors."""
    http = session or requests.Session()
    ctx = f"GET {url}"

    def _get() -> Any:
        try:
            resp = http.get(url, timeout=timeout)
        except requests.RequestException as exc:
            raise error_from_transport(exc, ctx) from exc
        err = error_from_response(resp, ctx)
        if err is not None:
            raise err
        return resp.json()

    async def fetch() -> Any:
        return await asyncio.to_thread(_get)

    return fetch


def _build_ui(url: str, settings: ResilienceSettings, interval_s: float) -> None:
    """Register the dashboard page."""

    @ui.page("/")
    async def index(client: Client) -> None:
        vm = build_dashboard_vm(settings)
        fetch = fetch_json(url)
        client.on_disconnect(vm.close)

        def reload() -> None:
            if not vm.closed:
                vm.scope.spawn(vm.refresh(DATASET, fetch), name=f"refresh:{DATASET}")

        def poll() -> None:
            if not vm.closed and not vm.is_loading:
                vm.spawn_load(DATASET, fetch)

        @ui.refreshable
        def render_status() -> None:
            state = vm.error_state
            with ui.row().classes("w-full items-center q-gutter-sm"):
                ui.label(url).classes("text-caption")
                if vm.is_loading:
                    ui.spinner(size="sm")
            if state.has_error:
                with ui.row().classes("w-full items-center q-gutter-sm"):
                    ui.label(state.message).classes("text-negative")
                    ui.button("Retry", on_click=reload, color="primary").props("dense")
                    ui.button("Dismiss", on_click=vm.clear_error).props("dense flat")

        @ui.refreshable
        def render_data() -> None:
            data = vm.source(DATASET).value
            if data is None:
                ui.label("No data yet.").classes("text-grey-6")
                return
            ui.code(json.dumps(data, indent=2, sort_keys=True)).classes("w-full")

        for unsubscribe in (
            vm.errors.state.subscribe(lambda *_: render_status.refresh()),
            vm.loading.state.subscribe(lambda *_: render_status.refresh()),
        ):
            vm.scope.add_teardown(unsubscribe)
        vm.watch(DATASET, lambda new, old: render_data.refresh())

        with ui.column().classes("w-full q-pa-md"):
            ui.label("Dashboard").classes("text-h5")
            render_status()
            render_data()

        poll()
        ui.timer(interval_s, poll)


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Serve a dashcore dashboard page.")
    parser.add_argument("--url", default="http://127.0.0.1:8000/api/dashboard/stats")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8080)
    parser.add_argument("--interval", type=float, default=30.0, help="Poll interval in seconds")
    parser.add_argument("--reload", action="store_true")
    parser.add_argument("--smoke-test", action="store_true")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    """CLI entrypoint for the dashboard page."""
    args = _parse_args(argv)
    configure_root()
    settings = ResilienceSettings.from_env()
    if args.smoke_test:
        print("web-smoke-ok", json.dumps(settings.to_payload(), sort_keys=True))
        return
    _build_ui(args.url, settings, max(1.0, args.interval))
    LOGGER.info("Serving dashboard for %s on %s:%d", args.url, args.host, args.port)
    ui.run(
        host=args.host,
        port=args.port,
        title="Dashboard",
        reload=args.reload,
        show=False,
    )


if __name__ == "__main__":
    main()
