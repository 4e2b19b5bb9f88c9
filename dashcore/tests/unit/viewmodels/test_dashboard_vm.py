from __future__ import annotations

import asyncio
from typing import Any, List

import pytest

from dashcore.adapters.api_errors import ApiClientError, ApiTimeoutError
from dashcore.domain.errors import ErrorKind
from dashcore.domain.retry_policy import RetryPolicy
from dashcore.viewmodels.dashboard_vm import DashboardVM


def _make_vm(scheduler, recording_sleep, **kwargs) -> DashboardVM:
    return DashboardVM(scheduler=scheduler, sleep=recording_sleep, rng=lambda: 1.0, **kwargs)


@pytest.mark.asyncio
async def test_load_publishes_result_and_schedules_recompute(
    scheduler, fake_timers, recording_sleep
) -> None:
    vm = _make_vm(scheduler, recording_sleep)
    totals: List[int] = []

    async def get_dashboard_stats() -> dict:
        return {"orders": 3, "revenue": 120}

    result = await vm.load(
        "stats", get_dashboard_stats, apply=lambda stats: totals.append(stats["revenue"])
    )

    assert result == {"orders": 3, "revenue": 120}
    assert vm.source("stats").value == result
    assert totals == []
    fake_timers.advance(100)
    assert totals == [120]


@pytest.mark.asyncio
async def test_recompute_burst_coalesces_to_latest(scheduler, fake_timers, recording_sleep) -> None:
    vm = _make_vm(scheduler, recording_sleep)
    applied: List[int] = []
    values = iter([1, 2, 3])

    async def fetch() -> int:
        return next(values)

    for _ in range(3):
        await vm.load("count", fetch, apply=applied.append)
    fake_timers.advance(100)

    assert applied == [3]


@pytest.mark.asyncio
async def test_network_failure_retries_then_surfaces_error(
    scheduler, recording_sleep
) -> None:
    toasts: List[str] = []
    vm = _make_vm(scheduler, recording_sleep, notify=toasts.append)
    calls = []

    async def fetch() -> None:
        calls.append(vm.is_loading)
        raise ApiTimeoutError("Timeout contacting http://dash/stats")

    with pytest.raises(ApiTimeoutError):
        await vm.load("stats", fetch, policy=RetryPolicy(max_retries=2, base_delay_ms=100))

    assert calls == [True, True, True]
    assert vm.is_loading is False
    assert vm.error_state.kind is ErrorKind.NETWORK
    assert vm.error_state.retry_count == 2
    assert len(toasts) == 1
    assert vm.source("stats").value is None


@pytest.mark.asyncio
async def test_stale_result_does_not_overwrite_newer(scheduler, recording_sleep) -> None:
    vm = _make_vm(scheduler, recording_sleep)
    release_old = asyncio.Event()

    async def old_fetch() -> str:
        await release_old.wait()
        return "old"

    async def new_fetch() -> str:
        return "new"

    old_task = asyncio.create_task(vm.load("stats", old_fetch))
    await asyncio.sleep(0)
    assert vm.is_loading is True

    assert await vm.load("stats", new_fetch) == "new"
    assert vm.is_loading is True

    release_old.set()
    assert await old_task == "old"

    assert vm.source("stats").value == "new"
    assert vm.is_loading is False


@pytest.mark.asyncio
async def test_refresh_clears_error_before_reloading(scheduler, recording_sleep) -> None:
    vm = _make_vm(scheduler, recording_sleep)
    vm.errors.set_error("Data request failed.", ErrorKind.DATA)
    states: List[bool] = []

    async def fetch() -> int:
        states.append(vm.error_state.has_error)
        return 1

    assert await vm.refresh("stats", fetch) == 1
    assert states == [False]
    assert vm.error_state.has_error is False


@pytest.mark.asyncio
async def test_load_safe_publishes_fallback_silently(scheduler, recording_sleep) -> None:
    toasts: List[str] = []
    vm = _make_vm(scheduler, recording_sleep, notify=toasts.append)

    async def fetch() -> list:
        raise ApiClientError("ctx", status=404)

    assert await vm.load_safe("alerts", fetch, []) == []
    assert vm.source("alerts").value == []
    assert vm.error_state.kind is ErrorKind.DATA
    assert toasts == []
    assert vm.is_loading is False


@pytest.mark.asyncio
async def test_close_cancels_spawned_loads_and_watchers(
    scheduler, fake_timers, recording_sleep
) -> None:
    vm = _make_vm(scheduler, recording_sleep)
    seen: List[Any] = []
    vm.watch("stats", lambda new, old: seen.append(new), 10)

    async def hang() -> None:
        await asyncio.Event().wait()

    task = vm.spawn_load("stats", hang)
    await asyncio.sleep(0)
    assert vm.is_loading is True

    vm.close()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert vm.is_loading is False
    assert vm.closed is True
    vm.source("stats").set({"late": True})
    fake_timers.advance(100)
    assert seen == []


@pytest.mark.asyncio
async def test_load_after_close_is_rejected(scheduler, recording_sleep) -> None:
    async with _make_vm(scheduler, recording_sleep) as vm:
        pass

    async def fetch() -> int:
        return 1

    with pytest.raises(RuntimeError):
        await vm.load("stats", fetch)


@pytest.mark.asyncio
async def test_watch_delivers_debounced_updates(scheduler, fake_timers, recording_sleep) -> None:
    vm = _make_vm(scheduler, recording_sleep)
    seen: List[Any] = []
    vm.watch("stats", lambda new, old: seen.append((new, old)), 50)

    async def fetch() -> dict:
        return {"orders": 1}

    await vm.load("stats", fetch)
    fake_timers.advance(50)

    assert seen == [({"orders": 1}, None)]


@pytest.mark.asyncio
async def test_stale_failure_does_not_flag_fresh_data(scheduler, recording_sleep) -> None:
    toasts: List[str] = []
    vm = _make_vm(scheduler, recording_sleep, notify=toasts.append)
    release_old = asyncio.Event()

    async def old_fetch() -> dict:
        await release_old.wait()
        raise ApiTimeoutError("Timeout contacting http://dash/stats")

    async def new_fetch() -> dict:
        return {"users": 1}

    old_task = asyncio.create_task(
        vm.load("stats", old_fetch, policy=RetryPolicy(max_retries=0))
    )
    await asyncio.sleep(0)
    assert await vm.load("stats", new_fetch) == {"users": 1}

    release_old.set()
    with pytest.raises(ApiTimeoutError):
        await old_task

    assert vm.source("stats").value == {"users": 1}
    assert vm.error_state.has_error is False
    assert toasts == []
    assert vm.is_loading is False


@pytest.mark.asyncio
async def test_current_failure_still_surfaces_after_older_success(
    scheduler, recording_sleep
) -> None:
    toasts: List[str] = []
    vm = _make_vm(scheduler, recording_sleep, notify=toasts.append)

    async def ok() -> int:
        return 1

    async def fails() -> int:
        raise ApiClientError("ctx", status=400)

    await vm.load("stats", ok)
    with pytest.raises(ApiClientError):
        await vm.load("stats", fails)

    assert vm.error_state.kind is ErrorKind.DATA
    assert toasts == ["Data request failed."]
    assert vm.source("stats").value == 1
