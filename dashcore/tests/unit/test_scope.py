from __future__ import annotations

import asyncio
import logging
from typing import List

import pytest

from dashcore.app.scope import Scope


def test_close_runs_hooks_newest_first_once() -> None:
    scope = Scope()
    order: List[str] = []
    scope.add_teardown(lambda: order.append("timer"))
    scope.add_teardown(lambda: order.append("watcher"))

    scope.close()
    scope.close()

    assert order == ["watcher", "timer"]
    assert scope.closed is True


def test_failing_hook_does_not_stop_others(caplog) -> None:
    scope = Scope("stats-view")
    order: List[str] = []

    def broken() -> None:
        raise RuntimeError("already torn down")

    scope.add_teardown(lambda: order.append("first"))
    scope.add_teardown(broken)
    scope.add_teardown(lambda: order.append("last"))

    with caplog.at_level(logging.ERROR, logger="dashcore.app.scope"):
        scope.close()

    assert order == ["last", "first"]
    assert "Teardown hook failed in scope stats-view" in caplog.text


def test_remove_unregisters_hook() -> None:
    scope = Scope()
    order: List[str] = []
    remove = scope.add_teardown(lambda: order.append("gone"))

    remove()
    remove()
    scope.close()

    assert order == []


def test_late_registration_runs_immediately() -> None:
    scope = Scope()
    scope.close()
    order: List[str] = []

    scope.add_teardown(lambda: order.append("late"))

    assert order == ["late"]


def test_context_manager_closes_on_error() -> None:
    order: List[str] = []

    with pytest.raises(ValueError):
        with Scope() as scope:
            scope.add_teardown(lambda: order.append("closed"))
            raise ValueError("render failed")

    assert order == ["closed"]


@pytest.mark.asyncio
async def test_spawned_task_cancelled_on_close() -> None:
    scope = Scope()

    async def forever() -> None:
        await asyncio.Event().wait()

    task = scope.spawn(forever(), name="poll")
    await asyncio.sleep(0)
    scope.close()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert task.get_name() == "poll"


@pytest.mark.asyncio
async def test_finished_task_unregisters_its_hook() -> None:
    scope = Scope()
    order: List[str] = []

    async def quick() -> int:
        return 1

    task = scope.spawn(quick())
    assert await task == 1
    await asyncio.sleep(0)
    scope.add_teardown(lambda: order.append("only"))
    scope.close()

    assert order == ["only"]
    assert scope._hooks == []


@pytest.mark.asyncio
async def test_spawn_on_closed_scope_raises() -> None:
    async with Scope() as scope:
        pass

    async def noop() -> None:
        return None

    coro = noop()
    with pytest.raises(RuntimeError):
        scope.spawn(coro)
    coro.close()
