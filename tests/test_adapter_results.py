"""Tests for go_to_and_await and pending result delivery."""

from __future__ import annotations

import asyncio

from routing_composer import (
    GuardRejectedError,
    InMemoryAdapter,
    NavigationCancelledError,
    RouteDefinition,
    RouterConfiguration,
    Success,
)
from routing_composer.core.guards import AlwaysRejectGuard, GuardAllow, RouteGuard

HOME = RouteDefinition(path="/", name="home")
PICKER = RouteDefinition(path="/picker", name="picker")
CONFIRM = RouteDefinition(path="/confirm", name="confirm")
OTHER = RouteDefinition(path="/other", name="other")


def _make_router():
    return InMemoryAdapter(RouterConfiguration(routes=[HOME, PICKER, CONFIRM, OTHER], initial_route=HOME))


async def _await_on(router, route):
    """Start go_to_and_await(route) and wait until the route is on top."""
    task = asyncio.create_task(router.go_to_and_await(route))
    for _ in range(100):
        if router.current_route == route:
            break
        await asyncio.sleep(0)
    assert router.current_route == route
    return task


class TestAwaitedResults:
    """Values flow back to the awaiting caller."""

    async def test_result_delivered_on_go_back_with_result(self):
        router = _make_router()
        task = await _await_on(router, PICKER)
        assert router.pending_result_count == 1
        assert router.go_back_with_result("selected-item-42") == Success(True)
        assert await task == Success("selected-item-42")
        assert router.current_route == HOME
        assert router.pending_result_count == 0

    async def test_none_result(self):
        router = _make_router()
        task = await _await_on(router, PICKER)
        router.go_back_with_result(None)
        assert await task == Success(None)

    async def test_plain_go_back_cancels(self):
        router = _make_router()
        task = await _await_on(router, PICKER)
        router.go_back()
        result = await task
        assert isinstance(result.error_or_none, NavigationCancelledError)

    async def test_replace_cancels_pending(self):
        router = _make_router()
        task = await _await_on(router, PICKER)
        await router.replace_with(OTHER)
        result = await task
        assert isinstance(result.error_or_none, NavigationCancelledError)
        assert result.error.reason == "Route was replaced"

    async def test_clear_stack_cancels_pending(self):
        router = _make_router()
        task = await _await_on(router, PICKER)
        await router.clear_stack_and_go_to(OTHER)
        result = await task
        assert isinstance(result.error_or_none, NavigationCancelledError)

    async def test_nested_awaits_resolve_independently(self):
        router = _make_router()
        outer = await _await_on(router, PICKER)
        inner = await _await_on(router, CONFIRM)
        assert router.pending_result_count == 2
        router.go_back_with_result(True)
        assert await inner == Success(True)
        assert not outer.done()
        router.go_back_with_result("picked")
        assert await outer == Success("picked")

    async def test_result_on_entry_without_waiter_is_dropped(self):
        router = _make_router()
        await router.go_to(PICKER)
        assert router.go_back_with_result("ignored") == Success(True)
        assert router.current_route == HOME

    async def test_rejected_navigation_returns_failure(self):
        router = _make_router()
        router.add_guard_for_route(PICKER, AlwaysRejectGuard())
        result = await router.go_to_and_await(PICKER)
        assert isinstance(result.error_or_none, GuardRejectedError)
        assert router.pending_result_count == 0

    async def test_reset_cancels_pending(self):
        router = _make_router()
        task = await _await_on(router, PICKER)
        router.reset()
        result = await task
        assert isinstance(result.error_or_none, NavigationCancelledError)
        assert result.error.reason == "Router was reset"

    async def test_reset_during_guard_skips_push(self):
        """A result cancelled while guards run never reaches the stack."""
        entered = asyncio.Event()
        release = asyncio.Event()

        class WaitingGuard(RouteGuard):
            name = "WaitingGuard"

            async def can_activate(self, context):
                entered.set()
                await release.wait()
                return GuardAllow()

        router = _make_router()
        router.add_guard_for_route(PICKER, WaitingGuard())
        task = asyncio.create_task(router.go_to_and_await(PICKER))
        await asyncio.wait_for(entered.wait(), 1)
        router.reset()
        release.set()
        result = await task
        assert isinstance(result.error_or_none, NavigationCancelledError)
        assert result.error.reason == "Router was reset"
        assert router.navigation_stack == [HOME]
        assert router.pending_result_count == 0

    async def test_dispose_cancels_pending(self):
        router = _make_router()
        task = await _await_on(router, PICKER)
        router.dispose()
        result = await task
        assert isinstance(result.error_or_none, NavigationCancelledError)
