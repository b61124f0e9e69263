"""Tests for guard results, the registry and the GuardEngine."""

from __future__ import annotations

import asyncio

import pytest

from routing_composer.core.guards import (
    GUARD_RESULT_TYPES,
    AlwaysAllowGuard,
    AlwaysRejectGuard,
    CompositeGuard,
    GuardAllow,
    GuardContext,
    GuardEngine,
    GuardRedirect,
    GuardRegistry,
    GuardReject,
    GuardTimeout,
    RouteGuard,
)
from routing_composer.core.route_definition import RouteDefinition

HOME = RouteDefinition(path="/", name="home")
ADMIN = RouteDefinition(path="/admin", name="admin")
LOGIN = RouteDefinition(path="/login", name="login")


class RecordingGuard(RouteGuard):
    """Guard returning a fixed result and recording its calls."""

    def __init__(self, name, result, calls):
        self.name = name
        self._result = result
        self._calls = calls

    async def can_activate(self, context):
        self._calls.append(self.name)
        return self._result


class SlowGuard(RouteGuard):
    name = "SlowGuard"

    async def can_activate(self, context):
        await asyncio.sleep(1)
        return GuardAllow()


class BrokenGuard(RouteGuard):
    name = "BrokenGuard"

    async def can_activate(self, context):
        return True


def _context(route=ADMIN):
    return GuardContext(destination=route, current_route=HOME)


class TestGuardResults:
    def test_result_types_are_closed(self):
        """Every variant is handled by the exhaustive dispatch below."""

        def describe(result):
            match result:
                case GuardAllow():
                    return "allow"
                case GuardRedirect(redirect_to=route):
                    return f"redirect:{route.name}"
                case GuardReject(reason=reason):
                    return f"reject:{reason}"
            raise AssertionError(result)

        samples = [GuardAllow(), GuardRedirect(LOGIN), GuardReject("nope")]
        assert {type(sample) for sample in samples} == set(GUARD_RESULT_TYPES)
        assert [describe(sample) for sample in samples] == ["allow", "redirect:login", "reject:nope"]


class TestGuardRegistry:
    """Global guards come first, then route guards."""

    def test_guards_for_orders_globals_first(self):
        registry = GuardRegistry()
        calls: list[str] = []
        route_guard = RecordingGuard("route", GuardAllow(), calls)
        global_guard = RecordingGuard("global", GuardAllow(), calls)
        registry.register_for_route(ADMIN, route_guard)
        registry.register_global(global_guard)
        assert registry.guards_for(ADMIN) == [global_guard, route_guard]
        assert registry.guards_for(HOME) == [global_guard]

    def test_unregister(self):
        registry = GuardRegistry()
        guard = AlwaysAllowGuard.instance
        registry.register_for_route(ADMIN, guard)
        registry.register_global(guard)
        assert registry.unregister_for_route(ADMIN, guard) is True
        assert registry.unregister_for_route(ADMIN, guard) is False
        assert registry.unregister_global(guard) is True
        assert registry.unregister_global(guard) is False
        assert registry.guards_for(ADMIN) == []

    def test_guards_for_returns_fresh_list(self):
        registry = GuardRegistry()
        registry.register_global(AlwaysAllowGuard.instance)
        registry.guards_for(ADMIN).clear()
        assert registry.global_guards == [AlwaysAllowGuard.instance]


class TestGuardEngine:
    """Sequential, short-circuiting evaluation."""

    async def test_all_allow(self):
        calls: list[str] = []
        registry = GuardRegistry()
        registry.register_global(RecordingGuard("a", GuardAllow(), calls))
        registry.register_for_route(ADMIN, RecordingGuard("b", GuardAllow(), calls))
        outcome = await GuardEngine(registry).evaluate(_context())
        assert outcome.allowed
        assert outcome.guard_name is None
        assert outcome.evaluated == 2
        assert calls == ["a", "b"]

    async def test_first_non_allow_short_circuits(self):
        calls: list[str] = []
        registry = GuardRegistry()
        registry.register_global(RecordingGuard("a", GuardAllow(), calls))
        registry.register_global(RecordingGuard("b", GuardReject("stop"), calls))
        registry.register_global(RecordingGuard("c", GuardAllow(), calls))
        outcome = await GuardEngine(registry).evaluate(_context())
        assert outcome.result == GuardReject("stop")
        assert outcome.guard_name == "b"
        assert calls == ["a", "b"]

    async def test_redirect_is_returned_not_followed(self):
        calls: list[str] = []
        registry = GuardRegistry()
        registry.register_for_route(ADMIN, RecordingGuard("auth", GuardRedirect(LOGIN), calls))
        outcome = await GuardEngine(registry).evaluate(_context())
        assert outcome.result == GuardRedirect(LOGIN)
        assert not outcome.allowed

    async def test_bypass_skips_every_guard(self):
        calls: list[str] = []
        registry = GuardRegistry()
        registry.register_global(RecordingGuard("a", GuardReject(), calls))
        engine = GuardEngine(registry)
        engine.bypass = True
        outcome = await engine.evaluate(_context())
        assert outcome.allowed
        assert calls == []

    async def test_timeout_raises_guard_timeout(self):
        registry = GuardRegistry()
        registry.register_global(SlowGuard())
        with pytest.raises(GuardTimeout) as exc_info:
            await GuardEngine(registry, timeout=0.01).evaluate(_context())
        assert exc_info.value.guard_name == "SlowGuard"

    def test_non_positive_timeout_rejected(self):
        with pytest.raises(ValueError):
            GuardEngine(GuardRegistry(), timeout=0)

    async def test_non_result_answer_raises_type_error(self):
        registry = GuardRegistry()
        registry.register_global(BrokenGuard())
        with pytest.raises(TypeError, match="BrokenGuard"):
            await GuardEngine(registry).evaluate(_context())

    async def test_guard_exception_propagates(self):
        class Exploding(RouteGuard):
            name = "Exploding"

            async def can_activate(self, context):
                raise RuntimeError("boom")

        registry = GuardRegistry()
        registry.register_global(Exploding())
        with pytest.raises(RuntimeError, match="boom"):
            await GuardEngine(registry).evaluate(_context())


class TestBuiltinCombinators:
    async def test_composite_stops_at_first_non_allow(self):
        calls: list[str] = []
        composite = CompositeGuard(
            [
                RecordingGuard("a", GuardAllow(), calls),
                RecordingGuard("b", GuardRedirect(LOGIN), calls),
                RecordingGuard("c", GuardReject(), calls),
            ]
        )
        assert await composite.can_activate(_context()) == GuardRedirect(LOGIN)
        assert calls == ["a", "b"]
        assert composite.name == "CompositeGuard(a, b, c)"

    async def test_always_guards(self):
        assert await AlwaysAllowGuard.instance.can_activate(_context()) == GuardAllow()
        guard = AlwaysRejectGuard(reason="disabled")
        assert await guard.can_activate(_context()) == GuardReject("disabled")
