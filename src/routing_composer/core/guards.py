"""Route guards and the guard evaluation engine.

A guard is an asynchronous decision taken before a navigation completes. It
receives a :class:`GuardContext` and answers with exactly one
:class:`GuardResult` variant:

    - ``GuardAllow()``: let the navigation proceed.
    - ``GuardRedirect(route, params=None)``: stop, navigate to ``route`` instead.
    - ``GuardReject(reason=None)``: stop, navigation fails.

Registry
--------
``GuardRegistry`` holds an ordered list of global guards and, per route name,
an ordered list of route guards. ``guards_for(route)`` returns the globals
first (declaration order) followed by the route's own guards (registration
order).

Engine
------
``GuardEngine.evaluate(context)`` awaits each guard in turn and stops at the
first non-allow answer; later guards are never called. Guards are never run
concurrently. When ``bypass`` is set no guard runs at all. An optional
``timeout`` bounds each single guard; on expiry ``GuardTimeout`` is raised.
Exceptions raised by a guard propagate to the caller (the orchestrator wraps
them). Cancelling the awaiting task cancels the pipeline.

The engine never navigates: a redirect is returned to the orchestrator, which
starts a fresh navigation toward the target (running the target's guards).
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:  # pragma: no cover
    from .route_definition import RouteDefinition
    from .route_params import RouteParams

__all__ = [
    "GuardContext",
    "GuardAllow",
    "GuardRedirect",
    "GuardReject",
    "GuardResult",
    "GUARD_RESULT_TYPES",
    "RouteGuard",
    "CompositeGuard",
    "AlwaysAllowGuard",
    "AlwaysRejectGuard",
    "GuardRegistry",
    "GuardEngine",
    "GuardOutcome",
    "GuardTimeout",
]

logger = logging.getLogger("routing_composer.guards")


@dataclass(frozen=True)
class GuardContext:
    """Everything a guard may inspect to take its decision.

    Attributes:
        destination: Route being navigated to.
        params: Parameters passed by the caller, if any.
        current_route: Route on top of the stack, ``None`` on first navigation.
        path_params: Resolved path parameters.
        query_params: Resolved query parameters.
        uri: Full URI when the navigation comes from a path or deep link.
    """

    destination: RouteDefinition
    params: RouteParams | None = None
    current_route: RouteDefinition | None = None
    path_params: Mapping[str, str] = field(default_factory=dict)
    query_params: Mapping[str, str] = field(default_factory=dict)
    uri: str | None = None


@dataclass(frozen=True)
class GuardAllow:
    """Navigation may proceed."""


@dataclass(frozen=True)
class GuardRedirect:
    """Navigation must go to ``redirect_to`` instead."""

    redirect_to: RouteDefinition
    params: RouteParams | None = None


@dataclass(frozen=True)
class GuardReject:
    """Navigation is refused."""

    reason: str | None = None


GuardResult = Union[GuardAllow, GuardRedirect, GuardReject]

# Closed set of answers; checked exhaustively by the test-suite.
GUARD_RESULT_TYPES: tuple[type, ...] = (GuardAllow, GuardRedirect, GuardReject)


class GuardTimeout(Exception):
    """A guard did not answer within the engine timeout."""

    def __init__(self, guard_name: str, timeout: float) -> None:
        self.guard_name = guard_name
        self.timeout = timeout
        super().__init__(f"Guard {guard_name!r} did not answer within {timeout}s")


class RouteGuard(ABC):
    """Interface of a navigation guard.

    Example::

        class AdminGuard(RouteGuard):
            name = "AdminGuard"

            async def can_activate(self, context):
                if await session.is_admin():
                    return GuardAllow()
                return GuardReject(reason="admins only")
    """

    name: str = ""

    @abstractmethod
    async def can_activate(self, context: GuardContext) -> GuardResult:
        """Decide whether navigation toward ``context.destination`` may proceed."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"


class CompositeGuard(RouteGuard):
    """Chain of guards evaluated in order; the first non-allow answer wins."""

    def __init__(self, guards: Iterable[RouteGuard], name: str | None = None) -> None:
        self.guards = list(guards)
        self.name = name or f"CompositeGuard({', '.join(g.name for g in self.guards)})"

    async def can_activate(self, context: GuardContext) -> GuardResult:
        for guard in self.guards:
            result = await guard.can_activate(context)
            if not isinstance(result, GuardAllow):
                return result
        return GuardAllow()


class AlwaysAllowGuard(RouteGuard):
    """Placeholder guard allowing everything. Use ``AlwaysAllowGuard.instance``."""

    name = "AlwaysAllowGuard"
    instance: AlwaysAllowGuard

    async def can_activate(self, context: GuardContext) -> GuardResult:
        return GuardAllow()


AlwaysAllowGuard.instance = AlwaysAllowGuard()


class AlwaysRejectGuard(RouteGuard):
    """Guard rejecting everything; marks disabled routes or drives tests."""

    def __init__(self, name: str = "AlwaysRejectGuard", reason: str | None = None) -> None:
        self.name = name
        self.reason = reason

    async def can_activate(self, context: GuardContext) -> GuardResult:
        return GuardReject(reason=self.reason)


class GuardRegistry:
    """Global and per-route guard lists owned by one router instance.

    Registration is expected during setup. Lists are not locked: callers
    serialize registration and navigation.
    """

    __slots__ = ("_route_guards", "_global_guards")

    def __init__(self) -> None:
        self._route_guards: dict[str, list[RouteGuard]] = {}
        self._global_guards: list[RouteGuard] = []

    def register_for_route(self, route: RouteDefinition, guard: RouteGuard) -> None:
        self._route_guards.setdefault(route.name, []).append(guard)

    def register_global(self, guard: RouteGuard) -> None:
        self._global_guards.append(guard)

    def unregister_for_route(self, route: RouteDefinition, guard: RouteGuard) -> bool:
        """Remove ``guard`` from ``route``; return whether it was registered."""
        guards = self._route_guards.get(route.name)
        if not guards or guard not in guards:
            return False
        guards.remove(guard)
        if not guards:
            del self._route_guards[route.name]
        return True

    def unregister_global(self, guard: RouteGuard) -> bool:
        if guard not in self._global_guards:
            return False
        self._global_guards.remove(guard)
        return True

    def guards_for(self, route: RouteDefinition) -> list[RouteGuard]:
        """Return global guards then route guards, as a fresh list."""
        return [*self._global_guards, *self._route_guards.get(route.name, ())]

    @property
    def global_guards(self) -> list[RouteGuard]:
        return list(self._global_guards)

    def clear(self) -> None:
        self._route_guards.clear()
        self._global_guards.clear()


@dataclass(frozen=True)
class GuardOutcome:
    """Final answer of an evaluation pass.

    Attributes:
        result: The deciding ``GuardResult`` (``GuardAllow`` when all allowed).
        guard_name: Name of the guard that stopped navigation, if any.
        evaluated: Number of guards actually awaited.
    """

    result: GuardResult
    guard_name: str | None = None
    evaluated: int = 0

    @property
    def allowed(self) -> bool:
        return isinstance(self.result, GuardAllow)


class GuardEngine:
    """Sequential, short-circuiting evaluation of a registry's guards."""

    __slots__ = ("registry", "timeout", "_bypass")

    def __init__(self, registry: GuardRegistry, *, timeout: float | None = None) -> None:
        if timeout is not None and timeout <= 0:
            raise ValueError("Guard timeout must be positive")
        self.registry = registry
        self.timeout = timeout
        self._bypass = False

    @property
    def bypass(self) -> bool:
        return self._bypass

    @bypass.setter
    def bypass(self, value: bool) -> None:
        self._bypass = bool(value)

    async def evaluate(self, context: GuardContext) -> GuardOutcome:
        """Run the guards of ``context.destination`` until one does not allow.

        Raises:
            GuardTimeout: If a guard exceeds ``timeout``.
            TypeError: If a guard answers with something else than a GuardResult.
        """
        if self._bypass:
            logger.debug("Guards bypassed for %s", context.destination.name)
            return GuardOutcome(GuardAllow())

        guards = self.registry.guards_for(context.destination)
        evaluated = 0
        for guard in guards:
            result = await self._run(guard, context)
            evaluated += 1
            if not isinstance(result, GUARD_RESULT_TYPES):
                raise TypeError(
                    f"Guard {guard.name!r} returned {type(result).__name__}, "
                    "expected GuardAllow, GuardRedirect or GuardReject"
                )
            if isinstance(result, GuardAllow):
                continue
            logger.debug(
                "Guard %s stopped navigation to %s with %s",
                guard.name,
                context.destination.name,
                type(result).__name__,
            )
            return GuardOutcome(result, guard.name, evaluated)
        return GuardOutcome(GuardAllow(), None, evaluated)

    async def _run(self, guard: RouteGuard, context: GuardContext) -> GuardResult:
        if self.timeout is None:
            return await guard.can_activate(context)
        try:
            return await asyncio.wait_for(guard.can_activate(context), self.timeout)
        except asyncio.TimeoutError as exc:
            raise GuardTimeout(guard.name, self.timeout) from exc
