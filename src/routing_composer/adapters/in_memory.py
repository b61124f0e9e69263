"""In-memory AppRouter for tests and headless navigation logic.

``InMemoryAdapter`` implements the full ``AppRouter`` contract on a plain
list of stack entries, without any UI framework. It is the reference
orchestrator: guard evaluation, redirects, result awaiting, tab stacks,
observer notification and the completed-event stream all live here.

Example::

    router = InMemoryAdapter(
        RouterConfiguration(routes=[home, profile], initial_route=home)
    )
    await router.go_to(profile, MapRouteParams({"id": "123"}))
    router.current_route == profile
    router.current_path_params == {"id": "123"}

Lifecycle of a navigation
-------------------------
1. ``started`` is emitted with the destination and the current route.
2. Parameters are resolved (and checked when ``strict_params`` is set).
3. Guards run through the ``GuardEngine``.
4. Allow: the stack is mutated, ``completed`` goes to observers, history and
   stream, and ``Success(None)`` is returned.
5. Reject: ``failed`` goes to observers and the error handler, the stack is
   untouched, ``Failure(GuardRejectedError)`` is returned.
6. Redirect: as reject (the error carries ``redirect_to``), then a fresh
   ``go_to`` toward the redirect target runs its own guards.

Pending results
---------------
``go_to_and_await`` attaches a future to the pushed entry. Popping that entry
with ``go_back_with_result(value)`` resolves it; popping it any other way
(``go_back``, ``replace_with``, ``clear_stack_and_go_to``, ``reset``) fails it
with ``NavigationCancelledError``. A result cancelled by ``reset`` or
``dispose`` while its guards are still running is never pushed.

Concurrency
-----------
One logical caller per instance. Guards and ``go_to_and_await`` are
suspension points: other calls made meanwhile see and mutate the same stack.
No locking is done.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import SplitResult

from routing_composer.core.app_router import AppRouter, ErrorHandler, RouterConfiguration
from routing_composer.core.deep_link import DefaultDeepLinkHandler
from routing_composer.core.guards import (
    GuardContext,
    GuardEngine,
    GuardRedirect,
    GuardReject,
    GuardRegistry,
    GuardResult,
    GuardTimeout,
    RouteGuard,
)
from routing_composer.core.observers import (
    NavigationEvent,
    NavigationObserver,
    NavigationStream,
    ObserverBus,
)
from routing_composer.core.result import Failure, NavigationResult, Success
from routing_composer.core.route_definition import RouteDefinition, validate_catalog
from routing_composer.core.route_params import RouteParams
from routing_composer.exceptions import (
    DeepLinkError,
    GuardRejectedError,
    InvalidParamsError,
    NavigationCancelledError,
    NavigationError,
    RouteNotFoundError,
    UnknownNavigationError,
)

__all__ = ["InMemoryAdapter", "StackEntry"]

logger = logging.getLogger("routing_composer.adapters.in_memory")

_PUSH = "push"
_REPLACE = "replace"
_CLEAR = "clear"


@dataclass(frozen=True)
class StackEntry:
    """One frame of navigation history."""

    route: RouteDefinition
    path_params: dict[str, str] = field(default_factory=dict)
    query_params: dict[str, str] = field(default_factory=dict)
    uri: str | None = None
    result_key: str | None = None


class InMemoryAdapter(AppRouter):
    """Complete ``AppRouter`` over an in-memory navigation stack."""

    def __init__(self, configuration: RouterConfiguration) -> None:
        self._configuration = configuration
        if configuration.validate_routes:
            validate_catalog(configuration.routes)
        self._deep_link_handler = DefaultDeepLinkHandler(configuration.routes)
        self._guard_registry = GuardRegistry()
        for guard in configuration.global_guards:
            self._guard_registry.register_global(guard)
        self._guard_engine = GuardEngine(
            self._guard_registry, timeout=configuration.guard_timeout
        )
        self._observers = ObserverBus(configuration.observers)
        self._error_handler: ErrorHandler | None = None
        self._stack: list[StackEntry] = []
        self._history: list[NavigationEvent] = []
        self._tab_stacks: dict[int, list[StackEntry]] = {}
        self._current_tab_index = 0
        self._stream = NavigationStream()
        self._pending: dict[str, asyncio.Future[Any]] = {}
        self._result_counter = itertools.count()
        self._push_initial_route()

    def _push_initial_route(self) -> None:
        entry = StackEntry(self._configuration.initial_route)
        self._stack.append(entry)
        self._notify_completed(entry, previous=None)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def configuration(self) -> RouterConfiguration:
        return self._configuration

    @property
    def current_route(self) -> RouteDefinition | None:
        return self._stack[-1].route if self._stack else None

    @property
    def current_path_params(self) -> dict[str, str]:
        return dict(self._stack[-1].path_params) if self._stack else {}

    @property
    def current_query_params(self) -> dict[str, str]:
        return dict(self._stack[-1].query_params) if self._stack else {}

    @property
    def navigation_stream(self) -> NavigationStream:
        return self._stream

    @property
    def deep_link_handler(self) -> DefaultDeepLinkHandler:
        return self._deep_link_handler

    @property
    def guard_registry(self) -> GuardRegistry:
        return self._guard_registry

    @property
    def current_tab_index(self) -> int:
        return self._current_tab_index

    @property
    def navigation_stack(self) -> list[RouteDefinition]:
        """Routes of the active stack, bottom first."""
        return [entry.route for entry in self._stack]

    @property
    def stack_entries(self) -> tuple[StackEntry, ...]:
        return tuple(self._stack)

    @property
    def stack_length(self) -> int:
        return len(self._stack)

    @property
    def navigation_history(self) -> tuple[NavigationEvent, ...]:
        """Every completed event since construction (or the last ``clear_history``)."""
        return tuple(self._history)

    @property
    def pending_result_count(self) -> int:
        return len(self._pending)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------
    async def go_to(
        self, route: RouteDefinition, params: RouteParams | None = None
    ) -> NavigationResult[None]:
        return await self._navigate(route, params, mode=_PUSH)

    async def go_to_and_await(
        self, route: RouteDefinition, params: RouteParams | None = None
    ) -> NavigationResult[Any]:
        key = f"{route.name}_{int(time.time() * 1000)}_{next(self._result_counter)}"
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending[key] = future
        try:
            pushed = await self._navigate(route, params, mode=_PUSH, result_key=key)
            if isinstance(pushed, Failure):
                if future.done():
                    # reset/dispose settled the result while guards were running
                    cancelled = future.exception()
                    if isinstance(cancelled, NavigationCancelledError):
                        return Failure(cancelled)
                return Failure(pushed.error)
            try:
                value = await future
            except NavigationCancelledError as error:
                return Failure(error)
            return Success(value)
        finally:
            self._pending.pop(key, None)

    async def go_to_path(self, path: str) -> NavigationResult[None]:
        parsed = self._deep_link_handler.parse_string(path)
        if parsed is None:
            failure = self._fail(None, RouteNotFoundError(path), uri=path)
            not_found = self._configuration.not_found_route
            if not_found is not None:
                await self._navigate(not_found, None, mode=_PUSH)
            return failure
        return await self._navigate(
            parsed.route, parsed.to_route_params(), mode=_PUSH, uri=parsed.uri
        )

    async def replace_with(
        self, route: RouteDefinition, params: RouteParams | None = None
    ) -> NavigationResult[None]:
        return await self._navigate(route, params, mode=_REPLACE)

    async def clear_stack_and_go_to(
        self, route: RouteDefinition, params: RouteParams | None = None
    ) -> NavigationResult[None]:
        return await self._navigate(route, params, mode=_CLEAR)

    def can_go_back(self) -> bool:
        return len(self._stack) > 1

    def go_back(self) -> NavigationResult[bool]:
        return self._pop(cancel_reason="Navigation was popped")

    def go_back_with_result(self, value: Any) -> NavigationResult[bool]:
        return self._pop(result=value)

    async def pop_until(self, predicate: Callable[[RouteDefinition], bool]) -> bool:
        while self.can_go_back():
            if predicate(self._stack[-1].route):
                return True
            self.go_back()
        return bool(predicate(self._stack[-1].route))

    async def handle_deep_link(self, uri: str | SplitResult) -> NavigationResult[None]:
        text = uri if isinstance(uri, str) else uri.geturl()
        try:
            parsed = self._deep_link_handler.parse(uri)
        except ValueError as exc:
            error = DeepLinkError(f"Malformed URI: {text}", uri=text, cause=exc)
            return self._fail(None, error, uri=text)
        if parsed is None:
            error = DeepLinkError(f"No route matches URI: {text}", uri=text)
            return self._fail(None, error, uri=text)
        return await self._navigate(
            parsed.route, parsed.to_route_params(), mode=_PUSH, uri=parsed.uri
        )

    async def inject_deep_link(self, text: str) -> NavigationResult[None]:
        """Test helper: handle a deep link given as a string."""
        return await self.handle_deep_link(text)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def set_error_handler(self, handler: ErrorHandler | None) -> None:
        self._error_handler = handler

    def add_observer(self, observer: NavigationObserver) -> None:
        self._observers.add(observer)

    def remove_observer(self, observer: NavigationObserver) -> None:
        self._observers.remove(observer)

    def add_guard_for_route(self, route: RouteDefinition, guard: RouteGuard) -> None:
        self._guard_registry.register_for_route(route, guard)

    def add_global_guard(self, guard: RouteGuard) -> None:
        self._guard_registry.register_global(guard)

    def set_bypass_guards(self, bypass: bool) -> None:
        self._guard_engine.bypass = bypass

    # ------------------------------------------------------------------
    # Tabs
    # ------------------------------------------------------------------
    def switch_to_tab(self, index: int) -> None:
        """Activate the stack of tab ``index``, saving the current one.

        Raises:
            ValueError: If ``index`` is negative.
            IndexError: If a tab shell is configured and has no child at ``index``.
        """
        if index < 0:
            raise ValueError(f"Tab index must be >= 0, got {index}")
        shell = self._configuration.tab_shell
        if shell is not None:
            shell.child_at(index)
        if index == self._current_tab_index:
            return
        self._tab_stacks[self._current_tab_index] = list(self._stack)
        saved = self._tab_stacks.get(index)
        if saved:
            self._stack[:] = saved
        elif shell is not None:
            self._stack[:] = [StackEntry(shell.child_at(index))]
        logger.debug("Switched from tab %d to tab %d", self._current_tab_index, index)
        self._current_tab_index = index

    def get_current_route_for_tab(self, index: int) -> RouteDefinition | None:
        if index == self._current_tab_index:
            return self.current_route
        stack = self._tab_stacks.get(index)
        return stack[-1].route if stack else None

    # ------------------------------------------------------------------
    # Testing utilities
    # ------------------------------------------------------------------
    def clear_history(self) -> None:
        self._history.clear()

    def reset(self) -> None:
        """Return to the freshly constructed state (guards and observers are kept)."""
        self._cancel_pending(list(self._pending), "Router was reset")
        self._stack.clear()
        self._history.clear()
        self._tab_stacks.clear()
        self._current_tab_index = 0
        self._guard_engine.bypass = False
        self._push_initial_route()

    async def simulate_guard_check(
        self, route: RouteDefinition, params: RouteParams | None = None
    ) -> GuardResult:
        """Evaluate the guards of ``route`` without navigating."""
        outcome = await self._guard_engine.evaluate(self._context(route, params))
        return outcome.result

    def assert_current_route(self, expected: RouteDefinition) -> None:
        if self.current_route != expected:
            current = self.current_route.name if self.current_route else None
            raise AssertionError(
                f"Expected current route to be {expected.name}, but was {current}"
            )

    def assert_stack_length(self, expected: int) -> None:
        if len(self._stack) != expected:
            raise AssertionError(
                f"Expected stack length {expected}, but was {len(self._stack)}"
            )

    def assert_history_contains(self, route: RouteDefinition) -> None:
        if not any(event.route == route for event in self._history):
            raise AssertionError(f"Expected navigation history to contain {route.name}")

    def dispose(self) -> None:
        """Close the event stream and cancel every pending result."""
        self._cancel_pending(list(self._pending), "Router was disposed")
        self._stream.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _context(
        self,
        route: RouteDefinition,
        params: RouteParams | None,
        uri: str | None = None,
    ) -> GuardContext:
        return GuardContext(
            destination=route,
            params=params,
            current_route=self.current_route,
            path_params=params.to_path_params() if params else {},
            query_params=params.to_query_params() if params else {},
            uri=uri,
        )

    async def _navigate(
        self,
        route: RouteDefinition,
        params: RouteParams | None,
        *,
        mode: str,
        uri: str | None = None,
        result_key: str | None = None,
        depth: int = 0,
    ) -> NavigationResult[None]:
        self._observers.notify_started(
            NavigationEvent(
                route=route,
                previous_route=self.current_route,
                uri=uri,
                is_replacement=mode == _REPLACE,
            )
        )
        try:
            context = self._context(route, params, uri)
            if self._configuration.strict_params:
                missing = route.missing_params(context.path_params)
                if missing:
                    return self._fail(
                        route, InvalidParamsError(route, missing_params=missing), uri=uri
                    )
            outcome = await self._guard_engine.evaluate(context)
        except GuardTimeout as exc:
            error = NavigationCancelledError(str(exc), cause=exc)
            return self._fail(route, error, uri=uri)
        except Exception as exc:
            logger.exception("Unexpected error while navigating to %s", route.name)
            return self._fail(route, UnknownNavigationError.wrap(exc), uri=uri)

        decision = outcome.result
        if isinstance(decision, GuardReject):
            error = GuardRejectedError(
                route, guard_name=outcome.guard_name, message=decision.reason
            )
            return self._fail(route, error, uri=uri)
        if isinstance(decision, GuardRedirect):
            return await self._redirect(route, decision, outcome.guard_name, uri, depth)

        if result_key is not None and result_key not in self._pending:
            error = NavigationCancelledError(
                f"Result for {route.name} was cancelled while guards were evaluated"
            )
            return self._fail(route, error, uri=uri)

        try:
            entry = StackEntry(
                route,
                dict(context.path_params),
                dict(context.query_params),
                uri or route.build_uri(context.path_params, context.query_params),
                result_key,
            )
            previous = self._apply(mode, entry)
            self._notify_completed(
                entry, previous=previous, is_replacement=mode == _REPLACE
            )
        except Exception as exc:
            logger.exception("Unexpected error while updating the stack for %s", route.name)
            return self._fail(route, UnknownNavigationError.wrap(exc), uri=uri)
        return Success(None)

    async def _redirect(
        self,
        route: RouteDefinition,
        decision: GuardRedirect,
        guard_name: str | None,
        uri: str | None,
        depth: int,
    ) -> NavigationResult[None]:
        target = decision.redirect_to
        if depth >= self._configuration.max_redirects:
            error = GuardRejectedError(
                route,
                redirect_to=target,
                guard_name=guard_name,
                message=(
                    f"Too many redirects ({self._configuration.max_redirects}) "
                    f"while navigating to {route.name}"
                ),
            )
            return self._fail(route, error, uri=uri)
        error = GuardRejectedError(route, redirect_to=target, guard_name=guard_name)
        failure = self._fail(route, error, uri=uri)
        logger.debug("Redirecting from %s to %s", route.name, target.name)
        await self._navigate(target, decision.params, mode=_PUSH, depth=depth + 1)
        return failure

    def _apply(self, mode: str, entry: StackEntry) -> RouteDefinition | None:
        """Mutate the stack for ``mode``; return the route that was on top."""
        previous = self.current_route
        if mode == _PUSH:
            self._stack.append(entry)
        elif mode == _REPLACE:
            if self._stack:
                replaced = self._stack[-1]
                self._stack[-1] = entry
                self._cancel_pending([replaced.result_key], "Route was replaced")
            else:
                self._stack.append(entry)
        elif mode == _CLEAR:
            dropped = list(self._stack)
            self._stack[:] = [entry]
            self._cancel_pending(
                [item.result_key for item in dropped], "Navigation stack was cleared"
            )
        else:  # pragma: no cover
            raise ValueError(f"Unknown navigation mode {mode!r}")
        logger.debug("Stack %s -> %s (%d entries)", mode, entry.route.name, len(self._stack))
        return previous

    def _pop(self, *, cancel_reason: str | None = None, result: Any = None) -> NavigationResult[bool]:
        if not self.can_go_back():
            return Success(False)
        popped = self._stack.pop()
        if popped.result_key is not None:
            future = self._pending.pop(popped.result_key, None)
            if future is not None and not future.done():
                if cancel_reason is not None:
                    future.set_exception(NavigationCancelledError(cancel_reason))
                else:
                    future.set_result(result)
        top = self._stack[-1]
        self._notify_completed(top, previous=popped.route, is_pop=True)
        return Success(True)

    def _cancel_pending(self, keys: list[str | None], reason: str) -> None:
        for key in keys:
            if key is None:
                continue
            future = self._pending.pop(key, None)
            if future is not None and not future.done():
                future.set_exception(NavigationCancelledError(reason))

    def _notify_completed(
        self,
        entry: StackEntry,
        *,
        previous: RouteDefinition | None,
        is_replacement: bool = False,
        is_pop: bool = False,
    ) -> None:
        event = NavigationEvent(
            route=entry.route,
            previous_route=previous,
            path_params=dict(entry.path_params),
            query_params=dict(entry.query_params),
            uri=entry.uri,
            is_replacement=is_replacement,
            is_pop=is_pop,
        )
        self._history.append(event)
        self._stream.publish(event)
        self._observers.notify_completed(event)

    def _fail(
        self,
        route: RouteDefinition | None,
        error: NavigationError,
        *,
        uri: str | None = None,
    ) -> Failure[Any]:
        logger.warning(
            "Navigation to %s failed: %s", route.name if route else uri, error.message
        )
        event = NavigationEvent(route=route, previous_route=self.current_route, uri=uri)
        self._observers.notify_failed(event, error)
        handler = self._error_handler
        if handler is not None:
            try:
                handler(error, route)
            except Exception:
                logger.exception("Navigation error handler failed")
        return Failure(error)
