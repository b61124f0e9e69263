# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""AppRouter - Router-agnostic navigation interface.

Feature code depends on ``AppRouter`` only; concrete adapters bind it to a
navigation library (or, for tests, to the in-memory stack). Every navigation
operation returns a ``NavigationResult`` and never raises for expected
failures.

Required members:
    - state: current_route, current_path_params, current_query_params,
      current_tab_index, navigation_stream, deep_link_handler
    - navigation: go_to, go_to_and_await, go_to_path, replace_with,
      clear_stack_and_go_to, go_back, go_back_with_result, can_go_back,
      pop_until, handle_deep_link
    - registration: set_error_handler, add_observer, remove_observer,
      add_guard_for_route, add_global_guard, set_bypass_guards
    - tabs: switch_to_tab, get_current_route_for_tab
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, TypeVar

from genro_toolbox.typeutils import safe_is_instance

from .deep_link import DeepLinkConfig

if TYPE_CHECKING:  # pragma: no cover
    from routing_composer.exceptions import NavigationError

    from .deep_link import DeepLinkHandler
    from .guards import RouteGuard
    from .observers import NavigationObserver, NavigationStream
    from .result import NavigationResult
    from .route_definition import RouteDefinition, ShellRouteDefinition
    from .route_params import RouteParams

__all__ = ["AppRouter", "RouterConfiguration", "ErrorHandler"]

T = TypeVar("T")

ErrorHandler = Callable[["NavigationError", "RouteDefinition | None"], None]


@dataclass(frozen=True)
class RouterConfiguration:
    """Immutable bundle handed to an adapter at construction.

    Attributes:
        routes: Ordered route catalog (declaration order decides deep-link matches).
        initial_route: Route pushed when the router starts.
        not_found_route: Route shown when ``go_to_path`` finds no match.
        global_guards: Guards applied to every route, in order.
        observers: Observers registered at startup, in order.
        deep_link_config: Platform deep-link settings (adapters only).
        guard_timeout: Seconds a single guard may take; ``None`` waits forever.
        max_redirects: Longest accepted chain of guard redirects.
        strict_params: Report missing path placeholders as ``InvalidParamsError``.
        tab_shell: Shell whose children seed unseen tab stacks.
        validate_routes: Run catalog validation at adapter construction.
    """

    routes: Sequence[RouteDefinition]
    initial_route: RouteDefinition
    not_found_route: RouteDefinition | None = None
    global_guards: Sequence[RouteGuard] = ()
    observers: Sequence[NavigationObserver] = ()
    deep_link_config: DeepLinkConfig = field(default_factory=DeepLinkConfig)
    guard_timeout: float | None = None
    max_redirects: int = 10
    strict_params: bool = False
    tab_shell: ShellRouteDefinition | None = None
    validate_routes: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "routes", tuple(self.routes))
        object.__setattr__(self, "global_guards", tuple(self.global_guards))
        object.__setattr__(self, "observers", tuple(self.observers))
        if not self.routes:
            raise ValueError("RouterConfiguration requires at least one route")
        if self.max_redirects < 0:
            raise ValueError("max_redirects must be >= 0")
        if self.guard_timeout is not None and self.guard_timeout <= 0:
            raise ValueError("guard_timeout must be positive")
        if self.tab_shell is not None:
            if not safe_is_instance(
                self.tab_shell, "routing_composer.core.route_definition.ShellRouteDefinition"
            ):
                raise TypeError(
                    f"tab_shell must be a ShellRouteDefinition, got {type(self.tab_shell).__name__}"
                )
            if not self.tab_shell.children:
                raise ValueError(f"Tab shell {self.tab_shell.name!r} has no children")


class AppRouter(ABC):
    """Navigation interface implemented by every adapter."""

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    @abstractmethod
    def current_route(self) -> RouteDefinition | None:
        """Route on top of the active stack."""

    @property
    @abstractmethod
    def current_path_params(self) -> dict[str, str]: ...

    @property
    @abstractmethod
    def current_query_params(self) -> dict[str, str]: ...

    @property
    @abstractmethod
    def navigation_stream(self) -> NavigationStream:
        """Broadcast of completed navigation events."""

    @property
    @abstractmethod
    def deep_link_handler(self) -> DeepLinkHandler: ...

    @property
    @abstractmethod
    def current_tab_index(self) -> int: ...

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------
    @abstractmethod
    async def go_to(
        self, route: RouteDefinition, params: RouteParams | None = None
    ) -> NavigationResult[None]:
        """Push ``route`` after its guards allow it."""

    @abstractmethod
    async def go_to_and_await(
        self, route: RouteDefinition, params: RouteParams | None = None
    ) -> NavigationResult[Any]:
        """Push ``route`` and wait for the value passed to ``go_back_with_result``."""

    @abstractmethod
    async def go_to_path(self, path: str) -> NavigationResult[None]:
        """Navigate to the route matching ``path`` (query string allowed)."""

    @abstractmethod
    async def replace_with(
        self, route: RouteDefinition, params: RouteParams | None = None
    ) -> NavigationResult[None]:
        """Replace the top entry with ``route``."""

    @abstractmethod
    async def clear_stack_and_go_to(
        self, route: RouteDefinition, params: RouteParams | None = None
    ) -> NavigationResult[None]:
        """Make ``route`` the only entry of the stack."""

    @abstractmethod
    def go_back(self) -> NavigationResult[bool]:
        """Pop the top entry; ``Success(False)`` when on the initial entry."""

    @abstractmethod
    def go_back_with_result(self, value: Any) -> NavigationResult[bool]:
        """Pop the top entry handing ``value`` to its ``go_to_and_await`` caller."""

    @abstractmethod
    def can_go_back(self) -> bool: ...

    @abstractmethod
    async def pop_until(self, predicate: Callable[[RouteDefinition], bool]) -> bool:
        """Pop until ``predicate`` holds for the top route; return whether it does."""

    @abstractmethod
    async def handle_deep_link(self, uri: str) -> NavigationResult[None]:
        """Resolve ``uri`` against the catalog and navigate there."""

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    @abstractmethod
    def set_error_handler(self, handler: ErrorHandler | None) -> None: ...

    @abstractmethod
    def add_observer(self, observer: NavigationObserver) -> None: ...

    @abstractmethod
    def remove_observer(self, observer: NavigationObserver) -> None: ...

    @abstractmethod
    def add_guard_for_route(self, route: RouteDefinition, guard: RouteGuard) -> None: ...

    @abstractmethod
    def add_global_guard(self, guard: RouteGuard) -> None: ...

    @abstractmethod
    def set_bypass_guards(self, bypass: bool) -> None:
        """Skip guard evaluation entirely (test scaffolding)."""

    # ------------------------------------------------------------------
    # Tabs
    # ------------------------------------------------------------------
    @abstractmethod
    def switch_to_tab(self, index: int) -> None: ...

    @abstractmethod
    def get_current_route_for_tab(self, index: int) -> RouteDefinition | None: ...

    # ------------------------------------------------------------------
    # Conveniences
    # ------------------------------------------------------------------
    async def go_to_home(self) -> NavigationResult[None]:
        return await self.go_to_path("/")

    def is_on_route(self, route: RouteDefinition) -> bool:
        current = self.current_route
        return current is not None and current.name == route.name

    def build_uri(self, route: RouteDefinition, params: RouteParams | None = None) -> str:
        """Concrete URI for ``route`` with ``params`` substituted."""
        if params is None:
            return route.path
        return route.build_uri(params.to_path_params(), params.to_query_params())
