"""Routing Composer - Framework-independent application navigation.

Declare routes once, navigate with typed parameters, guard destinations,
resolve deep links and observe the navigation lifecycle, all without
touching a UI toolkit. Concrete navigation backends implement the
``AppRouter`` contract; ``InMemoryAdapter`` is the reference one.

Public exports:
    - ``RouteDefinition`` / ``ShellRouteDefinition``: Route catalog entries
    - ``MapRouteParams`` / ``ModelRouteParams``: Navigation parameters
    - ``Success`` / ``Failure``: Results returned by every navigation call
    - ``RouteGuard`` and guard results: Pre-navigation decisions
    - ``InMemoryAdapter`` / ``RouterConfiguration``: Ready-to-use router
    - Error classes: The closed navigation error taxonomy

Example::

    from routing_composer import InMemoryAdapter, MapRouteParams, RouteDefinition, RouterConfiguration

    home = RouteDefinition(path="/", name="home")
    profile = RouteDefinition(path="/user/:id", name="userProfile")

    router = InMemoryAdapter(RouterConfiguration(routes=[home, profile], initial_route=home))
    result = await router.go_to(profile, MapRouteParams({"id": "123"}))
    assert result.is_success
"""

__version__ = "0.4.0"

from .adapters import InMemoryAdapter, StackEntry
from .core import (
    AppRouter,
    DeepLinkConfig,
    DeepLinkHandler,
    DefaultDeepLinkHandler,
    EmptyRouteParams,
    Failure,
    GuardAllow,
    GuardContext,
    GuardRedirect,
    GuardReject,
    GuardResult,
    MapRouteParams,
    ModelRouteParams,
    NavigationEvent,
    NavigationObserver,
    NavigationObserverBase,
    NavigationResult,
    NavigationStream,
    ParsedDeepLink,
    RouteDefinition,
    RouteGuard,
    RouteParams,
    RouterConfiguration,
    ShellRouteDefinition,
    Success,
)
from .exceptions import (
    DeepLinkError,
    GuardRejectedError,
    InvalidParamsError,
    NavigationCancelledError,
    NavigationError,
    RouteNotFoundError,
    UnknownNavigationError,
)

__all__ = [
    "AppRouter",
    "DeepLinkConfig",
    "DeepLinkHandler",
    "DefaultDeepLinkHandler",
    "EmptyRouteParams",
    "Failure",
    "GuardAllow",
    "GuardContext",
    "GuardRedirect",
    "GuardReject",
    "GuardResult",
    "InMemoryAdapter",
    "MapRouteParams",
    "ModelRouteParams",
    "NavigationEvent",
    "NavigationObserver",
    "NavigationObserverBase",
    "NavigationResult",
    "NavigationStream",
    "ParsedDeepLink",
    "RouteDefinition",
    "RouteGuard",
    "RouteParams",
    "RouterConfiguration",
    "ShellRouteDefinition",
    "StackEntry",
    "Success",
    "DeepLinkError",
    "GuardRejectedError",
    "InvalidParamsError",
    "NavigationCancelledError",
    "NavigationError",
    "RouteNotFoundError",
    "UnknownNavigationError",
]
