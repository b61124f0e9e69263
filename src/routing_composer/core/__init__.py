"""Core runtime aggregator for Routing Composer.

Exposes the framework-independent building blocks from a single module:
route catalog, parameters, results, guards, deep links, observers and the
``AppRouter`` contract.

Public API:
    - ``RouteDefinition`` / ``ShellRouteDefinition``: Catalog entries
    - ``RouteParams`` and variants: Path and query parameter sources
    - ``NavigationResult`` / ``Success`` / ``Failure``: Operation outcomes
    - ``RouteGuard`` and ``GuardEngine``: Pre-navigation decisions
    - ``DefaultDeepLinkHandler``: URI to route matching
    - ``ObserverBus`` / ``NavigationStream``: Lifecycle notification
    - ``AppRouter`` / ``RouterConfiguration``: The router contract

Importing this module performs only imports; it does not build routers.
"""

from .app_router import AppRouter, ErrorHandler, RouterConfiguration
from .deep_link import DeepLinkConfig, DeepLinkHandler, DefaultDeepLinkHandler, ParsedDeepLink
from .guards import (
    GUARD_RESULT_TYPES,
    AlwaysAllowGuard,
    AlwaysRejectGuard,
    CompositeGuard,
    GuardAllow,
    GuardContext,
    GuardEngine,
    GuardOutcome,
    GuardRedirect,
    GuardRegistry,
    GuardReject,
    GuardResult,
    GuardTimeout,
    RouteGuard,
)
from .observers import (
    CompositeNavigationObserver,
    HistoryTrackingObserver,
    LoggingNavigationObserver,
    NavigationEvent,
    NavigationObserver,
    NavigationObserverBase,
    NavigationStream,
    ObserverBus,
    Subscription,
)
from .result import Failure, NavigationResult, Success
from .route_definition import (
    RouteDefinition,
    ShellRouteDefinition,
    iter_routes,
    split_segments,
    templates_overlap,
    validate_catalog,
)
from .route_params import (
    EmptyRouteParams,
    MapRouteParams,
    ModelRouteParams,
    ParsedParams,
    RouteParams,
)

__all__ = [
    "AppRouter",
    "ErrorHandler",
    "RouterConfiguration",
    "DeepLinkConfig",
    "DeepLinkHandler",
    "DefaultDeepLinkHandler",
    "ParsedDeepLink",
    "GUARD_RESULT_TYPES",
    "AlwaysAllowGuard",
    "AlwaysRejectGuard",
    "CompositeGuard",
    "GuardAllow",
    "GuardContext",
    "GuardEngine",
    "GuardOutcome",
    "GuardRedirect",
    "GuardRegistry",
    "GuardReject",
    "GuardResult",
    "GuardTimeout",
    "RouteGuard",
    "CompositeNavigationObserver",
    "HistoryTrackingObserver",
    "LoggingNavigationObserver",
    "NavigationEvent",
    "NavigationObserver",
    "NavigationObserverBase",
    "NavigationStream",
    "ObserverBus",
    "Subscription",
    "Failure",
    "NavigationResult",
    "Success",
    "RouteDefinition",
    "ShellRouteDefinition",
    "iter_routes",
    "split_segments",
    "templates_overlap",
    "validate_catalog",
    "EmptyRouteParams",
    "MapRouteParams",
    "ModelRouteParams",
    "ParsedParams",
    "RouteParams",
]
