# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""AuthGuard - redirect unauthenticated users away from protected routes.

Routes declared with ``requires_auth=True`` are only reachable when the
``is_authenticated`` check answers true; otherwise the guard redirects to the
login route. Public routes are always allowed.

Usage::

    guard = AuthGuard(auth_service.is_authenticated, login_route=routes.login)
    router = InMemoryAdapter(
        RouterConfiguration(routes=routes.all, initial_route=routes.splash, global_guards=[guard])
    )

``is_authenticated`` may be a plain callable or a coroutine function (e.g. a
token refresh against a remote service).
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Union

from routing_composer.core.guards import (
    GuardAllow,
    GuardContext,
    GuardRedirect,
    GuardReject,
    GuardResult,
    RouteGuard,
)

if TYPE_CHECKING:  # pragma: no cover
    from routing_composer.core.route_definition import RouteDefinition

__all__ = ["AuthGuard"]

AuthCheck = Callable[[], Union[bool, Awaitable[bool]]]


class AuthGuard(RouteGuard):
    """Allow public routes; redirect (or reject) protected ones when logged out.

    Args:
        is_authenticated: Sync or async callable returning the login state.
        login_route: Redirect target. ``None`` rejects instead of redirecting.
        name: Guard name reported in ``GuardRejectedError``.
    """

    def __init__(
        self,
        is_authenticated: AuthCheck,
        login_route: RouteDefinition | None = None,
        *,
        name: str = "AuthGuard",
    ) -> None:
        if not callable(is_authenticated):
            raise TypeError("is_authenticated must be callable")
        self._is_authenticated = is_authenticated
        self.login_route = login_route
        self.name = name

    async def can_activate(self, context: GuardContext) -> GuardResult:
        destination = context.destination
        if not destination.requires_auth:
            return GuardAllow()
        if self.login_route is not None and destination == self.login_route:
            return GuardAllow()

        authenticated = self._is_authenticated()
        if inspect.isawaitable(authenticated):
            authenticated = await authenticated
        if authenticated:
            return GuardAllow()

        if self.login_route is None:
            return GuardReject(reason="not_authenticated")
        return GuardRedirect(self.login_route)
