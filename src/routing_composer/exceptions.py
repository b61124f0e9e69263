# Copyright 2025 Softwell S.r.l. - All Rights Reserved
# SPDX-License-Identifier: Apache-2.0
"""Navigation errors for Routing Composer.

This module defines the closed taxonomy of navigation failures. Errors are
never raised across the public navigation API: they travel inside a
``Failure`` result (see ``routing_composer.core.result``). They still derive
from ``Exception`` so that ``value_or_raise()`` can surface them and so they
can carry a ``__cause__``.

Each class exposes a ``code`` used for error-code dispatch (``route_not_found``,
``guard_rejected``...); ``ERROR_CODES`` maps codes back to classes.
"""

from __future__ import annotations

import traceback
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover
    from routing_composer.core.route_definition import RouteDefinition

__all__ = [
    "NavigationError",
    "RouteNotFoundError",
    "GuardRejectedError",
    "InvalidParamsError",
    "NavigationCancelledError",
    "DeepLinkError",
    "UnknownNavigationError",
    "ERROR_CODES",
]


class NavigationError(Exception):
    """Base class for every navigation failure.

    Attributes:
        message: Human-readable error message.
        cause: Optional underlying exception.
        traceback_text: Formatted stack of ``cause`` when one was wrapped.
    """

    code: str = "navigation_error"

    def __init__(
        self,
        message: str,
        *,
        cause: BaseException | None = None,
        traceback_text: str | None = None,
    ) -> None:
        self.message = message
        self.cause = cause
        if traceback_text is None and cause is not None and cause.__traceback__ is not None:
            traceback_text = "".join(
                traceback.format_exception(type(cause), cause, cause.__traceback__)
            )
        self.traceback_text = traceback_text
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class RouteNotFoundError(NavigationError):
    """Raised when no catalog entry matches a requested path.

    Attributes:
        path: The path that was not found.
    """

    code = "route_not_found"

    def __init__(self, path: str, **kwargs: Any) -> None:
        self.path = path
        super().__init__(f"Route not found: {path}", **kwargs)


class GuardRejectedError(NavigationError):
    """A guard rejected navigation or redirected it elsewhere.

    Attributes:
        route: The route that was refused.
        redirect_to: Route the guard asked to navigate to instead, if any.
        guard_name: Name of the guard that stopped the navigation.
    """

    code = "guard_rejected"

    def __init__(
        self,
        route: RouteDefinition | None = None,
        *,
        redirect_to: RouteDefinition | None = None,
        guard_name: str | None = None,
        message: str | None = None,
        **kwargs: Any,
    ) -> None:
        self.route = route
        self.redirect_to = redirect_to
        self.guard_name = guard_name
        if message is None:
            message = "Navigation rejected by guard"
            if guard_name:
                message = f"{message}: {guard_name}"
        super().__init__(message, **kwargs)


class InvalidParamsError(NavigationError):
    """Route parameters are missing or carry invalid values.

    Attributes:
        route: The route with invalid parameters.
        missing_params: Required parameters without a binding.
        invalid_params: Parameters whose value was rejected.
    """

    code = "invalid_params"

    def __init__(
        self,
        route: RouteDefinition | None = None,
        *,
        missing_params: list[str] | tuple[str, ...] = (),
        invalid_params: list[str] | tuple[str, ...] = (),
        message: str | None = None,
        **kwargs: Any,
    ) -> None:
        self.route = route
        self.missing_params = list(missing_params)
        self.invalid_params = list(invalid_params)
        if message is None:
            parts = []
            if self.missing_params:
                parts.append(f"missing: {', '.join(self.missing_params)}")
            if self.invalid_params:
                parts.append(f"invalid: {', '.join(self.invalid_params)}")
            message = f"Invalid parameters: {'; '.join(parts)}"
        super().__init__(message, **kwargs)


class NavigationCancelledError(NavigationError):
    """A pending navigation was abandoned before producing a result.

    Attributes:
        reason: Why the navigation was cancelled.
    """

    code = "navigation_cancelled"

    def __init__(self, reason: str | None = None, **kwargs: Any) -> None:
        self.reason = reason
        super().__init__(reason or "Navigation was cancelled", **kwargs)


class DeepLinkError(NavigationError):
    """A URI could not be resolved into any route.

    Attributes:
        uri: The URI that failed to parse or match.
    """

    code = "deep_link_error"

    def __init__(self, message: str, *, uri: str | None = None, **kwargs: Any) -> None:
        self.uri = uri
        super().__init__(message, **kwargs)


class UnknownNavigationError(NavigationError):
    """Any unexpected failure, wrapped with its original cause."""

    code = "unknown_navigation"

    @classmethod
    def wrap(cls, exc: BaseException, message: str | None = None) -> UnknownNavigationError:
        """Build an error from a caught exception, keeping cause and traceback."""
        return cls(message or f"{type(exc).__name__}: {exc}", cause=exc)


ERROR_CODES: dict[str, type[NavigationError]] = {
    RouteNotFoundError.code: RouteNotFoundError,
    GuardRejectedError.code: GuardRejectedError,
    InvalidParamsError.code: InvalidParamsError,
    NavigationCancelledError.code: NavigationCancelledError,
    DeepLinkError.code: DeepLinkError,
    UnknownNavigationError.code: UnknownNavigationError,
}
