"""Deep link parsing: URI -> matched route + extracted parameters.

Matching algorithm (``DefaultDeepLinkHandler``):

1. Split the route template and the URI path on ``/``, dropping empty
   segments. An empty path is treated as ``/``.
2. A route matches only when both have the same number of segments.
3. Template segments starting with ``:`` bind the URL-decoded URI segment
   under the name after the colon; every other segment must be equal.
4. Routes are tried in catalog order (shell children after their shell); the
   first match wins.

Query parameters are taken from the URI query string as-is (decoded, blank
values kept, last value wins for repeated keys); they never take part in
matching.

Example::

    handler = DefaultDeepLinkHandler([home, profile])
    link = handler.parse("/user/77?tab=posts")
    link.route is profile, link.path_params == {"id": "77"}, link.query_params == {"tab": "posts"}
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass, field
from urllib.parse import SplitResult, parse_qsl, unquote, urlsplit

from .route_definition import RouteDefinition, iter_routes, split_segments
from .route_params import MapRouteParams

__all__ = ["ParsedDeepLink", "DeepLinkHandler", "DefaultDeepLinkHandler", "DeepLinkConfig"]

UriLike = str | SplitResult


@dataclass(frozen=True)
class ParsedDeepLink:
    """Result of matching a URI against the catalog."""

    route: RouteDefinition
    uri: str
    path_params: dict[str, str] = field(default_factory=dict)
    query_params: dict[str, str] = field(default_factory=dict)

    def to_route_params(self) -> MapRouteParams:
        return MapRouteParams(self.path_params, self.query_params)

    def __repr__(self) -> str:
        return (
            f"ParsedDeepLink(route={self.route.name!r}, path_params={self.path_params!r}, "
            f"query_params={self.query_params!r})"
        )


class DeepLinkHandler(ABC):
    """Interface turning URIs into ``ParsedDeepLink`` values."""

    @abstractmethod
    def parse(self, uri: UriLike) -> ParsedDeepLink | None:
        """Return the matching deep link, or ``None`` when no route matches.

        Raises:
            ValueError: If ``uri`` is a string that is not a valid URI.
        """

    def parse_string(self, text: str) -> ParsedDeepLink | None:
        """Like ``parse`` but reports malformed input as ``None`` instead of raising."""
        try:
            return self.parse(text)
        except ValueError:
            return None

    def can_handle(self, uri: UriLike) -> bool:
        return self.parse(uri) is not None


class DefaultDeepLinkHandler(DeepLinkHandler):
    """First-match-wins matcher over an immutable route catalog."""

    __slots__ = ("routes",)

    def __init__(self, routes: Iterable[RouteDefinition]) -> None:
        self.routes: tuple[RouteDefinition, ...] = tuple(iter_routes(routes))

    def parse(self, uri: UriLike) -> ParsedDeepLink | None:
        parts = urlsplit(uri) if isinstance(uri, str) else uri
        path = parts.path or "/"
        segments = split_segments(path)
        for route in self.routes:
            path_params = self.match(route, segments)
            if path_params is not None:
                return ParsedDeepLink(
                    route=route,
                    uri=parts.geturl(),
                    path_params=path_params,
                    query_params=dict(parse_qsl(parts.query, keep_blank_values=True)),
                )
        return None

    @staticmethod
    def match(route: RouteDefinition, segments: list[str]) -> dict[str, str] | None:
        """Match already split ``segments`` against ``route``; return bound params or None."""
        template = route.segments
        if len(template) != len(segments):
            return None
        params: dict[str, str] = {}
        for expected, actual in zip(template, segments):
            if expected.startswith(":"):
                params[expected[1:]] = unquote(actual)
            elif expected != actual:
                return None
        return params


@dataclass(frozen=True)
class DeepLinkConfig:
    """Platform deep-link settings, consumed by platform adapters only."""

    ios_universal_link_domains: tuple[str, ...] = ()
    android_app_link_domains: tuple[str, ...] = ()
    custom_schemes: tuple[str, ...] = ()
    use_path_url_strategy: bool = True
