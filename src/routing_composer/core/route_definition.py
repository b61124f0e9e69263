"""Route catalog for Routing Composer.

A catalog is an ordered sequence of :class:`RouteDefinition` values declared
once at startup. Route paths are templates where ``:name`` segments are
placeholders bound at navigation time::

    home = RouteDefinition(path="/", name="home")
    profile = RouteDefinition(path="/user/:id", name="userProfile", requires_auth=True)

    profile.build_path({"id": "42"})                   # "/user/42"
    profile.build_uri({"id": "42"}, {"tab": "posts"})  # "/user/42?tab=posts"

Equality and hashing use ``(path, name)`` only; ``requires_auth`` and
``metadata`` do not take part.

Shell routes
------------
:class:`ShellRouteDefinition` hosts a persistent frame (a tab bar) around an
ordered tuple of child routes. ``iter_routes`` flattens shells so that child
routes are reachable by deep links.

Catalog validation
------------------
``validate_catalog`` runs once when an adapter is built. Duplicate names with
different paths are programmer errors and raise ``ValueError``. Overlapping
templates (``/user/:id`` vs ``/user/new``) are legal because declaration order
decides the match, but each overlap is logged as a warning.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote

__all__ = [
    "RouteDefinition",
    "ShellRouteDefinition",
    "iter_routes",
    "split_segments",
    "templates_overlap",
    "validate_catalog",
]

logger = logging.getLogger("routing_composer.catalog")

_PARAM_RE = re.compile(r":(\w+)")


def split_segments(path: str) -> list[str]:
    """Split a path on ``/`` dropping empty segments (leading, trailing, doubled)."""
    return [segment for segment in path.split("/") if segment]


@dataclass(frozen=True, eq=False)
class RouteDefinition:
    """Immutable navigable destination.

    Attributes:
        path: Path template, placeholders written as ``:name``.
        name: Unique identifier of the route inside the catalog.
        requires_auth: Whether guards should demand authentication.
        metadata: Opaque configuration bag for guards and observers.
    """

    path: str
    name: str
    requires_auth: bool = False
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("RouteDefinition requires a non-empty name")
        if not self.path.startswith("/"):
            raise ValueError(f"Route path must start with '/': {self.path!r}")

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if type(other) is not type(self):
            return NotImplemented
        return self.path == other.path and self.name == other.name  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash((self.path, self.name))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, path={self.path!r})"

    @property
    def path_parameter_names(self) -> list[str]:
        """Placeholder names in declaration order (``/user/:id/post/:pid`` -> ``['id', 'pid']``)."""
        return _PARAM_RE.findall(self.path)

    @property
    def segments(self) -> list[str]:
        return split_segments(self.path)

    def build_path(self, path_params: Mapping[str, str] | None = None) -> str:
        """Substitute placeholders with percent-encoded values.

        Placeholders without a binding are left untouched. Substitution works on
        whole segments so ``:id`` never clobbers ``:identifier``.
        """
        if not path_params:
            return self.path
        parts = []
        for segment in self.path.split("/"):
            if segment.startswith(":") and segment[1:] in path_params:
                segment = quote(str(path_params[segment[1:]]), safe="")
            parts.append(segment)
        return "/".join(parts)

    def build_uri(
        self,
        path_params: Mapping[str, str] | None = None,
        query_params: Mapping[str, str] | None = None,
    ) -> str:
        """Build ``build_path(path_params)`` followed by an encoded query string."""
        result = self.build_path(path_params)
        if not query_params:
            return result
        query = "&".join(
            f"{quote(str(key), safe='')}={quote(str(value), safe='')}"
            for key, value in query_params.items()
        )
        return f"{result}?{query}"

    def missing_params(self, path_params: Mapping[str, str] | None) -> list[str]:
        """Return declared placeholders that have no binding in ``path_params``."""
        bound = path_params or {}
        return [name for name in self.path_parameter_names if name not in bound]


@dataclass(frozen=True, eq=False)
class ShellRouteDefinition(RouteDefinition):
    """Route hosting a persistent frame around ordered child routes.

    Attributes:
        children: Child routes shown inside the shell, one per tab.
    """

    children: tuple[RouteDefinition, ...] = ()

    def __post_init__(self) -> None:
        super().__post_init__()
        object.__setattr__(self, "children", tuple(self.children))

    def child_at(self, index: int) -> RouteDefinition:
        """Return the child for a tab index, raising ``IndexError`` when out of range."""
        if not self.children:
            raise IndexError(f"Shell route {self.name!r} has no children")
        if index < 0 or index >= len(self.children):
            raise IndexError(
                f"Tab index {index} out of range for shell {self.name!r} "
                f"({len(self.children)} children)"
            )
        return self.children[index]


def iter_routes(routes: Iterable[RouteDefinition]) -> Iterator[RouteDefinition]:
    """Yield every route of a catalog, shell children right after their shell.

    A route equal to one already yielded is skipped, so a child that is also
    declared at top level is matched once, at its first position.
    """
    seen: set[RouteDefinition] = set()

    def walk(items: Iterable[RouteDefinition]) -> Iterator[RouteDefinition]:
        for route in items:
            if route not in seen:
                seen.add(route)
                yield route
            if isinstance(route, ShellRouteDefinition):
                yield from walk(route.children)

    yield from walk(routes)


def templates_overlap(first: str, second: str) -> bool:
    """Tell whether some concrete path could match both templates."""
    left, right = split_segments(first), split_segments(second)
    if len(left) != len(right):
        return False
    for a, b in zip(left, right):
        if a.startswith(":") or b.startswith(":"):
            continue
        if a != b:
            return False
    return True


def validate_catalog(
    routes: Iterable[RouteDefinition],
) -> list[tuple[RouteDefinition, RouteDefinition]]:
    """Check a catalog for name collisions and report overlapping templates.

    Raises:
        ValueError: If two different routes share a name.

    Returns:
        Overlapping ``(winner, shadowed)`` pairs in declaration order.
    """
    flat = list(iter_routes(routes))
    by_name: dict[str, RouteDefinition] = {}
    for route in flat:
        existing = by_name.get(route.name)
        if existing is not None:
            raise ValueError(
                f"Duplicate route name {route.name!r}: {existing.path!r} and {route.path!r}"
            )
        by_name[route.name] = route

    overlaps: list[tuple[RouteDefinition, RouteDefinition]] = []
    for index, winner in enumerate(flat):
        for shadowed in flat[index + 1 :]:
            if templates_overlap(winner.path, shadowed.path):
                overlaps.append((winner, shadowed))
                logger.warning(
                    "Route templates overlap: %r (%s) is matched before %r (%s)",
                    winner.name,
                    winner.path,
                    shadowed.name,
                    shadowed.path,
                )
    return overlaps
