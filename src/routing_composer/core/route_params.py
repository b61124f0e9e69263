"""Route parameters for Routing Composer.

Parameters travel as two string maps: path parameters (substituted into
``:name`` placeholders) and query parameters (appended as ``?k=v``).
``RouteParams`` is the polymorphic source of those maps.

Variants:
    - ``EmptyRouteParams.instance``: no parameters at all.
    - ``MapRouteParams``: raw maps, typically produced from a parsed deep link.
    - ``ModelRouteParams``: typed parameters declared as a pydantic model.

Example::

    class UserProfileParams(ModelRouteParams):
        path_fields = ("id",)

        id: str
        tab: str | None = None

    UserProfileParams(id="42", tab="posts").to_path_params()   # {"id": "42"}
    UserProfileParams(id="42", tab="posts").to_query_params()  # {"tab": "posts"}
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, ClassVar, NamedTuple

from pydantic import BaseModel, ConfigDict, ValidationError

from routing_composer.exceptions import InvalidParamsError

__all__ = [
    "RouteParams",
    "EmptyRouteParams",
    "MapRouteParams",
    "ModelRouteParams",
    "ParsedParams",
]


class ParsedParams(NamedTuple):
    """Path and query maps extracted from a URI or a ``RouteParams``."""

    path_params: dict[str, str]
    query_params: dict[str, str]


class RouteParams(ABC):
    """Source of path and query parameters for a navigation."""

    @abstractmethod
    def to_path_params(self) -> dict[str, str]:
        """Return placeholder bindings; keys should match the route's ``:name`` slots."""

    def to_query_params(self) -> dict[str, str]:
        return {}

    def to_map(self) -> dict[str, str]:
        """Merge path and query parameters; query values win on clashes."""
        return {**self.to_path_params(), **self.to_query_params()}

    def parsed(self) -> ParsedParams:
        return ParsedParams(self.to_path_params(), self.to_query_params())


class EmptyRouteParams(RouteParams):
    """Parameters for routes that take none. Use the ``instance`` singleton."""

    instance: ClassVar[EmptyRouteParams]

    def to_path_params(self) -> dict[str, str]:
        return {}

    def __repr__(self) -> str:
        return "EmptyRouteParams()"


EmptyRouteParams.instance = EmptyRouteParams()


class MapRouteParams(RouteParams):
    """Parameters given as raw string maps."""

    __slots__ = ("path_params", "query_params")

    def __init__(
        self,
        path_params: Mapping[str, str] | None = None,
        query_params: Mapping[str, str] | None = None,
    ) -> None:
        self.path_params: dict[str, str] = dict(path_params or {})
        self.query_params: dict[str, str] = dict(query_params or {})

    def to_path_params(self) -> dict[str, str]:
        return dict(self.path_params)

    def to_query_params(self) -> dict[str, str]:
        return dict(self.query_params)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MapRouteParams):
            return NotImplemented
        return self.path_params == other.path_params and self.query_params == other.query_params

    def __repr__(self) -> str:
        return f"MapRouteParams(path_params={self.path_params!r}, query_params={self.query_params!r})"


class ModelRouteParams(BaseModel, RouteParams):
    """Typed parameters validated by pydantic.

    Subclasses declare fields as on any pydantic model and list in
    ``path_fields`` the ones bound to path placeholders. Every other field whose
    value is not ``None`` becomes a query parameter. Values are stringified.
    """

    model_config = ConfigDict(frozen=True)

    path_fields: ClassVar[tuple[str, ...]] = ()

    def _stringified(self) -> dict[str, str]:
        return {
            key: _to_str(value)
            for key, value in self.model_dump().items()
            if value is not None
        }

    def to_path_params(self) -> dict[str, str]:
        values = self._stringified()
        return {key: values[key] for key in self.path_fields if key in values}

    def to_query_params(self) -> dict[str, str]:
        return {
            key: value
            for key, value in self._stringified().items()
            if key not in self.path_fields
        }

    @classmethod
    def from_maps(
        cls,
        path_params: Mapping[str, str] | None = None,
        query_params: Mapping[str, str] | None = None,
    ) -> ModelRouteParams:
        """Validate raw string maps (e.g. from a deep link) into the typed model.

        Raises:
            InvalidParamsError: If pydantic rejects the values. Missing required
                fields go to ``missing_params``, the others to ``invalid_params``.
        """
        data: dict[str, Any] = {**dict(query_params or {}), **dict(path_params or {})}
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            missing: list[str] = []
            invalid: list[str] = []
            for item in exc.errors():
                loc = ".".join(str(part) for part in item.get("loc", ())) or "?"
                (missing if item.get("type") == "missing" else invalid).append(loc)
            raise InvalidParamsError(
                missing_params=missing, invalid_params=invalid, cause=exc
            ) from exc


def _to_str(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
