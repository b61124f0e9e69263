# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""RuleBasedGuard - Base class for rule-based access guards.

Routes carry a boolean rule in their metadata under ``<prefix>rule``; the
guard evaluates it against a set of values (user tags, capabilities...)
supplied when the guard is built::

    admin = RouteDefinition(path="/admin", name="admin", metadata={"auth_rule": "admin&!guest"})

Subclasses must define:
    - ``metadata_prefix``: metadata key prefix (e.g. "auth_", "allow_")
    - ``no_values_reason``: reject reason when no values are available
    - ``mismatch_reason``: reject reason when values don't match the rule

Rule syntax:
    - ``|`` : OR
    - ``&`` : AND
    - ``!`` : NOT
    - ``()`` : grouping

Comma is NOT allowed in a rule; a comma in a values string separates values.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Iterable
from typing import TYPE_CHECKING, Any, Union

from genro_toolbox import dictExtract, tags_match

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

__all__ = ["RuleBasedGuard", "ValuesSource", "parse_values"]

ValuesSource = Union[
    str,
    Iterable[str],
    Callable[[], Union[str, Iterable[str], None, Awaitable[Union[str, Iterable[str], None]]]],
    None,
]


def parse_values(values: str | Iterable[str] | None) -> set[str]:
    """Normalise ``"a, b"`` or an iterable of strings into a set of stripped values."""
    if not values:
        return set()
    if isinstance(values, str):
        values = values.split(",")
    return {v.strip() for v in values if v and v.strip()}


class RuleBasedGuard(RouteGuard):
    """Guard evaluating a metadata rule against a set of values.

    Args:
        values: Values owned by the current user/system. A set, a comma
            separated string, or a (sync or async) callable returning either.
        name: Guard name used in errors; defaults to the class name.
        redirect_on_missing: Route to redirect to when no values are
            available, instead of rejecting.
    """

    metadata_prefix: str = ""
    no_values_reason: str = ""
    mismatch_reason: str = ""

    def __init__(
        self,
        values: ValuesSource = None,
        *,
        name: str | None = None,
        redirect_on_missing: RouteDefinition | None = None,
    ) -> None:
        self._values = values
        self.name = name or type(self).__name__
        self.redirect_on_missing = redirect_on_missing

    @classmethod
    def check_rule(cls, rule: str) -> str:
        """Validate a rule string, raising ``ValueError`` when it holds a comma."""
        if "," in rule:
            raise ValueError(
                f"Comma not allowed in {cls.metadata_prefix}rule: {rule!r}. "
                "Use '|' for OR (e.g., 'admin|manager') or '&' for AND (e.g., 'admin&hr')."
            )
        return rule

    def options(self, route: RouteDefinition) -> dict[str, Any]:
        """Return the ``<prefix>*`` metadata entries of ``route`` with the prefix removed."""
        return dictExtract(dict(route.metadata), self.metadata_prefix, slice_prefix=True, pop=False)

    def rule_for(self, route: RouteDefinition) -> str:
        return self.check_rule(str(self.options(route).get("rule") or ""))

    async def current_values(self) -> set[str]:
        source = self._values
        if callable(source):
            source = source()
            if inspect.isawaitable(source):
                source = await source
        return parse_values(source)  # type: ignore[arg-type]

    async def can_activate(self, context: GuardContext) -> GuardResult:
        rule = self.rule_for(context.destination)
        if not rule:
            return GuardAllow()

        values = await self.current_values()
        if not values:
            if self.redirect_on_missing is not None:
                return GuardRedirect(self.redirect_on_missing)
            return GuardReject(reason=self.no_values_reason)

        if tags_match(rule, values):
            return GuardAllow()
        return GuardReject(reason=self.mismatch_reason)
