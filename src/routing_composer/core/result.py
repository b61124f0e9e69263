"""NavigationResult - success-or-failure wrapper returned by navigation calls.

Every public navigation operation returns a ``NavigationResult``; expected
failures are never raised. The union is closed: a result is either a
``Success`` holding a value or a ``Failure`` holding a ``NavigationError``.

Example::

    result = await router.go_to(routes.settings)
    match result:
        case Success():
            ...
        case Failure(error=GuardRejectedError() as error):
            print(error.guard_name)

    message = result.fold(
        on_success=lambda _: "ok",
        on_failure=lambda error: error.message,
    )
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from routing_composer.exceptions import NavigationError

__all__ = ["NavigationResult", "Success", "Failure"]

T = TypeVar("T")
R = TypeVar("R")


class NavigationResult(Generic[T]):
    """Base of the ``Success`` / ``Failure`` pair. Do not subclass elsewhere."""

    __slots__ = ()

    @property
    def is_success(self) -> bool:
        return isinstance(self, Success)

    @property
    def is_failure(self) -> bool:
        return isinstance(self, Failure)

    @property
    def value_or_none(self) -> T | None:
        return self.value if isinstance(self, Success) else None

    @property
    def error_or_none(self) -> NavigationError | None:
        return self.error if isinstance(self, Failure) else None

    def value_or_raise(self) -> T:
        """Return the value, or raise the stored error."""
        if isinstance(self, Failure):
            raise self.error
        return self.value  # type: ignore[attr-defined, no-any-return]

    def map(self, transform: Callable[[T], R]) -> NavigationResult[R]:
        """Transform a success value; failures pass through unchanged."""
        if isinstance(self, Success):
            return Success(transform(self.value))
        return Failure(self.error)  # type: ignore[attr-defined]

    def fold(
        self,
        *,
        on_success: Callable[[T], R],
        on_failure: Callable[[NavigationError], R],
    ) -> R:
        if isinstance(self, Success):
            return on_success(self.value)
        return on_failure(self.error)  # type: ignore[attr-defined]


@dataclass(frozen=True, slots=True)
class Success(NavigationResult[T]):
    """Navigation completed; ``value`` is ``None`` for void operations."""

    value: T = None  # type: ignore[assignment]


@dataclass(frozen=True, slots=True)
class Failure(NavigationResult[T]):
    """Navigation failed with ``error``."""

    error: NavigationError
