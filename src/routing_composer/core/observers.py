"""Navigation events, observers and the completed-event stream.

Observers
---------
A ``NavigationObserver`` receives synchronous callbacks for every lifecycle
transition of a navigation:

    - ``on_navigation_started(event)``: before guards are evaluated.
    - ``on_navigation_completed(event)``: the destination is now on top.
    - ``on_navigation_failed(event, error)``: guards or the adapter refused it.

``ObserverBus`` notifies observers in registration order. A failing observer
is isolated: its exception is logged and the remaining observers still run.

Stream
------
``NavigationStream`` broadcasts completed events to asynchronous subscribers::

    async with router.navigation_stream.subscribe() as events:
        async for event in events:
            print(event.route.name)

Subscribers only receive events published after they subscribed; nothing is
replayed.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover
    from routing_composer.exceptions import NavigationError

    from .route_definition import RouteDefinition

__all__ = [
    "NavigationEvent",
    "NavigationObserver",
    "NavigationObserverBase",
    "LoggingNavigationObserver",
    "CompositeNavigationObserver",
    "HistoryTrackingObserver",
    "ObserverBus",
    "NavigationStream",
    "Subscription",
]

logger = logging.getLogger("routing_composer.observers")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class NavigationEvent:
    """Immutable snapshot of one navigation lifecycle transition."""

    route: RouteDefinition | None = None
    previous_route: RouteDefinition | None = None
    path_params: Mapping[str, str] = field(default_factory=dict)
    query_params: Mapping[str, str] = field(default_factory=dict)
    uri: str | None = None
    timestamp: datetime = field(default_factory=_utcnow)
    is_replacement: bool = False
    is_pop: bool = False

    @property
    def route_name(self) -> str:
        return self.route.name if self.route is not None else "unknown"

    def __repr__(self) -> str:
        previous = self.previous_route.name if self.previous_route else None
        return f"NavigationEvent(route={self.route_name!r}, from={previous!r}, is_pop={self.is_pop})"


class NavigationObserver:
    """Interface for navigation lifecycle callbacks."""

    def on_navigation_started(self, event: NavigationEvent) -> None:
        raise NotImplementedError

    def on_navigation_completed(self, event: NavigationEvent) -> None:
        raise NotImplementedError

    def on_navigation_failed(self, event: NavigationEvent, error: NavigationError) -> None:
        raise NotImplementedError


class NavigationObserverBase(NavigationObserver):
    """No-op observer; override only the callbacks you need."""

    def on_navigation_started(self, event: NavigationEvent) -> None:
        pass

    def on_navigation_completed(self, event: NavigationEvent) -> None:
        pass

    def on_navigation_failed(self, event: NavigationEvent, error: NavigationError) -> None:
        pass


class LoggingNavigationObserver(NavigationObserverBase):
    """Log navigation start, end (with elapsed time) and failures."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("routing_composer")
        self._started: dict[str, float] = {}

    def on_navigation_started(self, event: NavigationEvent) -> None:
        self._started[event.route_name] = time.perf_counter()
        previous = event.previous_route.name if event.previous_route else "none"
        self._logger.info("%s start (from: %s)", event.route_name, previous)

    def on_navigation_completed(self, event: NavigationEvent) -> None:
        t0 = self._started.pop(event.route_name, None)
        if t0 is None:
            self._logger.info("%s end", event.route_name)
            return
        elapsed = (time.perf_counter() - t0) * 1000
        self._logger.info("%s end (%.2f ms)", event.route_name, elapsed)

    def on_navigation_failed(self, event: NavigationEvent, error: NavigationError) -> None:
        self._started.pop(event.route_name, None)
        self._logger.warning("%s failed: %s", event.route_name, error)


class CompositeNavigationObserver(NavigationObserver):
    """Forward every callback to a list of observers, in order."""

    def __init__(self, observers: Iterable[NavigationObserver]) -> None:
        self.observers = list(observers)

    def on_navigation_started(self, event: NavigationEvent) -> None:
        for observer in self.observers:
            observer.on_navigation_started(event)

    def on_navigation_completed(self, event: NavigationEvent) -> None:
        for observer in self.observers:
            observer.on_navigation_completed(event)

    def on_navigation_failed(self, event: NavigationEvent, error: NavigationError) -> None:
        for observer in self.observers:
            observer.on_navigation_failed(event, error)


class HistoryTrackingObserver(NavigationObserverBase):
    """Keep the last ``max_history_size`` completed events."""

    def __init__(self, max_history_size: int = 100) -> None:
        if max_history_size < 1:
            raise ValueError("max_history_size must be at least 1")
        self.max_history_size = max_history_size
        self.history: list[NavigationEvent] = []

    def on_navigation_completed(self, event: NavigationEvent) -> None:
        self.history.append(event)
        if len(self.history) > self.max_history_size:
            del self.history[0]

    def clear(self) -> None:
        self.history.clear()

    @property
    def last_navigation(self) -> NavigationEvent | None:
        return self.history[-1] if self.history else None


class ObserverBus:
    """Ordered observer list with isolated fan-out."""

    __slots__ = ("_observers",)

    def __init__(self, observers: Iterable[NavigationObserver] = ()) -> None:
        self._observers: list[NavigationObserver] = list(observers)

    def add(self, observer: NavigationObserver) -> None:
        self._observers.append(observer)

    def remove(self, observer: NavigationObserver) -> None:
        """Remove ``observer``; unknown observers are ignored."""
        try:
            self._observers.remove(observer)
        except ValueError:
            pass

    def __len__(self) -> int:
        return len(self._observers)

    def __iter__(self) -> Iterator[NavigationObserver]:
        return iter(list(self._observers))

    def notify_started(self, event: NavigationEvent) -> None:
        self._dispatch("on_navigation_started", event)

    def notify_completed(self, event: NavigationEvent) -> None:
        self._dispatch("on_navigation_completed", event)

    def notify_failed(self, event: NavigationEvent, error: NavigationError) -> None:
        self._dispatch("on_navigation_failed", event, error)

    def _dispatch(self, callback: str, *args: Any) -> None:
        # Snapshot: observers may add/remove observers while being notified.
        for observer in list(self._observers):
            try:
                getattr(observer, callback)(*args)
            except Exception:
                logger.exception("Observer %r failed in %s", observer, callback)


class Subscription:
    """One subscriber's buffer on a ``NavigationStream``."""

    __slots__ = ("_stream", "_buffer", "_ready", "_maxsize", "_closed")

    def __init__(self, stream: NavigationStream, maxsize: int = 0) -> None:
        self._stream = stream
        self._buffer: deque[NavigationEvent] = deque()
        self._ready = asyncio.Event()
        self._maxsize = maxsize
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def pending(self) -> int:
        """Number of buffered events not yet consumed."""
        return len(self._buffer)

    def _push(self, event: NavigationEvent) -> None:
        if self._maxsize and len(self._buffer) >= self._maxsize:
            logger.warning("Navigation stream subscriber is full, dropping %r", event)
            return
        self._buffer.append(event)
        self._ready.set()

    def _end(self) -> None:
        self._closed = True
        self._ready.set()

    def close(self) -> None:
        """Stop receiving events; already buffered events are still delivered."""
        self._stream._discard(self)
        self._end()

    async def get(self) -> NavigationEvent:
        """Return the next event; raise ``StopAsyncIteration`` once closed and drained."""
        while not self._buffer:
            if self._closed:
                raise StopAsyncIteration
            self._ready.clear()
            await self._ready.wait()
        return self._buffer.popleft()

    def __aiter__(self) -> Subscription:
        return self

    async def __anext__(self) -> NavigationEvent:
        return await self.get()

    async def __aenter__(self) -> Subscription:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.close()


class NavigationStream:
    """Broadcast of completed navigation events to async subscribers."""

    __slots__ = ("_subscriptions", "_closed")

    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, maxsize: int = 0) -> Subscription:
        """Attach a new subscriber. On a closed stream it is already ended."""
        subscription = Subscription(self, maxsize)
        if self._closed:
            subscription._end()
        else:
            self._subscriptions.append(subscription)
        return subscription

    def publish(self, event: NavigationEvent) -> None:
        if self._closed:
            return
        for subscription in list(self._subscriptions):
            subscription._push(event)

    def close(self) -> None:
        self._closed = True
        subscriptions, self._subscriptions = self._subscriptions, []
        for subscription in subscriptions:
            subscription._end()

    def _discard(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
