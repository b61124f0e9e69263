"""Property tests for stack navigation and deep-link round trips."""

from __future__ import annotations

import asyncio

from hypothesis import given, settings
from hypothesis import strategies as st

from routing_composer import (
    InMemoryAdapter,
    MapRouteParams,
    NavigationObserverBase,
    RouteDefinition,
    RouterConfiguration,
)
from routing_composer.core.deep_link import DefaultDeepLinkHandler

HOME = RouteDefinition(path="/", name="home")
LIST = RouteDefinition(path="/items", name="items")
ITEM = RouteDefinition(path="/items/:id", name="item")
COMMENT = RouteDefinition(path="/items/:id/comments/:commentId", name="comment")
ROUTES = (HOME, LIST, ITEM, COMMENT)

route_strategy = st.sampled_from(ROUTES)
operation = st.one_of(
    st.tuples(st.just("push"), route_strategy),
    st.tuples(st.just("replace"), route_strategy),
    st.tuples(st.just("clear"), route_strategy),
    st.tuples(st.just("back"), st.none()),
)
segment_value = st.text(
    alphabet=st.characters(exclude_categories=("Cs",), exclude_characters="\x00"),
    min_size=1,
    max_size=12,
)


class Counter(NavigationObserverBase):
    def __init__(self):
        self.completed = 0

    def on_navigation_completed(self, event):
        self.completed += 1


async def _replay(operations):
    counter = Counter()
    router = InMemoryAdapter(RouterConfiguration(routes=ROUTES, initial_route=HOME, observers=[counter]))
    model = [HOME]
    for name, route in operations:
        if name == "push":
            await router.go_to(route)
            model.append(route)
        elif name == "replace":
            await router.replace_with(route)
            model[-1] = route
        elif name == "clear":
            await router.clear_stack_and_go_to(route)
            model = [route]
        else:
            popped = router.go_back().value
            assert popped == (len(model) > 1)
            if len(model) > 1:
                model.pop()
        assert router.stack_length >= 1
        assert router.current_route == router.navigation_stack[-1]
        assert router.navigation_stack == model
    return router, counter


class TestStackProperties:
    @settings(max_examples=60, deadline=None)
    @given(st.lists(operation, max_size=25))
    def test_stack_follows_model(self, operations):
        """Any operation sequence keeps a non-empty stack matching a list model."""
        router, counter = asyncio.run(_replay(operations))
        assert counter.completed == len(router.navigation_history)

    @settings(max_examples=40, deadline=None)
    @given(st.lists(route_strategy, max_size=10))
    def test_push_then_back_restores_stack(self, routes):
        async def scenario():
            router = InMemoryAdapter(RouterConfiguration(routes=ROUTES, initial_route=HOME))
            for route in routes:
                await router.go_to(route)
            before = router.navigation_stack
            await router.go_to(ITEM, MapRouteParams({"id": "1"}))
            router.go_back()
            return before, router.navigation_stack

        before, after = asyncio.run(scenario())
        assert before == after


class TestDeepLinkRoundTrip:
    @settings(max_examples=80, deadline=None)
    @given(segment_value, segment_value)
    def test_build_uri_then_parse(self, item_id, comment_id):
        """A path built from a template parses back to the same route and params."""
        params = {"id": item_id, "commentId": comment_id}
        uri = COMMENT.build_uri(params)
        link = DefaultDeepLinkHandler(ROUTES).parse(uri)
        assert link is not None
        assert link.route == COMMENT
        assert link.path_params == params

    @settings(max_examples=40, deadline=None)
    @given(segment_value, st.dictionaries(st.from_regex(r"[a-z]{1,6}", fullmatch=True), segment_value, max_size=3))
    def test_query_round_trip(self, item_id, query):
        uri = ITEM.build_uri({"id": item_id}, query)
        link = DefaultDeepLinkHandler(ROUTES).parse(uri)
        assert link.route == ITEM
        assert link.path_params == {"id": item_id}
        assert link.query_params == query
