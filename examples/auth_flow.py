from __future__ import annotations

import asyncio

from routing_composer import (
    Failure,
    InMemoryAdapter,
    MapRouteParams,
    RouteDefinition,
    RouterConfiguration,
    Success,
)
from routing_composer.core.observers import LoggingNavigationObserver
from routing_composer.guards import AuthGuard, TagRuleGuard

home = RouteDefinition(path="/", name="home")
login = RouteDefinition(path="/login", name="login")
profile = RouteDefinition(path="/user/:id", name="userProfile", requires_auth=True)
# This route requires the 'admin' tag and refuses guests
admin = RouteDefinition(path="/admin", name="admin", metadata={"auth_rule": "admin&!guest"})

session = {"logged_in": False, "tags": ""}


def describe(result):
    match result:
        case Success():
            return "ok"
        case Failure(error=error):
            return f"{error.code}: {error.message}"


async def main():
    router = InMemoryAdapter(
        RouterConfiguration(
            routes=[home, login, profile, admin],
            initial_route=home,
            global_guards=[
                AuthGuard(lambda: session["logged_in"], login),
                TagRuleGuard(lambda: session["tags"]),
            ],
            observers=[LoggingNavigationObserver()],
        )
    )

    print("--- 1. Profile WITHOUT login ---")
    result = await router.go_to(profile, MapRouteParams({"id": "42"}))
    print(f"Result: {describe(result)} -> now on {router.current_route.name}")

    print("\n--- 2. Profile after login ---")
    session["logged_in"] = True
    session["tags"] = "user"
    result = await router.go_to(profile, MapRouteParams({"id": "42"}))
    print(f"Result: {describe(result)} -> {router.build_uri(profile, MapRouteParams({'id': '42'}))}")

    print("\n--- 3. Admin area WITH 'user' tag ---")
    print(f"Result: {describe(await router.go_to(admin))}")

    print("\n--- 4. Admin area WITH 'admin' tag ---")
    session["tags"] = "admin"
    print(f"Result: {describe(await router.go_to(admin))}")

    print("\n--- 5. Deep link ---")
    print(f"Result: {describe(await router.handle_deep_link('myapp://open/user/7?tab=posts'))}")
    print(f"Params: {router.current_path_params} {router.current_query_params}")
    print(f"Stack: {[route.name for route in router.navigation_stack]}")


if __name__ == "__main__":
    asyncio.run(main())
