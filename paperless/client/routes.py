from dataclasses import dataclass

from paperless.client.auth import AuthContext


@dataclass(frozen=True)
class Route:
    name: str
    public: bool = False
    roles: frozenset[str] | None = None


ROUTES = {
    r.name: r
    for r in (
        Route("login", public=True),
        Route("register", public=True),
        Route("dashboard"),
        Route("documents"),
        Route("document"),
        Route("upload"),
        Route("users", roles=frozenset({"boss"})),
    )
}

HOME = "dashboard"


def resolve(name: str, context: AuthContext) -> str:
    """Name of the view to actually show when ``name`` is requested.

    Only hides views; the server still enforces every permission.
    """
    route = ROUTES.get(name)
    if route is None:
        return HOME if context.is_authenticated else "login"
    if route.public:
        return route.name
    if not context.is_authenticated:
        return "login"
    if route.roles is not None and context.role not in route.roles:
        return HOME
    return route.name
