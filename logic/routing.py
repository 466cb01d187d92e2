"""In-app routes.

A route is a ``path?query`` string, e.g. ``cases?tag=窃电&page=2``. List
views keep their filter state in the query so that re-opening the same
route string reproduces the same view.
"""
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Tuple
from urllib.parse import parse_qsl, urlencode

logger = logging.getLogger(__name__)

LOGIN = "login"
DASHBOARD = "dashboard"
CASES = "cases"
TAGS = "tags"

PUBLIC_ROUTES = {LOGIN}


@dataclass
class Route:
    path: str
    query: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def parse(cls, target: str) -> "Route":
        path, _, qs = target.partition("?")
        path = path.strip("/") or DASHBOARD
        return cls(path, dict(parse_qsl(qs)))

    def __str__(self) -> str:
        if not self.query:
            return self.path
        return f"{self.path}?{urlencode(self.query)}"

    def match(self) -> Tuple[str, Optional[str]]:
        """Return (view name, case id) for this path."""
        parts = self.path.split("/")
        if parts[0] == CASES and len(parts) == 2 and parts[1]:
            return "detail", parts[1]
        if parts[0] in (LOGIN, DASHBOARD, CASES, TAGS) and len(parts) == 1:
            return parts[0], None
        return DASHBOARD, None


class Router:
    def __init__(self, is_authenticated: Callable[[], bool],
                 on_change: Optional[Callable[[Route], None]] = None):
        self._is_authenticated = is_authenticated
        self.on_change = on_change
        self.current = Route(LOGIN)
        self.pending: Optional[Route] = None

    def navigate(self, target: str, query: Optional[Dict[str, str]] = None) -> Route:
        route = Route.parse(target)
        if query:
            route.query.update({k: str(v) for k, v in query.items() if v not in (None, "")})
        if route.path not in PUBLIC_ROUTES and not self._is_authenticated():
            logger.info("Route %s requires a session, redirecting to login", route)
            self.pending = route
            route = Route(LOGIN)
        self.current = route
        if self.on_change:
            self.on_change(route)
        return route

    def replace_query(self, query: Dict[str, str]) -> None:
        """Rewrite the current query string without re-rendering the view."""
        self.current = Route(self.current.path, dict(query))

    def redirect_to_login(self) -> bool:
        if self.current.path == LOGIN:
            return False
        self.pending = self.current
        self.navigate(LOGIN)
        return True

    def take_pending(self) -> Route:
        route, self.pending = self.pending, None
        if route is None or route.path == LOGIN:
            return Route(DASHBOARD)
        return route
