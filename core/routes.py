"""Route table - maps path prefixes to fixed upstream base URLs."""

from collections.abc import Iterable

from core.config import RouteSettings


class RouteTable:
    """Immutable route table matched by longest prefix."""

    def __init__(self, routes: Iterable[RouteSettings]):
        self._routes = tuple(sorted(routes, key=lambda r: len(r.prefix), reverse=True))

    def __iter__(self):
        return iter(self._routes)

    def __len__(self) -> int:
        return len(self._routes)

    def match(self, path: str) -> RouteSettings | None:
        """Return the route owning this path, or None."""
        for route in self._routes:
            if path == route.prefix or path.startswith(route.prefix + "/"):
                return route
        return None


def strip_prefix(route: RouteSettings, path: str) -> str:
    """Remove the route prefix, keeping the full path when it does not match."""
    if path == route.prefix or path.startswith(route.prefix + "/"):
        return path[len(route.prefix):]
    return path


def build_upstream_url(route: RouteSettings, path: str, query: str = "") -> str:
    """Join the route's upstream base URL with the caller's remaining path."""
    remainder = strip_prefix(route, path)
    if remainder and not remainder.startswith("/"):
        remainder = "/" + remainder
    url = route.upstream_base_url.rstrip("/") + remainder
    if query:
        url += "?" + query
    return url
