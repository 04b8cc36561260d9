"""Ordered route table with group prefixes and not-found fallbacks.

Routes are matched by a linear scan in registration order; the first
route whose method and pattern both match runs and nothing else does.
"""

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

from trindade.routing.pattern import (
    compile_pattern,
    normalize_path,
    param_names,
    split_route_spec,
)
from trindade.routing.route import Dispatch, Route

logger = logging.getLogger("trindade.routing")

Handler = Callable[..., Any]
GroupCallback = Callable[["Router"], Any]


class Router:
    """Route registry and dispatcher.

    Every handler is called with the router's *context* as its first
    argument, followed by the path captures::

        router = Router(context=ctx)
        router.on("GET /users/:id", lambda ctx, user_id: ...)
        router.group("/api", lambda r: r.on("GET /ping", ping), not_found=api_404)
        outcome = router.dispatch("GET", "/api/ping")

    A router is cheap to build and meant to live for one request.
    """

    __slots__ = ("_context", "_not_found", "_prefixes", "_routes")

    def __init__(self, context: Any = None) -> None:
        self._context = context
        self._routes: list[Route] = []
        self._not_found: dict[str, Handler] = {}
        self._prefixes: list[str] = [""]

    @property
    def context(self) -> Any:
        return self._context

    @property
    def routes(self) -> tuple[Route, ...]:
        """Registered routes in match-priority order."""
        return tuple(self._routes)

    @property
    def prefix(self) -> str:
        """The group prefix currently in effect (raw, not normalized)."""
        return self._prefixes[-1]

    @property
    def not_found_handlers(self) -> dict[str, Handler]:
        return dict(self._not_found)

    # -- Registration --

    def on(self, spec: str, handler: Handler) -> Route:
        """Register *handler* for a ``"METHOD /path"`` spec.

        The active group prefix is prepended to the path before it is
        compiled. Returns the new ``Route``.
        """
        method, path = split_route_spec(spec)
        full = normalize_path(self.prefix + path)
        route = Route(
            method=method,
            path=full,
            pattern=compile_pattern(full),
            handler=handler,
            params=param_names(full),
        )
        self._routes.append(route)
        logger.debug("Registered route %s %s", method, full)
        return route

    def route(self, spec: str) -> Callable[[Handler], Handler]:
        """Decorator form of :meth:`on`."""

        def decorator(func: Handler) -> Handler:
            self.on(spec, func)
            return func

        return decorator

    def group(
        self,
        prefix: str,
        callback: GroupCallback,
        not_found: Handler | None = None,
    ) -> "Router":
        """Run *callback* with *prefix* added to the active prefix.

        *callback* receives this router. If *not_found* is given it is
        recorded under the new cumulative prefix. The previous prefix is
        restored when the callback returns or raises.
        """
        with self._scoped(prefix) as cumulative:
            if not_found is not None:
                self._not_found[normalize_path(cumulative)] = not_found
            callback(self)
        return self

    @contextmanager
    def _scoped(self, prefix: str) -> Iterator[str]:
        cumulative = self.prefix + prefix
        self._prefixes.append(cumulative)
        try:
            yield cumulative
        finally:
            self._prefixes.pop()

    # -- Dispatch --

    def match(self, method: str, path: str) -> tuple[Route, tuple[str, ...]] | None:
        """Return the first route (and its captures) for *method* and *path*."""
        method = method.upper()
        normalized = normalize_path(path)
        for route in self._routes:
            if not route.accepts(method):
                continue
            captures = route.match(normalized)
            if captures is not None:
                return route, captures
        return None

    def find_not_found(self, path: str) -> tuple[str, Handler] | None:
        """Longest registered not-found prefix that *path* starts with.

        Pure lookup with no side effects; safe to call any number of
        times for the same request.
        """
        normalized = normalize_path(path)
        best: tuple[str, Handler] | None = None
        for prefix, handler in self._not_found.items():
            if normalized.startswith(prefix) and (best is None or len(prefix) > len(best[0])):
                best = (prefix, handler)
        return best

    def dispatch(self, method: str, path: str) -> Dispatch:
        """Run the first matching route, or the best not-found handler.

        Exceptions raised by handlers propagate to the caller.
        """
        found = self.match(method, path)
        if found is not None:
            route, captures = found
            logger.debug("Dispatching %s %s to %s", method, path, route.path)
            result = route.handler(self._context, *captures)
            return Dispatch(matched=True, route=route, captures=captures, result=result)

        fallback = self.find_not_found(path)
        if fallback is None:
            logger.debug("No route for %s %s", method, path)
            return Dispatch(matched=False)

        prefix, handler = fallback
        logger.debug("No route for %s %s, using not-found handler %r", method, path, prefix)
        return Dispatch(matched=False, result=handler(self._context), not_found_prefix=prefix)
