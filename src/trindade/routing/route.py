"""Route and Dispatch frozen dataclasses."""

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class Route:
    """A registered route.

    ``path`` is the effective path after group prefixing and
    normalization; ``pattern`` is its compiled matcher.
    """

    method: str
    path: str
    pattern: re.Pattern[str]
    handler: Callable[..., Any]
    params: tuple[str, ...] = ()

    def accepts(self, method: str) -> bool:
        """True if this route answers *method* (exact or ``ANY``)."""
        return self.method == "ANY" or self.method == method

    def match(self, path: str) -> tuple[str, ...] | None:
        """Return the captures for a normalized *path*, or ``None``."""
        m = self.pattern.match(path)
        if m is None:
            return None
        return m.groups()


@dataclass(frozen=True, slots=True)
class Dispatch:
    """Outcome of a single ``Router.dispatch`` call.

    ``matched`` is True when a route ran. When no route matched but a
    not-found handler did, ``not_found_prefix`` names the prefix that
    was selected and ``result`` holds that handler's return value.
    """

    matched: bool
    route: Route | None = None
    captures: tuple[str, ...] = ()
    result: Any = None
    not_found_prefix: str | None = None

    @property
    def handled(self) -> bool:
        """True if any handler (route or not-found) executed."""
        return self.matched or self.not_found_prefix is not None
