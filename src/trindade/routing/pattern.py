"""Route pattern compilation and path normalization.

Route strings use ``:name`` for a single path segment and ``:any`` for
"everything from here on". Both the route and the incoming request path
go through :func:`normalize_path` so they compare on equal terms.
"""

import re

METHODS: frozenset[str] = frozenset({"GET", "POST", "PUT", "DELETE", "PATCH", "ANY"})

WILDCARD_TOKEN = ":any"

_WILDCARD_RE = re.compile(re.escape(WILDCARD_TOKEN))
_PARAM_RE = re.compile(r":[a-zA-Z]+")
_SLASHES_RE = re.compile(r"/+")

_SEGMENT = r"([^/]+)"
_EVERYTHING = r".*"


def normalize_path(path: str) -> str:
    """Normalize a route or request path.

    Drops the query string, lowercases, forces a single leading slash,
    collapses repeated slashes and strips the trailing slash (except
    for the root itself)::

        normalize_path("//Users//42/?tab=1")  -> "/users/42"
        normalize_path("")                    -> "/"
    """
    path = path.split("?", 1)[0]
    path = "/" + path.lower().lstrip("/")
    path = _SLASHES_RE.sub("/", path)
    return path if path == "/" else path.rstrip("/")


def split_route_spec(spec: str) -> tuple[str, str]:
    """Split ``"POST /users"`` into ``("POST", "/users")``.

    A spec without a space is a GET route. When the first token is not
    a known method the whole string is kept as the path and the method
    is GET, so ``"FETCH /x"`` registers the literal path ``/fetch /x``.
    """
    if " " in spec:
        method, path = spec.split(" ", 1)
        method = method.upper()
        if method in METHODS:
            return method, path.strip()
    return "GET", spec


def has_wildcard(path: str) -> bool:
    """True if *path* contains the ``:any`` token."""
    return _WILDCARD_RE.search(path) is not None


def compile_pattern(raw: str) -> re.Pattern[str]:
    """Compile a raw route string into an anchored, case-insensitive regex.

    ``:any`` wins over ``:name``: when the wildcard is present it becomes
    an uncaptured ``.*`` and any other ``:name`` token is left as literal
    text. The token is found as a plain substring, so ``:anything`` is
    ``.*`` followed by ``thing``. Otherwise each ``:name`` captures one
    path segment.
    """
    path = normalize_path(raw)

    if path == "/":
        return re.compile(r"^/?$", re.IGNORECASE)

    if has_wildcard(path):
        token_re, replacement = _WILDCARD_RE, _EVERYTHING
    else:
        token_re, replacement = _PARAM_RE, _SEGMENT

    parts: list[str] = []
    last = 0
    for m in token_re.finditer(path):
        parts.append(re.escape(path[last : m.start()]))
        parts.append(replacement)
        last = m.end()
    parts.append(re.escape(path[last:]))

    return re.compile("^" + "".join(parts) + "/?$", re.IGNORECASE)


def param_names(raw: str) -> tuple[str, ...]:
    """Names of the captured parameters in *raw*, in capture order."""
    path = normalize_path(raw)
    if path == "/" or has_wildcard(path):
        return ()
    return tuple(m.group()[1:] for m in _PARAM_RE.finditer(path))
