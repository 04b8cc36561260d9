"""Routing: ordered regex route table with group prefixes.

Routes are matched in registration order; unmatched paths fall back to
the not-found handler of the longest matching group prefix.
"""

from trindade.routing.pattern import compile_pattern, normalize_path, split_route_spec
from trindade.routing.route import Dispatch, Route
from trindade.routing.router import Router

__all__ = [
    "Dispatch",
    "Route",
    "Router",
    "compile_pattern",
    "normalize_path",
    "split_route_spec",
]
