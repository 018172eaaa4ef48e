"""Route descriptors, auth policy application and route table assembly."""

from .aggregator import STATIC_ROUTE_PATH, RouteAggregator
from .auth import AuthPolicy, append_auth
from .discovery import RouteLoader, RouteModuleLoader
from .models import Route, coerce_routes


__all__ = [
    "Route",
    "coerce_routes",
    "AuthPolicy",
    "append_auth",
    "RouteLoader",
    "RouteModuleLoader",
    "RouteAggregator",
    "STATIC_ROUTE_PATH",
]
