"""Exception hierarchy for route resolution and animation."""


class StoryRouteError(Exception):
    """Base class for all storyroute errors."""


class RouteResolutionError(StoryRouteError):
    """Raised when a route path cannot be produced."""


class RouteNotFoundError(RouteResolutionError):
    """Raised when the routing collaborator reports no connecting path."""


class InsufficientWaypointsError(RouteResolutionError):
    """Raised when fewer than two distinct resolvable waypoints remain."""


class RoutingServiceError(RouteResolutionError):
    """Raised when the routing service cannot be reached or answers with an HTTP error."""


class InvalidGeometryError(StoryRouteError, ValueError):
    """Raised when a persisted geometry is not a usable LineString."""


class ChainInvariantError(StoryRouteError, RuntimeError):
    """Raised when the one-marker-per-chain contract is broken."""
