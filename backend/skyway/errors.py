class RoutingError(Exception):
    """Base class for every failure the router reports."""


class InvalidInput(RoutingError):
    """Bad coordinates or an empty target; raised before any lookup."""


class TargetNotFound(RoutingError):
    """The target building name matches nothing in the graph."""


class NoPathFound(RoutingError):
    """No usable candidates or indoor path. A normal outcome, reported as 404."""


class NoCandidatesError(NoPathFound):
    pass


class NoPathError(NoPathFound):
    pass


class ExternalProviderUnavailable(RoutingError):
    """A collaborator errored or timed out on a leg that is not optional."""


class DirectionsError(ExternalProviderUnavailable):
    pass


class GraphStoreError(ExternalProviderUnavailable):
    pass
