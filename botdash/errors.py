"""Error taxonomy for the dashboard core.

Only ConfigurationError is fatal. Everything else is contained at the
boundary where it happens and never stops the render loop or dispatcher.
"""


class DashboardError(Exception):
    pass


class ConfigurationError(DashboardError):
    """Invalid startup configuration, e.g. fps above the ceiling."""


class HandlerError(DashboardError):
    """A key handler or subscription callback raised on the dispatch worker."""

    def __init__(self, label: str, cause: BaseException):
        super().__init__(f"{label} failed: {cause!r}")
        self.label = label
        self.cause = cause


class CompositionError(DashboardError):
    """The view composer could not build a frame from its inputs."""


class CollaboratorUnavailable(DashboardError):
    """An external collaborator (wallet, link opener) cannot serve a request."""
