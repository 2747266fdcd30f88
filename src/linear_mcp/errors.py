"""Exception hierarchy shared by the router, the paginator and the Linear client."""


class LinearMCPError(Exception):
    """Base class for every error raised by this package."""

    pass


class InvalidTemplateError(LinearMCPError, ValueError):
    """Raised when a URI template is malformed at registration time."""

    pass


class DuplicateResourceError(LinearMCPError):
    """Raised when a resource name is registered twice on one router."""

    pass


class ResourceNotFound(LinearMCPError):
    """Raised when no registered template matches a URI."""

    def __init__(self, uri: str) -> None:
        self.uri = uri
        super().__init__(f"Resource not found: {uri}")


class ListingUnsupported(LinearMCPError):
    """Raised when a collection URI has no list capability."""

    def __init__(self, uri: str, name: str) -> None:
        self.uri = uri
        self.name = name
        super().__init__(f"Resource '{name}' does not support listing: {uri}")


class BackendError(LinearMCPError):
    """Raised when the Linear API request fails.

    Wraps httpx errors, HTTP status errors and GraphQL errors so callers
    only need to handle one exception type. Never retried by this package.
    """

    pass


class UpstreamNotFound(LinearMCPError):
    """Raised when Linear reports that the requested record does not exist."""

    def __init__(self, entity: str, identifier: str) -> None:
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity.capitalize()} '{identifier}' not found")
