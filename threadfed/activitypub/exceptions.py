"""Everything that can go wrong while turning a remote object into local rows"""


class FederationError(Exception):
    """Base class. Any of these aborts the whole incoming object and nothing is saved."""
    pass


class ValidationFailure(FederationError):
    """The object is malformed, or its id doesn't live on the server it came from"""
    pass


class ResolutionBudgetExhausted(FederationError):
    """Resolving the object needed more remote fetches than HTTP_FETCH_LIMIT allows"""

    def __init__(self, ceiling: int, url: str | None = None):
        self.ceiling = ceiling
        self.url = url
        message = f'Fetch limit of {ceiling} reached'
        if url:
            message += f' while fetching {url}'
        super().__init__(message)


class NotPermitted(FederationError):
    """The author is not allowed to post in the community"""
    pass


class ThreadClosed(FederationError):
    """The post is locked and takes no new replies"""
    pass


class TransportFailure(FederationError):
    """Fetching a remote object failed"""

    def __init__(self, message: str, url: str | None = None):
        self.url = url
        super().__init__(message)


class RemoteUnreachable(TransportFailure):
    def __init__(self, message: str, url: str | None = None, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message, url)

    @property
    def gone(self) -> bool:
        return self.status_code in (404, 410)


class InvalidObjectSignature(TransportFailure):
    """The fetched object can't be attributed to the server it claims to come from"""
    pass


class MalformedPayload(TransportFailure):
    """The response was not a usable JSON object"""
    pass
