"""
Studio exception taxonomy
"""


class StudioError(Exception):
    """Base studio exception"""
    pass


class StoreUnavailableError(StudioError):
    """Remote store did not answer (network / connection)"""
    pass


class AuthorizationError(StudioError):
    """Missing or invalid admin session"""
    pass


class InvalidCredentialsError(AuthorizationError):
    """Wrong admin key or email/password"""
    pass


class ServiceUnavailableError(StudioError):
    """Authentication backend unreachable"""
    pass


class EnrichmentError(StudioError):
    """Enrichment service failed or returned a malformed payload"""
    pass


class OperationInFlightError(StudioError):
    """The same operation is already running"""
    pass
