"""Failure taxonomy shared by the store, the gateway and the mode services."""


class AthenaError(Exception):
    """Base class for every failure raised by Athena components."""


class StoreUnavailable(AthenaError):
    """The database cannot be reached at startup."""


class StoreOperationFailed(AthenaError):
    """A read or write against the database failed mid-request."""


class GatewayFailed(AthenaError):
    """The completion provider errored, timed out, or returned no text."""


class MalformedStructuredOutput(AthenaError):
    """A completion that must be a JSON list could not be used as one."""
