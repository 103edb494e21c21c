"""
COURIER - Custom Exception Classes

Defines the exception hierarchy for the library.
All custom exceptions inherit from CourierError.

Transport failures and HTTP error statuses are never raised to the caller;
they are reported through the request callbacks instead.
"""


class CourierError(Exception):
    """Base exception for all COURIER errors."""

    pass


class ConfigurationError(CourierError):
    """Raised when request defaults are invalid."""

    pass


class RequestStateError(CourierError):
    """Raised when a request is started twice or mutated after its transfer began."""

    pass


class CryptoError(CourierError):
    """Raised when a hashing or MAC operation fails."""

    pass


class SigningError(CryptoError):
    """Raised when RSA signing fails (bad key, bad encoding)."""

    pass
