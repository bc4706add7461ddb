"""
Dexter Exceptions

Custom exception classes for datum handling, pricing and order assembly.
"""


class DexterException(Exception):
    """Base exception for Dexter."""
    pass


# ---------------------------------------------------------------------------
# Datum / template errors
# ---------------------------------------------------------------------------

class MalformedRecord(DexterException):
    """Binary or JSON datum could not be decoded."""
    pass


class ShapeMismatch(DexterException):
    """Template and concrete value disagree in shape."""

    def __init__(self, message: str, path: str = "$"):
        super().__init__(f"{message} at {path}")
        self.path = path


class MissingParameter(DexterException):
    """Template push without a value for a parameter key."""

    def __init__(self, key):
        super().__init__(f"Missing datum parameter: {key}")
        self.key = key


# ---------------------------------------------------------------------------
# Pricing / pool errors
# ---------------------------------------------------------------------------

class InvalidPoolError(DexterException):
    """Liquidity pool constructed with invalid reserves or fee."""
    pass


class InsufficientLiquidity(DexterException):
    """Requested amount cannot be served by the pool reserves."""
    pass


class UnknownTokenError(DexterException):
    """Token is not one of the pool's assets."""
    pass


# ---------------------------------------------------------------------------
# Order assembly errors
# ---------------------------------------------------------------------------

class MissingCredentials(DexterException):
    """Sender or receiver key hashes were not supplied."""
    pass


class OrderNotFound(DexterException):
    """No output at the venue order address was found to cancel."""
    pass


class InvalidSwapRequest(DexterException):
    """Swap request failed validation."""
    pass


class UnsupportedOperation(DexterException):
    """Venue does not support the requested operation."""
    pass


# ---------------------------------------------------------------------------
# Collaborator errors
# ---------------------------------------------------------------------------

class WalletNotLoaded(DexterException):
    """Wallet provider missing or not loaded."""
    pass


class RequestCancelled(DexterException):
    """Caller cancelled an in-flight request."""
    pass


class ApiError(DexterException):
    """Venue API returned an error or an unusable payload."""
    pass


class ConfigurationError(DexterException):
    """Configuration error."""
    pass
