"""
Error taxonomy for the star registry chain.

Operational failures (bad signature, stale message, an append that would
corrupt the chain) are raised. Integrity defects found by
``Blockchain.validate_chain`` are returned as data instead.
"""

from typing import List


class StarNotaryError(Exception):
    """Base class for all chain errors."""
    pass


class GenesisBlockError(StarNotaryError):
    """Raised when the payload of the genesis block is requested."""

    def __init__(self, message: str = "Cannot return data for the genesis block"):
        super().__init__(message)


class DecodeError(StarNotaryError):
    """Raised when a block body is not hex-encoded UTF-8 JSON."""
    pass


class ChainValidationError(StarNotaryError):
    """
    Raised when the chain fails validation right after an append.

    The append has already been rolled back when this is raised.
    """

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__(
            f"Chain validation failed with {len(self.errors)} error(s): "
            + "; ".join(self.errors)
        )


class MessageVerificationError(StarNotaryError):
    """Base class for rejected star submissions."""
    pass


class MalformedMessageError(MessageVerificationError):
    """Raised when an ownership message has no integer timestamp field."""
    pass


class FutureMessageError(MessageVerificationError):
    """Raised when the message timestamp is later than the current time."""
    pass


class ExpiredMessageError(MessageVerificationError):
    """Raised when the message is older than the validity window."""
    pass


class SignatureVerificationError(MessageVerificationError):
    """Raised when the signature does not match the address and message."""
    pass
