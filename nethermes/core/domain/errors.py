"""
Relay error taxonomy.

All of these are recovered at the request boundary and turned into
client-visible ``400`` responses.
"""

from typing import Optional


class RelayError(Exception):
    """Base class for session and transfer failures."""

    code = "relay_error"
    default_message = "transfer failed"

    def __init__(self, key: Optional[str] = None, message: Optional[str] = None) -> None:
        self.key = key
        self.message = message or self.default_message
        super().__init__(self.message if key is None else f"{self.message}: {key}")


class KeyAlreadyExists(RelayError):
    """Raised when a session is already registered under the key."""
    code = "key_already_exists"
    default_message = "key already in use"


class ExhaustedKeySpace(RelayError):
    """Raised when no unused key could be found within the retry budget."""
    code = "exhausted_key_space"
    default_message = "no unique key found"


class NoSuchTransfer(RelayError):
    """Raised for an unknown key or a session that is no longer waiting."""
    code = "no_such_transfer"
    default_message = "transfer does not exist"


class TransferTimedOut(RelayError):
    """Raised to the uploader when nobody claimed the session in time."""
    code = "transfer_timed_out"
    default_message = "no receiver found"


class MultipartError(RelayError):
    """Raised when an upload body cannot be read as multipart form data."""
    code = "invalid_multipart"
    default_message = "invalid multipart body"
