"""
Key generation for relay sessions.
"""

import logging
import random
from typing import Optional

from ..domain.errors import ExhaustedKeySpace
from ..interfaces.relay import ISessionStore

logger = logging.getLogger(__name__)

DEFAULT_CHARSET = "abcdefghijklmnopqrstuvwxyz0123456789"
DEFAULT_LENGTH = 10
DEFAULT_ATTEMPTS = 3


class KeyGenerator:
    """
    Produces short random keys from a fixed alphabet.

    Keys returned by ``new_unique_key`` are unused at the time of the check.
    Ownership is only taken when the session is registered, which the store
    does atomically.
    """

    def __init__(
        self,
        charset: str = DEFAULT_CHARSET,
        length: int = DEFAULT_LENGTH,
        attempts: int = DEFAULT_ATTEMPTS,
        rng: Optional[random.Random] = None
    ) -> None:
        if not charset:
            raise ValueError("Key charset cannot be empty")
        if length <= 0:
            raise ValueError(f"Key length must be positive, got {length}")
        if attempts <= 0:
            raise ValueError(f"Key attempts must be positive, got {attempts}")

        self._charset = charset
        self._allowed = frozenset(charset)
        self._length = length
        self._attempts = attempts
        self._rng = rng or random.SystemRandom()

    @property
    def charset(self) -> str:
        return self._charset

    @property
    def length(self) -> int:
        return self._length

    def new_key(self) -> str:
        """Draw a candidate key uniformly from the alphabet."""
        return "".join(self._rng.choice(self._charset) for _ in range(self._length))

    async def new_unique_key(self, store: ISessionStore) -> str:
        """
        Draw a key not currently registered in the store.

        Raises:
            ExhaustedKeySpace: If every attempt collided with a live session
        """
        for attempt in range(1, self._attempts + 1):
            key = self.new_key()
            if not await store.contains(key):
                return key
            logger.debug(f"Key collision on attempt {attempt}: {key}")

        logger.warning(f"No unique key found after {self._attempts} attempts")
        raise ExhaustedKeySpace()

    def is_valid_key(self, key: str) -> bool:
        """Check that a key has the configured length and alphabet."""
        return len(key) == self._length and all(c in self._allowed for c in key)
