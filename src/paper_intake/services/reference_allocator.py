"""Reference number allocation.

A reference number is 8 characters drawn uniformly from A-Z0-9. Candidates are
checked against the store and redrawn on collision, up to ``MAX_ATTEMPTS``
times. Nothing is reserved: the store's unique index is what finally
guarantees uniqueness at insert time.
"""

import logging
import re
import secrets
import string
from typing import Callable, Protocol

from paper_intake.errors import AllocationExhausted

logger = logging.getLogger(__name__)

REFERENCE_ALPHABET = string.ascii_uppercase + string.digits
REFERENCE_LENGTH = 8
MAX_ATTEMPTS = 5
REFERENCE_PATTERN = re.compile(rf"[A-Z0-9]{{{REFERENCE_LENGTH}}}")


class ReferenceLookup(Protocol):
    async def exists_by_reference(self, reference_number: str) -> bool: ...


def generate_reference_number() -> str:
    """Draw one candidate reference number"""
    return "".join(
        secrets.choice(REFERENCE_ALPHABET) for _ in range(REFERENCE_LENGTH)
    )


def is_reference_number(value: str) -> bool:
    return REFERENCE_PATTERN.fullmatch(value) is not None


class ReferenceAllocator:
    """Finds a reference number not yet used by any stored registration"""

    def __init__(
        self,
        generator: Callable[[], str] = generate_reference_number,
        max_attempts: int = MAX_ATTEMPTS,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.generator = generator
        self.max_attempts = max_attempts

    async def allocate(self, store: ReferenceLookup) -> str:
        """
        Return a reference number that the store does not know about.

        Args:
            store: Anything answering ``exists_by_reference``

        Returns:
            str: An 8-character reference number

        Raises:
            AllocationExhausted: If every attempt collided
            StorageUnavailable: If the store cannot be queried
            ValueError: If the generator yields something that is not a
                reference number
        """
        for attempt in range(1, self.max_attempts + 1):
            candidate = self.generator()
            if not is_reference_number(candidate):
                raise ValueError(f"Generator produced a malformed reference: {candidate!r}")
            if not await store.exists_by_reference(candidate):
                return candidate
            logger.warning(
                f"Reference number collision on attempt {attempt}/{self.max_attempts}"
            )

        raise AllocationExhausted(self.max_attempts)
