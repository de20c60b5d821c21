"""
Secure randomness
=================
Thin wrapper over the kernel CSPRNG (os.urandom).

os.urandom is thread-safe and never falls back to a weaker source; if it
cannot deliver we raise RandomnessUnavailableError instead of degrading.
"""

import os

from .errors import RandomnessUnavailableError


def random_bytes(length: int) -> bytes:
    """Return `length` cryptographically secure random bytes."""
    if length < 0:
        raise ValueError("Length must be non-negative.")
    try:
        return os.urandom(length)
    except (OSError, NotImplementedError) as exc:
        raise RandomnessUnavailableError(
            f"Secure random source unavailable: {exc}"
        ) from exc


def random32_bytes() -> bytes:
    return random_bytes(32)
