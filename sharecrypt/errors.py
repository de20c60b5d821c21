"""
Error taxonomy
==============
Every failure in sharecrypt surfaces as one of these types.

    ShareCryptError
      ├── RandomnessUnavailableError  — platform CSPRNG failed (fatal)
      ├── KeyFormatError              — key / IV / curve point malformed
      ├── DecryptionError             — integrity check or wire parse failed
      └── SerializationError          — plaintext is not the expected JSON

Nothing in the library recovers locally. Wrapped library exceptions are
chained with ``raise ... from exc`` so the root cause stays visible.
"""


class ShareCryptError(Exception):
    """Base class for all sharecrypt errors."""


class RandomnessUnavailableError(ShareCryptError):
    """The operating system could not supply secure random bytes."""


class KeyFormatError(ShareCryptError):
    """Key material has the wrong size or encoding for its algorithm."""


class DecryptionError(ShareCryptError):
    """Ciphertext failed its integrity check or could not be parsed."""


class SerializationError(ShareCryptError):
    """Object could not be serialized, or plaintext did not parse as JSON."""
