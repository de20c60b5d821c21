"""
Key Pair Capability — secp256k1
================================
The opaque key values the envelope codec consumes.

  PrivateKey  — 32-byte scalar; derives its public key and ECDH secrets
  PublicKey   — curve point; compared by its 33-byte compressed SEC1 form

Shared secret: SHA-512 of the 32-byte ECDH x-coordinate (64 bytes).
Both parties arrive at the same value:

    alice.get_shared_secret(bob_pub) == bob.get_shared_secret(alice_pub)

Address encodings, WIF and other legacy import formats live elsewhere.

Dependencies: cryptography >= 41.0
"""

import hashlib
import logging

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from .entropy import random_bytes
from .errors import KeyFormatError

logger = logging.getLogger(__name__)

CURVE = ec.SECP256K1()
# secp256k1 group order
CURVE_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141


class PublicKey:
    """secp256k1 public key."""

    COMPRESSED_SIZE   = 33
    UNCOMPRESSED_SIZE = 65

    def __init__(self, key: ec.EllipticCurvePublicKey):
        if not isinstance(key.curve, ec.SECP256K1):
            raise KeyFormatError(f"Expected a secp256k1 key, got {key.curve.name}.")
        self._key = key

    @classmethod
    def from_bytes(cls, data: bytes) -> "PublicKey":
        """Load a SEC1 encoded point (compressed or uncompressed)."""
        if len(data) not in (cls.COMPRESSED_SIZE, cls.UNCOMPRESSED_SIZE):
            raise KeyFormatError(
                f"Public key must be {cls.COMPRESSED_SIZE} or "
                f"{cls.UNCOMPRESSED_SIZE} bytes, got {len(data)}."
            )
        try:
            key = ec.EllipticCurvePublicKey.from_encoded_point(CURVE, bytes(data))
        except (ValueError, UnsupportedAlgorithm) as exc:
            raise KeyFormatError(f"Invalid public key point: {exc}") from exc
        return cls(key)

    @classmethod
    def from_hex(cls, text: str) -> "PublicKey":
        try:
            data = bytes.fromhex(text)
        except ValueError as exc:
            raise KeyFormatError("Public key is not valid hex.") from exc
        return cls.from_bytes(data)

    def to_bytes(self, compressed: bool = True) -> bytes:
        fmt = (serialization.PublicFormat.CompressedPoint if compressed
               else serialization.PublicFormat.UncompressedPoint)
        return self._key.public_bytes(serialization.Encoding.X962, fmt)

    def to_hex(self, compressed: bool = True) -> str:
        return self.to_bytes(compressed).hex()

    @property
    def native(self) -> ec.EllipticCurvePublicKey:
        return self._key

    def __eq__(self, other):
        if not isinstance(other, PublicKey):
            return NotImplemented
        return self.to_bytes() == other.to_bytes()

    def __hash__(self):
        return hash(self.to_bytes())

    def __repr__(self):
        return f"PublicKey({self.to_hex()})"


class PrivateKey:
    """secp256k1 private key."""

    KEY_SIZE = 32

    def __init__(self, key: ec.EllipticCurvePrivateKey):
        if not isinstance(key.curve, ec.SECP256K1):
            raise KeyFormatError(f"Expected a secp256k1 key, got {key.curve.name}.")
        self._key = key
        self._public = None

    @classmethod
    def generate(cls) -> "PrivateKey":
        """Fresh key from the platform CSPRNG."""
        # rejection sampling keeps the scalar uniform in [1, n-1]
        while True:
            candidate = random_bytes(cls.KEY_SIZE)
            scalar = int.from_bytes(candidate, "big")
            if 0 < scalar < CURVE_ORDER:
                return cls.from_bytes(candidate)

    @classmethod
    def from_bytes(cls, data: bytes) -> "PrivateKey":
        if len(data) != cls.KEY_SIZE:
            raise KeyFormatError(
                f"Private key must be {cls.KEY_SIZE} bytes, got {len(data)}."
            )
        scalar = int.from_bytes(data, "big")
        if not 0 < scalar < CURVE_ORDER:
            raise KeyFormatError("Private key scalar out of range for secp256k1.")
        return cls(ec.derive_private_key(scalar, CURVE))

    @classmethod
    def from_hex(cls, text: str) -> "PrivateKey":
        try:
            data = bytes.fromhex(text)
        except ValueError as exc:
            raise KeyFormatError("Private key is not valid hex.") from exc
        return cls.from_bytes(data)

    @classmethod
    def from_seed(cls, seed) -> "PrivateKey":
        """Deterministic key: sha256(seed). Brain-key style, for tests and tooling."""
        if isinstance(seed, str):
            seed = seed.encode("utf-8")
        return cls.from_bytes(hashlib.sha256(seed).digest())

    def to_bytes(self) -> bytes:
        return self._key.private_numbers().private_value.to_bytes(self.KEY_SIZE, "big")

    def to_hex(self) -> str:
        return self.to_bytes().hex()

    def public_key(self) -> PublicKey:
        if self._public is None:
            self._public = PublicKey(self._key.public_key())
        return self._public

    def get_shared_secret(self, public_key: PublicKey) -> bytes:
        """SHA-512 of the ECDH x-coordinate shared with `public_key`."""
        if not isinstance(public_key, PublicKey):
            raise TypeError("public_key must be a sharecrypt PublicKey.")
        x_coord = self._key.exchange(ec.ECDH(), public_key.native)
        logger.debug(f"ECDH: x={len(x_coord)}B")
        return hashlib.sha512(x_coord).digest()

    def __repr__(self):
        return f"PrivateKey(public={self.public_key().to_hex()})"


__all__ = [
    "CURVE_ORDER",
    "PrivateKey",
    "PublicKey",
]
