"""
Layer 3 — ASYMMETRIC ENVELOPE CODEC
====================================
Encrypt data so only one counterparty, identified by a public key, can
read it. Keys come from ECDH between our private key and their public
key, via encrypt_with_checksum / decrypt_with_checksum.

One value, two wire forms:

    Envelope(nonce, ciphertext)

    text   (objects):  base64(nonce) ":" base64(ciphertext)
    binary (buffers):  u8(len(nonce)) || nonce || ciphertext

The nonce is 32 fresh random bytes per call. It is public but must never
repeat under the same key pair. Both forms hand the primitive the base64
text of the nonce, so the two are interchangeable at the crypto level.

Objects are serialized as compact UTF-8 JSON.

Dependencies: cryptography >= 41.0 (through sharecrypt.aes)
"""

import base64
import binascii
import json
import logging
from dataclasses import dataclass
from typing import Any

from ..aes import decrypt_with_checksum, encrypt_with_checksum
from ..entropy import random_bytes, random32_bytes
from ..errors import DecryptionError, KeyFormatError, SerializationError
from ..keys import PrivateKey, PublicKey
from .content_key import ContentKey

logger = logging.getLogger(__name__)

NONCE_SIZE     = 32
MAX_NONCE_SIZE = 255
SEPARATOR      = ":"


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


@dataclass(frozen=True)
class Envelope:
    """A (nonce, ciphertext) pair and its two serializations."""

    nonce: bytes
    ciphertext: bytes

    def __post_init__(self):
        # both codecs reject empty segments on decode, so never produce them
        if not self.nonce:
            raise ValueError("Envelope nonce must not be empty.")
        if not self.ciphertext:
            raise ValueError("Envelope ciphertext must not be empty.")

    @property
    def nonce_text(self) -> str:
        """The nonce as the primitive sees it."""
        return _b64(self.nonce)

    def to_text(self) -> str:
        return self.nonce_text + SEPARATOR + _b64(self.ciphertext)

    @classmethod
    def from_text(cls, text: str) -> "Envelope":
        """Split on the first ':' and base64-decode both halves."""
        if not isinstance(text, str):
            raise DecryptionError("Text envelope must be a str.")
        nonce_b64, sep, ct_b64 = text.partition(SEPARATOR)
        if not sep:
            raise DecryptionError("Text envelope is missing the ':' separator.")
        if not nonce_b64 or not ct_b64:
            raise DecryptionError("Text envelope has an empty nonce or ciphertext.")
        try:
            nonce = base64.b64decode(nonce_b64, validate=True)
            ct    = base64.b64decode(ct_b64, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise DecryptionError(f"Text envelope is not valid base64: {exc}") from exc
        return cls(nonce, ct)

    def to_bytes(self) -> bytes:
        if len(self.nonce) > MAX_NONCE_SIZE:
            raise ValueError(f"Nonce must be at most {MAX_NONCE_SIZE} bytes.")
        return bytes([len(self.nonce)]) + self.nonce + self.ciphertext

    @classmethod
    def from_bytes(cls, data: bytes) -> "Envelope":
        """Read the explicit nonce length byte, then nonce, then ciphertext."""
        data = bytes(data)
        if not data:
            raise DecryptionError("Binary envelope is empty.")
        nonce_len = data[0]
        if nonce_len == 0:
            raise DecryptionError("Binary envelope declares an empty nonce.")
        if len(data) <= 1 + nonce_len:
            raise DecryptionError(
                f"Binary envelope too short: nonce length {nonce_len}, "
                f"total {len(data)} bytes."
            )
        return cls(data[1:1 + nonce_len], data[1 + nonce_len:])


def _fresh_nonce(nonce_size: int) -> bytes:
    if not 1 <= nonce_size <= MAX_NONCE_SIZE:
        raise ValueError(f"nonce_size must be 1..{MAX_NONCE_SIZE}.")
    if nonce_size == NONCE_SIZE:
        return random32_bytes()
    return random_bytes(nonce_size)


def _seal(plaintext: bytes, own_private_key: PrivateKey,
          peer_public_key: PublicKey, nonce_size: int) -> Envelope:
    nonce = _fresh_nonce(nonce_size)
    ct    = encrypt_with_checksum(own_private_key, peer_public_key, _b64(nonce), plaintext)
    return Envelope(nonce, ct)


def _open(env: Envelope, peer_public_key: PublicKey,
          own_private_key: PrivateKey) -> bytes:
    return decrypt_with_checksum(own_private_key, peer_public_key, env.nonce_text, env.ciphertext)


def encrypt_object(obj: Any, own_private_key: PrivateKey, peer_public_key: PublicKey,
                   nonce_size: int = NONCE_SIZE) -> str:
    """
    Serialize `obj` as JSON and encrypt it for `peer_public_key`.
    Returns "nonce:ciphertext", both base64.
    Raises SerializationError if `obj` is not JSON-serializable.
    """
    try:
        plaintext = json.dumps(obj, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise SerializationError(f"Object is not JSON-serializable: {exc}") from exc
    env = _seal(plaintext, own_private_key, peer_public_key, nonce_size)
    logger.debug(f"encrypt_object: json={len(plaintext)}B ct={len(env.ciphertext)}B")
    return env.to_text()


def decrypt_object(envelope: str, peer_public_key: PublicKey,
                   own_private_key: PrivateKey) -> Any:
    """
    Inverse of encrypt_object, run by the recipient.
    Raises DecryptionError for bad framing, wrong keys or tampering,
    SerializationError if the plaintext is not JSON.
    """
    plaintext = _open(Envelope.from_text(envelope), peer_public_key, own_private_key)
    try:
        return json.loads(plaintext.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise SerializationError(f"Decrypted payload is not JSON: {exc}") from exc


def encrypt_buffer(buf: bytes, own_private_key: PrivateKey, peer_public_key: PublicKey,
                   nonce_size: int = NONCE_SIZE) -> bytes:
    """Encrypt raw bytes for `peer_public_key`; returns the length-prefixed binary envelope."""
    env = _seal(bytes(buf), own_private_key, peer_public_key, nonce_size)
    logger.debug(f"encrypt_buffer: pt={len(buf)}B ct={len(env.ciphertext)}B")
    return env.to_bytes()


def decrypt_buffer(buf: bytes, peer_public_key: PublicKey,
                   own_private_key: PrivateKey) -> bytes:
    return _open(Envelope.from_bytes(buf), peer_public_key, own_private_key)


def encrypt_content_key(content_key: ContentKey, own_private_key: PrivateKey,
                        peer_public_key: PublicKey) -> bytes:
    """Wrap a ContentKey (its JSON form) in a binary envelope."""
    content_key.validate()
    return encrypt_buffer(content_key.to_json().encode("utf-8"),
                          own_private_key, peer_public_key)


def decrypt_content_key(buf: bytes, peer_public_key: PublicKey,
                        own_private_key: PrivateKey) -> ContentKey:
    plaintext = decrypt_buffer(buf, peer_public_key, own_private_key)
    try:
        content_key = ContentKey.from_json(plaintext)
    except KeyFormatError as exc:
        raise SerializationError(f"Unwrapped payload is not a content key: {exc}") from exc
    content_key.validate()
    return content_key
