"""
Layer 2 — CONTENT CIPHER ENGINE
================================
Symmetric protection for bulk content under a ContentKey.

Building a transform and running it are separate steps, so large content
can be streamed chunk by chunk:

    t = make_cipher_transform(ck)
    for chunk in source:
        sink.write(t.update(chunk))
    sink.write(t.finalize())

or in one call with run_transform() / run_transform_stream().

CBC modes apply PKCS#7 padding; CTR is a pure stream. The noencrypt
sentinel yields an identity transform, so output == input byte for byte.

Confidentiality only, no integrity. Tampered CBC ciphertext is usually
caught by the padding check but that is not an authentication guarantee.

Dependencies: cryptography >= 41.0
"""

import base64
import binascii
import logging
from typing import Iterable, Iterator

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from ..errors import DecryptionError
from .content_key import ContentAlgorithm, ContentKey

logger = logging.getLogger(__name__)

BLOCK_BITS = 128


class ContentTransform:
    """Incremental byte transform: update() any number of times, then finalize() once."""

    def __init__(self):
        self._finalized = False

    def _check_open(self):
        if self._finalized:
            raise RuntimeError("Transform already finalized.")

    def update(self, data: bytes) -> bytes:
        self._check_open()
        return self._update(bytes(data))

    def finalize(self) -> bytes:
        self._check_open()
        self._finalized = True
        return self._finalize()

    def _update(self, data: bytes) -> bytes:
        raise NotImplementedError

    def _finalize(self) -> bytes:
        raise NotImplementedError


class PassThroughTransform(ContentTransform):
    """Identity transform for the noencrypt sentinel."""

    def _update(self, data: bytes) -> bytes:
        return data

    def _finalize(self) -> bytes:
        return b""


class CipherTransform(ContentTransform):
    """Wraps a cryptography cipher context, adding PKCS#7 for block modes."""

    def __init__(self, context, padder=None, unpadder=None):
        super().__init__()
        self._ctx      = context
        self._padder   = padder
        self._unpadder = unpadder

    def _update(self, data: bytes) -> bytes:
        if self._padder is not None:
            data = self._padder.update(data)
        out = self._ctx.update(data)
        if self._unpadder is not None:
            out = self._unpadder.update(out)
        return out

    def _finalize(self) -> bytes:
        try:
            if self._padder is not None:
                out = self._ctx.update(self._padder.finalize()) + self._ctx.finalize()
            else:
                out = self._ctx.finalize()
            if self._unpadder is not None:
                out = self._unpadder.update(out) + self._unpadder.finalize()
            return out
        except ValueError as exc:
            # misaligned ciphertext or bad padding, usually a wrong key
            raise DecryptionError(f"Content decryption failed: {exc}") from exc


def _mode_for(content_key: ContentKey):
    algo = content_key.algorithm
    if algo in (ContentAlgorithm.AES_256_CBC,
                ContentAlgorithm.AES_192_CBC,
                ContentAlgorithm.AES_128_CBC):
        return modes.CBC(content_key.iv_bytes)
    if algo is ContentAlgorithm.AES_256_CTR:
        return modes.CTR(content_key.iv_bytes)
    raise ValueError(f"No cipher mode for {algo.value}.")


def _cipher_for(content_key: ContentKey) -> Cipher:
    content_key.validate()
    return Cipher(algorithms.AES(content_key.key_bytes), _mode_for(content_key))


def make_cipher_transform(content_key: ContentKey) -> ContentTransform:
    """
    Encrypting transform for `content_key`.
    Raises KeyFormatError if key or IV do not fit the algorithm.
    """
    if content_key.is_noencrypt:
        content_key.validate()
        return PassThroughTransform()
    cipher = _cipher_for(content_key)
    padder = padding.PKCS7(BLOCK_BITS).padder() if content_key.algorithm.padded else None
    logger.debug(f"cipher transform: algo={content_key.algorithm.value}")
    return CipherTransform(cipher.encryptor(), padder=padder)


def make_decipher_transform(content_key: ContentKey) -> ContentTransform:
    """
    Decrypting transform for `content_key`.
    Raises KeyFormatError if key or IV do not fit the algorithm.
    """
    if content_key.is_noencrypt:
        content_key.validate()
        return PassThroughTransform()
    cipher   = _cipher_for(content_key)
    unpadder = padding.PKCS7(BLOCK_BITS).unpadder() if content_key.algorithm.padded else None
    logger.debug(f"decipher transform: algo={content_key.algorithm.value}")
    return CipherTransform(cipher.decryptor(), unpadder=unpadder)


def run_transform(transform: ContentTransform, data: bytes) -> bytes:
    """Apply `transform` to a complete buffer and finalize it."""
    return transform.update(data) + transform.finalize()


def run_transform_stream(transform: ContentTransform,
                         chunks: Iterable[bytes]) -> Iterator[bytes]:
    """Lazily apply `transform` to an iterable of chunks, finalizing at the end."""
    for chunk in chunks:
        out = transform.update(chunk)
        if out:
            yield out
    tail = transform.finalize()
    if tail:
        yield tail


def encrypt_content(plain_content: bytes, content_key: ContentKey) -> bytes:
    return run_transform(make_cipher_transform(content_key), plain_content)


def decrypt_content(cipher_content: bytes, content_key: ContentKey) -> bytes:
    return run_transform(make_decipher_transform(content_key), cipher_content)


def encrypt_content_str(plain_content: str, content_key: ContentKey) -> str:
    """UTF-8 text in, base64 ciphertext out."""
    ct = encrypt_content(plain_content.encode("utf-8"), content_key)
    return base64.b64encode(ct).decode("ascii")


def decrypt_content_str(cipher_content: str, content_key: ContentKey) -> str:
    """Base64 ciphertext in, UTF-8 text out."""
    try:
        ct = base64.b64decode(cipher_content, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecryptionError("Content ciphertext is not valid base64.") from exc
    pt = decrypt_content(ct, content_key)
    try:
        return pt.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecryptionError("Decrypted content is not valid UTF-8.") from exc
