"""
ECDH-AEAD Primitive: seeded AES-256-CBC with checksum
======================================================
The keyed construction the envelope codec is built on.

Seeded cipher:
    h   = SHA-512(seed)
    key = h[0:32]     (256-bit AES key)
    iv  = h[32:48]    (128-bit CBC IV)

Checksum scheme (shared secret S from secp256k1 ECDH, nonce as text):
    seed      = utf8(nonce) || utf8(hex(S))
    payload   = SHA-256(message)[0:4] || message
    ciphertext = AES-256-CBC(seed, PKCS#7(payload))

Decryption fails with DecryptionError on bad padding, a payload shorter
than the checksum, or a checksum mismatch. A wrong key pair surfaces the
same way, so callers never see corrupted plaintext.

Dependencies: cryptography >= 41.0
"""

import hashlib
import hmac
import logging

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .errors import DecryptionError, KeyFormatError
from .keys import PrivateKey, PublicKey

logger = logging.getLogger(__name__)

CHECKSUM_SIZE = 4


class Aes:
    """AES-256-CBC with PKCS#7 padding, keyed directly or from a seed."""

    KEY_SIZE   = 32   # 256-bit key
    IV_SIZE    = 16   # 128-bit IV (one AES block)
    BLOCK_BITS = 128

    def __init__(self, key: bytes, iv: bytes):
        if len(key) != self.KEY_SIZE:
            raise KeyFormatError(f"AES-256 key must be {self.KEY_SIZE} bytes.")
        if len(iv) != self.IV_SIZE:
            raise KeyFormatError(f"AES IV must be {self.IV_SIZE} bytes.")
        self._key = bytes(key)
        self._iv  = bytes(iv)

    @classmethod
    def from_seed(cls, seed) -> "Aes":
        """Derive key and IV from SHA-512 of `seed` (str is UTF-8 encoded)."""
        if isinstance(seed, str):
            seed = seed.encode("utf-8")
        digest = hashlib.sha512(seed).digest()
        return cls(digest[:cls.KEY_SIZE], digest[cls.KEY_SIZE:cls.KEY_SIZE + cls.IV_SIZE])

    def _cipher(self) -> Cipher:
        return Cipher(algorithms.AES(self._key), modes.CBC(self._iv))

    def encrypt(self, plaintext: bytes) -> bytes:
        padder = padding.PKCS7(self.BLOCK_BITS).padder()
        padded = padder.update(plaintext) + padder.finalize()
        enc    = self._cipher().encryptor()
        return enc.update(padded) + enc.finalize()

    def decrypt(self, ciphertext: bytes) -> bytes:
        """
        Decrypt and strip padding.
        Raises DecryptionError on misaligned input or invalid padding.
        """
        try:
            dec      = self._cipher().decryptor()
            padded   = dec.update(ciphertext) + dec.finalize()
            unpadder = padding.PKCS7(self.BLOCK_BITS).unpadder()
            return unpadder.update(padded) + unpadder.finalize()
        except ValueError as exc:
            raise DecryptionError(f"AES decryption failed: {exc}") from exc

    def encrypt_to_hex(self, plaintext_hex: str) -> str:
        """Hex plaintext in, hex ciphertext out (e.g. a private key)."""
        try:
            plaintext = bytes.fromhex(plaintext_hex)
        except (TypeError, ValueError) as exc:
            raise ValueError("Plaintext is not valid hex.") from exc
        return self.encrypt(plaintext).hex()

    def decrypt_hex(self, ciphertext_hex: str) -> str:
        """Hex ciphertext in, hex plaintext out."""
        try:
            ciphertext = bytes.fromhex(ciphertext_hex)
        except (TypeError, ValueError) as exc:
            raise DecryptionError("Ciphertext is not valid hex.") from exc
        return self.decrypt(ciphertext).hex()


def _checksum(message: bytes) -> bytes:
    return hashlib.sha256(message).digest()[:CHECKSUM_SIZE]


def _shared_cipher(private_key: PrivateKey, public_key: PublicKey, nonce: str) -> Aes:
    secret = private_key.get_shared_secret(public_key)
    return Aes.from_seed(str(nonce).encode("utf-8") + secret.hex().encode("ascii"))


def encrypt_with_checksum(private_key: PrivateKey, public_key: PublicKey,
                          nonce: str, message: bytes) -> bytes:
    """
    Encrypt `message` so only the holder of `public_key`'s private half
    (paired with our public key) can read it.
    `nonce` is the textual nonce carried next to the ciphertext.
    """
    aes     = _shared_cipher(private_key, public_key, nonce)
    payload = _checksum(message) + bytes(message)
    ct      = aes.encrypt(payload)
    logger.debug(f"encrypt_with_checksum: pt={len(message)}B ct={len(ct)}B")
    return ct


def decrypt_with_checksum(private_key: PrivateKey, public_key: PublicKey,
                          nonce: str, ciphertext: bytes) -> bytes:
    """
    Inverse of encrypt_with_checksum with the roles swapped.
    Raises DecryptionError on wrong keys or tampered ciphertext.
    """
    aes = _shared_cipher(private_key, public_key, nonce)
    try:
        payload = aes.decrypt(ciphertext)
    except DecryptionError as exc:
        logger.warning("decrypt_with_checksum: padding check failed")
        raise DecryptionError("Invalid key, could not decrypt message (padding).") from exc
    if len(payload) < CHECKSUM_SIZE:
        logger.warning("decrypt_with_checksum: payload shorter than checksum")
        raise DecryptionError("Invalid key, could not decrypt message (length).")
    checksum  = payload[:CHECKSUM_SIZE]
    plaintext = payload[CHECKSUM_SIZE:]
    if not hmac.compare_digest(checksum, _checksum(plaintext)):
        logger.warning("decrypt_with_checksum: checksum mismatch")
        raise DecryptionError("Invalid key, could not decrypt message (checksum).")
    logger.debug(f"decrypt_with_checksum: ct={len(ciphertext)}B pt={len(plaintext)}B")
    return plaintext
