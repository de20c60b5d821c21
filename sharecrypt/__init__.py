"""
sharecrypt — encryption for peer-to-peer data sharing
=====================================================
Two cooperating facilities over secp256k1 key pairs.

Layers:
    0  PRIMITIVE    — ECDH shared secret + seeded AES-256-CBC with checksum
    1  CONTENT KEY  — algorithm + random key/IV, or the noencrypt opt-out
    2  CONTENT      — streaming symmetric transforms for bulk content
    3  ENVELOPE     — nonce:ciphertext for objects, length-prefixed for buffers

Typical flow: encrypt a file under a fresh ContentKey, then wrap that key
in a buffer envelope addressed to the recipient's public key.

License: Apache 2.0
"""

__version__ = "1.0.0"

from .errors                 import (ShareCryptError, RandomnessUnavailableError,
                                     KeyFormatError, DecryptionError,
                                     SerializationError)
from .entropy                import random_bytes, random32_bytes
from .keys                   import PrivateKey, PublicKey
from .aes                    import Aes, encrypt_with_checksum, decrypt_with_checksum
from .layers.content_key     import (ContentAlgorithm, ContentKey,
                                     DEFAULT_CONTENT_ALGORITHM,
                                     make_content_key, make_content_key_noencrypt)
from .layers.content_cipher  import (ContentTransform, PassThroughTransform,
                                     CipherTransform,
                                     make_cipher_transform, make_decipher_transform,
                                     run_transform, run_transform_stream,
                                     encrypt_content, decrypt_content,
                                     encrypt_content_str, decrypt_content_str)
from .layers.envelope        import (Envelope, NONCE_SIZE,
                                     encrypt_object, decrypt_object,
                                     encrypt_buffer, decrypt_buffer,
                                     encrypt_content_key, decrypt_content_key)

__all__ = [
    # errors
    "ShareCryptError",
    "RandomnessUnavailableError",
    "KeyFormatError",
    "DecryptionError",
    "SerializationError",
    # primitive
    "random_bytes",
    "random32_bytes",
    "PrivateKey",
    "PublicKey",
    "Aes",
    "encrypt_with_checksum",
    "decrypt_with_checksum",
    # content
    "ContentAlgorithm",
    "ContentKey",
    "DEFAULT_CONTENT_ALGORITHM",
    "make_content_key",
    "make_content_key_noencrypt",
    "ContentTransform",
    "PassThroughTransform",
    "CipherTransform",
    "make_cipher_transform",
    "make_decipher_transform",
    "run_transform",
    "run_transform_stream",
    "encrypt_content",
    "decrypt_content",
    "encrypt_content_str",
    "decrypt_content_str",
    # envelope
    "Envelope",
    "NONCE_SIZE",
    "encrypt_object",
    "decrypt_object",
    "encrypt_buffer",
    "decrypt_buffer",
    "encrypt_content_key",
    "decrypt_content_key",
]
