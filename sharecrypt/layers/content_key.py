"""
Layer 1 — CONTENT KEY
======================
A small value object naming how one piece of content is protected.

Wire form (JSON object):
    {"algo": "aes-256-cbc", "key": "<hex>", "iv": "<hex>"}
    {"algo": "noencrypt",   "key": null,    "iv": null}

Algorithms are a closed set (ContentAlgorithm). The default is
AES-256-CBC: 256-bit key, 128-bit IV, chained mode, no integrity.
Integrity for the key itself comes from wrapping it in an envelope.

"noencrypt" is only produced by make_content_key_noencrypt() or by
parsing a key received from a peer; make_content_key() refuses it.

Dependencies: none beyond the standard library
"""

import enum
import json
import logging
from dataclasses import dataclass
from typing import Optional

from ..entropy import random_bytes
from ..errors import KeyFormatError

logger = logging.getLogger(__name__)


class ContentAlgorithm(enum.Enum):
    """Supported content ciphers. Values are the wire identifiers."""

    AES_256_CBC = "aes-256-cbc"
    AES_192_CBC = "aes-192-cbc"
    AES_128_CBC = "aes-128-cbc"
    AES_256_CTR = "aes-256-ctr"
    NOENCRYPT   = "noencrypt"

    @property
    def key_size(self) -> int:
        return _SIZES[self][0]

    @property
    def iv_size(self) -> int:
        return _SIZES[self][1]

    @property
    def padded(self) -> bool:
        """Block modes need PKCS#7; CTR is a stream and does not."""
        return self in (ContentAlgorithm.AES_256_CBC,
                        ContentAlgorithm.AES_192_CBC,
                        ContentAlgorithm.AES_128_CBC)

    @classmethod
    def parse(cls, name: str) -> "ContentAlgorithm":
        try:
            return cls(name)
        except ValueError as exc:
            raise KeyFormatError(f"Unknown content algorithm: {name!r}") from exc


# (key bytes, iv bytes)
_SIZES = {
    ContentAlgorithm.AES_256_CBC: (32, 16),
    ContentAlgorithm.AES_192_CBC: (24, 16),
    ContentAlgorithm.AES_128_CBC: (16, 16),
    ContentAlgorithm.AES_256_CTR: (32, 16),
    ContentAlgorithm.NOENCRYPT:   (0, 0),
}

DEFAULT_CONTENT_ALGORITHM = ContentAlgorithm.AES_256_CBC


@dataclass(frozen=True)
class ContentKey:
    """Algorithm plus hex-encoded key and IV (both None for noencrypt)."""

    algorithm: ContentAlgorithm
    key: Optional[str] = None
    iv: Optional[str] = None

    @property
    def is_noencrypt(self) -> bool:
        return self.algorithm is ContentAlgorithm.NOENCRYPT

    @property
    def key_bytes(self) -> Optional[bytes]:
        return _unhex(self.key, "key")

    @property
    def iv_bytes(self) -> Optional[bytes]:
        return _unhex(self.iv, "iv")

    def validate(self) -> None:
        """
        Check key/IV presence and sizes against the algorithm.
        Raises KeyFormatError.
        """
        if self.is_noencrypt:
            if self.key is not None or self.iv is not None:
                raise KeyFormatError("noencrypt content key must not carry key or iv.")
            return
        key, iv = self.key_bytes, self.iv_bytes
        if key is None or len(key) != self.algorithm.key_size:
            raise KeyFormatError(
                f"{self.algorithm.value} key must be {self.algorithm.key_size} bytes, "
                f"got {0 if key is None else len(key)}."
            )
        if iv is None or len(iv) != self.algorithm.iv_size:
            raise KeyFormatError(
                f"{self.algorithm.value} iv must be {self.algorithm.iv_size} bytes, "
                f"got {0 if iv is None else len(iv)}."
            )

    def to_dict(self) -> dict:
        return {"algo": self.algorithm.value, "key": self.key, "iv": self.iv}

    @classmethod
    def from_dict(cls, data: dict) -> "ContentKey":
        if not isinstance(data, dict) or "algo" not in data:
            raise KeyFormatError("Content key must be an object with an 'algo' field.")
        key, iv = data.get("key"), data.get("iv")
        for name, value in (("key", key), ("iv", iv)):
            if value is not None and not isinstance(value, str):
                raise KeyFormatError(f"Content key field {name!r} must be a hex string.")
        return cls(ContentAlgorithm.parse(data["algo"]), key, iv)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_json(cls, text) -> "ContentKey":
        try:
            data = json.loads(text)
        except (ValueError, TypeError) as exc:
            raise KeyFormatError(f"Content key is not valid JSON: {exc}") from exc
        return cls.from_dict(data)

    def __repr__(self):
        # never print key material
        return f"ContentKey(algorithm={self.algorithm.value})"


def _unhex(value: Optional[str], name: str) -> Optional[bytes]:
    if value is None:
        return None
    try:
        return bytes.fromhex(value)
    except ValueError as exc:
        raise KeyFormatError(f"Content key {name} is not valid hex.") from exc


def make_content_key(algorithm: ContentAlgorithm = DEFAULT_CONTENT_ALGORITHM) -> ContentKey:
    """Fresh random key and IV sized for `algorithm`."""
    if not isinstance(algorithm, ContentAlgorithm):
        raise TypeError("algorithm must be a ContentAlgorithm member.")
    if algorithm is ContentAlgorithm.NOENCRYPT:
        raise ValueError("Use make_content_key_noencrypt() to opt out of encryption.")
    key = random_bytes(algorithm.key_size).hex() if algorithm.key_size > 0 else None
    iv  = random_bytes(algorithm.iv_size).hex() if algorithm.iv_size > 0 else None
    logger.debug(f"make_content_key: algo={algorithm.value}")
    return ContentKey(algorithm, key, iv)


def make_content_key_noencrypt() -> ContentKey:
    """The explicit pass-through sentinel."""
    return ContentKey(ContentAlgorithm.NOENCRYPT)
