"""
sharecrypt — Asymmetric Envelope Codec Tests
=============================================
Run with:  python -m pytest tests/ -v
       or:  python tests/test_envelope.py
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import base64

import pytest
from sharecrypt.keys                   import PrivateKey
from sharecrypt.aes                    import encrypt_with_checksum
from sharecrypt.layers.content_key     import (ContentKey, ContentAlgorithm,
                                               make_content_key,
                                               make_content_key_noencrypt)
from sharecrypt.layers.content_cipher  import encrypt_content, decrypt_content
from sharecrypt.layers.envelope        import (Envelope, NONCE_SIZE,
                                               encrypt_object, decrypt_object,
                                               encrypt_buffer, decrypt_buffer,
                                               encrypt_content_key,
                                               decrypt_content_key)
from sharecrypt.errors                 import DecryptionError, SerializationError
from sharecrypt.layers                 import envelope as envelope_mod

OBJ = {"name": "holiday.mp4", "size": 1048576, "tags": ["video", "ünïcode"],
       "meta": {"shared": True, "ratio": 1.5, "owner": None}}


@pytest.fixture(scope="module")
def sender():
    return PrivateKey.generate()


@pytest.fixture(scope="module")
def recipient():
    return PrivateKey.generate()


@pytest.fixture(scope="module")
def stranger():
    return PrivateKey.generate()


# ── Wire formats ─────────────────────────────────────────────────────────────
def test_binary_wire_literal():
    env = Envelope(bytes([0x01, 0x02]), bytes([0xAA, 0xBB, 0xCC]))
    assert env.to_bytes() == bytes([0x02, 0x01, 0x02, 0xAA, 0xBB, 0xCC])
    assert Envelope.from_bytes(env.to_bytes()) == env

def test_text_wire_literal():
    env = Envelope(bytes([0x01, 0x02]), bytes([0xAA, 0xBB, 0xCC]))
    assert env.to_text() == "AQI=:qrvM"
    assert Envelope.from_text("AQI=:qrvM") == env

def test_binary_nonce_length_limit():
    with pytest.raises(ValueError):
        Envelope(b"\x00" * 256, b"ct").to_bytes()
    env = Envelope(b"\x07" * 255, b"ct")
    assert Envelope.from_bytes(env.to_bytes()) == env

@pytest.mark.parametrize("nonce, ct", [
    (b"", b"ct"),                 # empty nonce
    (b"\x01", b""),               # empty ciphertext
])
def test_empty_segments_cannot_be_encoded(nonce, ct):
    with pytest.raises(ValueError):
        Envelope(nonce, ct)

def test_default_nonce_from_random32(sender, recipient, monkeypatch):
    fixed = bytes(range(32))
    monkeypatch.setattr(envelope_mod, "random32_bytes", lambda: fixed)
    wire = encrypt_buffer(b"payload", sender, recipient.public_key())
    assert Envelope.from_bytes(wire).nonce == fixed
    text = encrypt_object(OBJ, sender, recipient.public_key())
    assert Envelope.from_text(text).nonce == fixed
    assert decrypt_object(text, sender.public_key(), recipient) == OBJ

@pytest.mark.parametrize("data", [
    b"",                          # empty
    b"\x00abc",                   # zero nonce length
    b"\x05\x01\x02",              # nonce length past the end
    b"\x02\x01\x02",              # no ciphertext
])
def test_binary_malformed(data):
    with pytest.raises(DecryptionError):
        Envelope.from_bytes(data)

@pytest.mark.parametrize("text", [
    "AQI=qrvM",                   # no separator
    ":qrvM",                      # empty nonce
    "AQI=:",                      # empty ciphertext
    "AQI=:qr!M",                  # bad base64
])
def test_text_malformed(text):
    with pytest.raises(DecryptionError):
        Envelope.from_text(text)

# ── Objects ──────────────────────────────────────────────────────────────────
def test_object_roundtrip(sender, recipient):
    wire = encrypt_object(OBJ, sender, recipient.public_key())
    assert decrypt_object(wire, sender.public_key(), recipient) == OBJ

@pytest.mark.parametrize("obj", [None, 0, "", [], {}, "x" * 10000, [1, [2, [3]]]])
def test_object_roundtrip_shapes(sender, recipient, obj):
    wire = encrypt_object(obj, sender, recipient.public_key())
    assert decrypt_object(wire, sender.public_key(), recipient) == obj

def test_object_envelope_shape(sender, recipient):
    wire = encrypt_object(OBJ, sender, recipient.public_key())
    nonce_b64, ct_b64 = wire.split(":")
    assert len(base64.b64decode(nonce_b64)) == NONCE_SIZE
    assert len(base64.b64decode(ct_b64)) % 16 == 0

def test_object_fresh_nonce_per_call(sender, recipient):
    a = encrypt_object(OBJ, sender, recipient.public_key())
    b = encrypt_object(OBJ, sender, recipient.public_key())
    assert a.split(":")[0] != b.split(":")[0]
    assert a != b

def test_object_tamper_every_byte(sender, recipient):
    env = Envelope.from_text(encrypt_object({"k": 1}, sender, recipient.public_key()))
    for i in range(len(env.ciphertext)):
        ct = bytearray(env.ciphertext)
        ct[i] ^= 0xFF
        forged = Envelope(env.nonce, bytes(ct)).to_text()
        with pytest.raises(DecryptionError):
            decrypt_object(forged, sender.public_key(), recipient)

def test_object_tampered_nonce(sender, recipient):
    env   = Envelope.from_text(encrypt_object(OBJ, sender, recipient.public_key()))
    nonce = bytearray(env.nonce)
    nonce[0] ^= 0x01
    with pytest.raises(DecryptionError):
        decrypt_object(Envelope(bytes(nonce), env.ciphertext).to_text(),
                       sender.public_key(), recipient)

def test_object_wrong_key(sender, recipient, stranger):
    wire = encrypt_object(OBJ, sender, recipient.public_key())
    with pytest.raises(DecryptionError):
        decrypt_object(wire, stranger.public_key(), recipient)
    with pytest.raises(DecryptionError):
        decrypt_object(wire, sender.public_key(), stranger)

def test_object_not_serializable(sender, recipient):
    with pytest.raises(SerializationError):
        encrypt_object({"when": object()}, sender, recipient.public_key())

def test_object_plaintext_not_json(sender, recipient):
    nonce = b"\x09" * NONCE_SIZE
    ct    = encrypt_with_checksum(sender, recipient.public_key(),
                                  base64.b64encode(nonce).decode(), b"not json")
    wire  = Envelope(nonce, ct).to_text()
    with pytest.raises(SerializationError):
        decrypt_object(wire, sender.public_key(), recipient)

def test_object_custom_nonce_size(sender, recipient):
    wire = encrypt_object(OBJ, sender, recipient.public_key(), nonce_size=12)
    assert len(Envelope.from_text(wire).nonce) == 12
    assert decrypt_object(wire, sender.public_key(), recipient) == OBJ
    with pytest.raises(ValueError):
        encrypt_object(OBJ, sender, recipient.public_key(), nonce_size=0)

# ── Buffers ──────────────────────────────────────────────────────────────────
@pytest.mark.parametrize("size", [0, 1, 15, 16, 17, 4096])
def test_buffer_roundtrip(sender, recipient, size):
    buf  = os.urandom(size)
    wire = encrypt_buffer(buf, sender, recipient.public_key())
    assert wire[0] == NONCE_SIZE
    assert decrypt_buffer(wire, sender.public_key(), recipient) == buf

def test_buffer_fresh_nonce_per_call(sender, recipient):
    a = encrypt_buffer(b"same", sender, recipient.public_key())
    b = encrypt_buffer(b"same", sender, recipient.public_key())
    assert a[1:1 + NONCE_SIZE] != b[1:1 + NONCE_SIZE]

def test_buffer_tamper_every_ciphertext_byte(sender, recipient):
    wire = encrypt_buffer(b"secret key bytes", sender, recipient.public_key())
    for i in range(1 + NONCE_SIZE, len(wire)):
        forged = bytearray(wire)
        forged[i] ^= 0x01
        with pytest.raises(DecryptionError):
            decrypt_buffer(bytes(forged), sender.public_key(), recipient)

def test_buffer_tampered_length_byte(sender, recipient):
    wire = bytearray(encrypt_buffer(b"payload", sender, recipient.public_key()))
    wire[0] ^= 0xFF
    with pytest.raises(DecryptionError):
        decrypt_buffer(bytes(wire), sender.public_key(), recipient)

def test_buffer_wrong_key(sender, recipient, stranger):
    wire = encrypt_buffer(b"payload", sender, recipient.public_key())
    with pytest.raises(DecryptionError):
        decrypt_buffer(wire, stranger.public_key(), recipient)

def test_buffer_and_object_share_primitive(sender, recipient):
    # same nonce and ciphertext decrypt under either framing
    text = encrypt_object(OBJ, sender, recipient.public_key())
    env  = Envelope.from_text(text)
    raw  = decrypt_buffer(env.to_bytes(), sender.public_key(), recipient)
    assert raw.decode("utf-8") == '{"name":"holiday.mp4","size":1048576,' \
        '"tags":["video","ünïcode"],"meta":{"shared":true,"ratio":1.5,"owner":null}}'

# ── Content key wrapping ─────────────────────────────────────────────────────
def test_wrapped_content_key_end_to_end(sender, recipient):
    ck      = make_content_key()
    blob    = os.urandom(10000)
    body    = encrypt_content(blob, ck)
    wrapped = encrypt_content_key(ck, sender, recipient.public_key())
    got     = decrypt_content_key(wrapped, sender.public_key(), recipient)
    assert got == ck
    assert decrypt_content(body, got) == blob

def test_wrapped_noencrypt_key(sender, recipient):
    wrapped = encrypt_content_key(make_content_key_noencrypt(), sender, recipient.public_key())
    assert decrypt_content_key(wrapped, sender.public_key(), recipient).is_noencrypt

def test_wrapped_ctr_key(sender, recipient):
    ck      = make_content_key(ContentAlgorithm.AES_256_CTR)
    wrapped = encrypt_content_key(ck, sender, recipient.public_key())
    assert decrypt_content_key(wrapped, sender.public_key(), recipient) == ck

def test_unwrap_non_content_key(sender, recipient):
    wire = encrypt_buffer(b'{"x":1}', sender, recipient.public_key())
    with pytest.raises(SerializationError):
        decrypt_content_key(wire, sender.public_key(), recipient)

def test_unwrap_wrong_key(sender, recipient, stranger):
    wrapped = encrypt_content_key(make_content_key(), sender, recipient.public_key())
    with pytest.raises(DecryptionError):
        decrypt_content_key(wrapped, sender.public_key(), stranger)

# ── run directly ─────────────────────────────────────────────────────────────
if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
