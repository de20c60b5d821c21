"""
sharecrypt — Live Demo: share a file with one peer
===================================================
Run:  python examples/demo_envelope.py

Alice encrypts a file under a fresh content key, wraps the key and the
file's metadata for Bob, and Bob unwraps both and recovers the file.
Timing and sizes are printed for each step.
"""

import sys, os, time, logging
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sharecrypt import (PrivateKey, DecryptionError,
                        make_content_key, make_content_key_noencrypt,
                        encrypt_content, decrypt_content,
                        encrypt_object, decrypt_object,
                        encrypt_content_key, decrypt_content_key)

LINE = "═" * 70
FILE = os.urandom(256 * 1024)
META = {"name": "holiday.mp4", "size": len(FILE), "mime": "video/mp4"}

def header(step, name):
    print(f"\n{LINE}")
    print(f"  Step {step} — {name}")
    print(LINE)

def ok(label, value=""):
    print(f"  ✓  {label}{f': {value}' if value else ''}")

logging.basicConfig(level=logging.INFO, format=" %(levelname)s %(name)s: %(message)s")

# ─────────────────────────────────────────────────────────────────────────────
print(f"\n{LINE}")
print("  sharecrypt — envelope + content cipher demo")
print(LINE)

# ── STEP 1 ───────────────────────────────────────────────────────────────────
header(1, "Key pairs (secp256k1)")
alice, bob = PrivateKey.generate(), PrivateKey.generate()
ok("Alice public", alice.public_key().to_hex())
ok("Bob public",   bob.public_key().to_hex())

# ── STEP 2 ───────────────────────────────────────────────────────────────────
header(2, "Content — AES-256-CBC under a fresh content key")
t0   = time.perf_counter()
ck   = make_content_key()
body = encrypt_content(FILE, ck)
ok("Algorithm",  ck.algorithm.value)
ok("Plain size", f"{len(FILE)} bytes")
ok("Body size",  f"{len(body)} bytes (PKCS#7 padded)")
ok("Encrypt",    f"{(time.perf_counter() - t0) * 1000:.2f} ms")

# ── STEP 3 ───────────────────────────────────────────────────────────────────
header(3, "Envelope — wrap key (binary) and metadata (text) for Bob")
wrapped = encrypt_content_key(ck, alice, bob.public_key())
meta    = encrypt_object(META, alice, bob.public_key())
ok("Wrapped key", f"{len(wrapped)} bytes (1 + 32 nonce + ciphertext)")
ok("Metadata",    meta[:48] + "...")

# ── STEP 4 ───────────────────────────────────────────────────────────────────
header(4, "Bob unwraps and decrypts")
t0       = time.perf_counter()
got_key  = decrypt_content_key(wrapped, alice.public_key(), bob)
got_meta = decrypt_object(meta, alice.public_key(), bob)
got_file = decrypt_content(body, got_key)
assert got_file == FILE and got_meta == META
ok("Metadata",  got_meta)
ok("File",      f"{len(got_file)} bytes match")
ok("Round-trip", f"{(time.perf_counter() - t0) * 1000:.2f} ms")

# ── STEP 5 ───────────────────────────────────────────────────────────────────
header(5, "Eve cannot unwrap")
eve = PrivateKey.generate()
try:
    decrypt_content_key(wrapped, alice.public_key(), eve)
    print("  ✗  Eve decrypted the key!")
    sys.exit(1)
except DecryptionError as exc:
    ok("Rejected", str(exc))

# ── STEP 6 ───────────────────────────────────────────────────────────────────
header(6, "Public content — explicit noencrypt opt-out")
plain = make_content_key_noencrypt()
assert encrypt_content(FILE, plain) == FILE
ok("Pass-through", "output identical to input")

print(f"\n{LINE}")
print("  All steps: PASSED")
print(f"{LINE}\n")
