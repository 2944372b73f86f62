"""
Envelope Crypto Core - Key derivation and salted encryption/decryption.

Produces the same bytes as
``openssl enc -aes-256-cbc -pbkdf2 -iter 100000 -md sha256 -pass pass:KEY``:

    [b"Salted__" 8B][salt 8B][AES-256-CBC ciphertext, PKCS#7 padded]

The password is the one-time key *hex string*, not its decoded bytes.

Security Note:
    Never log plaintext, ciphertext or passwords.
"""
import os

from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .config import KDF_ITERATIONS
from .exceptions import DecryptionError, EncodingError, MalformedTokenError

SALT_MARKER = b"Salted__"
SALT_SIZE = 8
KEY_LENGTH = 32  # AES-256
IV_LENGTH = 16
BLOCK_SIZE = 128  # bits


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

def derive_key_iv(
    password: str, salt: bytes, iterations: int = KDF_ITERATIONS
) -> tuple[bytes, bytes]:
    """Derive the AES key and IV using PBKDF2-HMAC-SHA256.

    Args:
        password: Passphrase, used as its ASCII bytes.
        salt: 8-byte salt.
        iterations: PBKDF2 iteration count.

    Returns:
        Tuple of (32-byte key, 16-byte IV).
    """
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH + IV_LENGTH,
        salt=salt,
        iterations=iterations,
    )
    material = kdf.derive(password.encode("ascii"))
    return material[:KEY_LENGTH], material[KEY_LENGTH:]


# ---------------------------------------------------------------------------
# Salted envelope
# ---------------------------------------------------------------------------

def encrypt_salted(
    plaintext: bytes, password: str, iterations: int = KDF_ITERATIONS
) -> bytes:
    """Encrypt plaintext into a self-describing salted envelope.

    Args:
        plaintext: Data to encrypt.
        password: One-time key hex string.
        iterations: PBKDF2 iteration count.

    Returns:
        Envelope bytes: marker, salt, then CBC ciphertext.

    Raises:
        EncodingError: If the secure random source is unavailable.
    """
    try:
        salt = os.urandom(SALT_SIZE)
    except (OSError, NotImplementedError) as err:
        raise EncodingError("Secure random source unavailable for salt") from err
    key, iv = derive_key_iv(password, salt, iterations)
    padder = padding.PKCS7(BLOCK_SIZE).padder()
    padded = padder.update(plaintext) + padder.finalize()
    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    ct = encryptor.update(padded) + encryptor.finalize()
    return SALT_MARKER + salt + ct


def decrypt_salted(
    envelope: bytes, password: str, iterations: int = KDF_ITERATIONS
) -> bytes:
    """Decrypt a salted envelope produced by :func:`encrypt_salted`.

    Args:
        envelope: Marker, salt and ciphertext bytes.
        password: One-time key hex string.
        iterations: PBKDF2 iteration count.

    Returns:
        Decrypted plaintext bytes.

    Raises:
        MalformedTokenError: If the marker or salt is missing, or the
            ciphertext is empty or not block aligned.
        DecryptionError: If the padding is invalid after decryption.
    """
    header = len(SALT_MARKER) + SALT_SIZE
    if len(envelope) < header or envelope[:len(SALT_MARKER)] != SALT_MARKER:
        raise MalformedTokenError("Envelope is missing the salt header")
    salt = envelope[len(SALT_MARKER):header]
    ct = envelope[header:]
    block_bytes = BLOCK_SIZE // 8
    if not ct or len(ct) % block_bytes:
        raise MalformedTokenError(
            f"Envelope ciphertext is {len(ct)} bytes, "
            f"expected a non-zero multiple of {block_bytes}"
        )
    key, iv = derive_key_iv(password, salt, iterations)
    decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
    padded = decryptor.update(ct) + decryptor.finalize()
    unpadder = padding.PKCS7(BLOCK_SIZE).unpadder()
    try:
        return unpadder.update(padded) + unpadder.finalize()
    except ValueError:
        raise DecryptionError(
            "Envelope padding is invalid (wrong key or tampered token)"
        ) from None
