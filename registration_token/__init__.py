"""Registration Token - one-string transport for server SSH credentials.

Security Note (Threat Model):
    The decryption key travels inside the token itself, spliced into the
    ciphertext at a random offset. Anyone holding the token can recover the
    credentials; the format obfuscates and keeps the bundle opaque in transit,
    it does not protect against a holder of the token. Tokens are advisory
    valid for 15 minutes from ``generatedAtUtc``; consumers enforce that.
"""

from .version import __version__
from .bundle import CredentialBundle
from .codec import RegistrationTokenCodec, encode_token, decode_token
from .config import CodecConfig, generate_one_time_key
from .envelope import TokenParts
from .exceptions import (
    RegistrationTokenError,
    EncodingError,
    MalformedTokenError,
    DecryptionError,
    MalformedPayloadError,
    TokenExpiredError,
)

__all__ = [
    "__version__",
    "CredentialBundle",
    "RegistrationTokenCodec",
    "encode_token",
    "decode_token",
    "CodecConfig",
    "generate_one_time_key",
    "TokenParts",
    "RegistrationTokenError",
    "EncodingError",
    "MalformedTokenError",
    "DecryptionError",
    "MalformedPayloadError",
    "TokenExpiredError",
]
