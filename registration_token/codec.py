"""
RegistrationTokenCodec - builds and parses registration tokens.

Provides the public API:
- ``encode(bundle)`` - serialize, encrypt, splice the one-time key, return token
- ``decode(token)`` - the exact inverse, returning a ``CredentialBundle``
- ``check_expiry(bundle)`` - optional consumer-side advisory window check

Both operations are stateless; a codec instance can be shared across threads.

Security Note:
    The one-time key lives only in local variables of a single call.
    Never log keys, ciphertext or payloads. Only log lengths and positions.
"""
import base64
import logging
import secrets
from datetime import datetime
from typing import Optional

from .bundle import CredentialBundle
from .config import MAX_POSITION, MIN_POSITION, CodecConfig, generate_one_time_key
from .crypto import decrypt_salted, encrypt_salted
from .envelope import (
    TokenParts,
    encode_position,
    restore_padding,
    strip_padding,
)
from .exceptions import EncodingError, MalformedTokenError, TokenExpiredError

logger = logging.getLogger("registration.token")


def random_position() -> int:
    """Pick a uniformly random splice offset in 10..99."""
    try:
        return MIN_POSITION + secrets.randbelow(MAX_POSITION - MIN_POSITION + 1)
    except (OSError, NotImplementedError) as err:
        raise EncodingError(
            "Secure random source unavailable for splice position"
        ) from err


class RegistrationTokenCodec:
    """Encode/decode pair around the registration token wire format."""

    def __init__(self, config: Optional[CodecConfig] = None):
        self.config = config or CodecConfig()

    def encode(
        self, bundle: CredentialBundle, position: Optional[int] = None
    ) -> str:
        """Build a token for a credential bundle.

        Args:
            bundle: Credentials to transport.
            position: Splice offset (10..99); random when omitted.

        Returns:
            Token string.

        Raises:
            EncodingError: If the bundle cannot be serialized or secure
                randomness is unavailable.
            ValueError: If an explicit position is out of range.
        """
        if position is not None:
            encode_position(position)  # range check before any work
        payload = bundle.to_payload()
        key = generate_one_time_key()
        envelope = encrypt_salted(payload, key, self.config.kdf_iterations)
        cipher_str = strip_padding(base64.b64encode(envelope).decode("ascii"))
        if position is None:
            position = random_position()
        parts = TokenParts.splice(cipher_str, key, position)
        if position > len(cipher_str):
            logger.warning(
                "Splice position %d is past the %d-char envelope",
                position, len(cipher_str),
            )
        token = parts.assemble()
        logger.debug(
            "Registration token built for %s (length=%d)",
            bundle.hostname, len(token),
        )
        return token

    def decode(self, token: str) -> CredentialBundle:
        """Recover the credential bundle from a token.

        Args:
            token: Token string (surrounding whitespace is ignored).

        Returns:
            Decoded CredentialBundle.

        Raises:
            MalformedTokenError: The string is not structurally a token.
            DecryptionError: Wrong key or tampered ciphertext.
            MalformedPayloadError: Decrypted text is not a credential bundle.
        """
        parts = TokenParts.parse(token.strip())
        padded = restore_padding(parts.cipher_text)
        try:
            envelope = base64.b64decode(padded, validate=True)
        except ValueError:
            raise MalformedTokenError("Envelope is not valid base64") from None
        plaintext = decrypt_salted(
            envelope, parts.key, self.config.kdf_iterations
        )
        bundle = CredentialBundle.from_payload(plaintext)
        logger.debug(
            "Registration token decoded for %s@%s:%d",
            bundle.ssh_username, bundle.hostname, bundle.ssh_port,
        )
        return bundle

    def check_expiry(
        self, bundle: CredentialBundle, now: Optional[datetime] = None
    ) -> CredentialBundle:
        """Apply the advisory validity window.

        Raises:
            TokenExpiredError: If the window has elapsed.
        """
        ttl = self.config.token_ttl
        if bundle.is_expired(ttl, now):
            raise TokenExpiredError(bundle.expires_at(ttl).isoformat(), ttl)
        return bundle


_default_codec = RegistrationTokenCodec()


def encode_token(bundle: CredentialBundle, position: Optional[int] = None) -> str:
    """Build a token with the default codec."""
    return _default_codec.encode(bundle, position)


def decode_token(token: str) -> CredentialBundle:
    """Decode a token with the default codec."""
    return _default_codec.decode(token)
