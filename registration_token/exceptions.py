"""Registration token exceptions.

Messages never carry key material, ciphertext or private-key content.
"""


class RegistrationTokenError(Exception):
    """Base exception for registration token errors."""


class EncodingError(RegistrationTokenError):
    """The credential bundle could not be turned into a token."""


class MalformedTokenError(RegistrationTokenError):
    """The string is not structurally a registration token."""


class DecryptionError(RegistrationTokenError):
    """The envelope did not decrypt to validly padded plaintext.

    Usually a wrong key or a tampered token.
    """


class MalformedPayloadError(RegistrationTokenError):
    """The envelope decrypted but does not hold a valid credential bundle."""


class TokenExpiredError(RegistrationTokenError):
    """The advisory validity window of the token has elapsed."""

    def __init__(self, expired_at: str, ttl: int) -> None:
        self.expired_at = expired_at
        self.ttl = ttl
        super().__init__(
            f"Registration token expired at {expired_at} (ttl: {ttl}s)"
        )
