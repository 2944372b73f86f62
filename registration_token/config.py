"""
Codec Configuration - One-time key generation and validated settings.

Reads optional overrides from environment variables:
    REGISTRATION_TOKEN_KDF_ITERATIONS = <integer, default 100000>
    REGISTRATION_TOKEN_TTL = <seconds, default 900>

Security Note:
    Never log one-time keys. Only log lengths and iteration counts.
"""
import os
import secrets
import logging

from pydantic import BaseModel, Field, field_validator

from .exceptions import EncodingError

logger = logging.getLogger("registration.token")

KDF_ITERATIONS = 100_000
TOKEN_TTL = 15 * 60
ONE_TIME_KEY_BYTES = 32
ONE_TIME_KEY_LENGTH = ONE_TIME_KEY_BYTES * 2  # hex characters
MIN_POSITION = 10
MAX_POSITION = 99


def _read_int(name: str, default: int) -> int:
    """Read an integer environment variable.

    Raises:
        ValueError: If the value is set but not a valid integer.
    """
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def generate_one_time_key() -> str:
    """Generate a fresh one-time key.

    Returns:
        64-character lowercase hex string (32 random bytes).

    Raises:
        EncodingError: If the secure random source is unavailable.
    """
    try:
        return secrets.token_hex(ONE_TIME_KEY_BYTES)
    except (OSError, NotImplementedError) as err:
        raise EncodingError(
            "Secure random source unavailable for one-time key"
        ) from err


class CodecConfig(BaseModel):
    """Validated codec configuration."""

    kdf_iterations: int = Field(default=KDF_ITERATIONS, ge=1)
    token_ttl: int = Field(default=TOKEN_TTL, ge=60)

    model_config = {"frozen": True}

    @field_validator("kdf_iterations")
    @classmethod
    def warn_iterations(cls, v: int) -> int:
        """Tokens only interoperate at the standard iteration count."""
        if v != KDF_ITERATIONS:
            logger.warning(
                "Using %d PBKDF2 iterations; tokens will not decode "
                "with the standard %d", v, KDF_ITERATIONS,
            )
        return v

    @classmethod
    def from_env(cls) -> "CodecConfig":
        """Create CodecConfig by loading values from environment.

        Returns:
            Populated CodecConfig instance.
        """
        return cls(
            kdf_iterations=_read_int(
                "REGISTRATION_TOKEN_KDF_ITERATIONS", KDF_ITERATIONS
            ),
            token_ttl=_read_int("REGISTRATION_TOKEN_TTL", TOKEN_TTL),
        )
