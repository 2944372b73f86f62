"""
Credential Bundle - the payload carried inside a registration token.

Serialized as a flat JSON object with camelCase keys:

    {"hostname": ..., "sshPort": ..., "sshUsername": ..., "publicKey": ...,
     "privateKeyPem": ..., "generatedAtUtc": ...}

Line breaks in ``privateKeyPem`` travel as the JSON ``\\n`` escape and are
restored on load.
"""
import re
from datetime import datetime, timedelta, timezone
from typing import Optional

import orjson
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .config import TOKEN_TTL
from .exceptions import EncodingError, MalformedPayloadError

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
_TIMESTAMP_PATTERN = re.compile(
    r"^[0-9]{4}-[0-9]{2}-[0-9]{2}T[0-9]{2}:[0-9]{2}:[0-9]{2}Z$"
)


def utc_timestamp(moment: Optional[datetime] = None) -> str:
    """Format a moment (default: now) as ``YYYY-MM-DDTHH:MM:SSZ``."""
    moment = moment or datetime.now(timezone.utc)
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime(TIMESTAMP_FORMAT)


def _error_fields(err: ValidationError) -> str:
    # field names only, input values may hold key material
    return ", ".join(
        ".".join(str(part) for part in error["loc"]) or "<root>"
        for error in err.errors()
    )


class CredentialBundle(BaseModel):
    """Server connection credentials transported by a token."""

    hostname: str = Field(min_length=1)
    ssh_port: int = Field(alias="sshPort", ge=1, le=65535, strict=True)
    ssh_username: str = Field(alias="sshUsername", min_length=1)
    public_key: str = Field(alias="publicKey")
    private_key_pem: str = Field(alias="privateKeyPem", repr=False)
    generated_at_utc: str = Field(alias="generatedAtUtc")

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @field_validator("public_key")
    @classmethod
    def validate_single_line(cls, v: str) -> str:
        """Public key must be a single line."""
        if "\n" in v or "\r" in v:
            raise ValueError("publicKey must be a single line")
        return v

    @field_validator("generated_at_utc")
    @classmethod
    def validate_timestamp(cls, v: str) -> str:
        """Timestamp must be UTC with second precision and a ``Z`` suffix."""
        if not _TIMESTAMP_PATTERN.match(v):
            raise ValueError("generatedAtUtc must look like YYYY-MM-DDTHH:MM:SSZ")
        datetime.strptime(v, TIMESTAMP_FORMAT)
        return v

    @classmethod
    def create(
        cls,
        hostname: str,
        ssh_port: int,
        ssh_username: str,
        public_key: str,
        private_key_pem: str,
        generated_at: Optional[datetime] = None,
    ) -> "CredentialBundle":
        """Build a bundle stamped with the current UTC second."""
        return cls(
            hostname=hostname,
            ssh_port=ssh_port,
            ssh_username=ssh_username,
            public_key=public_key,
            private_key_pem=private_key_pem,
            generated_at_utc=utc_timestamp(generated_at),
        )

    # ------------------------------------------------------------------
    # Timestamps
    # ------------------------------------------------------------------

    @property
    def generated_at(self) -> datetime:
        return datetime.strptime(
            self.generated_at_utc, TIMESTAMP_FORMAT
        ).replace(tzinfo=timezone.utc)

    def expires_at(self, ttl: int = TOKEN_TTL) -> datetime:
        return self.generated_at + timedelta(seconds=ttl)

    def is_expired(
        self, ttl: int = TOKEN_TTL, now: Optional[datetime] = None
    ) -> bool:
        """Check the advisory validity window.

        Args:
            ttl: Window length in seconds.
            now: Reference moment, defaults to the current UTC time.
        """
        now = now or datetime.now(timezone.utc)
        return now > self.expires_at(ttl)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_payload(self) -> bytes:
        """Serialize to the JSON payload that gets encrypted.

        Raises:
            EncodingError: If a field cannot be represented as JSON text.
        """
        try:
            data = orjson.dumps(self.model_dump(by_alias=True))
        except orjson.JSONEncodeError as err:
            raise EncodingError(
                "Credential bundle cannot be serialized to JSON"
            ) from err
        return data + b"\n"

    @classmethod
    def from_payload(cls, data: bytes) -> "CredentialBundle":
        """Parse a decrypted payload.

        Raises:
            MalformedPayloadError: If the payload is not a JSON object holding
                every required field with a valid value.
        """
        try:
            parsed = orjson.loads(data.strip())
        except orjson.JSONDecodeError:
            raise MalformedPayloadError(
                "Decrypted payload is not valid JSON"
            ) from None
        if not isinstance(parsed, dict):
            raise MalformedPayloadError("Decrypted payload is not a JSON object")
        try:
            return cls.model_validate(parsed)
        except ValidationError as err:
            raise MalformedPayloadError(
                f"Invalid credential bundle fields: {_error_fields(err)}"
            ) from None
