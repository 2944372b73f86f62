"""
Token Layout - splicing the one-time key into the base64 envelope.

A token is four regions in order::

    BEFORE | KEY (64 hex) | AFTER | POSITION_SUFFIX (4 chars)

``BEFORE + AFTER`` is the unpadded base64 envelope, ``KEY`` was inserted at
offset ``POS`` (10..99) and the suffix is ``<letter><digit>==`` where the
letter ``A``..``I`` is the tens digit of ``POS`` and the digit its ones digit.
"""
from typing import NamedTuple

from .config import MAX_POSITION, MIN_POSITION, ONE_TIME_KEY_LENGTH
from .exceptions import MalformedTokenError

POSITION_ALPHABET = "_ABCDEFGHI"  # index 0 is never produced
SUFFIX_TERMINATOR = "=="
SUFFIX_LENGTH = 4
MIN_TOKEN_LENGTH = SUFFIX_LENGTH + ONE_TIME_KEY_LENGTH


# ---------------------------------------------------------------------------
# Position suffix
# ---------------------------------------------------------------------------

def encode_position(position: int) -> str:
    """Encode a splice offset as its 4-character suffix.

    Raises:
        ValueError: If position is outside 10..99.
    """
    if not MIN_POSITION <= position <= MAX_POSITION:
        raise ValueError(
            f"Position must be between {MIN_POSITION} and {MAX_POSITION}, "
            f"got {position}"
        )
    tens, ones = divmod(position, 10)
    return f"{POSITION_ALPHABET[tens]}{ones}{SUFFIX_TERMINATOR}"


def decode_position(suffix: str) -> int:
    """Decode a 4-character suffix back to the splice offset.

    Raises:
        MalformedTokenError: On a bad terminator, letter, digit or range.
    """
    if len(suffix) != SUFFIX_LENGTH or not suffix.endswith(SUFFIX_TERMINATOR):
        raise MalformedTokenError("Token does not end with a position suffix")
    letter, digit = suffix[0], suffix[1]
    tens = POSITION_ALPHABET.find(letter)
    if tens < 1:
        raise MalformedTokenError(f"Invalid position letter {letter!r}")
    if digit not in "0123456789":
        raise MalformedTokenError(f"Invalid position digit {digit!r}")
    position = tens * 10 + int(digit)
    if not MIN_POSITION <= position <= MAX_POSITION:
        raise MalformedTokenError(f"Position {position} is out of range")
    return position


# ---------------------------------------------------------------------------
# Base64 padding
# ---------------------------------------------------------------------------

def strip_padding(encoded: str) -> str:
    """Drop trailing ``=`` padding from a base64 string."""
    return encoded.rstrip("=")


def restore_padding(cipher_str: str) -> str:
    """Re-pad an unpadded base64 string.

    Raises:
        MalformedTokenError: If the length is 1 mod 4, which no base64
            encoding produces.
    """
    remainder = len(cipher_str) % 4
    if remainder == 1:
        raise MalformedTokenError(
            "Envelope length is not a valid base64 length"
        )
    return cipher_str + "=" * ((4 - remainder) % 4)


# ---------------------------------------------------------------------------
# Tagged decomposition
# ---------------------------------------------------------------------------

class TokenParts(NamedTuple):
    """The four regions of a registration token."""

    position: int
    key: str
    before: str
    after: str

    def __repr__(self) -> str:
        return (
            f"TokenParts(position={self.position}, key=<redacted>, "
            f"before={len(self.before)} chars, after={len(self.after)} chars)"
        )

    @property
    def cipher_text(self) -> str:
        """The unpadded base64 envelope with the key removed."""
        return self.before + self.after

    @classmethod
    def splice(cls, cipher_str: str, key: str, position: int) -> "TokenParts":
        """Split the envelope at ``position`` around the key.

        A position past the end of the envelope leaves ``after`` empty; the
        resulting token cannot be parsed back, its key region is truncated.
        """
        if len(key) != ONE_TIME_KEY_LENGTH:
            raise ValueError(
                f"One-time key must be {ONE_TIME_KEY_LENGTH} characters"
            )
        encode_position(position)  # range check
        return cls(
            position=position,
            key=key,
            before=cipher_str[:position],
            after=cipher_str[position:],
        )

    def assemble(self) -> str:
        """Join the regions into the token string."""
        return (
            self.before + self.key + self.after + encode_position(self.position)
        )

    @classmethod
    def parse(cls, token: str) -> "TokenParts":
        """Decompose a token string into its regions.

        Raises:
            MalformedTokenError: If the token is too short, the suffix is
                invalid, the key region is truncated or any character is
                outside ASCII.
        """
        if len(token) < MIN_TOKEN_LENGTH:
            raise MalformedTokenError(
                f"Token is {len(token)} characters, "
                f"minimum is {MIN_TOKEN_LENGTH}"
            )
        position = decode_position(token[-SUFFIX_LENGTH:])
        remainder = token[:-SUFFIX_LENGTH]
        end = position + ONE_TIME_KEY_LENGTH
        if len(remainder) < end:
            raise MalformedTokenError(
                "Token is truncated: key region extends past the end"
            )
        if not remainder.isascii():
            raise MalformedTokenError("Token contains non-ASCII characters")
        key = remainder[position:end]
        return cls(
            position=position,
            key=key,
            before=remainder[:position],
            after=remainder[end:],
        )
