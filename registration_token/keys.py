"""
Credential Collection - SSH keypair generation and server detection.

Gathers everything a registration token carries on the server being
registered: address, SSH port, login user and a fresh Ed25519 keypair whose
public half is installed in ``authorized_keys``.

Security Note:
    The private key is returned to the caller only. Never log it.
"""
import os
import base64
import socket
import getpass
import hashlib
import logging
from pathlib import Path
from typing import Optional, Union

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from .bundle import CredentialBundle

logger = logging.getLogger("registration.token")

DEFAULT_SSH_PORT = 22


# ---------------------------------------------------------------------------
# Keypair
# ---------------------------------------------------------------------------

def generate_ssh_keypair(comment: str = "") -> tuple[str, str]:
    """Generate an unencrypted Ed25519 keypair in OpenSSH formats.

    Args:
        comment: Optional comment appended to the public key line.

    Returns:
        Tuple of (private key PEM text, single-line public key).
    """
    key = Ed25519PrivateKey.generate()
    private_pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.OpenSSH,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")
    public_line = key.public_key().public_bytes(
        encoding=serialization.Encoding.OpenSSH,
        format=serialization.PublicFormat.OpenSSH,
    ).decode("ascii")
    if comment:
        public_line = f"{public_line} {comment}"
    return private_pem, public_line


def fingerprint(public_key: str) -> str:
    """Return the SHA256 fingerprint of an OpenSSH public key line.

    Matches the ``SHA256:...`` form printed by ``ssh-keygen -l``.

    Raises:
        ValueError: If the line has no base64 key blob.
    """
    fields = public_key.split()
    if len(fields) < 2:
        raise ValueError("Public key line must be '<type> <base64> [comment]'")
    blob = base64.b64decode(fields[1], validate=True)
    digest = base64.b64encode(hashlib.sha256(blob).digest()).decode("ascii")
    return "SHA256:" + digest.rstrip("=")


# ---------------------------------------------------------------------------
# Server detection
# ---------------------------------------------------------------------------

def detect_hostname() -> str:
    """Return the first non-loopback IPv4 address, else the FQDN."""
    try:
        _, _, addresses = socket.gethostbyname_ex(socket.gethostname())
    except OSError:
        addresses = []
    for address in addresses:
        if not address.startswith("127."):
            return address
    return socket.getfqdn()


def detect_username() -> str:
    return getpass.getuser()


def detect_ssh_port() -> int:
    """Read the SSH port from ``SSH_PORT`` (default 22)."""
    raw = os.environ.get("SSH_PORT")
    if not raw:
        return DEFAULT_SSH_PORT
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"SSH_PORT must be an integer, got {raw!r}") from None


def install_authorized_key(
    public_key: str, path: Optional[Union[str, Path]] = None
) -> Path:
    """Append a public key to ``authorized_keys``.

    Creates the parent directory with mode 0700 and leaves the file at 0600.

    Returns:
        Path of the authorized_keys file.
    """
    path = Path(path) if path else Path.home() / ".ssh" / "authorized_keys"
    path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
    path.parent.chmod(0o700)
    with path.open("a", encoding="ascii") as fp:
        fp.write(public_key.rstrip("\n") + "\n")
    path.chmod(0o600)
    logger.info("Public key installed in %s", path)
    return path


def collect_bundle(
    hostname: Optional[str] = None,
    ssh_port: Optional[int] = None,
    ssh_username: Optional[str] = None,
) -> CredentialBundle:
    """Detect server details, generate a keypair and build the bundle.

    Explicit arguments override detection.
    """
    hostname = hostname or detect_hostname()
    ssh_port = ssh_port or detect_ssh_port()
    ssh_username = ssh_username or detect_username()
    private_pem, public_line = generate_ssh_keypair(f"{ssh_username}@{hostname}")
    logger.info("Detected: %s@%s:%d", ssh_username, hostname, ssh_port)
    return CredentialBundle.create(
        hostname=hostname,
        ssh_port=ssh_port,
        ssh_username=ssh_username,
        public_key=public_line,
        private_key_pem=private_pem,
    )
