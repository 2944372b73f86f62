"""Command-line interface for generating and inspecting registration tokens."""
import sys
import logging
import argparse
from typing import Optional, Sequence

import orjson

from .codec import RegistrationTokenCodec
from .config import CodecConfig
from .exceptions import RegistrationTokenError, TokenExpiredError
from .keys import collect_bundle, fingerprint, install_authorized_key
from .version import __version__

logger = logging.getLogger("registration.token")

BANNER = "=" * 42
RULE = "-" * 42


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _safe_fingerprint(public_key: str) -> Optional[str]:
    """Fingerprint of a public key line, None when it holds no key blob."""
    try:
        return fingerprint(public_key)
    except ValueError:
        logger.debug("Public key has no decodable blob; fingerprint skipped")
        return None


def _cmd_generate(args: argparse.Namespace, codec: RegistrationTokenCodec) -> int:
    """Collect credentials on this server and print a token."""
    bundle = collect_bundle(args.host, args.port, args.user)
    if args.install_key:
        install_authorized_key(bundle.public_key, args.authorized_keys)
    token = codec.encode(bundle)
    minutes = codec.config.token_ttl // 60
    print(BANNER)
    print("  SERVER REGISTRATION TOKEN")
    print(BANNER)
    print()
    print("Copy this token and paste it into the registration form:")
    print()
    print(token)
    print()
    print(RULE)
    print(f"Server:      {bundle.hostname}:{bundle.ssh_port}")
    print(f"User:        {bundle.ssh_username}")
    print(f"Fingerprint: {fingerprint(bundle.public_key)}")
    print(f"Expires:     {minutes} minutes from generation")
    print(BANNER)
    return 0


def _cmd_decode(args: argparse.Namespace, codec: RegistrationTokenCodec) -> int:
    """Decode a token and print the bundle as JSON."""
    token = sys.stdin.read() if args.token == "-" else args.token
    bundle = codec.decode(token)
    try:
        codec.check_expiry(bundle)
    except TokenExpiredError as err:
        if args.strict:
            raise
        print(f"warning: {err}", file=sys.stderr)
    exclude = None if args.show_private_key else {"private_key_pem"}
    data = bundle.model_dump(by_alias=True, exclude=exclude)
    data["fingerprint"] = _safe_fingerprint(bundle.public_key)
    sys.stdout.write(orjson.dumps(data, option=orjson.OPT_INDENT_2).decode())
    sys.stdout.write("\n")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="registration-token",
        description="Generate or decode server registration tokens",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Create a token for this server")
    gen.add_argument("--host", help="Address to advertise (default: detected)")
    gen.add_argument("--port", type=int, help="SSH port (default: $SSH_PORT or 22)")
    gen.add_argument("--user", help="SSH login user (default: current user)")
    gen.add_argument(
        "--install-key",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Append the generated public key to authorized_keys",
    )
    gen.add_argument(
        "--authorized-keys",
        help="authorized_keys path (default: ~/.ssh/authorized_keys)",
    )
    gen.set_defaults(func=_cmd_generate)

    dec = sub.add_parser("decode", help="Decode a token into its credentials")
    dec.add_argument("token", help="Token string, or '-' to read from stdin")
    dec.add_argument(
        "--show-private-key",
        action="store_true",
        help="Include the private key in the output",
    )
    dec.add_argument(
        "--strict",
        action="store_true",
        help="Fail when the advisory validity window has elapsed",
    )
    dec.set_defaults(func=_cmd_decode)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    try:
        codec = RegistrationTokenCodec(CodecConfig.from_env())
        return args.func(args, codec)
    except (RegistrationTokenError, ValueError) as err:
        logger.debug("%s failed", args.command, exc_info=True)
        print(f"error: {err}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
