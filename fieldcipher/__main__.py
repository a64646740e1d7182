"""
FieldCipher CLI - Run with: python -m fieldcipher

Commands:
    encrypt   - Encrypt a value into an envelope
    decrypt   - Decrypt an envelope
    index     - Print the index of a value
    inspect   - Show the metadata of an envelope
"""

import argparse
import json
import sys

from fieldcipher.config import get_settings
from fieldcipher.encoding import parse_envelope
from fieldcipher.errors import CryptographyError
from fieldcipher.fingerprint import generate_index
from fieldcipher.logging import setup_logging
from fieldcipher.serializer import SerializerFormat
from fieldcipher.service import CryptographyService


def _parser(command: str) -> argparse.ArgumentParser:
    return argparse.ArgumentParser(prog=f"python -m fieldcipher {command}")


def cmd_encrypt(argv: list[str]) -> int:
    """Encrypt a value."""
    parser = _parser("encrypt")
    parser.add_argument("value")
    parser.add_argument("--passes", type=int, default=None)
    parser.add_argument("--key", default=None)
    parser.add_argument("--format", choices=["json", "xml"], default=None,
                        help="Record a format tag (the value must already be serialized)")
    args = parser.parse_args(argv)

    fmt = SerializerFormat.parse(args.format) if args.format else None
    service = CryptographyService(get_settings())
    print(service.encrypt(args.value, passes=args.passes, key=args.key, fmt=fmt))
    return 0


def cmd_decrypt(argv: list[str]) -> int:
    """Decrypt an envelope."""
    parser = _parser("decrypt")
    parser.add_argument("envelope")
    parser.add_argument("--key", default=None)
    args = parser.parse_args(argv)

    service = CryptographyService(get_settings())
    print(service.decrypt(args.envelope, key=args.key))
    return 0


def cmd_index(argv: list[str]) -> int:
    """Print the index of a value."""
    parser = _parser("index")
    parser.add_argument("value")
    args = parser.parse_args(argv)

    print(generate_index(args.value))
    return 0


def cmd_inspect(argv: list[str]) -> int:
    """Show envelope metadata without decrypting."""
    parser = _parser("inspect")
    parser.add_argument("envelope")
    args = parser.parse_args(argv)

    envelope = parse_envelope(args.envelope)
    print(json.dumps({
        "passes": envelope.passes,
        "iv_length": envelope.iv_length,
        "format": envelope.format.value if envelope.format else None,
        "ciphertext_bytes": len(envelope.ciphertext),
    }, indent=2))
    return 0


def cmd_help(argv: list[str] | None = None) -> int:
    """Show help."""
    print(__doc__)
    print("Usage: python -m fieldcipher <command> [options]\n")
    print("Commands:")
    print("  encrypt VALUE [--passes N] [--key K] [--format json|xml]")
    print("  decrypt ENVELOPE [--key K]")
    print("  index VALUE")
    print("  inspect ENVELOPE")
    print("  help      Show this help message")
    print("\nThe default key and pass count come from SS_CRYPTO_KEY and SS_CRYPTO_PASSES.")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        cmd_help()
        return 0

    command = argv[0].lower()

    commands = {
        "encrypt": cmd_encrypt,
        "decrypt": cmd_decrypt,
        "index": cmd_index,
        "inspect": cmd_inspect,
        "help": cmd_help,
        "--help": cmd_help,
        "-h": cmd_help,
    }

    if command not in commands:
        print(f"Unknown command: {command}", file=sys.stderr)
        cmd_help()
        return 1

    try:
        settings = get_settings()
        setup_logging(json_output=settings.log_json, level=settings.log_level)
        return commands[command](argv[1:])
    except (CryptographyError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
