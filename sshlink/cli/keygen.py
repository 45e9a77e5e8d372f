"""sshlink-keygen -- Read or create an RSA key pair and print the public key."""

import sys

from sshlink import keys
from sshlink.cli._common import EXIT_OK, EXIT_OPERATION_ERROR, EXIT_USAGE_ERROR, base_parser, setup_logging
from sshlink.errors import KeyMaterialError


def main() -> int:
    parser = base_parser("Read or generate an RSA key pair", connection=False)
    parser.add_argument("path", metavar="PATH", help="private key path (public key goes to PATH.pub)")
    parser.add_argument("--bits", type=int, default=keys.DEFAULT_BITS, help="key size (default: 2048)")
    parser.add_argument("-C", "--comment", default=None, help="comment appended to the public key")
    parser.add_argument("--force", action="store_true", help="overwrite an existing key pair")
    args = parser.parse_args()
    setup_logging(args.verbose)

    if args.bits < 1024:
        print("Error: --bits must be at least 1024", file=sys.stderr)
        return EXIT_USAGE_ERROR

    try:
        if args.force:
            pair = keys.generate(args.bits, comment=args.comment)
            keys.write(args.path, pair.public_key, pair.private_key)
        else:
            pair = keys.read_or_generate(args.path, bits=args.bits, comment=args.comment)
    except KeyMaterialError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_OPERATION_ERROR

    sys.stdout.write(pair.public_key if pair.public_key.endswith("\n") else pair.public_key + "\n")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
