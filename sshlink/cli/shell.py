"""sshlink-shell -- Interactive login shell on a remote host."""

import sys

from sshlink.cli._common import (
    EXIT_INTERRUPTED,
    EXIT_OPERATION_ERROR,
    EXIT_USAGE_ERROR,
    base_parser,
    make_client,
    setup_logging,
)
from sshlink.errors import SessionError


def main() -> int:
    parser = base_parser("Open an interactive shell on a remote host")
    parser.add_argument("target", metavar="[USER@]HOST", help="remote host")
    args = parser.parse_args()
    setup_logging(args.verbose)

    if not sys.stdin.isatty():
        print("Error: sshlink-shell needs a terminal on stdin", file=sys.stderr)
        return EXIT_USAGE_ERROR

    try:
        client = make_client(args, args.target)
    except KeyboardInterrupt:
        return EXIT_INTERRUPTED
    except Exception as e:
        print(f"Connection error: {e}", file=sys.stderr)
        return EXIT_USAGE_ERROR

    try:
        status = client.shell()
    except SessionError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_OPERATION_ERROR
    finally:
        client.close()

    # -1 means the server sent no exit status
    return status if status >= 0 else EXIT_OPERATION_ERROR


if __name__ == "__main__":
    sys.exit(main())
