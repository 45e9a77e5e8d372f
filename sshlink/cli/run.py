"""sshlink-run -- Run a command on a remote host."""

import shlex
import sys

from sshlink.cli._common import (
    EXIT_INTERRUPTED,
    EXIT_OK,
    EXIT_OPERATION_ERROR,
    EXIT_USAGE_ERROR,
    base_parser,
    make_client,
    setup_logging,
)
from sshlink.errors import SessionError
from sshlink.session import Command


def parse_env(pairs: list[str]) -> dict[str, str]:
    """Parse NAME=VALUE strings."""
    env = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name:
            raise ValueError(f"Invalid environment assignment: {pair!r} (expected NAME=VALUE)")
        env[name] = value
    return env


def main() -> int:
    parser = base_parser("Run a command on a remote host")
    parser.add_argument("target", metavar="[USER@]HOST", help="remote host")
    parser.add_argument("command", nargs="+", metavar="CMD", help="command and arguments")
    parser.add_argument(
        "-e", "--env", action="append", default=[], metavar="NAME=VALUE", help="remote environment variable"
    )
    parser.add_argument("--no-pty", action="store_true", help="do not request a pseudo-terminal")
    args = parser.parse_args()
    setup_logging(args.verbose)

    try:
        env = parse_env(args.env)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE_ERROR

    cmd = args.command[0] if len(args.command) == 1 else shlex.join(args.command)
    command = Command(
        cmd=cmd,
        env=env,
        stdin=None if sys.stdin.isatty() else sys.stdin.buffer,
        stdout=sys.stdout.buffer,
        stderr=sys.stderr.buffer,
        pty=not args.no_pty,
    )

    try:
        client = make_client(args, args.target)
    except KeyboardInterrupt:
        return EXIT_INTERRUPTED
    except Exception as e:
        print(f"Connection error: {e}", file=sys.stderr)
        return EXIT_USAGE_ERROR

    try:
        client.run(command)
    except KeyboardInterrupt:
        return EXIT_INTERRUPTED
    except SessionError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_OPERATION_ERROR
    finally:
        client.close()

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
