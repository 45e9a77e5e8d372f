"""sshlink-cp -- Copy files and directory trees to or from a remote host.

Exactly one of SRC/DEST is remote, written ``[USER@]HOST:PATH``:

    sshlink-cp ./build deploy@web1:/srv/app      # upload
    sshlink-cp web1:/var/log/app ./logs          # download
"""

import os
import sys
from typing import Optional

from sshlink.cli._common import (
    EXIT_INTERRUPTED,
    EXIT_OK,
    EXIT_OPERATION_ERROR,
    EXIT_USAGE_ERROR,
    base_parser,
    make_client,
    setup_logging,
)
from sshlink.errors import TransferError


def parse_remote(arg: str) -> Optional[tuple[str, str]]:
    """Split ``[user@]host:path`` into (target, path); None for local paths.

    A colon after the first slash, or a Windows drive letter, is local.
    """
    colon = arg.find(":")
    if colon <= 0:
        return None
    slash = arg.find("/")
    if slash != -1 and slash < colon:
        return None
    if colon == 1 and os.name == "nt":
        return None
    return arg[:colon], arg[colon + 1 :] or "."


def main() -> int:
    parser = base_parser("Copy files to or from a remote host")
    parser.add_argument("src", metavar="SRC", help="source path ([USER@]HOST:PATH for remote)")
    parser.add_argument("dest", metavar="DEST", help="destination path ([USER@]HOST:PATH for remote)")
    args = parser.parse_args()
    setup_logging(args.verbose)

    remote_src = parse_remote(args.src)
    remote_dest = parse_remote(args.dest)
    if (remote_src is None) == (remote_dest is None):
        print("Error: exactly one of SRC and DEST must be remote (HOST:PATH)", file=sys.stderr)
        return EXIT_USAGE_ERROR

    target = remote_src[0] if remote_src else remote_dest[0]  # type: ignore[index]

    try:
        client = make_client(args, target)
    except KeyboardInterrupt:
        return EXIT_INTERRUPTED
    except Exception as e:
        print(f"Connection error: {e}", file=sys.stderr)
        return EXIT_USAGE_ERROR

    try:
        if remote_dest is not None:
            client.upload(args.src, remote_dest[1])
        else:
            client.download(remote_src[1], args.dest)  # type: ignore[index]
    except KeyboardInterrupt:
        return EXIT_INTERRUPTED
    except TransferError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_OPERATION_ERROR
    finally:
        client.close()

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
