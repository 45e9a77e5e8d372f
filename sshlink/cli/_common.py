"""Shared CLI infrastructure for sshlink-run/sshlink-shell/sshlink-cp/sshlink-keygen."""

import argparse
import logging
import os
import sys
from typing import Optional

from sshlink import auth, hostkeys
from sshlink.client import Client, ConnectionOptions, connect
from sshlink.errors import TransferLayerError

# Exit codes
EXIT_OK = 0
EXIT_OPERATION_ERROR = 1
EXIT_USAGE_ERROR = 2
EXIT_INTERRUPTED = 130


def base_parser(description: str, *, connection: bool = True) -> argparse.ArgumentParser:
    """Create ArgumentParser with common flags shared by all CLI tools."""
    parser = argparse.ArgumentParser(description=description)
    if connection:
        parser.add_argument("-p", "--port", type=int, default=22, help="SSH port (default: 22)")
        parser.add_argument("-l", "--user", default=None, help="remote username (default: local user)")
        parser.add_argument("-i", "--identity", default=None, help="private key file")
        parser.add_argument(
            "--passphrase-env", default=None, metavar="VAR", help="environment variable holding the key passphrase"
        )
        parser.add_argument(
            "--password-env", default=None, metavar="VAR", help="environment variable holding the password"
        )
        parser.add_argument("-k", "--kerberos", action="store_true", help="authenticate with GSSAPI/Kerberos")
        parser.add_argument("--insecure", action="store_true", help="accept any host key (no verification)")
        parser.add_argument("--known-hosts", default=None, metavar="FILE", help="known_hosts file")
        parser.add_argument("--timeout", type=float, default=None, help="dial timeout in seconds (default: 30)")
        parser.add_argument("--attempts", type=int, default=None, help="connection attempts (default: 3)")
        parser.add_argument("--retry-delay", type=float, default=None, help="seconds between attempts (default: 10)")
    parser.add_argument("-v", "--verbose", action="store_true", help="verbose output")
    return parser


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _env_secret(var: Optional[str]) -> Optional[str]:
    if var is None:
        return None
    value = os.environ.get(var)
    if value is None:
        raise ValueError(f"Environment variable {var} is not set")
    return value


def resolve_auth(args) -> list[auth.Auth]:
    """Build the ordered proof list from parsed args: Kerberos, key, password."""
    proofs: list[auth.Auth] = []
    if args.kerberos:
        proofs.append(auth.KerberosAuth())
    if args.identity:
        with open(os.path.expanduser(args.identity), "r") as f:
            key_text = f.read()
        passphrase = _env_secret(args.passphrase_env)
        if passphrase is not None:
            proofs.append(auth.key_with_passphrase(key_text, passphrase))
        else:
            proofs.append(auth.key_without_passphrase(key_text))
    secret = _env_secret(args.password_env)
    if secret is not None:
        proofs.append(auth.password(secret))
    if not proofs:
        raise ValueError("no credentials given (use -i, -k or --password-env)")
    return proofs


def split_target(target: str) -> tuple[Optional[str], str]:
    """Split ``[user@]host`` into (user, host)."""
    if "@" in target:
        user, host = target.rsplit("@", 1)
        return user, host
    return None, target


def make_options(args, target: str) -> ConnectionOptions:
    """Create ConnectionOptions for ``[user@]host`` from parsed args."""
    user, host = split_target(target)
    if args.insecure:
        callback = hostkeys.accept_any()
    else:
        callback = hostkeys.known_hosts(args.known_hosts)
    return ConnectionOptions(
        host=host,
        port=args.port,
        username=args.user or user,
        auth=resolve_auth(args),
        host_key_callback=callback,
        timeout=args.timeout,
        connect_attempts=args.attempts,
        retry_delay=args.retry_delay,
    )


def make_client(args, target: str) -> Client:
    """Connect, closing the half-built client if SFTP could not be layered."""
    try:
        return connect(make_options(args, target))
    except TransferLayerError as e:
        if e.client is not None:
            e.client.close()
        raise
