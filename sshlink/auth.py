"""
Authentication proofs - PasswordAuth, KeyAuth and KerberosAuth.

A proof is offered to the SSH transport during connection negotiation.
Several proofs may be combined into one ordered tuple; the connection layer
offers them in order until one succeeds.

Example:
    from sshlink import auth

    proofs = auth.combine(
        auth.key_without_passphrase(open("id_rsa").read()),
        auth.password("fallback"),
    )
"""

import io
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Sequence, Union

import paramiko

from sshlink.errors import KeyDecodeError


# Key classes tried in order when parsing PEM/OpenSSH private key text
_KEY_CLASSES: tuple = (paramiko.RSAKey, paramiko.ECDSAKey, paramiko.Ed25519Key)


class Auth(ABC):
    """Base class for authentication proofs.

    Proofs are reusable across connections. They represent "who you are",
    not "what you can do".
    """

    @property
    @abstractmethod
    def auth_type(self) -> str:
        """Type identifier (e.g., 'password', 'publickey', 'gssapi')."""
        ...

    @abstractmethod
    def authenticate(self, transport: paramiko.Transport, username: str, hostname: str) -> None:
        """Authenticate an already-negotiated transport.

        Raises:
            paramiko.AuthenticationException: If the server rejects the proof
        """
        ...


@dataclass(frozen=True)
class PasswordAuth(Auth):
    """Plaintext password proof.

    Note:
        Password is excluded from __repr__ to prevent credential leaks in logs.
    """

    password: str = field(repr=False)

    @property
    def auth_type(self) -> str:
        return "password"

    def authenticate(self, transport: paramiko.Transport, username: str, hostname: str) -> None:
        transport.auth_password(username, self.password)


@dataclass(frozen=True)
class KeyAuth(Auth):
    """Public-key proof backed by an already-decoded private key."""

    pkey: paramiko.PKey = field(repr=False)

    @property
    def auth_type(self) -> str:
        return "publickey"

    @property
    def fingerprint(self) -> str:
        return self.pkey.get_fingerprint().hex()

    def authenticate(self, transport: paramiko.Transport, username: str, hostname: str) -> None:
        transport.auth_publickey(username, self.pkey)


@dataclass(frozen=True)
class KerberosAuth(Auth):
    """GSSAPI (Kerberos) proof using the system credential cache.

    Requires:
        - Valid Kerberos ticket (run `kinit` first)
        - gssapi library (`pip install sshlink[kerberos]`)

    Note:
        gssapi availability is validated at construction time (fail fast).
    """

    delegate_credentials: bool = True

    def __post_init__(self):
        try:
            import gssapi  # noqa: F401
        except (ImportError, OSError) as exc:
            raise ImportError(
                "gssapi library required for Kerberos authentication. Install with: pip install gssapi"
            ) from exc

    @property
    def auth_type(self) -> str:
        return "gssapi"

    @property
    def principal(self) -> str:
        """Principal name from the credential cache (e.g. user@EXAMPLE.ORG)."""
        import gssapi

        creds = gssapi.Credentials(usage="initiate")
        return str(creds.name)

    def authenticate(self, transport: paramiko.Transport, username: str, hostname: str) -> None:
        transport.auth_gssapi_with_mic(username, hostname, gss_deleg_creds=self.delegate_credentials)


# ---------------------------------------------------------------------------
# Proof constructors
# ---------------------------------------------------------------------------


def password(secret: str) -> PasswordAuth:
    """Build a password proof."""
    return PasswordAuth(password=secret)


def _parse_private_key(private_key: str, passphrase: Optional[str]) -> paramiko.PKey:
    last_error: Optional[Exception] = None
    for key_cls in _KEY_CLASSES:
        try:
            return key_cls.from_private_key(io.StringIO(private_key), password=passphrase)
        except paramiko.PasswordRequiredException as e:
            raise KeyDecodeError("private key is passphrase-protected") from e
        except (paramiko.SSHException, ValueError, TypeError) as e:
            last_error = e
    raise KeyDecodeError(f"failed parsing private key: {last_error}") from last_error


def key_with_passphrase(private_key: str, passphrase: str) -> KeyAuth:
    """Decrypt passphrase-protected key text and build a public-key proof.

    Raises:
        KeyDecodeError: If the key is malformed or the passphrase is wrong
    """
    return KeyAuth(pkey=_parse_private_key(private_key, passphrase))


def key_without_passphrase(private_key: str) -> KeyAuth:
    """Parse unencrypted key text and build a public-key proof.

    Raises:
        KeyDecodeError: If the key is malformed or is in fact passphrase-protected
    """
    return KeyAuth(pkey=_parse_private_key(private_key, None))


ProofSpec = Union[Auth, Sequence[Auth]]


def combine(*proofs: ProofSpec) -> tuple[Auth, ...]:
    """Flatten proofs and sequences of proofs into one ordered tuple.

    Raises:
        TypeError: If an element is not an Auth
    """
    result: list[Auth] = []
    for p in proofs:
        if isinstance(p, Auth):
            result.append(p)
        elif isinstance(p, (list, tuple)):
            result.extend(combine(*p))
        else:
            raise TypeError(f"Expected Auth or sequence of Auth, got {type(p).__name__}")
    return tuple(result)


__all__ = [
    "Auth",
    "PasswordAuth",
    "KeyAuth",
    "KerberosAuth",
    "password",
    "key_with_passphrase",
    "key_without_passphrase",
    "combine",
]
