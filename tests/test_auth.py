"""
Unit tests for sshlink.auth module.

Tests cover:
- Auth base class
- PasswordAuth / KeyAuth / KerberosAuth behaviour against a mock transport
- Private key parsing (plain, encrypted, malformed)
- combine() flattening and validation
"""

import io
from unittest import mock

import paramiko
import pytest

from sshlink import auth
from sshlink.auth import Auth, KerberosAuth, KeyAuth, PasswordAuth
from sshlink.errors import KeyDecodeError
from tests.fakes import MockGSSAPIModule


@pytest.fixture(scope="module")
def rsa_key():
    return paramiko.RSAKey.generate(1024)


def _pem(key, passphrase=None) -> str:
    buf = io.StringIO()
    key.write_private_key(buf, password=passphrase)
    return buf.getvalue()


class TestAuthAbstract:
    def test_auth_is_abstract(self):
        with pytest.raises(TypeError, match="Can't instantiate abstract class"):
            Auth()

    @pytest.mark.parametrize("cls", [PasswordAuth, KeyAuth, KerberosAuth])
    def test_concrete_proofs_are_auth(self, cls):
        assert issubclass(cls, Auth)


class TestPasswordAuth:
    def test_auth_type(self):
        assert auth.password("pw").auth_type == "password"

    def test_authenticate_uses_password(self):
        transport = mock.MagicMock(spec=paramiko.Transport)
        auth.password("s3cret").authenticate(transport, "deploy", "host")
        transport.auth_password.assert_called_once_with("deploy", "s3cret")

    def test_password_not_in_repr(self):
        """Password must never leak into logs via repr."""
        assert "s3cret" not in repr(auth.password("s3cret"))

    def test_frozen(self):
        proof = auth.password("pw")
        with pytest.raises(AttributeError):
            proof.password = "other"


class TestKeyParsing:
    def test_key_without_passphrase(self, rsa_key):
        proof = auth.key_without_passphrase(_pem(rsa_key))
        assert proof.auth_type == "publickey"
        assert proof.pkey.get_base64() == rsa_key.get_base64()

    def test_key_with_passphrase(self, rsa_key):
        proof = auth.key_with_passphrase(_pem(rsa_key, "hunter2"), "hunter2")
        assert proof.pkey.get_base64() == rsa_key.get_base64()

    def test_encrypted_key_without_passphrase_raises(self, rsa_key):
        with pytest.raises(KeyDecodeError, match="passphrase-protected"):
            auth.key_without_passphrase(_pem(rsa_key, "hunter2"))

    def test_wrong_passphrase_raises(self, rsa_key):
        with pytest.raises(KeyDecodeError):
            auth.key_with_passphrase(_pem(rsa_key, "hunter2"), "wrong")

    def test_malformed_key_raises(self):
        with pytest.raises(KeyDecodeError, match="failed parsing private key"):
            auth.key_without_passphrase("this is not a key")

    def test_ecdsa_key_parsed(self):
        key = paramiko.ECDSAKey.generate()
        proof = auth.key_without_passphrase(_pem(key))
        assert isinstance(proof.pkey, paramiko.ECDSAKey)

    def test_fingerprint(self, rsa_key):
        proof = auth.key_without_passphrase(_pem(rsa_key))
        assert proof.fingerprint == rsa_key.get_fingerprint().hex()

    def test_authenticate_uses_publickey(self, rsa_key):
        transport = mock.MagicMock(spec=paramiko.Transport)
        proof = auth.KeyAuth(pkey=rsa_key)
        proof.authenticate(transport, "deploy", "host")
        transport.auth_publickey.assert_called_once_with("deploy", rsa_key)


class TestKerberosAuth:
    def test_requires_gssapi(self):
        """ImportError when gssapi is not installed."""
        try:
            import gssapi  # noqa: F401

            pytest.skip("gssapi is installed")
        except ImportError:
            pass

        with pytest.raises(ImportError, match="gssapi library required"):
            KerberosAuth()

    def test_auth_type(self, mock_gssapi):
        assert KerberosAuth().auth_type == "gssapi"

    def test_principal(self, mock_gssapi):
        assert KerberosAuth().principal == "user@EXAMPLE.ORG"

    def test_authenticate_delegates_by_default(self, mock_gssapi):
        transport = mock.MagicMock(spec=paramiko.Transport)
        KerberosAuth().authenticate(transport, "deploy", "host.example.com")
        transport.auth_gssapi_with_mic.assert_called_once_with("deploy", "host.example.com", gss_deleg_creds=True)

    def test_authenticate_without_delegation(self):
        with mock.patch.dict("sys.modules", {"gssapi": MockGSSAPIModule()}):
            proof = KerberosAuth(delegate_credentials=False)
        transport = mock.MagicMock(spec=paramiko.Transport)
        proof.authenticate(transport, "deploy", "host")
        transport.auth_gssapi_with_mic.assert_called_once_with("deploy", "host", gss_deleg_creds=False)


class TestCombine:
    def test_single_proof(self):
        p = auth.password("a")
        assert auth.combine(p) == (p,)

    def test_order_preserved(self):
        a, b, c = auth.password("a"), auth.password("b"), auth.password("c")
        assert auth.combine(a, [b, c]) == (a, b, c)

    def test_nested_sequences_flattened(self):
        a, b = auth.password("a"), auth.password("b")
        assert auth.combine((a, [b])) == (a, b)

    def test_empty(self):
        assert auth.combine() == ()

    def test_bad_type_raises(self):
        with pytest.raises(TypeError, match="Expected Auth or sequence of Auth, got str"):
            auth.combine("password")
