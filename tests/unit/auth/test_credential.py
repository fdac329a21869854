"""Tests for the storage account credential holder."""

import base64
import hashlib
import hmac

import pytest

from blobsas.auth.credential import Credential, parse_connection_string
from blobsas.exceptions import InvalidCredentialError

KEY_BYTES = b"test-account-key-12345678901234567890"


@pytest.fixture
def account_key():
    """Generate a test account key."""
    return base64.b64encode(KEY_BYTES).decode()


class TestCredential:
    """Test credential construction and signing."""

    def test_sign_is_hmac_sha256(self):
        """Test signing primitive matches HMAC-SHA256 with the key."""
        credential = Credential("testaccount", KEY_BYTES)

        expected = hmac.new(KEY_BYTES, b"payload", hashlib.sha256).digest()
        assert credential.sign(b"payload") == expected

    def test_account_name_exposed(self):
        credential = Credential("testaccount", KEY_BYTES)
        assert credential.account_name == "testaccount"

    def test_empty_key_rejected(self):
        with pytest.raises(InvalidCredentialError) as exc_info:
            Credential("testaccount", b"")
        assert exc_info.value.error_code == "InvalidCredential"

    @pytest.mark.parametrize("name", ["", "ab", "Upper", "has-hyphen", "a" * 25])
    def test_malformed_account_name_rejected(self, name):
        with pytest.raises(InvalidCredentialError):
            Credential(name, KEY_BYTES)

    def test_immutable(self):
        credential = Credential("testaccount", KEY_BYTES)
        with pytest.raises(AttributeError):
            credential.account_name = "other"

    def test_repr_redacts_key(self, account_key):
        credential = Credential("testaccount", KEY_BYTES)
        text = repr(credential)
        assert "REDACTED" in text
        assert account_key not in text
        assert KEY_BYTES.decode() not in text

    def test_from_base64_key(self, account_key):
        credential = Credential.from_base64_key("testaccount", account_key)
        assert credential.sign(b"x") == Credential("testaccount", KEY_BYTES).sign(b"x")

    def test_from_base64_key_invalid(self):
        with pytest.raises(InvalidCredentialError, match="Invalid account key format"):
            Credential.from_base64_key("testaccount", "not base64!!")


class TestConnectionString:
    """Test connection string parsing."""

    def test_from_connection_string(self, account_key):
        conn_str = (
            "DefaultEndpointsProtocol=https;AccountName=testaccount;"
            f"AccountKey={account_key};EndpointSuffix=core.windows.net"
        )

        credential = Credential.from_connection_string(conn_str)

        assert credential.account_name == "testaccount"
        assert credential.sign(b"x") == Credential("testaccount", KEY_BYTES).sign(b"x")

    def test_keys_are_case_insensitive_and_padding_kept(self):
        settings = parse_connection_string("accountname=acct;accountkey=YWJj==;")

        assert settings == {"AccountName": "acct", "AccountKey": "YWJj=="}

    def test_missing_key_rejected(self):
        with pytest.raises(InvalidCredentialError, match="AccountName and AccountKey"):
            Credential.from_connection_string("AccountName=testaccount")

    def test_malformed_segment_rejected(self):
        with pytest.raises(InvalidCredentialError, match="Malformed"):
            parse_connection_string("AccountName=testaccount;garbage")
