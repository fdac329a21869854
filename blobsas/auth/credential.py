"""
Storage account credential holder.

Holds the account identity and the HMAC signing key used to sign shared
access signatures. The key never leaves this module: callers get a signing
primitive, not the key bytes.

Author: BlobSAS Team
Date: 2026-10-18
"""

import base64
import binascii
import hashlib
import hmac
import re
from typing import Dict

from blobsas.exceptions import InvalidCredentialError


class Credential:
    """
    Immutable storage account credential.

    Account names follow Azure rules: 3-24 characters, lowercase letters
    and digits only.
    """

    ACCOUNT_NAME_PATTERN = re.compile(r'^[a-z0-9]{3,24}$')

    __slots__ = ("_account_name", "_signing_key")

    def __init__(self, account_name: str, signing_key: bytes):
        """
        Initialize credential.

        Args:
            account_name: Storage account name
            signing_key: Raw (decoded) account key bytes

        Raises:
            InvalidCredentialError: If the name is malformed or the key is empty
        """
        if not account_name or not self.ACCOUNT_NAME_PATTERN.match(account_name):
            raise InvalidCredentialError(
                f"Invalid storage account name: {account_name!r}"
            )
        if not signing_key:
            raise InvalidCredentialError("Signing key cannot be empty")
        object.__setattr__(self, "_account_name", account_name)
        object.__setattr__(self, "_signing_key", bytes(signing_key))

    def __setattr__(self, name, value):
        raise AttributeError("Credential is immutable")

    def __repr__(self) -> str:
        return f"Credential(account_name={self._account_name!r}, signing_key=***REDACTED***)"

    @property
    def account_name(self) -> str:
        """Storage account name."""
        return self._account_name

    def sign(self, data: bytes) -> bytes:
        """
        Compute HMAC-SHA256 of data with the held key.

        Args:
            data: Bytes to sign

        Returns:
            Raw digest bytes
        """
        return hmac.new(self._signing_key, data, hashlib.sha256).digest()

    @classmethod
    def from_base64_key(cls, account_name: str, account_key: str) -> "Credential":
        """
        Build a credential from a base64-encoded account key.

        Raises:
            InvalidCredentialError: If the key is not valid base64
        """
        try:
            key_bytes = base64.b64decode(account_key or "", validate=True)
        except (binascii.Error, ValueError) as exc:
            raise InvalidCredentialError("Invalid account key format") from exc
        return cls(account_name, key_bytes)

    @classmethod
    def from_connection_string(cls, connection_string: str) -> "Credential":
        """
        Build a credential from a storage connection string.

        Example:
            DefaultEndpointsProtocol=https;AccountName=myaccount;AccountKey=...;EndpointSuffix=core.windows.net
        """
        settings = parse_connection_string(connection_string)
        if "AccountName" not in settings or "AccountKey" not in settings:
            raise InvalidCredentialError(
                "Connection string must contain AccountName and AccountKey"
            )
        return cls.from_base64_key(settings["AccountName"], settings["AccountKey"])


def parse_connection_string(connection_string: str) -> Dict[str, str]:
    """
    Parse a storage connection string into its settings.

    Keys are matched case-insensitively and returned in canonical casing.
    Values may contain '=' (base64 padding), so each segment is split once.

    Raises:
        InvalidCredentialError: If a segment is not a key=value pair
    """
    canonical = {
        "defaultendpointsprotocol": "DefaultEndpointsProtocol",
        "accountname": "AccountName",
        "accountkey": "AccountKey",
        "endpointsuffix": "EndpointSuffix",
        "blobendpoint": "BlobEndpoint",
    }
    settings: Dict[str, str] = {}
    for segment in (connection_string or "").split(";"):
        segment = segment.strip()
        if not segment:
            continue
        key, sep, value = segment.partition("=")
        if not sep or not key:
            raise InvalidCredentialError(
                f"Malformed connection string segment: {key or segment!r}"
            )
        settings[canonical.get(key.lower(), key)] = value
    return settings
