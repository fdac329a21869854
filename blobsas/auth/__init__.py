"""
BlobSAS Authentication Module.

Holds the storage account credential used to sign shared access signatures.

Author: BlobSAS Team
Date: 2026-10-18
"""

from blobsas.auth.credential import Credential, parse_connection_string

__all__ = [
    "Credential",
    "parse_connection_string",
]
