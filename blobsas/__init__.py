"""
BlobSAS: Shared Access Signature issuance for blob storage

Issues capability-scoped, time-bounded SAS tokens for containers and blobs
without handing out the account key.
"""

__version__ = "0.1.0"

from .sas.issuer import SasIssuer

__all__ = ["SasIssuer", "__version__"]
