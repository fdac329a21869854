"""
SAS Signer

Builds the canonical string to sign for a blob service SAS and computes
its HMAC-SHA256 signature with the account credential.

Author: BlobSAS Team
Date: 2026-10-18
"""

import base64

from blobsas.auth.credential import Credential
from blobsas.exceptions import InvalidResourceReferenceError

from .models import AccessConstraint, ResourceReference, SasToken, format_sas_time

DEFAULT_SAS_VERSION = "2021-06-08"


class Signer:
    """Signs access constraints against a resource path."""

    def __init__(self, credential: Credential, version: str = DEFAULT_SAS_VERSION):
        """
        Initialize signer.

        Args:
            credential: Account credential holding the signing key
            version: Signed protocol version (sv)
        """
        self.credential = credential
        self.version = version

    def string_to_sign(self, resource: ResourceReference, constraint: AccessConstraint) -> str:
        """
        Build the string to sign.

        Format (one field per line, unused fields left empty):
        canonicalizedresource\n
        signedpermissions\n
        signedstart\n
        signedexpiry\n
        signedidentifier\n
        signedresource\n
        signedversion

        A policy-bound constraint signs only its identifier; the window and
        permissions come from the stored policy at verification time.

        Raises:
            InvalidResourceReferenceError: If the resource is in another account
        """
        if resource.account_name != self.credential.account_name:
            raise InvalidResourceReferenceError(
                f"Resource belongs to account '{resource.account_name}', "
                f"credential is for '{self.credential.account_name}'"
            )

        if constraint.is_policy_bound:
            permissions, start, expiry = "", "", ""
            identifier = constraint.policy_id
        else:
            permissions = constraint.permissions.to_string()
            start = format_sas_time(constraint.start)
            expiry = format_sas_time(constraint.expiry)
            identifier = ""

        parts = [
            resource.canonical_path,
            permissions,
            start,
            expiry,
            identifier,
            resource.signed_resource.value,
            self.version,
        ]

        return "\n".join(parts)

    def compute_signature(self, string_to_sign: str) -> str:
        """
        Compute the signature.

        Signature = Base64(HMAC-SHA256(UTF8(StringToSign), AccountKey))
        """
        digest = self.credential.sign(string_to_sign.encode("utf-8"))
        return base64.b64encode(digest).decode("utf-8")

    def sign(self, resource: ResourceReference, constraint: AccessConstraint) -> SasToken:
        signature = self.compute_signature(self.string_to_sign(resource, constraint))
        return SasToken(
            signature=signature,
            constraint=constraint,
            resource=resource,
            version=self.version,
        )
