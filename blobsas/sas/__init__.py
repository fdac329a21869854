"""SAS issuance module for BlobSAS.

This module provides constraint resolution, signing and token assembly for
blob service shared access signatures, along with the stored access policy
store they can be bound to.
"""

from blobsas.sas.models import (
    AccessConstraint,
    AdHocConstraint,
    ConstraintRequest,
    PermissionSet,
    PolicyBoundConstraint,
    ResourceReference,
    SasPermission,
    SasToken,
    SignedResource,
    StoredPolicy,
    format_sas_time,
)
from blobsas.sas.policy_store import MAX_STORED_POLICIES, PolicyStore
from blobsas.sas.resolver import ConstraintResolver, backdated_start
from blobsas.sas.signer import DEFAULT_SAS_VERSION, Signer
from blobsas.sas.assembler import TokenAssembler
from blobsas.sas.issuer import SasIssuer

__all__ = [
    "AccessConstraint",
    "AdHocConstraint",
    "ConstraintRequest",
    "PermissionSet",
    "PolicyBoundConstraint",
    "ResourceReference",
    "SasPermission",
    "SasToken",
    "SignedResource",
    "StoredPolicy",
    "format_sas_time",
    "MAX_STORED_POLICIES",
    "PolicyStore",
    "ConstraintResolver",
    "backdated_start",
    "DEFAULT_SAS_VERSION",
    "Signer",
    "TokenAssembler",
    "SasIssuer",
]
