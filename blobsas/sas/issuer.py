"""
SAS Issuer

Entry point for shared access signature issuance. Wires the constraint
resolver, signer and token assembler around one account credential.

Issuance is pure computation apart from the stored policy lookup, so a
single issuer can be shared across threads and tasks.

Example:
    >>> backend = ContainerBackend("myaccount")
    >>> issuer = SasIssuer(credential, backend, PolicyStore(backend))
    >>> token = issuer.issue_ad_hoc_token(
    ...     ResourceReference.container("myaccount", "backup"),
    ...     AdHocConstraint(expiry=expiry, permissions=PermissionSet.from_string("wl")),
    ... )
    >>> issuer.get_sas_uri(token)
    'https://myaccount.blob.core.windows.net/backup?sv=...&sr=c&sp=wl&se=...&sig=...'

Author: BlobSAS Team
Date: 2026-10-18
"""

import logging
from datetime import datetime, timedelta
from typing import Iterable, Optional

from blobsas.auth.credential import Credential
from blobsas.core.config_manager import BlobSasConfig
from blobsas.core.logging_config import log_with_context
from blobsas.services.blob.backend import ContainerBackend
from blobsas.services.blob.interface import BlobStore

from .assembler import TokenAssembler
from .models import (
    AccessConstraint,
    AdHocConstraint,
    PolicyBoundConstraint,
    ResourceReference,
    SasToken,
    StoredPolicy,
)
from .policy_store import PolicyStore
from .resolver import DEFAULT_CLOCK_SKEW, ConstraintResolver, backdated_start
from .signer import DEFAULT_SAS_VERSION, Signer

logger = logging.getLogger(__name__)


class SasIssuer:
    """Issues service SAS tokens for containers and blobs."""

    def __init__(
        self,
        credential: Credential,
        blob_store: BlobStore,
        policy_store: PolicyStore,
        version: str = DEFAULT_SAS_VERSION,
        clock_skew: timedelta = DEFAULT_CLOCK_SKEW,
    ):
        """
        Initialize issuer.

        Args:
            credential: Account credential used for signing
            blob_store: Store used to resolve resource base URIs
            policy_store: Stored access policy registry
            version: Signed protocol version (sv)
            clock_skew: Margin used by backdated_start
        """
        self.credential = credential
        self.blob_store = blob_store
        self.policy_store = policy_store
        self.resolver = ConstraintResolver(policy_store)
        self.signer = Signer(credential, version)
        self.assembler = TokenAssembler()
        self.clock_skew = clock_skew

    @classmethod
    def from_config(cls, config: BlobSasConfig, backend: Optional[ContainerBackend] = None) -> "SasIssuer":
        """
        Build an issuer from configuration.

        Without an explicit backend, an in-memory ContainerBackend for the
        configured account is used as both blob store and policy registry.
        """
        credential = config.build_credential()
        if backend is None:
            protocol, endpoint_suffix, blob_endpoint = config.endpoint_settings()
            backend = ContainerBackend(
                credential.account_name,
                protocol=protocol,
                endpoint_suffix=endpoint_suffix,
                blob_endpoint=blob_endpoint,
            )
        policy_store = PolicyStore(backend, max_policies=config.sas.max_stored_policies)
        return cls(
            credential,
            backend,
            policy_store,
            version=config.sas.version,
            clock_skew=config.clock_skew(),
        )

    def issue_ad_hoc_token(
        self,
        resource: ResourceReference,
        constraint: AdHocConstraint,
        now: Optional[datetime] = None,
    ) -> SasToken:
        """
        Issue a token whose window and permissions travel inside it.

        Raises:
            EmptyPermissionSetError: If no permission is granted
            ExpiredWindowRequestedError: If expiry is not in the future
            InvalidPolicyWindowError: If start is not before expiry
            InvalidResourceReferenceError: If the resource is in another account
        """
        effective = self.resolver.resolve_ad_hoc(constraint, now)
        return self._sign(resource, effective)

    async def issue_policy_token(self, resource: ResourceReference, policy_id: str) -> SasToken:
        """
        Issue a token bound to a stored access policy on the resource's container.

        Raises:
            PolicyNotFoundError: If the container has no such policy
        """
        effective = await self.resolver.resolve_policy_bound(
            resource, PolicyBoundConstraint(policy_id=policy_id)
        )
        return self._sign(resource, effective)

    async def issue_token(
        self,
        resource: ResourceReference,
        *,
        start: Optional[datetime] = None,
        expiry: Optional[datetime] = None,
        permissions=None,
        policy_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> SasToken:
        """
        Issue a token from loose fields: either an explicit window or a policy id.

        Raises:
            AmbiguousConstraintError: If both are supplied
        """
        request = self.resolver.build_request(
            start=start, expiry=expiry, permissions=permissions, policy_id=policy_id
        )
        effective = await self.resolver.resolve(resource, request, now)
        return self._sign(resource, effective)

    async def set_container_policies(
        self, container_name: str, policies: Iterable[StoredPolicy]
    ) -> None:
        """
        Replace the stored access policies of a container.

        Raises:
            TooManyPoliciesError: If the set exceeds the per-container ceiling
            InvalidPolicyWindowError: If a policy expires before it starts
            DuplicatePolicyIdError: If two policies share an id
        """
        await self.policy_store.set_policies(container_name, policies)

    def backdated_start(self, now: Optional[datetime] = None) -> datetime:
        """Start time back-dated by this issuer's clock skew margin."""
        return backdated_start(now, self.clock_skew)

    def get_sas_uri(self, token: SasToken) -> str:
        """Full resource URI with the SAS query string appended."""
        return self.assembler.to_uri(token, self.blob_store.resolve_uri(token.resource))

    def _sign(self, resource: ResourceReference, constraint: AccessConstraint) -> SasToken:
        token = self.signer.sign(resource, constraint)
        log_with_context(
            logger,
            logging.INFO,
            f"Issued SAS for {resource.canonical_path}",
            signed_resource=resource.signed_resource.value,
            mode="policy" if constraint.is_policy_bound else "ad-hoc",
            policy_id=constraint.policy_id,
        )
        return token
