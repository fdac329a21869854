"""
Stored Access Policy Store

Thin proxy over the container ACL held by the storage service. Validates a
policy set locally, then hands the whole set to the backing store in a
single replace call, so a rejected set never reaches the store.

Races between concurrent writers are resolved by the backing store
(last writer wins for the in-memory backend); no locking is done here.

Author: BlobSAS Team
Date: 2026-10-18
"""

import logging
from typing import Iterable, List, Optional

from blobsas.exceptions import (
    DuplicatePolicyIdError,
    InvalidPolicyWindowError,
    TooManyPoliciesError,
)
from blobsas.services.blob.interface import PolicyBackend

from .models import StoredPolicy

logger = logging.getLogger(__name__)

# Service-imposed ceiling on signed identifiers per container
MAX_STORED_POLICIES = 5


class PolicyStore:
    """Manages the stored access policies of containers."""

    def __init__(self, backend: PolicyBackend, max_policies: int = MAX_STORED_POLICIES):
        """
        Initialize policy store.

        Args:
            backend: Registry that persists policies in container metadata
            max_policies: Maximum stored policies per container
        """
        self.backend = backend
        self.max_policies = max_policies

    def validate(self, container_name: str, policies: List[StoredPolicy]) -> None:
        """
        Validate a complete policy set without touching the store.

        Raises:
            TooManyPoliciesError: If the set exceeds the ceiling
            DuplicatePolicyIdError: If two policies share an id
            InvalidPolicyWindowError: If a policy expires before it starts
        """
        if len(policies) > self.max_policies:
            raise TooManyPoliciesError(container_name, len(policies), self.max_policies)

        seen = set()
        for policy in policies:
            if policy.id in seen:
                raise DuplicatePolicyIdError(policy.id)
            seen.add(policy.id)
            if not policy.has_valid_window:
                raise InvalidPolicyWindowError(policy.start, policy.expiry, policy.id)

    async def set_policies(self, container_name: str, policies: Iterable[StoredPolicy]) -> None:
        """
        Replace every stored access policy on a container.

        Either the whole set is applied or, on any validation error, the
        container keeps its previous policies.
        """
        policy_list = list(policies)
        self.validate(container_name, policy_list)

        await self.backend.replace_policies(container_name, policy_list)
        logger.info(
            f"Replaced stored access policies on container '{container_name}' "
            f"({len(policy_list)} policies)"
        )

    async def get_policy(self, container_name: str, policy_id: str) -> Optional[StoredPolicy]:
        """Look up a policy; None when the container has no policy with that id."""
        return await self.backend.fetch_policy(container_name, policy_id)

    async def list_policies(self, container_name: str) -> List[StoredPolicy]:
        return await self.backend.fetch_policies(container_name)
