"""
Constraint Resolver

Turns caller intent (an ad-hoc window or a stored policy reference) into
the effective AccessConstraint that gets signed.

Author: BlobSAS Team
Date: 2026-10-18
"""

from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional, Union

from blobsas.exceptions import (
    AmbiguousConstraintError,
    EmptyPermissionSetError,
    ExpiredWindowRequestedError,
    InvalidPolicyWindowError,
    PolicyNotFoundError,
)

from .models import (
    AccessConstraint,
    AdHocConstraint,
    ConstraintRequest,
    PermissionSet,
    PolicyBoundConstraint,
    ResourceReference,
    SasPermission,
    to_utc,
)
from .policy_store import PolicyStore

DEFAULT_CLOCK_SKEW = timedelta(minutes=5)


def backdated_start(now: Optional[datetime] = None, skew: timedelta = DEFAULT_CLOCK_SKEW) -> datetime:
    """
    Start time set a little in the past to absorb clock skew.

    Recommended when a start time is derived from "now"; a token without a
    start time is valid immediately and needs no adjustment.
    """
    now = now or datetime.now(timezone.utc)
    return to_utc(now - skew)


class ConstraintResolver:
    """Resolves constraint requests against the policy store."""

    def __init__(self, policy_store: PolicyStore):
        self.policy_store = policy_store

    def resolve_ad_hoc(
        self, constraint: AdHocConstraint, now: Optional[datetime] = None
    ) -> AccessConstraint:
        """
        Validate an explicit window and permission set.

        Args:
            constraint: Ad-hoc request
            now: Issuance time (defaults to the current UTC time)

        Raises:
            EmptyPermissionSetError: If no permission is granted
            ExpiredWindowRequestedError: If expiry is not in the future
            InvalidPolicyWindowError: If start is not before expiry
        """
        if not constraint.permissions:
            raise EmptyPermissionSetError()

        now = to_utc(now or datetime.now(timezone.utc))
        expiry = to_utc(constraint.expiry)
        start = to_utc(constraint.start) if constraint.start is not None else None

        if expiry <= now:
            raise ExpiredWindowRequestedError(expiry, now)
        if start is not None and expiry <= start:
            raise InvalidPolicyWindowError(start, expiry)

        return AccessConstraint(start=start, expiry=expiry, permissions=constraint.permissions)

    async def resolve_policy_bound(
        self, resource: ResourceReference, constraint: PolicyBoundConstraint
    ) -> AccessConstraint:
        """
        Check that the referenced policy exists on the resource's container.

        The window and permissions stay on the service side; only the
        reference is carried into the token.

        Raises:
            PolicyNotFoundError: If the container has no such policy
        """
        policy = await self.policy_store.get_policy(resource.container_name, constraint.policy_id)
        if policy is None:
            raise PolicyNotFoundError(resource.container_name, constraint.policy_id)
        return AccessConstraint(policy_id=policy.id)

    async def resolve(
        self,
        resource: ResourceReference,
        request: ConstraintRequest,
        now: Optional[datetime] = None,
    ) -> AccessConstraint:
        if isinstance(request, PolicyBoundConstraint):
            return await self.resolve_policy_bound(resource, request)
        return self.resolve_ad_hoc(request, now)

    @staticmethod
    def build_request(
        *,
        start: Optional[datetime] = None,
        expiry: Optional[datetime] = None,
        permissions: Optional[Union[PermissionSet, str, Iterable[SasPermission]]] = None,
        policy_id: Optional[str] = None,
    ) -> ConstraintRequest:
        """
        Build a request variant from loose fields.

        Raises:
            AmbiguousConstraintError: If explicit fields and a policy id are both given
            ValueError: If neither an expiry nor a policy id is given
        """
        has_explicit = start is not None or expiry is not None or bool(permissions)

        if policy_id is not None:
            if has_explicit:
                raise AmbiguousConstraintError(policy_id)
            return PolicyBoundConstraint(policy_id=policy_id)

        if expiry is None:
            raise ValueError("An expiry time or a stored policy id is required")

        if isinstance(permissions, str):
            permissions = PermissionSet.from_string(permissions)
        elif not isinstance(permissions, PermissionSet):
            permissions = PermissionSet(frozenset(permissions or ()))

        return AdHocConstraint(expiry=expiry, permissions=permissions, start=start)
