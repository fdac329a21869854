"""
SAS Issuance Exceptions.

Azure-consistent exception types for shared access signature issuance.
Every error here is a local validation failure raised before any signing
or store mutation takes place.

Author: BlobSAS Team
Date: 2026-10-18
"""

from datetime import datetime
from typing import Optional


class SasError(Exception):
    """Base exception for SAS issuance errors."""

    def __init__(self, message: str, error_code: str = "InvalidInput"):
        """Initialize SAS error.

        Args:
            message: Human-readable error message
            error_code: Azure-compatible error code
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code


class InvalidCredentialError(SasError):
    """Raised when the account name or signing key is unusable."""

    def __init__(self, message: str = "Invalid storage account credential"):
        super().__init__(message, error_code="InvalidCredential")


class InvalidResourceReferenceError(SasError):
    """Raised when a resource reference cannot be signed."""

    def __init__(self, message: str):
        super().__init__(message, error_code="InvalidResourceName")


class InvalidPolicyWindowError(SasError):
    """Raised when an expiry time is not strictly after its start time."""

    def __init__(self, start: datetime, expiry: datetime, policy_id: Optional[str] = None):
        """Initialize invalid window error.

        Args:
            start: Requested start time
            expiry: Requested expiry time
            policy_id: Stored policy the window belongs to (optional)
        """
        owner = f" for policy '{policy_id}'" if policy_id else ""
        message = (
            f"Expiry time {expiry.isoformat()} must be after "
            f"start time {start.isoformat()}{owner}"
        )
        super().__init__(message, error_code="InvalidPolicyWindow")
        self.start = start
        self.expiry = expiry
        self.policy_id = policy_id


class ExpiredWindowRequestedError(SasError):
    """Raised when an ad-hoc expiry time is not in the future."""

    def __init__(self, expiry: datetime, now: datetime):
        super().__init__(
            f"Expiry time {expiry.isoformat()} is not after issuance time {now.isoformat()}",
            error_code="ExpiredWindowRequested",
        )
        self.expiry = expiry
        self.now = now


class EmptyPermissionSetError(SasError):
    """Raised when an ad-hoc constraint grants no permissions."""

    def __init__(self, message: str = "At least one permission must be granted"):
        super().__init__(message, error_code="InvalidPermissions")


class AmbiguousConstraintError(SasError):
    """Raised when explicit constraints and a policy reference are both supplied."""

    def __init__(self, policy_id: str):
        super().__init__(
            f"Explicit constraints cannot be combined with stored policy '{policy_id}'",
            error_code="AmbiguousConstraint",
        )
        self.policy_id = policy_id


class TooManyPoliciesError(SasError):
    """Raised when a container would hold more stored policies than allowed."""

    def __init__(self, container_name: str, count: int, limit: int):
        super().__init__(
            f"Container '{container_name}' cannot hold {count} stored access "
            f"policies (limit is {limit})",
            error_code="TooManyPolicies",
        )
        self.container_name = container_name
        self.count = count
        self.limit = limit


class DuplicatePolicyIdError(SasError):
    """Raised when two stored policies in one set share an identifier."""

    def __init__(self, policy_id: str):
        super().__init__(
            f"Stored access policy '{policy_id}' is defined more than once",
            error_code="InvalidXmlDocument",
        )
        self.policy_id = policy_id


class PolicyNotFoundError(SasError):
    """Raised when a referenced stored policy does not exist on the container."""

    def __init__(self, container_name: str, policy_id: str):
        super().__init__(
            f"Stored access policy '{policy_id}' not found on container '{container_name}'",
            error_code="PolicyNotFound",
        )
        self.container_name = container_name
        self.policy_id = policy_id
