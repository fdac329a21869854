"""
SAS Models

Value types for shared access signature issuance: permissions, resource
references, access constraints, stored access policies and issued tokens.

Author: BlobSAS Team
Date: 2026-10-18
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import FrozenSet, Iterator, Optional, Union

from blobsas.auth.credential import Credential
from blobsas.exceptions import InvalidResourceReferenceError
from blobsas.services.blob.models import ContainerNameValidator

SAS_TIME_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def to_utc(value: datetime) -> datetime:
    """
    Normalize a timestamp to timezone-aware UTC at whole-second precision.

    Naive datetimes are taken to already be UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    return value.replace(microsecond=0)


def format_sas_time(value: Optional[datetime]) -> str:
    """Format a timestamp for the signing string and query string ('' when unset)."""
    if value is None:
        return ""
    return to_utc(value).strftime(SAS_TIME_FORMAT)


class SasPermission(str, Enum):
    """
    Blob SAS permission flags.

    Declaration order is the canonical signing order (most to least privileged).
    """

    READ = "r"
    WRITE = "w"
    DELETE = "d"
    LIST = "l"

    @property
    def flag(self) -> int:
        """Bit value of this permission."""
        return 1 << list(SasPermission).index(self)


class SignedResource(str, Enum):
    """Signed resource type (sr)."""

    CONTAINER = "c"
    BLOB = "b"


@dataclass(frozen=True)
class PermissionSet:
    """
    Immutable, order-insensitive set of SAS permissions.

    Example:
        >>> PermissionSet.of(SasPermission.LIST, SasPermission.WRITE).to_string()
        'wl'
    """

    permissions: FrozenSet[SasPermission] = field(default_factory=frozenset)

    def __post_init__(self):
        object.__setattr__(self, "permissions", frozenset(SasPermission(p) for p in self.permissions))

    @classmethod
    def of(cls, *permissions: SasPermission) -> "PermissionSet":
        return cls(frozenset(permissions))

    @classmethod
    def from_string(cls, letters: str) -> "PermissionSet":
        """
        Parse a permission string such as 'rwl'.

        Raises:
            ValueError: If a letter is not a known permission
        """
        try:
            return cls(frozenset(SasPermission(letter) for letter in letters))
        except ValueError as exc:
            raise ValueError(f"Invalid permission string: {letters!r}") from exc

    @classmethod
    def from_flags(cls, flags: int) -> "PermissionSet":
        return cls(frozenset(p for p in SasPermission if flags & p.flag))

    def to_string(self) -> str:
        """Canonical permission string in signing order."""
        return "".join(p.value for p in SasPermission if p in self.permissions)

    def to_flags(self) -> int:
        result = 0
        for permission in self.permissions:
            result |= permission.flag
        return result

    def __contains__(self, permission: object) -> bool:
        return permission in self.permissions

    def __iter__(self) -> Iterator[SasPermission]:
        return (p for p in SasPermission if p in self.permissions)

    def __len__(self) -> int:
        return len(self.permissions)

    def __or__(self, other: "PermissionSet") -> "PermissionSet":
        return PermissionSet(self.permissions | other.permissions)

    def __str__(self) -> str:
        return self.to_string()


@dataclass(frozen=True)
class ResourceReference:
    """
    Reference to a container (blob_name is None) or a blob inside it.

    Raises:
        InvalidResourceReferenceError: If any name component is malformed
    """

    account_name: str
    container_name: str
    blob_name: Optional[str] = None

    MAX_BLOB_NAME_LENGTH = 1024

    def __post_init__(self):
        if not self.account_name or not Credential.ACCOUNT_NAME_PATTERN.match(self.account_name):
            raise InvalidResourceReferenceError(
                f"Invalid storage account name: {self.account_name!r}"
            )
        is_valid, error = ContainerNameValidator.validate(self.container_name)
        if not is_valid:
            raise InvalidResourceReferenceError(error)
        if self.blob_name is not None:
            if not self.blob_name:
                raise InvalidResourceReferenceError("Blob name cannot be empty")
            if len(self.blob_name) > self.MAX_BLOB_NAME_LENGTH:
                raise InvalidResourceReferenceError(
                    f"Blob name must be at most {self.MAX_BLOB_NAME_LENGTH} characters"
                )
            if self.blob_name.endswith("/"):
                raise InvalidResourceReferenceError("Blob name cannot end with '/'")

    @classmethod
    def container(cls, account_name: str, container_name: str) -> "ResourceReference":
        return cls(account_name, container_name)

    @classmethod
    def blob(cls, account_name: str, container_name: str, blob_name: str) -> "ResourceReference":
        return cls(account_name, container_name, blob_name)

    @property
    def is_blob(self) -> bool:
        return self.blob_name is not None

    @property
    def signed_resource(self) -> SignedResource:
        return SignedResource.BLOB if self.is_blob else SignedResource.CONTAINER

    @property
    def canonical_path(self) -> str:
        """Canonicalized resource used in the string to sign."""
        path = f"/blob/{self.account_name}/{self.container_name}"
        if self.is_blob:
            path += f"/{self.blob_name}"
        return path

    def child(self, blob_name: str) -> "ResourceReference":
        """Reference to a blob in this resource's container."""
        return ResourceReference(self.account_name, self.container_name, blob_name)


@dataclass(frozen=True)
class AdHocConstraint:
    """Explicit time window and permissions carried inside the token."""

    expiry: datetime
    permissions: PermissionSet
    start: Optional[datetime] = None


@dataclass(frozen=True)
class PolicyBoundConstraint:
    """Reference to a stored access policy that supplies the window and permissions."""

    policy_id: str


ConstraintRequest = Union[AdHocConstraint, PolicyBoundConstraint]


@dataclass(frozen=True)
class AccessConstraint:
    """
    Effective constraint set ready for signing.

    Ad-hoc constraints carry start/expiry/permissions; policy-bound ones carry
    only policy_id, the rest being resolved by the service at verification time.
    """

    start: Optional[datetime] = None
    expiry: Optional[datetime] = None
    permissions: PermissionSet = field(default_factory=PermissionSet)
    policy_id: Optional[str] = None

    @property
    def is_policy_bound(self) -> bool:
        return self.policy_id is not None


@dataclass(frozen=True)
class StoredPolicy:
    """
    Stored access policy (signed identifier) persisted on a container.

    Times are normalized to UTC at whole-second precision.
    """

    id: str
    expiry: datetime
    permissions: PermissionSet
    start: Optional[datetime] = None

    MAX_ID_LENGTH = 64

    def __post_init__(self):
        if not self.id or len(self.id) > self.MAX_ID_LENGTH:
            raise ValueError(
                f"Stored policy id must be 1-{self.MAX_ID_LENGTH} characters: {self.id!r}"
            )
        object.__setattr__(self, "expiry", to_utc(self.expiry))
        if self.start is not None:
            object.__setattr__(self, "start", to_utc(self.start))

    @property
    def has_valid_window(self) -> bool:
        return self.start is None or self.expiry > self.start


@dataclass(frozen=True)
class SasToken:
    """Issued shared access signature."""

    signature: str  # sig, base64
    constraint: AccessConstraint
    resource: ResourceReference
    version: str  # sv

    @property
    def signed_resource(self) -> SignedResource:
        return self.resource.signed_resource

