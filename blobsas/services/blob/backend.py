"""
Blob Storage Backend

In-memory storage backend for containers, blobs and container ACLs
(stored access policies).

Author: BlobSAS Team
Date: 2026-10-18
"""

import asyncio
import hashlib
import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional
from urllib.parse import quote

from blobsas.sas.models import ResourceReference, StoredPolicy

from .acl import parse_signed_identifiers, serialize_signed_identifiers
from .interface import BlobStore, PolicyBackend
from .models import (
    Blob,
    BlobProperties,
    Container,
    ContainerNameValidator,
    ContainerProperties,
    PublicAccessLevel,
)

logger = logging.getLogger(__name__)


class ContainerAlreadyExistsError(Exception):
    """Raised when attempting to create a container that already exists."""
    pass


class ContainerNotFoundError(Exception):
    """Raised when a container is not found."""
    pass


class InvalidContainerNameError(Exception):
    """Raised when a container name is invalid."""
    pass


class BlobNotFoundError(Exception):
    """Raised when a blob is not found."""
    pass


class ContainerBackend(BlobStore, PolicyBackend):
    """
    In-memory storage backend for one storage account.

    Manages container and blob lifecycle plus each container's ACL, which is
    held as a SignedIdentifiers document exactly as the service stores it.
    Thread-safe using asyncio locks; concurrent ACL writers are applied in
    lock order, so the last writer wins.
    """

    def __init__(
        self,
        account_name: str,
        protocol: str = "https",
        endpoint_suffix: str = "core.windows.net",
        blob_endpoint: Optional[str] = None,
    ):
        """
        Initialize the container backend.

        Args:
            account_name: Storage account name
            protocol: URI scheme for resolved URIs
            endpoint_suffix: DNS suffix of the blob endpoint
            blob_endpoint: Explicit blob endpoint, overrides protocol and suffix
        """
        self.account_name = account_name
        self.blob_endpoint = (
            blob_endpoint.rstrip("/")
            if blob_endpoint
            else f"{protocol}://{account_name}.blob.{endpoint_suffix}"
        )
        self._containers: Dict[str, Container] = {}
        self._blobs: Dict[str, Dict[str, Blob]] = {}  # container_name -> {blob_name -> Blob}
        self._acls: Dict[str, bytes] = {}  # container_name -> SignedIdentifiers XML
        self._lock = asyncio.Lock()

    # ============================================================================
    # Container Operations
    # ============================================================================

    async def create_container(
        self,
        name: str,
        metadata: Optional[Dict[str, str]] = None,
        public_access: PublicAccessLevel = PublicAccessLevel.PRIVATE,
    ) -> Container:
        """
        Create a new container.

        Raises:
            InvalidContainerNameError: If name is invalid
            ContainerAlreadyExistsError: If container already exists
        """
        is_valid, error = ContainerNameValidator.validate(name)
        if not is_valid:
            raise InvalidContainerNameError(error)

        async with self._lock:
            if name in self._containers:
                raise ContainerAlreadyExistsError(f"Container '{name}' already exists")

            container = Container(
                name=name,
                metadata=metadata or {},
                properties=ContainerProperties(
                    etag=self._generate_etag(),
                    last_modified=datetime.now(timezone.utc),
                    public_access=public_access,
                ),
            )
            self._containers[name] = container
            self._blobs[name] = {}
            logger.info(f"Created container '{name}'")
            return container

    async def ensure_container(self, name: str) -> bool:
        """Create the container if absent; returns True when it was created."""
        try:
            await self.create_container(name)
        except ContainerAlreadyExistsError:
            return False
        return True

    async def get_container(self, name: str) -> Container:
        """
        Get container by name.

        Raises:
            ContainerNotFoundError: If container not found
        """
        async with self._lock:
            if name not in self._containers:
                raise ContainerNotFoundError(f"Container '{name}' not found")
            return self._containers[name]

    async def container_exists(self, name: str) -> bool:
        async with self._lock:
            return name in self._containers

    # ============================================================================
    # Blob Operations
    # ============================================================================

    async def put_blob(
        self,
        container_name: str,
        blob_name: str,
        content: bytes,
        content_type: str = "application/octet-stream",
    ) -> Blob:
        """
        Upload a blob, replacing any existing content.

        Raises:
            ContainerNotFoundError: If container not found
        """
        async with self._lock:
            if container_name not in self._containers:
                raise ContainerNotFoundError(f"Container '{container_name}' not found")

            blob = Blob(
                name=blob_name,
                container_name=container_name,
                content=content,
                properties=BlobProperties(
                    etag=self._generate_etag(),
                    last_modified=datetime.now(timezone.utc),
                    content_length=len(content),
                    content_type=content_type,
                ),
            )
            self._blobs[container_name][blob_name] = blob
            return blob

    async def upload(self, resource: ResourceReference, data: bytes) -> None:
        if not resource.is_blob:
            raise ValueError("Upload requires a blob reference")
        await self.put_blob(resource.container_name, resource.blob_name, data)

    async def get_blob(self, container_name: str, blob_name: str) -> Blob:
        """
        Get blob by name.

        Raises:
            ContainerNotFoundError: If container not found
            BlobNotFoundError: If blob not found
        """
        async with self._lock:
            if container_name not in self._containers:
                raise ContainerNotFoundError(f"Container '{container_name}' not found")

            if blob_name not in self._blobs[container_name]:
                raise BlobNotFoundError(f"Blob '{blob_name}' not found in container '{container_name}'")

            return self._blobs[container_name][blob_name]

    def resolve_uri(self, resource: ResourceReference) -> str:
        """Resolve the base URI of a container or blob in this account."""
        uri = f"{self.blob_endpoint}/{resource.container_name}"
        if resource.is_blob:
            uri += "/" + quote(resource.blob_name, safe="/")
        return uri

    # ============================================================================
    # Container ACL Operations
    # ============================================================================

    async def replace_policies(
        self,
        container_name: str,
        policies: Iterable[StoredPolicy],
        public_access: PublicAccessLevel = PublicAccessLevel.PRIVATE,
    ) -> None:
        """
        Replace the container ACL.

        Like Set Container ACL, this overwrites every stored access policy and
        the public access level in one step.

        Raises:
            ContainerNotFoundError: If container not found
        """
        document = serialize_signed_identifiers(policies)

        async with self._lock:
            if container_name not in self._containers:
                raise ContainerNotFoundError(f"Container '{container_name}' not found")

            container = self._containers[container_name]
            self._acls[container_name] = document
            container.properties.public_access = public_access
            container.properties.etag = self._generate_etag()
            container.properties.last_modified = datetime.now(timezone.utc)

    async def fetch_policies(self, container_name: str) -> List[StoredPolicy]:
        """
        Return every stored access policy on a container.

        Raises:
            ContainerNotFoundError: If container not found
        """
        async with self._lock:
            if container_name not in self._containers:
                raise ContainerNotFoundError(f"Container '{container_name}' not found")
            document = self._acls.get(container_name)

        if document is None:
            return []
        return parse_signed_identifiers(document)

    async def fetch_policy(self, container_name: str, policy_id: str) -> Optional[StoredPolicy]:
        for policy in await self.fetch_policies(container_name):
            if policy.id == policy_id:
                return policy
        return None

    def _generate_etag(self) -> str:
        """Generate a unique ETag."""
        return hashlib.md5(uuid.uuid4().bytes).hexdigest()
