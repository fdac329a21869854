"""
Blob Storage Collaborator Interfaces

Abstract contracts the SAS issuer consumes from the storage service:
a blob store (container creation, upload, URI resolution) and the
container-level stored access policy registry.

Author: BlobSAS Team
Date: 2026-10-18
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Iterable, List, Optional

if TYPE_CHECKING:
    from blobsas.sas.models import ResourceReference, StoredPolicy


class BlobStore(ABC):
    """
    Abstract blob store.

    Implementations talk to a real storage account or keep state in memory.
    """

    @abstractmethod
    async def ensure_container(self, name: str) -> bool:
        """
        Create the container if it does not exist.

        Args:
            name: Container name

        Returns:
            True if the container was created, False if it already existed
        """
        pass

    @abstractmethod
    async def upload(self, resource: "ResourceReference", data: bytes) -> None:
        """
        Upload blob content, overwriting any existing blob.

        Args:
            resource: Blob reference (blob_name must be set)
            data: Blob content
        """
        pass

    @abstractmethod
    def resolve_uri(self, resource: "ResourceReference") -> str:
        """
        Resolve the base URI of a container or blob.

        Returns:
            URI of the form scheme://host/container[/blob], without query string
        """
        pass


class PolicyBackend(ABC):
    """
    Abstract stored access policy registry.

    Policies live in container metadata. Writes replace the entire set;
    concurrent writers are serialized by the implementation.
    """

    @abstractmethod
    async def replace_policies(
        self, container_name: str, policies: Iterable["StoredPolicy"]
    ) -> None:
        """
        Replace every stored access policy on a container.

        Raises:
            ContainerNotFoundError: If the container does not exist
        """
        pass

    @abstractmethod
    async def fetch_policy(
        self, container_name: str, policy_id: str
    ) -> Optional["StoredPolicy"]:
        """
        Look up one stored access policy.

        Returns:
            The policy, or None if no policy has that id
        """
        pass

    @abstractmethod
    async def fetch_policies(self, container_name: str) -> List["StoredPolicy"]:
        """Return every stored access policy on a container, ordered by id."""
        pass
