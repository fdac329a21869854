"""
Blob Storage Models

Pydantic models for the containers and blobs the SAS issuer signs against.

Author: BlobSAS Team
Date: 2026-10-18
"""

import re
from datetime import datetime
from enum import Enum
from typing import Dict, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class PublicAccessLevel(str, Enum):
    """Container public access levels."""
    PRIVATE = "private"
    BLOB = "blob"
    CONTAINER = "container"


class ContainerNameValidator:
    """
    Validates Azure Blob Storage container names.

    Rules:
    - 3-63 characters
    - Lowercase letters, numbers, hyphens only
    - Must start and end with letter or number
    - No consecutive hyphens
    """

    PATTERN = re.compile(r'^[a-z0-9]([a-z0-9-]*[a-z0-9])?$')
    MIN_LENGTH = 3
    MAX_LENGTH = 63

    @classmethod
    def validate(cls, name: str) -> tuple[bool, Optional[str]]:
        """
        Validate container name against Azure rules.

        Args:
            name: Container name to validate

        Returns:
            Tuple of (is_valid, error_message)
        """
        if not name:
            return False, "Container name cannot be empty"

        if len(name) < cls.MIN_LENGTH:
            return False, f"Container name must be at least {cls.MIN_LENGTH} characters"

        if len(name) > cls.MAX_LENGTH:
            return False, f"Container name must be at most {cls.MAX_LENGTH} characters"

        if not cls.PATTERN.match(name):
            return False, "Container name must contain only lowercase letters, numbers, and hyphens, and must start/end with letter or number"

        if '--' in name:
            return False, "Container name cannot contain consecutive hyphens"

        return True, None


class ContainerProperties(BaseModel):
    """Container properties (ETag, Last-Modified, public access)."""

    etag: str = Field(description="Entity tag for the container")
    last_modified: datetime = Field(description="Last modified timestamp")
    public_access: PublicAccessLevel = Field(default=PublicAccessLevel.PRIVATE)


class Container(BaseModel):
    """
    Blob storage container.

    Stored access policies are kept by the backend alongside the container,
    keyed by container name.
    """

    name: str = Field(description="Container name")
    metadata: Dict[str, str] = Field(default_factory=dict)
    properties: ContainerProperties

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate container name."""
        is_valid, error = ContainerNameValidator.validate(v)
        if not is_valid:
            raise ValueError(error)
        return v


class BlobProperties(BaseModel):
    """Blob content properties."""

    etag: str = Field(description="Entity tag for the blob")
    last_modified: datetime = Field(description="Last modified timestamp")
    content_length: int = Field(description="Blob size in bytes")
    content_type: str = Field(default="application/octet-stream")


class Blob(BaseModel):
    """Block blob with its content and properties."""

    name: str = Field(description="Blob name")
    container_name: str = Field(description="Parent container name")
    content: bytes = Field(description="Blob content")
    properties: BlobProperties

    model_config = ConfigDict(arbitrary_types_allowed=True)
