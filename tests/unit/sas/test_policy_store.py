"""Tests for the stored access policy store."""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from blobsas.exceptions import (
    DuplicatePolicyIdError,
    InvalidPolicyWindowError,
    TooManyPoliciesError,
)
from blobsas.sas.models import PermissionSet, StoredPolicy
from blobsas.sas.policy_store import MAX_STORED_POLICIES, PolicyStore
from blobsas.services.blob.backend import ContainerBackend, ContainerNotFoundError

NOW = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)


def make_policy(policy_id: str, hours: int = 10, start=None) -> StoredPolicy:
    return StoredPolicy(
        id=policy_id,
        start=start,
        expiry=NOW + timedelta(hours=hours),
        permissions=PermissionSet.from_string("rwl"),
    )


@pytest_asyncio.fixture
async def backend():
    """Create a backend with a 'backup' container."""
    backend = ContainerBackend("testaccount")
    await backend.create_container("backup")
    return backend


@pytest.fixture
def store(backend):
    return PolicyStore(backend)


class TestSetPolicies:
    """Test full-set replacement semantics."""

    @pytest.mark.asyncio
    async def test_set_and_get(self, store):
        await store.set_policies("backup", [make_policy("tutorialpolicy")])

        policy = await store.get_policy("backup", "tutorialpolicy")

        assert policy == make_policy("tutorialpolicy")

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, store):
        assert await store.get_policy("backup", "nope") is None

    @pytest.mark.asyncio
    async def test_replace_is_full_overwrite(self, store):
        await store.set_policies("backup", [make_policy("a"), make_policy("b")])
        await store.set_policies("backup", [make_policy("c")])

        assert [p.id for p in await store.list_policies("backup")] == ["c"]
        assert await store.get_policy("backup", "a") is None

    @pytest.mark.asyncio
    async def test_empty_set_clears(self, store):
        await store.set_policies("backup", [make_policy("a")])
        await store.set_policies("backup", [])

        assert await store.list_policies("backup") == []

    @pytest.mark.asyncio
    async def test_ceiling_allowed(self, store):
        policies = [make_policy(f"p{i}") for i in range(MAX_STORED_POLICIES)]
        await store.set_policies("backup", policies)
        assert len(await store.list_policies("backup")) == MAX_STORED_POLICIES

    @pytest.mark.asyncio
    async def test_too_many_leaves_previous_set(self, store):
        await store.set_policies("backup", [make_policy("keep")])

        with pytest.raises(TooManyPoliciesError) as exc_info:
            await store.set_policies(
                "backup", [make_policy(f"p{i}") for i in range(MAX_STORED_POLICIES + 1)]
            )

        assert exc_info.value.limit == MAX_STORED_POLICIES
        assert [p.id for p in await store.list_policies("backup")] == ["keep"]

    @pytest.mark.asyncio
    async def test_invalid_window_leaves_previous_set(self, store):
        await store.set_policies("backup", [make_policy("keep")])
        bad = make_policy("bad", hours=1, start=NOW + timedelta(hours=2))

        with pytest.raises(InvalidPolicyWindowError) as exc_info:
            await store.set_policies("backup", [make_policy("good"), bad])

        assert exc_info.value.policy_id == "bad"
        assert [p.id for p in await store.list_policies("backup")] == ["keep"]

    @pytest.mark.asyncio
    async def test_duplicate_ids_rejected(self, store):
        with pytest.raises(DuplicatePolicyIdError):
            await store.set_policies("backup", [make_policy("dup"), make_policy("dup", hours=3)])

    @pytest.mark.asyncio
    async def test_custom_ceiling(self, backend):
        store = PolicyStore(backend, max_policies=1)
        with pytest.raises(TooManyPoliciesError):
            await store.set_policies("backup", [make_policy("a"), make_policy("b")])

    @pytest.mark.asyncio
    async def test_store_errors_propagate(self, store):
        with pytest.raises(ContainerNotFoundError):
            await store.set_policies("missing", [make_policy("a")])
