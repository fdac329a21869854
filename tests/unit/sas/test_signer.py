"""Tests for the SAS signer."""

import base64
import hashlib
import hmac
from datetime import datetime, timezone

import pytest

from blobsas.auth.credential import Credential
from blobsas.exceptions import InvalidResourceReferenceError
from blobsas.sas.models import AccessConstraint, PermissionSet, ResourceReference
from blobsas.sas.signer import Signer

KEY_BYTES = b"test-account-key-12345678901234567890"
START = datetime(2026, 10, 18, 9, 0, 0, tzinfo=timezone.utc)
EXPIRY = datetime(2026, 10, 18, 13, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def signer():
    """Create a signer for the test account."""
    return Signer(Credential("testaccount", KEY_BYTES), version="2021-06-08")


@pytest.fixture
def blob():
    return ResourceReference.blob("testaccount", "backup", "sasblob.txt")


@pytest.fixture
def constraint():
    return AccessConstraint(start=START, expiry=EXPIRY, permissions=PermissionSet.from_string("wr"))


class TestStringToSign:
    """Test canonicalization."""

    def test_ad_hoc_fields(self, signer, blob, constraint):
        assert signer.string_to_sign(blob, constraint) == "\n".join(
            [
                "/blob/testaccount/backup/sasblob.txt",
                "rw",
                "2026-10-18T09:00:00Z",
                "2026-10-18T13:00:00Z",
                "",
                "b",
                "2021-06-08",
            ]
        )

    def test_policy_bound_fields(self, signer):
        container = ResourceReference.container("testaccount", "backup")
        constraint = AccessConstraint(policy_id="tutorialpolicy")

        assert signer.string_to_sign(container, constraint) == "\n".join(
            ["/blob/testaccount/backup", "", "", "", "tutorialpolicy", "c", "2021-06-08"]
        )

    def test_field_count_fixed(self, signer, blob, constraint):
        without_start = AccessConstraint(expiry=EXPIRY, permissions=constraint.permissions)
        policy_bound = AccessConstraint(policy_id="p1")

        counts = {
            len(signer.string_to_sign(blob, c).split("\n"))
            for c in (constraint, without_start, policy_bound)
        }
        assert counts == {7}

    def test_other_account_rejected(self, signer, constraint):
        foreign = ResourceReference.container("otheraccount", "backup")
        with pytest.raises(InvalidResourceReferenceError):
            signer.string_to_sign(foreign, constraint)


class TestSignature:
    """Test signature computation."""

    def test_signature_is_base64_hmac(self, signer, blob, constraint):
        token = signer.sign(blob, constraint)

        expected = base64.b64encode(
            hmac.new(
                KEY_BYTES,
                signer.string_to_sign(blob, constraint).encode("utf-8"),
                hashlib.sha256,
            ).digest()
        ).decode()
        assert token.signature == expected
        assert token.version == "2021-06-08"
        assert token.resource == blob
        assert token.constraint == constraint

    def test_deterministic(self, signer, blob, constraint):
        assert signer.sign(blob, constraint).signature == signer.sign(blob, constraint).signature

    @pytest.mark.parametrize(
        "changed_resource,changed_constraint",
        [
            (ResourceReference.blob("testaccount", "backup", "other.txt"), None),
            (ResourceReference.container("testaccount", "backup"), None),
            (None, AccessConstraint(start=START, expiry=EXPIRY, permissions=PermissionSet.from_string("r"))),
            (None, AccessConstraint(start=START, expiry=EXPIRY.replace(second=1), permissions=PermissionSet.from_string("rw"))),
            (None, AccessConstraint(expiry=EXPIRY, permissions=PermissionSet.from_string("rw"))),
        ],
    )
    def test_every_field_changes_signature(self, signer, blob, constraint, changed_resource, changed_constraint):
        baseline = signer.sign(blob, constraint).signature
        changed = signer.sign(changed_resource or blob, changed_constraint or constraint).signature
        assert changed != baseline

    def test_key_changes_signature(self, blob, constraint):
        first = Signer(Credential("testaccount", KEY_BYTES)).sign(blob, constraint)
        second = Signer(Credential("testaccount", b"another-key")).sign(blob, constraint)
        assert first.signature != second.signature

    def test_version_changes_signature(self, blob, constraint):
        credential = Credential("testaccount", KEY_BYTES)
        first = Signer(credential, version="2021-06-08").sign(blob, constraint)
        second = Signer(credential, version="2020-02-10").sign(blob, constraint)
        assert first.signature != second.signature
