"""
Container ACL Serialization

Converts stored access policies to and from the SignedIdentifiers XML
document the storage service keeps as container ACL metadata.

Example document:
    <?xml version='1.0' encoding='utf-8'?>
    <SignedIdentifiers>
      <SignedIdentifier>
        <Id>tutorialpolicy</Id>
        <AccessPolicy>
          <Start>2026-10-18T09:00:00.0000000Z</Start>
          <Expiry>2026-10-18T19:00:00.0000000Z</Expiry>
          <Permission>rwl</Permission>
        </AccessPolicy>
      </SignedIdentifier>
    </SignedIdentifiers>

Author: BlobSAS Team
Date: 2026-10-18
"""

import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from blobsas.sas.models import PermissionSet, StoredPolicy, to_utc

ACL_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S.0000000Z"


def _format_acl_time(value: datetime) -> str:
    return to_utc(value).strftime(ACL_TIME_FORMAT)


def _parse_acl_time(text: Optional[str]) -> Optional[datetime]:
    if not text:
        return None
    text = text.strip()
    # Service timestamps carry up to 7 fractional digits; datetime takes 6
    if "." in text:
        head, _, fraction = text.rstrip("Z").partition(".")
        text = f"{head}.{fraction[:6]}Z"
        parsed = datetime.strptime(text, "%Y-%m-%dT%H:%M:%S.%fZ")
    else:
        parsed = datetime.strptime(text, "%Y-%m-%dT%H:%M:%SZ")
    return parsed.replace(tzinfo=timezone.utc)


def serialize_signed_identifiers(policies: Iterable[StoredPolicy]) -> bytes:
    """
    Build a SignedIdentifiers XML document.

    Policies are written in id order so identical sets serialize identically.
    """
    root = ET.Element("SignedIdentifiers")
    for policy in sorted(policies, key=lambda p: p.id):
        identifier = ET.SubElement(root, "SignedIdentifier")
        ET.SubElement(identifier, "Id").text = policy.id
        access_policy = ET.SubElement(identifier, "AccessPolicy")
        if policy.start is not None:
            ET.SubElement(access_policy, "Start").text = _format_acl_time(policy.start)
        ET.SubElement(access_policy, "Expiry").text = _format_acl_time(policy.expiry)
        ET.SubElement(access_policy, "Permission").text = policy.permissions.to_string()
    return ET.tostring(root, encoding="utf-8", xml_declaration=True)


def parse_signed_identifiers(document: bytes) -> List[StoredPolicy]:
    """
    Parse a SignedIdentifiers XML document.

    Raises:
        ValueError: If the document is malformed or a policy lacks an id or expiry
    """
    try:
        root = ET.fromstring(document)
    except ET.ParseError as exc:
        raise ValueError(f"Invalid SignedIdentifiers document: {exc}") from exc

    if root.tag != "SignedIdentifiers":
        raise ValueError(f"Unexpected root element: {root.tag}")

    policies: List[StoredPolicy] = []
    for identifier in root.findall("SignedIdentifier"):
        policy_id = identifier.findtext("Id")
        access_policy = identifier.find("AccessPolicy")
        if not policy_id or access_policy is None:
            raise ValueError("SignedIdentifier requires Id and AccessPolicy")
        expiry = _parse_acl_time(access_policy.findtext("Expiry"))
        if expiry is None:
            raise ValueError(f"Stored policy '{policy_id}' has no expiry time")
        policies.append(
            StoredPolicy(
                id=policy_id,
                start=_parse_acl_time(access_policy.findtext("Start")),
                expiry=expiry,
                permissions=PermissionSet.from_string(access_policy.findtext("Permission") or ""),
            )
        )
    return policies
