"""
SAS Token Assembler

Renders a signed token as query parameters and appends it to the
resource URI. Pure formatting: no validation happens here.

Author: BlobSAS Team
Date: 2026-10-18
"""

from typing import Dict
from urllib.parse import quote, urlencode

from .models import SasToken, format_sas_time


class TokenAssembler:
    """Serializes SAS tokens into query strings and URIs."""

    @staticmethod
    def to_query_params(token: SasToken) -> Dict[str, str]:
        """
        Build the SAS query parameters.

        Ad-hoc tokens carry sp, se and (when set) st; policy-bound tokens
        carry si instead.
        """
        constraint = token.constraint
        params = {
            "sv": token.version,
            "sr": token.signed_resource.value,
        }

        if constraint.is_policy_bound:
            params["si"] = constraint.policy_id
        else:
            params["sp"] = constraint.permissions.to_string()
            if constraint.start is not None:
                params["st"] = format_sas_time(constraint.start)
            if constraint.expiry is not None:
                params["se"] = format_sas_time(constraint.expiry)

        params["sig"] = token.signature
        return params

    @classmethod
    def to_query_string(cls, token: SasToken) -> str:
        """Encode the parameters; every value is percent-encoded, including '+', '/' and '=' in sig."""
        return urlencode(cls.to_query_params(token), quote_via=quote, safe="")

    @classmethod
    def to_uri(cls, token: SasToken, base_uri: str) -> str:
        return f"{base_uri}?{cls.to_query_string(token)}"
