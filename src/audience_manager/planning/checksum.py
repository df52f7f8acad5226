"""Deterministic digests used for change detection.

Both digests are MD5 over a compact JSON document with a fixed key order,
so equal logical content yields the same digest across runs.
"""

import hashlib
import json
from typing import Any

from audience_manager.models.audience import Audience


def _digest(payload: Any) -> str:
    canonical = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
    return hashlib.md5(canonical.encode("utf-8")).hexdigest()


class ChecksumEngine:
    """Computes the content and shares checksums of an audience."""

    def content_payload(self, audience: Audience) -> dict[str, Any]:
        """Build the document hashed by :meth:`content_checksum`.

        Only name, life span, description, floodlight id and rules are part
        of it. ``id`` and ``floodlight_name`` never are.
        """
        payload: dict[str, Any] = {
            "name": audience.name,
            "lifespan": audience.life_span,
            "description": audience.description,
        }
        if audience.floodlight_id is not None:
            payload["floodlightId"] = audience.floodlight_id
        payload["rules"] = [
            {
                "group": rule.group,
                "variableName": rule.variable_name,
                "variableFriendlyName": rule.variable_friendly_name,
                "operator": rule.operator,
                "value": rule.value,
                "negation": rule.negation,
            }
            for rule in audience.rules
        ]
        return payload

    def content_checksum(self, audience: Audience) -> str:
        """Digest of the identity-relevant fields of an audience."""
        return _digest(self.content_payload(audience))

    def shares_checksum(self, audience: Audience) -> str:
        """Digest of the sharing list of an audience.

        Shares are a set: the digest is order-insensitive and ignores
        duplicates.
        """
        return _digest(sorted(set(audience.shares)))

    def empty_shares_checksum(self) -> str:
        """Digest of an empty sharing list."""
        return _digest([])
