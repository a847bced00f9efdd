"""Alternate-identity (hashed email) block construction.

Criteo stitches server-side events to browser/app users through hashed
identifiers. The canonical payload carries them in a top-level
`alternate_ids` list:

    {"alternate_ids": [{"type": "email", "value": <md5 hex>, "hash_method": "md5"}]}

The email is hashed exactly as received (no trimming or case folding) so the
digest matches what the advertiser's own tags produce.

The legacy `setHashedEmail` sub-event form is not emitted. Payloads carry
exactly one representation of the hashed identity.
"""
from __future__ import annotations

import hashlib
from typing import Any, Dict, Optional

from ..models.criteo import AlternateId
from ..models.segment import NormalizedEvent

__all__ = ["md5_hex", "hashed_email_id", "alternate_identity", "LEGACY_EMAIL_EVENT"]

# Sub-event name used by the retired schema revision; never produced.
LEGACY_EMAIL_EVENT = "setHashedEmail"


def md5_hex(value: str) -> str:
    return hashlib.md5(value.encode("utf-8")).hexdigest()


def hashed_email_id(email: Optional[str]) -> Optional[AlternateId]:
    if not email:
        return None
    return AlternateId(type="email", value=md5_hex(email), hash_method="md5")


def alternate_identity(event: NormalizedEvent) -> Dict[str, Any]:
    """Return `{"alternate_ids": [...]}` when the event has an email, else `{}`."""
    entry = hashed_email_id(event.email())
    if entry is None:
        return {}
    return {"alternate_ids": [entry]}
