"""Pydantic models for the Criteo s2s event payload.

These models define the outbound structure produced by the `mapper` and sent
by the `shipper`. Sub-events stay plain dictionaries because the generic track
mapping merges arbitrary event properties into them.

Wire invariants:
    - Exactly one `account`, `id` and `version` block per payload.
    - `events` is a single object when only the primary sub-event exists and an
      ordered list (primary first) otherwise. The endpoint distinguishes the
      two shapes.
    - Absent or empty values are stripped; no null placeholders are sent.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

SCHEMA_VERSION = "s2s_v1.0.0"

SubEvent = Dict[str, Any]


class CriteoAccount(BaseModel):
    an: Optional[str] = None
    cn: Optional[str] = None
    ln: Optional[str] = None


class AlternateId(BaseModel):
    """Hashed identity used by Criteo for cross-device stitching."""

    type: str = "email"
    value: str
    hash_method: str = "md5"


class CriteoPayload(BaseModel):
    """The complete request body for one mapped event."""

    model_config = ConfigDict(frozen=True)

    account: CriteoAccount
    site_type: str
    id: Dict[str, str]
    version: str = SCHEMA_VERSION
    alternate_ids: Optional[List[AlternateId]] = None
    events: Union[SubEvent, List[SubEvent]] = Field(...)

    @model_validator(mode="after")
    def _require_events(self) -> "CriteoPayload":
        if not self.events:
            raise ValueError("payload must carry at least one sub-event")
        return self

    def event_list(self) -> List[SubEvent]:
        """Return sub-events as a list regardless of the wire shape."""
        if isinstance(self.events, list):
            return list(self.events)
        return [self.events]

    def to_wire(self) -> Dict[str, Any]:
        """Serialize to the JSON-ready dict sent to the endpoint."""
        return reject_empty(self.model_dump(mode="json", exclude_none=True))


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, list, dict)) and not value:
        return True
    return False


def reject_empty(obj: Dict[str, Any]) -> Dict[str, Any]:
    """Return a shallow copy of `obj` without None or empty values.

    Zero and False are kept; only None, "" and empty containers are dropped.
    """
    return {k: v for k, v in obj.items() if not _is_empty(v)}
