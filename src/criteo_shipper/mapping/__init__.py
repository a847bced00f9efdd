"""Internal mapping subpackage for event-to-payload transformation logic.

This package contains the core implementation of normalized-event to Criteo
payload mapping, decomposed into focused, single-responsibility modules. All
functions within this package are pure (no network I/O) and deterministic.

The public API lives in the top-level `mapper.py` facade. Callers should not
import directly from this package unless accessing helpers for testing.

Modules:
    dates: Date formatting and travel date-range extraction
    identity: MD5 hashed-email alternate identity block
    top_level: Shared account / platform / device-id block
    events: Per-event-type mappers and the event-name dispatch table

Design Invariants:
    - No network calls or clock reads
    - Identical inputs produce identical payloads
    - Absent values are stripped, never sent as null
"""
from __future__ import annotations

from . import dates as dates  # noqa: F401
from . import identity as identity  # noqa: F401
from . import top_level as top_level  # noqa: F401

__all__ = ["dates", "identity", "top_level"]
