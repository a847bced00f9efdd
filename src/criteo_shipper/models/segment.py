"""Pydantic models for normalized analytics events.

These models give a typed, validated view of the event envelope emitted by the
tracking pipeline (track, identify, page, screen, group, alias). Field names
mirror the wire format so raw JSON validates directly. Nested context blocks
allow unknown keys because pipelines attach arbitrary context.

Accessors on `NormalizedEvent` return `None` for absent values instead of
raising, so the mapping layer never traverses raw dictionaries itself.
"""
from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

EventType = Literal["track", "identify", "page", "screen", "group", "alias"]

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class _ContextBlock(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)


class AppContext(_ContextBlock):
    namespace: Optional[str] = None
    name: Optional[str] = None
    version: Optional[Union[str, float, int]] = None
    build: Optional[Union[str, int]] = None


class OsContext(_ContextBlock):
    name: Optional[str] = None
    version: Optional[str] = None


class DeviceContext(_ContextBlock):
    id: Optional[str] = None
    advertisingId: Optional[str] = None
    adTrackingEnabled: Optional[Union[bool, int]] = None
    type: Optional[str] = None
    manufacturer: Optional[str] = None
    model: Optional[str] = None


class CriteoContext(_ContextBlock):
    """Vendor extension block (`context.Criteo`)."""

    namePostfix: Optional[str] = None


class EventContext(_ContextBlock):
    app: AppContext = Field(default_factory=AppContext)
    os: OsContext = Field(default_factory=OsContext)
    device: DeviceContext = Field(default_factory=DeviceContext)
    locale: Optional[str] = None
    traits: Dict[str, Any] = Field(default_factory=dict)
    Criteo: CriteoContext = Field(default_factory=CriteoContext)


class Product(BaseModel):
    """A single product record from `properties.products`."""

    model_config = ConfigDict(extra="allow", frozen=True)

    id: Optional[Union[str, int]] = None
    productId: Optional[Union[str, int]] = None
    price: Optional[float] = None
    quantity: Optional[int] = None


class NormalizedEvent(BaseModel):
    """The canonical analytics event envelope consumed by the mapper."""

    model_config = ConfigDict(extra="allow", frozen=True)

    type: EventType = "track"
    event: Optional[str] = None
    userId: Optional[str] = None
    anonymousId: Optional[str] = None
    messageId: Optional[str] = None
    properties: Dict[str, Any] = Field(default_factory=dict)
    traits: Dict[str, Any] = Field(default_factory=dict)
    context: EventContext = Field(default_factory=EventContext)
    timestamp: Optional[datetime] = None

    # ---------------- Context accessors -----------------
    def advertising_id(self) -> Optional[str]:
        return self.context.device.advertisingId or None

    def device_identifier(self) -> Optional[str]:
        """Return the device identifier, preferring `advertisingId`.

        `device.id` is honoured only as a compatibility fallback for events
        produced by older SDKs.
        """
        return self.context.device.advertisingId or self.context.device.id or None

    def app_namespace(self) -> Optional[str]:
        return self.context.app.namespace or None

    def os_name(self) -> Optional[str]:
        return self.context.os.name or None

    def name_postfix(self) -> Optional[str]:
        return self.context.Criteo.namePostfix or None

    def locale_parts(self) -> Optional[Tuple[Optional[str], Optional[str]]]:
        """Split `context.locale` into (language, country).

        Returns None when no locale is set. A locale without a region segment
        (e.g. "en") yields ("en", None).
        """
        raw = (self.context.locale or "").strip()
        if not raw:
            return None
        segments = re.split(r"[-_]", raw)
        language = segments[0] or None
        country = segments[1] if len(segments) > 1 and segments[1] else None
        return language, country

    # ---------------- Property accessors -----------------
    def lookup(self, path: str) -> Any:
        """Look up a dotted path inside `properties`; None when any hop is missing."""
        current: Any = self.properties
        for part in path.split("."):
            if isinstance(current, dict):
                current = current.get(part)
            elif isinstance(current, list) and part.isdigit():
                idx = int(part)
                current = current[idx] if idx < len(current) else None
            else:
                return None
            if current is None:
                return None
        return current

    def email(self) -> Optional[str]:
        """Return the user's email from context traits, properties or an email-shaped userId."""
        for candidate in (
            self.context.traits.get("email"),
            self.properties.get("email"),
            self.traits.get("email"),
        ):
            if isinstance(candidate, str) and candidate:
                return candidate
        if self.userId and _EMAIL_RE.match(self.userId):
            return self.userId
        return None

    def currency(self) -> str:
        value = self.properties.get("currency")
        return value if isinstance(value, str) and value else "USD"

    def products(self) -> List[Product]:
        raw = self.properties.get("products")
        if not isinstance(raw, list):
            return []
        products: List[Product] = []
        for item in raw:
            if not isinstance(item, dict):
                continue
            try:
                products.append(Product.model_validate(item))
            except ValidationError as e:
                # Drop only the fields that failed; ordering stays stable.
                bad = {err["loc"][0] for err in e.errors() if err["loc"]}
                products.append(
                    Product.model_validate({k: v for k, v in item.items() if k not in bad})
                )
        return products
