"""Top-level payload block shared by every mapped event.

Builds `{account, site_type, id, version}` from the event context:

    account.an  app namespace, suffixed with ".<namePostfix>" when the
                `context.Criteo.namePostfix` override is present
    account.cn  country segment of `context.locale`, lower-cased
    account.ln  language segment of `context.locale`, lower-cased
    site_type   "aa" for Android, "aios" for everything else
    id          {"gaid": ...} on Android, {"idfa": ...} otherwise
    version     fixed schema tag
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from ..models.criteo import SCHEMA_VERSION, CriteoAccount
from ..models.segment import NormalizedEvent

__all__ = ["ANDROID", "top_level_properties", "account_namespace", "device_block"]

ANDROID = "Android"


def account_namespace(event: NormalizedEvent) -> Optional[str]:
    namespace = event.app_namespace()
    if namespace is None:
        return None
    postfix = event.name_postfix()
    if postfix:
        namespace = f"{namespace}.{postfix}"
    return namespace


def device_block(event: NormalizedEvent) -> tuple[str, Dict[str, str]]:
    """Return (site_type, id block) for the event's platform."""
    identifier = event.device_identifier()
    if event.os_name() == ANDROID:
        site_type, key = "aa", "gaid"
    else:
        site_type, key = "aios", "idfa"
    return site_type, ({key: identifier} if identifier else {})


def top_level_properties(event: NormalizedEvent) -> Dict[str, Any]:
    language: Optional[str] = None
    country: Optional[str] = None
    parts = event.locale_parts()
    if parts is not None:
        language, country = parts
    site_type, id_block = device_block(event)
    account = CriteoAccount(
        an=account_namespace(event),
        cn=country.lower() if country else None,
        ln=language.lower() if language else None,
    )
    return {
        "account": account,
        "site_type": site_type,
        "id": id_block,
        "version": SCHEMA_VERSION,
    }
