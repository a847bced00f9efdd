"""Pre-mapping validation gate.

Events must satisfy every rule below before they are mapped or dispatched.
Rules are (predicate, message) pairs evaluated in order; all failing messages
are collected so callers can report them together.

Rules:
    1. context.device.advertisingId present
    2. context.app.namespace present
    3. context.locale present with both language and region segments
       (routing depends on the region)
"""
from __future__ import annotations

from typing import Callable, List, Sequence, Tuple

from .models.segment import NormalizedEvent

__all__ = ["InvalidEventError", "RULES", "validate_event", "ensure_valid"]

Rule = Tuple[Callable[[NormalizedEvent], bool], str]


class InvalidEventError(ValueError):
    """Raised when an event fails the validation gate; never retried."""

    def __init__(self, errors: Sequence[str]):
        self.errors: List[str] = list(errors)
        super().__init__("; ".join(self.errors))


def _has_full_locale(event: NormalizedEvent) -> bool:
    parts = event.locale_parts()
    return parts is not None and all(parts)


RULES: Tuple[Rule, ...] = (
    (lambda e: e.advertising_id() is not None, "All calls must have an Advertiser Id"),
    (lambda e: e.app_namespace() is not None, "All calls must have an app namespace"),
    (_has_full_locale, "All calls must have a locale in language-REGION form"),
)


def validate_event(event: NormalizedEvent, rules: Sequence[Rule] = RULES) -> List[str]:
    """Return the messages of every failing rule (empty list when valid)."""
    return [message for predicate, message in rules if not predicate(event)]


def ensure_valid(event: NormalizedEvent, rules: Sequence[Rule] = RULES) -> None:
    errors = validate_event(event, rules)
    if errors:
        raise InvalidEventError(errors)
