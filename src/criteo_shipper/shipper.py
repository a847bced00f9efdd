"""Shipper: validates, maps and delivers normalized events to Criteo.

This module is the dispatch side of the connector. For each inbound event it:

- Skips event types Criteo does not consume (page, screen, identify, ...).
- Runs the validation gate; invalid events are reported, never sent.
- Maps the event through the subtype mapper selected by event name.
- Resolves the routing region from the same normalized event.
- POSTs the JSON payload to `http://{region}.{host}/m/event` (or the fixed
  endpoint profile) with bounded retry on transport errors and 429/5xx.

Mapping is pure; this is the only module that performs network I/O.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import httpx
from pydantic import ValidationError
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .config import Settings
from .locale import resolve_region
from .mapper import map_event
from .models.segment import NormalizedEvent
from .validation import InvalidEventError, ensure_valid

logger = logging.getLogger(__name__)

__all__ = [
    "DeliveryError",
    "DispatchOutcome",
    "CriteoShipper",
    "STATUS_SENT",
    "STATUS_DRY_RUN",
    "STATUS_SKIPPED",
    "STATUS_INVALID",
    "STATUS_FAILED",
]

STATUS_SENT = "sent"
STATUS_DRY_RUN = "dry_run"
STATUS_SKIPPED = "skipped"
STATUS_INVALID = "invalid"
STATUS_FAILED = "failed"

EVENT_PATH = "/m/event"


class DeliveryError(RuntimeError):
    """Raised when Criteo rejects a request or every attempt fails."""

    def __init__(
        self, message: str, *, status_code: Optional[int] = None, attempts: int = 0
    ):
        super().__init__(message)
        self.status_code = status_code
        self.attempts = attempts


class _RetryableStatus(Exception):
    def __init__(self, response: httpx.Response):
        super().__init__(f"retryable status={response.status_code}")
        self.response = response


@dataclass
class DispatchOutcome:
    status: str
    event_name: Optional[str] = None
    url: Optional[str] = None
    payload: Optional[Dict[str, Any]] = None
    http_status: Optional[int] = None
    attempts: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status in (STATUS_SENT, STATUS_DRY_RUN, STATUS_SKIPPED)


class CriteoShipper:
    """Single-event dispatcher bound to an explicit `Settings` instance.

    Args:
        settings: Endpoint, transport and retry configuration.
        client: Optional pre-built httpx client (tests inject a MockTransport).
            When omitted a client is created on first send and closed by
            `close()`.
        dry_run: Overrides `settings.DRY_RUN` when given.
    """

    def __init__(
        self,
        settings: Settings,
        client: Optional[httpx.Client] = None,
        *,
        dry_run: Optional[bool] = None,
    ):
        self.settings = settings
        self.dry_run = settings.DRY_RUN if dry_run is None else dry_run
        self._client = client
        self._owns_client = client is None

    # ---------------- Lifecycle -----------------
    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(timeout=self.settings.REQUEST_TIMEOUT)
        return self._client

    def close(self) -> None:
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None

    def __enter__(self) -> "CriteoShipper":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ---------------- Routing -----------------
    def endpoint_url(self, region: str) -> str:
        if self.settings.CRITEO_ENDPOINT_URL:
            return self.settings.CRITEO_ENDPOINT_URL
        host = self.settings.CRITEO_HOST.strip().rstrip("/")
        return f"http://{region}.{host}{EVENT_PATH}"

    def url_for(self, event: NormalizedEvent) -> str:
        region = resolve_region(
            event,
            overrides=self.settings.CRITEO_REGION_OVERRIDES,
            default=self.settings.CRITEO_DEFAULT_REGION,
        )
        return self.endpoint_url(region)

    # ---------------- Transport -----------------
    def _retrying(self) -> Retrying:
        return Retrying(
            reraise=True,
            stop=stop_after_attempt(self.settings.MAX_ATTEMPTS),
            wait=wait_exponential(
                multiplier=self.settings.RETRY_WAIT_MIN,
                min=self.settings.RETRY_WAIT_MIN,
                max=self.settings.RETRY_WAIT_MAX,
            ),
            retry=retry_if_exception_type((httpx.TransportError, _RetryableStatus)),
            before_sleep=before_sleep_log(logger, logging.WARNING),
        )

    def post(self, url: str, body: Mapping[str, Any]) -> tuple[httpx.Response, int]:
        """POST `body` as JSON with bounded retry.

        Returns:
            (response, attempts) for a 2xx/3xx response.

        Raises:
            DeliveryError: On a non-retryable 4xx or once attempts are exhausted.
        """
        client = self._get_client()
        headers = {"User-Agent": self.settings.USER_AGENT}
        attempts = 0
        try:
            for attempt in self._retrying():
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    resp = client.post(url, json=dict(body), headers=headers)
                    if resp.status_code == 429 or resp.status_code >= 500:
                        raise _RetryableStatus(resp)
                    if resp.status_code >= 400:
                        raise DeliveryError(
                            f"Criteo rejected event status={resp.status_code} body={resp.text[:300]}",
                            status_code=resp.status_code,
                            attempts=attempts,
                        )
                    return resp, attempts
        except _RetryableStatus as e:
            raise DeliveryError(
                f"Criteo unavailable after {attempts} attempt(s) "
                f"status={e.response.status_code} body={e.response.text[:300]}",
                status_code=e.response.status_code,
                attempts=attempts,
            ) from e
        except httpx.TransportError as e:
            raise DeliveryError(
                f"Criteo request failed after {attempts} attempt(s): {e}", attempts=attempts
            ) from e
        raise DeliveryError("Criteo request was not attempted")  # pragma: no cover

    # ---------------- Dispatch -----------------
    def dispatch(self, event: Union[NormalizedEvent, Mapping[str, Any]]) -> DispatchOutcome:
        """Validate, map and deliver a single event.

        Raw mappings are parsed into a `NormalizedEvent` first; a record that
        does not parse is reported as invalid.
        """
        if not isinstance(event, NormalizedEvent):
            try:
                event = NormalizedEvent.model_validate(event)
            except ValidationError as e:
                logger.warning("Malformed event record: %s", e)
                return DispatchOutcome(
                    status=STATUS_INVALID,
                    errors=[str(err.get("msg")) for err in e.errors()],
                )

        if event.type != "track":
            logger.debug("Skipping %s call; Criteo only consumes track events", event.type)
            return DispatchOutcome(status=STATUS_SKIPPED, event_name=event.event)

        try:
            ensure_valid(event)
        except InvalidEventError as e:
            logger.warning("Invalid event %r: %s", event.event, e)
            return DispatchOutcome(
                status=STATUS_INVALID, event_name=event.event, errors=e.errors
            )

        payload = map_event(event).to_wire()
        url = self.url_for(event)
        logger.debug("Mapped event %r -> %s", event.event, payload)

        if self.dry_run:
            logger.info("Dry-run dispatch: event=%r url=%s", event.event, url)
            return DispatchOutcome(
                status=STATUS_DRY_RUN, event_name=event.event, url=url, payload=payload
            )

        try:
            resp, attempts = self.post(url, payload)
        except DeliveryError as e:
            logger.warning("Delivery failed for event %r to %s: %s", event.event, url, e)
            return DispatchOutcome(
                status=STATUS_FAILED,
                event_name=event.event,
                url=url,
                payload=payload,
                http_status=e.status_code,
                attempts=e.attempts,
                errors=[str(e)],
            )
        logger.info(
            "Sent event %r to %s status=%d attempts=%d",
            event.event,
            url,
            resp.status_code,
            attempts,
        )
        return DispatchOutcome(
            status=STATUS_SENT,
            event_name=event.event,
            url=url,
            payload=payload,
            http_status=resp.status_code,
            attempts=attempts,
        )

    def dispatch_many(
        self, events: Iterable[Union[NormalizedEvent, Mapping[str, Any]]]
    ) -> List[DispatchOutcome]:
        return [self.dispatch(e) for e in events]
