"""Workflow helpers: event types, events, triggers and alerts.

Event types are versioned by name: a service that owns the root ``"harvest"``
registers ``"harvest:0"``, and if the mapping ever changes, ``"harvest:1"``
and so on.  :class:`EventTypeRegistry` resolves a root plus mapping to the
matching version, creating the first free one when none matches, and keeps
the answer in an :class:`EventTypeCache` so it is only looked up once.
"""
from __future__ import annotations

import itertools
import threading
from typing import Any, Dict, List, Optional

import structlog

from piazza_client.client import PiazzaClient, read_body_json
from piazza_client.errors import InvalidArgument
from piazza_client.models.workflow import (
    Alert,
    AlertList,
    Event,
    EventList,
    EventResponse,
    EventType,
    EventTypeList,
    EventTypeResponse,
    Trigger,
    TriggerResponse,
)

log = structlog.get_logger(__name__)

EVENT_TYPE_SEARCH_PAGE_SIZE = 20
EVENT_TYPE_LIST_PAGE_SIZE = 10000


class EventTypeCache:
    """Thread-safe map of event type root -> resolved event type."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: Dict[str, EventType] = {}

    def lookup(self, root: str) -> Optional[EventType]:
        with self._lock:
            return self._entries.get(root)

    def insert(self, root: str, event_type: EventType) -> None:
        with self._lock:
            self._entries[root] = event_type

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


# ---------------------------------------------------------------------------
# Event types
# ---------------------------------------------------------------------------


async def add_event_type(client: PiazzaClient, event_type: EventType) -> EventType:
    """Create *event_type* on the backend and return what was created."""
    if not event_type.name:
        raise InvalidArgument("Event type name not provided")
    log.info("pz_event_type_adding", name=event_type.name)
    _, created = await client.request_known_json(
        "POST", "/eventType", EventTypeResponse, event_type.to_wire()
    )
    return created.data


async def get_event_type(client: PiazzaClient, event_type_id: str) -> EventType:
    if not event_type_id:
        raise InvalidArgument("Event type id not provided")
    _, resp = await client.request_known_json("GET", f"/eventType/{event_type_id}", EventTypeResponse)
    return resp.data


async def find_event_type(
    client: PiazzaClient,
    name: str,
    mapping: Dict[str, Any],
    per_page: int = EVENT_TYPE_SEARCH_PAGE_SIZE,
) -> Optional[str]:
    """Page through the event types looking for one with this exact name and
    mapping.  Returns its id, or None once the pages run out."""
    if per_page < 1:
        raise InvalidArgument(f"per_page must be at least 1, got {per_page}")
    for page in itertools.count():
        _, listing = await client.request_known_json(
            "GET",
            "/eventType",
            EventTypeList,
            params={"perPage": per_page, "page": page},
        )
        for candidate in listing.data:
            if candidate.name == name and candidate.mapping == mapping:
                return candidate.event_type_id
        if not listing.data or len(listing.data) < per_page:
            return None


class EventTypeRegistry:
    """Resolves versioned event types for a root name.

    The cache is injected so several registries (or several clients) can
    share one; by default each registry gets its own.
    """

    def __init__(self, client: PiazzaClient, cache: Optional[EventTypeCache] = None) -> None:
        self._client = client
        self.cache = cache if cache is not None else EventTypeCache()

    async def resolve(self, root: str, mapping: Dict[str, Any]) -> EventType:
        """Return the event type ``root:N`` whose mapping equals *mapping*.

        Versions are checked from 0 upward.  A version whose name exists with
        a different mapping is skipped; the first version with no event type
        at all is created.
        """
        if not root:
            raise InvalidArgument("Event type root not provided")

        cached = self.cache.lookup(root)
        if cached is not None:
            return cached

        _, listing = await self._client.request_known_json(
            "GET",
            "/eventType",
            EventTypeList,
            params={"perPage": EVENT_TYPE_LIST_PAGE_SIZE},
        )

        by_name: Dict[str, List[EventType]] = {}
        for event_type in listing.data:
            by_name.setdefault(event_type.name, []).append(event_type)

        for version in itertools.count():
            name = f"{root}:{version}"
            same_name = by_name.get(name, [])
            match = next((et for et in same_name if et.mapping == mapping), None)
            if match is not None:
                log.info("pz_event_type_found", name=name, event_type_id=match.event_type_id)
                result = match
                break
            if not same_name:
                log.info("pz_event_type_missing", name=name)
                result = await add_event_type(self._client, EventType(name=name, mapping=mapping))
                break

        self.cache.insert(root, result)
        return result


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


async def events(client: PiazzaClient, event_type_id: str) -> List[Event]:
    """Return the events fired for *event_type_id*."""
    if not event_type_id:
        raise InvalidArgument("Event type id not provided")
    _, listing = await client.request_known_json(
        "GET", "/event", EventList, params={"eventTypeId": event_type_id}
    )
    return listing.data


async def add_event(client: PiazzaClient, event: Event) -> Event:
    log.info("pz_event_adding", event_type_id=event.event_type_id)
    response = await client.submit_single_part("POST", "/event", event.to_wire())
    _, created = await read_body_json(response, EventResponse)
    return created.data


# ---------------------------------------------------------------------------
# Triggers and alerts
# ---------------------------------------------------------------------------


async def add_trigger(client: PiazzaClient, trigger: Trigger) -> Trigger:
    """Create *trigger* and return it as the backend stored it (with its id)."""
    log.info("pz_trigger_adding", name=trigger.name)
    _, created = await client.request_known_json("POST", "/trigger", TriggerResponse, trigger.to_wire())
    return created.data


async def get_trigger(client: PiazzaClient, trigger_id: str) -> Trigger:
    if not trigger_id:
        raise InvalidArgument("Trigger id not provided")
    _, resp = await client.request_known_json("GET", f"/trigger/{trigger_id}", TriggerResponse)
    return resp.data


async def get_alerts(
    client: PiazzaClient,
    trigger_id: Optional[str] = None,
    page: Optional[int] = None,
    per_page: Optional[int] = None,
) -> List[Alert]:
    """List alerts, optionally only those raised by *trigger_id*."""
    params: Dict[str, Any] = {}
    if trigger_id:
        params["triggerId"] = trigger_id
    if page is not None:
        params["page"] = page
    if per_page is not None:
        params["perPage"] = per_page
    _, listing = await client.request_known_json("GET", "/alert", AlertList, params=params or None)
    return listing.data
