"""Travel-time lookups for individual legs through the AI bridge.

Every failure here degrades to ``UNKNOWN_DURATION``: a missing duration only
affects a leg's label and must never block a canvas edit.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Iterable, Optional

import httpx

from ...config import settings
from ...models.domain import PENDING_DURATION, UNKNOWN_DURATION, Canvas, Connection
from .bridge import AIBridgeClient, BridgeError

logger = logging.getLogger(__name__)

_HOURS_PATTERN = re.compile(r"(?<![\d.])(\d+(?:\.\d+)?)\s*(?:hours?|hrs?|h)(?![a-z])", re.IGNORECASE)
_MINUTES_PATTERN = re.compile(r"(?<![\d.])(\d+)\s*(?:minutes?|mins?)(?![a-z])", re.IGNORECASE)
_COMPACT_PATTERN = re.compile(
    r"(?<![\d.])(\d+(?:\.\d+)?)\s*(?:hours?|hrs?|h)\s*(\d+)\s*(?:minutes?|mins?|m)(?![a-z])",
    re.IGNORECASE,
)

TRAVEL_TIME_SYSTEM_PROMPT = (
    "You are a travel time calculator with access to Google Maps. "
    "Use the maps tools to look up the driving time. "
    "Return ONLY the duration, for example '15 mins' or '1 hour 30 mins'. No other text."
)


@dataclass(slots=True)
class DurationResult:
    """A resolved duration plus the addresses it was computed for."""

    from_address: str
    to_address: str
    duration: str


def _plural(value: int, unit: str) -> str:
    return f"{value} {unit}" if value == 1 else f"{value} {unit}s"


def parse_duration(text: str | None) -> str:
    """Pull an hour/minute duration out of free text, or return ``Unknown``.

    Accepts decimal hours ("1.5 hours") and compact forms ("1h30m"). A bare
    ``m`` counts as minutes only right after an hour token; on its own it is
    read as metres.
    """
    if not text:
        return UNKNOWN_DURATION

    compact_match = _COMPACT_PATTERN.search(text)
    if compact_match:
        hours_value, minutes = float(compact_match.group(1)), int(compact_match.group(2))
    else:
        hours_match = _HOURS_PATTERN.search(text)
        minutes_match = _MINUTES_PATTERN.search(text)
        if not hours_match and not minutes_match:
            return UNKNOWN_DURATION
        hours_value = float(hours_match.group(1)) if hours_match else 0.0
        minutes = int(minutes_match.group(1)) if minutes_match else 0

    hours = int(hours_value)
    extra_hours, fraction_minutes = divmod(round((hours_value - hours) * 60), 60)
    hours += extra_hours
    minutes += fraction_minutes

    parts: list[str] = []
    if hours:
        parts.append(_plural(hours, "hour"))
    if minutes or not parts:
        parts.append(_plural(minutes, "min"))
    return " ".join(parts)


def build_travel_time_prompt(from_address: str, to_address: str) -> str:
    return (
        f'What is the driving time from "{from_address}" to "{to_address}"? '
        "Use Google Maps to get the real driving time. "
        "Respond with only the duration string, such as '25 mins' or '1 hour 10 mins'."
    )


async def resolve_travel_time(
    bridge: AIBridgeClient | None,
    from_address: str,
    to_address: str,
    timeout: float | None = None,
) -> str:
    """Ask the bridge for the driving time between two addresses. Never raises."""
    origin = (from_address or "").strip()
    destination = (to_address or "").strip()
    if not origin or not destination or bridge is None:
        return UNKNOWN_DURATION

    limit = timeout if timeout is not None else settings.travel_time_timeout_seconds
    try:
        text = await asyncio.wait_for(
            bridge.query(build_travel_time_prompt(origin, destination), TRAVEL_TIME_SYSTEM_PROMPT),
            timeout=limit,
        )
    except asyncio.TimeoutError:
        logger.warning(f"Travel time lookup timed out after {limit:.0f}s: {origin!r} -> {destination!r}")
        return UNKNOWN_DURATION
    except (BridgeError, httpx.HTTPError) as exc:
        logger.warning(f"Travel time lookup failed for {origin!r} -> {destination!r}: {exc}")
        return UNKNOWN_DURATION

    duration = parse_duration(text)
    if duration == UNKNOWN_DURATION:
        logger.info(f"No duration found in bridge reply for {origin!r} -> {destination!r}")
    return duration


def _endpoint_addresses(canvas: Canvas, connection: Connection) -> tuple[str, str]:
    boxes = canvas.box_index()
    from_box, to_box = boxes.get(connection.from_id), boxes.get(connection.to_id)
    return (
        from_box.address.strip() if from_box else "",
        to_box.address.strip() if to_box else "",
    )


async def resolve_connection_durations(
    bridge: AIBridgeClient | None,
    canvas: Canvas,
    connections: Optional[Iterable[Connection]] = None,
    max_parallel: int | None = None,
) -> dict[tuple[str, str], DurationResult]:
    """Resolve durations for many legs concurrently.

    Results are keyed by leg identity ``(from, to)`` and carry the address
    pair they were computed for, so ``apply_durations`` can drop answers that
    arrive after the canvas changed. Completion order is irrelevant.
    """
    targets = list(canvas.connections if connections is None else connections)
    semaphore = asyncio.Semaphore(max_parallel or settings.travel_time_max_parallel)

    async def _resolve(connection: Connection) -> tuple[tuple[str, str], DurationResult]:
        from_address, to_address = _endpoint_addresses(canvas, connection)
        async with semaphore:
            duration = await resolve_travel_time(bridge, from_address, to_address)
        return connection.key, DurationResult(from_address, to_address, duration)

    unique: dict[tuple[str, str], Connection] = {}
    for connection in targets:
        if not connection.is_self_loop:
            unique.setdefault(connection.key, connection)
    pairs = await asyncio.gather(*(_resolve(connection) for connection in unique.values()))
    return dict(pairs)


def apply_durations(canvas: Canvas, results: dict[tuple[str, str], DurationResult]) -> int:
    """Write resolved durations onto matching legs; returns how many were applied."""
    applied = 0
    for connection in canvas.connections:
        result = results.get(connection.key)
        if result is None:
            continue
        if _endpoint_addresses(canvas, connection) != (result.from_address, result.to_address):
            logger.info(f"Discarding stale duration for leg {connection.from_id} -> {connection.to_id}")
            continue
        connection.duration = result.duration
        applied += 1
    return applied


def pending_connections(connections: Iterable[Connection]) -> list[Connection]:
    return [connection for connection in connections if connection.duration in (None, "", PENDING_DURATION)]
