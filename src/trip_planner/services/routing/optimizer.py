"""AI-backed open-path ordering with strict validation of the returned plan.

The bridge is a free-text model, so its answer is treated as untrusted input:
the first JSON object is cut out of the prose, parsed, and accepted only if
it visits every box exactly once from the requested start to the requested
end. Anything else raises ``RouteValidationError`` and the caller falls back.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Sequence

from ...config import settings
from ...models.domain import PENDING_DURATION, UNKNOWN_DURATION, Box, RouteResult
from .bridge import AIBridgeClient
from .fallback import chain_connections
from .travel_time import parse_duration

logger = logging.getLogger(__name__)

OPTIMIZER_SYSTEM_PROMPT = (
    "You are a route planning assistant with access to Google Maps tools. "
    "Look up real driving times between the locations with the maps tools instead of estimating them. "
    "Respond with valid JSON only and no explanations."
)


class RouteValidationError(ValueError):
    """The AI plan is missing, malformed or does not cover the boxes correctly."""


def build_optimization_prompt(
    boxes: Sequence[Box],
    start_id: str,
    end_id: str,
    exhaustive_limit: int | None = None,
) -> tuple[str, str]:
    """Return ``(prompt, system)`` for one optimization request."""
    limit = exhaustive_limit if exhaustive_limit is not None else settings.optimizer_exhaustive_limit
    by_id = {box.id: box for box in boxes}
    start, end = by_id[start_id], by_id[end_id]

    locations = {box.id: {"title": box.title, "address": box.lookup_address} for box in boxes}
    example_path = [start_id, "<box id>", "<box id>", end_id]
    example = {
        "path": example_path,
        "connections": [
            {"from": start_id, "fromSide": "bottom", "to": "<box id>", "toSide": "top", "duration": "15 mins"},
            {"from": "<box id>", "fromSide": "bottom", "to": end_id, "toSide": "top", "duration": "1 hour 5 mins"},
        ],
    }

    lines = [
        f"Locations (id -> title and address): {json.dumps(locations, ensure_ascii=False)}",
        "",
        (
            f'Plan the fastest driving route that starts at "{start.title}" ({start.lookup_address}, id {start_id}), '
            f'ends at "{end.title}" ({end.lookup_address}, id {end_id}) and visits every other location exactly once. '
            "This is an open path: do not return to the start."
        ),
        "Use Google Maps to get the real driving time between locations, using their addresses.",
    ]
    if len(boxes) > limit:
        lines.append(
            f"There are {len(boxes)} locations, so do not search every ordering: build the route greedily "
            "by always driving to the nearest location not yet visited."
        )
    lines.extend(
        [
            "",
            "Return ONLY a JSON object with exactly this shape:",
            json.dumps(example, indent=2),
            "",
            (
                f'"path" must contain all {len(boxes)} location ids once each, first "{start_id}" and last "{end_id}". '
                '"connections" must list each consecutive leg of the path with its driving time in "duration".'
            ),
        ]
    )
    return "\n".join(lines), OPTIMIZER_SYSTEM_PROMPT


def extract_json_object(text: str) -> str:
    """Return the first balanced ``{...}`` substring of ``text``."""
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return text[start : index + 1]
        # unbalanced from this brace; try the next one
        start = text.find("{", start + 1)
    raise RouteValidationError("No JSON object found in AI response.")


def validate_route_payload(
    payload: Any,
    boxes: Sequence[Box],
    start_id: str,
    end_id: str,
) -> tuple[list[str], list[dict]]:
    """Check the parsed plan against the requested boxes; return ``(path, legs)``."""
    if not isinstance(payload, dict):
        raise RouteValidationError("AI response is not a JSON object.")
    path = payload.get("path")
    legs = payload.get("connections")
    if not isinstance(path, list) or not isinstance(legs, list):
        raise RouteValidationError("AI response must contain 'path' and 'connections' lists.")
    if not all(isinstance(box_id, str) for box_id in path):
        raise RouteValidationError("AI path entries must be box id strings.")

    if len(path) != len(boxes):
        raise RouteValidationError(f"Path must include all {len(boxes)} locations, but found {len(path)}.")
    if path[0] != start_id or path[-1] != end_id:
        raise RouteValidationError("Path must start at the start location and end at the end location.")

    box_ids = {box.id for box in boxes}
    path_ids = set(path)
    if len(path_ids) != len(box_ids) or not box_ids <= path_ids:
        raise RouteValidationError("Path must include every location id exactly once.")

    for leg in legs:
        if not isinstance(leg, dict):
            raise RouteValidationError("AI connections must be JSON objects.")
        if leg.get("from") is not None and leg.get("from") == leg.get("to"):
            raise RouteValidationError(f"AI returned a self-loop on '{leg.get('from')}'.")
    return path, legs


def _leg_durations(legs: Sequence[dict]) -> dict[tuple[str, str], str]:
    durations: dict[tuple[str, str], str] = {}
    for leg in legs:
        raw = leg.get("duration")
        if not isinstance(raw, str):
            continue
        duration = parse_duration(raw)
        if duration != UNKNOWN_DURATION:
            durations[(str(leg.get("from")), str(leg.get("to")))] = duration
    return durations


def parse_route_response(text: str, boxes: Sequence[Box], start_id: str, end_id: str) -> RouteResult:
    try:
        payload = json.loads(extract_json_object(text))
    except json.JSONDecodeError as exc:
        raise RouteValidationError(f"AI response is not valid JSON: {exc}") from exc
    path, legs = validate_route_payload(payload, boxes, start_id, end_id)
    return RouteResult(
        path=path,
        connections=chain_connections(path, _leg_durations(legs), default_duration=PENDING_DURATION),
        source="ai",
    )


async def request_optimized_route(
    bridge: AIBridgeClient,
    boxes: Sequence[Box],
    start_id: str,
    end_id: str,
    timeout: float | None = None,
) -> RouteResult:
    """Single bounded bridge exchange; raises on any failure, never retries."""
    prompt, system = build_optimization_prompt(boxes, start_id, end_id)
    limit = timeout if timeout is not None else settings.optimize_timeout_seconds
    text = await asyncio.wait_for(bridge.query(prompt, system), timeout=limit)
    result = parse_route_response(text, boxes, start_id, end_id)
    logger.info(f"AI route accepted with {len(result.path)} stops")
    return result
