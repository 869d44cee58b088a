import asyncio
import re

import pytest

from trip_planner.models.domain import PENDING_DURATION, UNKNOWN_DURATION, Box, Canvas, Connection
from trip_planner.services.canvas.editor import update_box
from trip_planner.services.routing.bridge import BridgeAuthenticationError, BridgeUnavailableError
from trip_planner.services.routing.travel_time import (
    apply_durations,
    parse_duration,
    pending_connections,
    resolve_connection_durations,
    resolve_travel_time,
)


class DummyBridge:
    """Answers with a duration per origin address, optionally after a delay."""

    def __init__(self, durations=None, delays=None, error=None):
        self.durations = durations or {}
        self.delays = delays or {}
        self.error = error
        self.calls = []

    async def query(self, prompt, system=""):
        origin = re.search(r'from "([^"]+)"', prompt).group(1)
        self.calls.append(origin)
        if self.error:
            raise self.error
        await asyncio.sleep(self.delays.get(origin, 0))
        return self.durations.get(origin, "no idea")


def _canvas() -> Canvas:
    return Canvas(
        boxes=[
            Box(id="A", title="Hotel", address="1 Main St"),
            Box(id="B", title="Museum", address="2 Oak Ave"),
            Box(id="C", title="Dinner", address="3 Elm Rd"),
        ],
        connections=[
            Connection(from_id="A", to_id="B", duration=PENDING_DURATION),
            Connection(from_id="B", to_id="C", duration=PENDING_DURATION),
        ],
    )


@pytest.mark.parametrize(
    "text, expected",
    [
        ("15 mins", "15 mins"),
        ("About 1 hour 30 mins by car.", "1 hour 30 mins"),
        ("45 minutes", "45 mins"),
        ("2 hrs", "2 hours"),
        ("1h 5m", "1 hour 5 mins"),
        ("1h30m", "1 hour 30 mins"),
        ("Approximately 1.5 hours", "1 hour 30 mins"),
        ("0.5 hours", "30 mins"),
        ("It is 500 m away, about 4 mins on foot", "4 mins"),
        ("The museum is 800 m from the station", UNKNOWN_DURATION),
        ("2 HRS 10 MINS", "2 hours 10 mins"),
        ("1 min", "1 min"),
        ("I could not find that place.", UNKNOWN_DURATION),
        ("", UNKNOWN_DURATION),
        (None, UNKNOWN_DURATION),
    ],
)
def test_parse_duration(text, expected):
    assert parse_duration(text) == expected


def test_resolve_travel_time_returns_parsed_duration():
    bridge = DummyBridge(durations={"1 Main St": "It takes about 25 mins."})

    assert asyncio.run(resolve_travel_time(bridge, " 1 Main St ", "2 Oak Ave")) == "25 mins"
    assert bridge.calls == ["1 Main St"]


def test_resolve_travel_time_skips_empty_addresses():
    bridge = DummyBridge(durations={"1 Main St": "25 mins"})

    assert asyncio.run(resolve_travel_time(bridge, "1 Main St", "   ")) == UNKNOWN_DURATION
    assert asyncio.run(resolve_travel_time(bridge, "", "2 Oak Ave")) == UNKNOWN_DURATION
    assert asyncio.run(resolve_travel_time(None, "1 Main St", "2 Oak Ave")) == UNKNOWN_DURATION
    assert bridge.calls == []


@pytest.mark.parametrize("error", [BridgeUnavailableError("down"), BridgeAuthenticationError("bad key")])
def test_resolve_travel_time_never_raises(error):
    bridge = DummyBridge(error=error)

    assert asyncio.run(resolve_travel_time(bridge, "1 Main St", "2 Oak Ave")) == UNKNOWN_DURATION


def test_resolve_travel_time_timeout_is_unknown():
    bridge = DummyBridge(durations={"1 Main St": "5 mins"}, delays={"1 Main St": 0.5})

    assert asyncio.run(resolve_travel_time(bridge, "1 Main St", "2 Oak Ave", timeout=0.01)) == UNKNOWN_DURATION


def test_concurrent_results_are_applied_by_leg_identity():
    canvas = _canvas()
    # the first leg finishes last
    bridge = DummyBridge(
        durations={"1 Main St": "10 mins", "2 Oak Ave": "1 hour"},
        delays={"1 Main St": 0.05, "2 Oak Ave": 0.0},
    )

    results = asyncio.run(resolve_connection_durations(bridge, canvas))
    applied = apply_durations(canvas, results)

    assert applied == 2
    assert [leg.duration for leg in canvas.connections] == ["10 mins", "1 hour"]
    assert pending_connections(canvas.connections) == []


def test_late_results_for_edited_legs_are_discarded():
    canvas = _canvas()
    bridge = DummyBridge(durations={"1 Main St": "10 mins", "2 Oak Ave": "20 mins"})

    results = asyncio.run(resolve_connection_durations(bridge, canvas))
    update_box(canvas, "A", address="99 New Rd")
    applied = apply_durations(canvas, results)

    assert applied == 1
    assert canvas.connections[0].duration == PENDING_DURATION
    assert canvas.connections[1].duration == "20 mins"


def test_results_for_removed_legs_are_ignored():
    canvas = _canvas()
    bridge = DummyBridge(durations={"1 Main St": "10 mins", "2 Oak Ave": "20 mins"})

    results = asyncio.run(resolve_connection_durations(bridge, canvas))
    canvas.connections = canvas.connections[1:]

    assert apply_durations(canvas, results) == 1
    assert canvas.connections[0].duration == "20 mins"


def test_legs_without_addresses_resolve_to_unknown_without_a_query():
    canvas = _canvas()
    canvas.boxes[2].address = ""
    bridge = DummyBridge(durations={"1 Main St": "10 mins", "2 Oak Ave": "20 mins"})

    results = asyncio.run(resolve_connection_durations(bridge, canvas))
    apply_durations(canvas, results)

    assert bridge.calls == ["1 Main St"]
    assert canvas.connections[1].duration == UNKNOWN_DURATION
