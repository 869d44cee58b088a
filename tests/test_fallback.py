from trip_planner.models.domain import PENDING_DURATION, Box
from trip_planner.services.routing.fallback import chain_connections, fallback_path, fallback_route


def _boxes(*ids: str) -> list[Box]:
    return [Box(id=box_id, title=f"Place {box_id}") for box_id in ids]


def test_fallback_keeps_input_order_between_start_and_end():
    boxes = _boxes("B", "END", "C", "START", "D")

    assert fallback_path(boxes, "START", "END") == ["START", "B", "C", "D", "END"]


def test_fallback_two_boxes():
    result = fallback_route(_boxes("A", "B"), "B", "A")

    assert result.path == ["B", "A"]
    assert [leg.key for leg in result.connections] == [("B", "A")]


def test_fallback_is_deterministic_and_does_not_mutate_input():
    boxes = _boxes("A", "B", "C", "D")
    snapshot = [box.id for box in boxes]

    first = fallback_route(boxes, "A", "D", reason="test")
    second = fallback_route(boxes, "A", "D", reason="test")

    assert first == second
    assert [box.id for box in boxes] == snapshot
    assert first.source == "fallback"
    assert first.fallback_reason == "test"


def test_chain_connections_exit_bottom_enter_top_with_pending_duration():
    connections = chain_connections(["A", "B", "C"])

    assert [(leg.from_id, leg.from_side, leg.to_id, leg.to_side) for leg in connections] == [
        ("A", "bottom", "B", "top"),
        ("B", "bottom", "C", "top"),
    ]
    assert all(leg.duration == PENDING_DURATION for leg in connections)


def test_chain_connections_uses_known_durations():
    connections = chain_connections(["A", "B", "C"], {("B", "C"): "12 mins"})

    assert [leg.duration for leg in connections] == [PENDING_DURATION, "12 mins"]
