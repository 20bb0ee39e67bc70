import math

import pytest

from tank_arena.utils.helpers import (
    Box,
    aim_angle,
    lerp_angle,
    movement_delta,
    overlaps,
    overlaps_any,
    sanitize_name,
)


def test_overlap_is_symmetric():
    boxes = [
        Box(0, 0, 10, 10),
        Box(5, 5, 10, 10),
        Box(10, 0, 10, 10),
        Box(-3, 8, 4, 4),
        Box(100, 100, 1, 1),
    ]
    for a in boxes:
        for b in boxes:
            assert overlaps(a, b) == overlaps(b, a)


def test_touching_edges_do_not_overlap():
    a = Box(0, 0, 10, 10)
    assert not overlaps(a, Box(10, 0, 10, 10))
    assert not overlaps(a, Box(0, 10, 10, 10))
    assert not overlaps(a, Box(-10, -10, 10, 10))
    assert overlaps(a, Box(9.9, 0, 10, 10))


def test_overlap_needs_both_axes():
    a = Box(0, 0, 10, 10)
    assert not overlaps(a, Box(5, 20, 10, 10))
    assert not overlaps(a, Box(20, 5, 10, 10))
    assert overlaps(a, Box(2, 2, 2, 2))


def test_overlaps_any():
    walls = [Box(0, 0, 10, 10), Box(50, 50, 10, 10)]
    assert overlaps_any(Box(55, 55, 2, 2), walls)
    assert not overlaps_any(Box(20, 20, 2, 2), walls)
    assert not overlaps_any(Box(20, 20, 2, 2), [])


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("  <script>Bob</script>  ", "scriptBob/sc"),
        ("Alice", "Alice"),
        ("abcdefghijklmnopqrstuvwxyz", "abcdefghijklmno"),
        ("   ", ""),
        ("<>", ""),
        ("<b>x</b>", "bx/b"),
    ],
)
def test_sanitize_name(raw, expected):
    assert sanitize_name(raw) == expected


def test_movement_delta():
    assert movement_delta({}, 3) == (0, 0)
    assert movement_delta({"w": True}, 3) == (0, -3)
    assert movement_delta({"s": True, "d": True}, 5) == (5, 5)
    assert movement_delta({"a": True, "d": True}, 3) == (0, 0)


def test_aim_angle_from_box_center():
    box = Box(0, 0, 32, 32)
    assert aim_angle(box, 100, 16) == pytest.approx(0.0)
    assert aim_angle(box, 16, 100) == pytest.approx(math.pi / 2)
    assert aim_angle(box, -100, 16) == pytest.approx(math.pi)


def test_lerp_angle_takes_short_way_round():
    a = math.pi - 0.1
    b = -math.pi + 0.1
    mid = lerp_angle(a, b, 0.5)
    assert math.cos(mid) == pytest.approx(-1.0)
