import math

import pytest

from catacomb.graph.directions import (
    Direction,
    angular_distance,
    bearing_between,
    is_synthetic,
    normalize_angle,
    opposite_label,
    reciprocal_label,
    snap_bearing,
    synthetic_pair,
)


def test_every_direction_has_a_mutual_opposite():
    for d in Direction:
        assert d.opposite.opposite == d
        assert d.opposite != d


def test_from_string_accepts_aliases_and_case():
    assert Direction.from_string("N") == Direction.NORTH
    assert Direction.from_string(" sw ") == Direction.SOUTHWEST
    assert Direction.from_string("Up") == Direction.UP
    assert Direction.from_string("climb ladder") is None
    assert Direction.from_string("") is None


def test_screen_coordinate_bearings():
    assert bearing_between((0, 0), (1, 0)) == pytest.approx(0.0)
    assert bearing_between((0, 0), (0, 1)) == pytest.approx(math.pi / 2)
    assert bearing_between((0, 0), (-1, 0)) == pytest.approx(math.pi)
    assert bearing_between((0, 0), (0, -1)) == pytest.approx(3 * math.pi / 2)


def test_snap_bearing_to_compass():
    assert snap_bearing(0.1) == Direction.EAST
    assert snap_bearing(math.pi / 2) == Direction.SOUTH
    assert snap_bearing(3 * math.pi / 2) == Direction.NORTH
    assert snap_bearing(bearing_between((0, 0), (1, -1))) == Direction.NORTHEAST
    # Just below 2*pi wraps around to east
    assert snap_bearing(2 * math.pi - 0.05) == Direction.EAST


def test_angular_distance_wraps():
    assert angular_distance(0.1, 2 * math.pi - 0.1) == pytest.approx(0.2)
    assert angular_distance(0.0, math.pi) == pytest.approx(math.pi)
    assert 0.0 <= normalize_angle(-0.5) < 2 * math.pi


def test_synthetic_labels_pair_up():
    forward, back = synthetic_pair(3)
    assert (forward, back) == ("passage-3", "passage-back-3")
    assert opposite_label(forward) == back
    assert opposite_label(back) == forward
    assert is_synthetic(back)
    assert not is_synthetic("north")


def test_opposite_label_for_vocabulary_only():
    assert opposite_label("north") == "south"
    assert opposite_label("ne") == "southwest"
    assert opposite_label("through the arch") is None


def test_reciprocal_label_for_free_text():
    assert reciprocal_label("east") == "west"
    assert reciprocal_label("climb ladder") == "descend ladder"
    assert reciprocal_label("Enter the crypt") == "exit the crypt"
    assert reciprocal_label("through the arch") == "through the arch"
