import pytest

from flighttracker.services.geometry import haversine_distance, initial_bearing


def test_one_degree_of_longitude_on_the_equator():
    assert haversine_distance(0.0, 0.0, 0.0, 1.0) == pytest.approx(111195, abs=1)
    assert initial_bearing(0.0, 0.0, 0.0, 1.0) == pytest.approx(90.0)


def test_bearing_is_normalized_to_positive_degrees():
    assert initial_bearing(0.0, 0.0, 1.0, 0.0) == pytest.approx(0.0)
    assert initial_bearing(0.0, 0.0, 0.0, -1.0) == pytest.approx(270.0)
    assert initial_bearing(0.0, 0.0, -1.0, 0.0) == pytest.approx(180.0)


def test_same_point_has_zero_distance():
    assert haversine_distance(51.47, -0.45, 51.47, -0.45) == 0
