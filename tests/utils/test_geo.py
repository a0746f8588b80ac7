import pytest

from pryvo.utils.geo import distance_km, has_coordinates, haversine_distance


def test_haversine_same_point_is_zero():
    assert haversine_distance(52.52, 13.405, 52.52, 13.405) == pytest.approx(0.0)


def test_haversine_known_distance():
    # Berlin -> Paris, roughly 878 km
    assert haversine_distance(52.52, 13.405, 48.8566, 2.3522) == pytest.approx(878, abs=5)


def test_haversine_small_offset_near_origin():
    assert haversine_distance(0.0, 0.0, 0.01, 0.01) == pytest.approx(1.5725, abs=0.01)


def test_distance_unknown_when_either_point_missing():
    assert distance_km(None, (1.0, 1.0)) is None
    assert distance_km((1.0, 1.0), None) is None
    assert distance_km(None, None) is None
    assert distance_km((None, 1.0), (1.0, 1.0)) is None


def test_origin_is_a_real_point():
    assert has_coordinates((0.0, 0.0))
    assert distance_km((0.0, 0.0), (0.0, 0.0)) == pytest.approx(0.0)
