from __future__ import annotations

import pytest

from pystations.geo import distance_km
from pystations.models.station import Coordinates

CASABLANCA = Coordinates(latitude=33.5731, longitude=-7.5898)
RABAT = Coordinates(latitude=34.0209, longitude=-6.8416)


def test_distance_to_self_is_zero() -> None:
    assert distance_km(CASABLANCA, CASABLANCA) == 0.0


def test_distance_is_symmetric() -> None:
    pairs = [
        (CASABLANCA, RABAT),
        (Coordinates(latitude=-89.9, longitude=179.9), Coordinates(latitude=89.9, longitude=-179.9)),
        (Coordinates(latitude=0, longitude=0), Coordinates(latitude=0, longitude=180)),
    ]
    for a, b in pairs:
        assert distance_km(a, b) == distance_km(b, a)


def test_casablanca_to_rabat_is_about_85_km() -> None:
    assert distance_km(CASABLANCA, RABAT) == pytest.approx(85.2, abs=1.0)


def test_antipodal_points_are_half_the_circumference() -> None:
    d = distance_km(Coordinates(latitude=0, longitude=0), Coordinates(latitude=0, longitude=180))
    assert d == pytest.approx(6371.0 * 3.141592653589793, rel=1e-9)


def test_one_degree_of_latitude_is_about_111_km() -> None:
    d = distance_km(Coordinates(latitude=0, longitude=0), Coordinates(latitude=1, longitude=0))
    assert d == pytest.approx(111.19, abs=0.01)


def test_out_of_range_inputs_are_computed_numerically() -> None:
    odd = Coordinates.model_construct(latitude=120.0, longitude=400.0)
    assert distance_km(odd, odd) == 0.0
    assert distance_km(odd, CASABLANCA) >= 0.0
