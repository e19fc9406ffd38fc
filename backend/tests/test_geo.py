"""
Tests for distance and service-area matching
"""
import math

import pytest

from backend.utils.geo import (
    EARTH_RADIUS_KM, LatLng, Location, ServiceAreaSpec, haversine_km, is_job_in_service_areas
)

HALIFAX = LatLng(44.6488, -63.5752)
DARTMOUTH = LatLng(44.6713, -63.5772)
MONTREAL = LatLng(45.5017, -73.5673)


def area(point, radius_km):
    return ServiceAreaSpec(point.latitude, point.longitude, radius_km)


def at(point):
    return Location(coordinate=point, city='Somewhere')


class TestHaversine:

    def test_zero_distance(self):
        assert haversine_km(44.6488, -63.5752, 44.6488, -63.5752) == 0.0

    def test_symmetric(self):
        assert HALIFAX.distance_to(MONTREAL) == pytest.approx(MONTREAL.distance_to(HALIFAX))

    def test_known_distance(self):
        """Halifax to Montreal is roughly 790 km"""
        assert HALIFAX.distance_to(MONTREAL) == pytest.approx(790, rel=0.02)

    def test_short_distance(self):
        assert HALIFAX.distance_to(DARTMOUTH) == pytest.approx(2.5, abs=0.2)

    def test_antipodal_points(self):
        assert haversine_km(0, 0, 0, 180) == pytest.approx(math.pi * EARTH_RADIUS_KM)

    def test_nan_propagates(self):
        assert math.isnan(haversine_km(float('nan'), 0, 0, 0))


class TestServiceAreaMatching:

    def test_inside_radius(self):
        assert is_job_in_service_areas([area(HALIFAX, 25)], at(DARTMOUTH))

    def test_outside_radius(self):
        assert not is_job_in_service_areas([area(HALIFAX, 25)], at(MONTREAL))

    def test_boundary_is_inclusive(self):
        distance = DARTMOUTH.distance_to(HALIFAX)
        assert is_job_in_service_areas([area(HALIFAX, distance)], at(DARTMOUTH))

    def test_any_area_matches(self):
        areas = [area(MONTREAL, 10), area(HALIFAX, 25)]
        assert is_job_in_service_areas(areas, at(DARTMOUTH))

    def test_no_areas_sees_everything(self):
        assert is_job_in_service_areas([], at(MONTREAL))
        assert is_job_in_service_areas(None, at(MONTREAL))

    def test_job_without_coordinate_is_visible(self):
        location = Location.from_parts(city='Halifax')
        assert location.coordinate is None
        assert is_job_in_service_areas([area(MONTREAL, 5)], location)
        assert is_job_in_service_areas([area(MONTREAL, 5)], None)

    def test_nan_distance_fails_open(self):
        broken = ServiceAreaSpec(float('nan'), -63.0, 10)
        assert is_job_in_service_areas([broken], at(MONTREAL))


class TestLocation:

    def test_from_parts_needs_both_coordinates(self):
        assert Location.from_parts(latitude=44.6, longitude=None).coordinate is None
        assert Location.from_parts(latitude=44.6, longitude=-63.5).coordinate == LatLng(44.6, -63.5)

    def test_resolvable(self):
        assert Location.from_parts(city='Halifax').is_resolvable
        assert Location.from_parts(latitude=1, longitude=2).is_resolvable
        assert not Location.from_parts(city='   ').is_resolvable
        assert not Location().is_resolvable

    def test_to_dict(self):
        data = Location.from_parts(latitude=1.5, longitude=2.5, city='Truro').to_dict()
        assert data['latitude'] == 1.5
        assert data['longitude'] == 2.5
        assert data['city'] == 'Truro'
        assert data['zip_code'] is None

    def test_downtown_job_inside_nearby_area(self):
        job = Location.from_parts(latitude=44.6488, longitude=-63.5752)
        nearby = ServiceAreaSpec(44.6, -63.6, 25)
        assert haversine_km(44.6488, -63.5752, 44.6, -63.6) == pytest.approx(6.0, abs=0.5)
        assert is_job_in_service_areas([nearby], job)
        assert not is_job_in_service_areas([ServiceAreaSpec(45.5, -73.6, 25)], job)
