"""
Geographic helpers for job visibility.

Distances are great-circle distances on a spherical Earth (haversine),
which is accurate to well under 1% at service-area scales.
"""
import math
from dataclasses import dataclass
from typing import Iterable, Optional

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance between two points given in decimal degrees.

    Args:
        lat1, lon1: First point
        lat2, lon2: Second point

    Returns:
        Distance in kilometres. NaN inputs yield NaN.
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    # Rounding can push a slightly past 1 for antipodal points
    a = min(1.0, a) if not math.isnan(a) else a
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


@dataclass(frozen=True)
class LatLng:
    latitude: float
    longitude: float

    def distance_to(self, other: 'LatLng') -> float:
        return haversine_km(self.latitude, self.longitude, other.latitude, other.longitude)


@dataclass(frozen=True)
class Location:
    """Where a job takes place. ``coordinate`` is None until the address is geocoded."""
    coordinate: Optional[LatLng] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None

    @classmethod
    def from_parts(cls, latitude=None, longitude=None, address=None, city=None, state=None, zip_code=None):
        coordinate = None
        if latitude is not None and longitude is not None:
            coordinate = LatLng(float(latitude), float(longitude))
        return cls(coordinate=coordinate, address=address, city=city, state=state, zip_code=zip_code)

    @property
    def is_resolvable(self) -> bool:
        """A location is good enough to publish when it has a coordinate or at least a city."""
        return self.coordinate is not None or bool(self.city and self.city.strip())

    def to_dict(self):
        return {
            'latitude': self.coordinate.latitude if self.coordinate else None,
            'longitude': self.coordinate.longitude if self.coordinate else None,
            'address': self.address,
            'city': self.city,
            'state': self.state,
            'zip_code': self.zip_code,
        }


@dataclass(frozen=True)
class ServiceAreaSpec:
    latitude: float
    longitude: float
    radius_km: float


def is_job_in_service_areas(areas: Iterable, location: Optional[Location]) -> bool:
    """
    Decide whether a job is visible to a contractor.

    ``areas`` is any iterable of objects exposing ``latitude``, ``longitude``
    and ``radius_km``. The check fails open: a contractor with no areas sees
    everything, and a job without a coordinate is shown to everyone.
    """
    areas = list(areas or [])
    if not areas:
        return True
    if location is None or location.coordinate is None:
        return True

    point = location.coordinate
    for area in areas:
        distance = haversine_km(point.latitude, point.longitude, area.latitude, area.longitude)
        if math.isnan(distance):
            return True
        if distance <= area.radius_km:
            return True
    return False
