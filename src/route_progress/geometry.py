"""
Geographic coordinate type and great-circle distance.
"""

from dataclasses import dataclass
from typing import List
import math

# Mean Earth radius in meters
EARTH_RADIUS_M = 6371000.0


@dataclass(frozen=True)
class Coordinate:
    """An immutable geographic position in (latitude, longitude) order."""

    latitude: float
    longitude: float

    def __post_init__(self):
        if not (math.isfinite(self.latitude) and math.isfinite(self.longitude)):
            raise ValueError(
                f"Coordinate must be finite, got ({self.latitude}, {self.longitude})"
            )
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"Latitude {self.latitude} is outside [-90, 90]")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"Longitude {self.longitude} is outside [-180, 180]")

    @classmethod
    def parse(cls, text: str) -> "Coordinate":
        """
        Parse a "lat,lon" string.

        Args:
            text: Latitude and longitude in decimal degrees separated by a comma

        Returns:
            Coordinate for the parsed position

        Raises:
            ValueError: If the text is not two comma separated numbers or the
                        position is out of range
        """
        parts = text.split(",")
        if len(parts) != 2:
            raise ValueError(f"Expected 'lat,lon', got {text!r}")
        return cls(float(parts[0].strip()), float(parts[1].strip()))

    def as_list(self) -> List[float]:
        """Return [lat, lon] as expected by folium/Leaflet."""
        return [self.latitude, self.longitude]


def haversine_distance(coord1: Coordinate, coord2: Coordinate) -> float:
    """
    Calculate the great-circle distance between two coordinates.

    Args:
        coord1: First coordinate
        coord2: Second coordinate

    Returns:
        Distance in meters on a sphere of radius EARTH_RADIUS_M
    """
    lat1, lon1 = math.radians(coord1.latitude), math.radians(coord1.longitude)
    lat2, lon2 = math.radians(coord2.latitude), math.radians(coord2.longitude)

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    )
    # Rounding can push a marginally above 1 for antipodal points
    a = min(1.0, a)

    return 2 * EARTH_RADIUS_M * math.atan2(math.sqrt(a), math.sqrt(1 - a))
