"""
Route and tracking input data models.
"""

from dataclasses import dataclass
from typing import Tuple
import math

from .geometry import Coordinate


@dataclass(frozen=True)
class RouteResult:
    """
    Normalized result of one routing request.

    A zero distance, zero duration and empty geometry mean the route could not
    be determined. That is a valid result, not an error.
    """

    distance: float = 0.0
    duration: float = 0.0
    geometry: Tuple[Coordinate, ...] = ()

    def __post_init__(self):
        if not math.isfinite(self.distance) or self.distance < 0:
            raise ValueError(f"Route distance must be finite and non-negative: {self.distance}")
        if not math.isfinite(self.duration) or self.duration < 0:
            raise ValueError(f"Route duration must be finite and non-negative: {self.duration}")
        # Accept any sequence but store an immutable tuple
        object.__setattr__(self, "geometry", tuple(self.geometry))

    @classmethod
    def zero(cls) -> "RouteResult":
        """Return the "could not be determined" result."""
        return cls(0.0, 0.0, ())

    @property
    def is_empty(self) -> bool:
        return not self.geometry

    def __len__(self) -> int:
        return len(self.geometry)


@dataclass(frozen=True)
class TrackingParams:
    """Snapshot of the tracking input for one refresh cycle."""

    start: Coordinate
    end: Coordinate
    vehicle_location: Coordinate
    is_routing: bool = True

    @property
    def target(self) -> Coordinate:
        """End of the vehicle leg: the destination while routing, else the origin."""
        return self.end if self.is_routing else self.start
