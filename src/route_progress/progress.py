"""
Progress of a vehicle along a reference route.
"""

from dataclasses import dataclass
from enum import Enum
import logging
import math

from .formatting import format_duration, format_km
from .geometry import Coordinate, haversine_distance
from .route import RouteResult, TrackingParams

logger = logging.getLogger(__name__)


class ProgressState(Enum):
    """Whether progress could be measured, and if so whether it has begun."""

    UNKNOWN = "unknown"
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"


def calculate_progress(
    vehicle: Coordinate,
    start: Coordinate,
    end: Coordinate,
    total_distance: float,
) -> float:
    """
    Calculate the percentage of a route already covered by a vehicle.

    Covered distance is the route's total distance minus the straight-line
    distance from the vehicle to the end of the route.

    Args:
        vehicle: Current vehicle position
        start: Route start (kept for symmetry with the route definition)
        end: Route end
        total_distance: Distance of the full start-to-end route in meters

    Returns:
        Percentage in [0, 100]

    Raises:
        ValueError: If total_distance is not positive; progress is undefined
    """
    if not (math.isfinite(total_distance) and total_distance > 0):
        raise ValueError(f"Progress is undefined for route distance {total_distance}")

    covered = total_distance - haversine_distance(vehicle, end)
    percent = covered / total_distance * 100
    return min(max(percent, 0.0), 100.0)


@dataclass(frozen=True)
class ProgressSummary:
    """Display-ready summary of one refresh cycle."""

    total_distance_km: str = "0.00"
    vehicle_to_target_km: str = "0.00"
    progress_percent: str = "0.00"
    estimated_time: str = "0h 0m"
    total_estimated_time: str = "0h 0m"
    progress_state: ProgressState = ProgressState.UNKNOWN

    @property
    def route_undetermined(self) -> bool:
        """True when the full route could not be determined."""
        return self.progress_state is ProgressState.UNKNOWN

    def as_dict(self) -> dict:
        return {
            "totalDistanceKm": self.total_distance_km,
            "vehicleToTargetKm": self.vehicle_to_target_km,
            "progressPercent": self.progress_percent,
            "estimatedTime": self.estimated_time,
            "totalEstimatedTime": self.total_estimated_time,
            "progressState": self.progress_state.value,
            "routeUndetermined": self.route_undetermined,
        }


def build_summary(
    params: TrackingParams, full_route: RouteResult, vehicle_leg: RouteResult
) -> ProgressSummary:
    """
    Build the summary for one cycle from the full route and the vehicle leg.

    A full route without a positive finite distance yields ProgressState.UNKNOWN
    instead of a division by zero.
    """
    if math.isfinite(full_route.distance) and full_route.distance > 0:
        percent = calculate_progress(
            params.vehicle_location, params.start, params.end, full_route.distance
        )
        state = ProgressState.IN_PROGRESS if percent > 0 else ProgressState.NOT_STARTED
    else:
        logger.debug("Full route distance is zero; progress unknown")
        percent = 0.0
        state = ProgressState.UNKNOWN

    return ProgressSummary(
        total_distance_km=format_km(full_route.distance),
        vehicle_to_target_km=format_km(vehicle_leg.distance),
        progress_percent=f"{percent:.2f}",
        estimated_time=format_duration(vehicle_leg.duration),
        total_estimated_time=format_duration(full_route.duration),
        progress_state=state,
    )
