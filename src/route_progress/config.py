from dataclasses import dataclass, field
from typing import Optional

DEFAULT_OSRM_URL = "https://router.project-osrm.org"

# Polyline precision for each OSRM "geometries" option that returns encoded strings
POLYLINE_PRECISIONS = {"polyline": 5, "polyline6": 6}
GEOMETRY_FORMATS = ("polyline", "polyline6", "geojson")


@dataclass(frozen=True)
class PolylineStyle:
    """Visual style of a drawn route polyline."""

    color: str
    dash_array: Optional[str] = None
    weight: int = 5
    opacity: float = 0.8


@dataclass(frozen=True)
class OverlayStyles:
    """Fixed palette for route overlays and markers."""

    full_route: PolylineStyle = PolylineStyle(color="green")
    to_destination: PolylineStyle = PolylineStyle(color="red", dash_array="5,10")
    to_origin: PolylineStyle = PolylineStyle(color="blue", dash_array="5,10")
    start_marker_color: str = "green"
    end_marker_color: str = "red"
    vehicle_marker_color: str = "blue"
    vehicle_icon: str = "car"

    def vehicle_leg(self, is_routing: bool) -> PolylineStyle:
        return self.to_destination if is_routing else self.to_origin


@dataclass(frozen=True)
class TrackerConfig:
    """Configuration for the route progress tracker."""

    osrm_base_url: str = DEFAULT_OSRM_URL
    profile: str = "driving"
    geometries: str = "polyline"
    request_timeout: float = 10.0
    refresh_interval: float = 60.0
    zoom: int = 10
    styles: OverlayStyles = field(default_factory=OverlayStyles)
    log_level: str = "INFO"
    metrics: bool = False

    def __post_init__(self):
        if self.geometries not in GEOMETRY_FORMATS:
            raise ValueError(
                f"Unsupported geometries {self.geometries!r}, expected one of {GEOMETRY_FORMATS}"
            )
        if self.refresh_interval <= 0:
            raise ValueError("refresh_interval must be positive")

    @property
    def polyline_precision(self) -> int:
        return POLYLINE_PRECISIONS.get(self.geometries, 5)
