#!/usr/bin/env python3
"""
Route Progress - live vehicle progress along an OSRM route.

This package fetches routes from an OSRM server, measures how far a vehicle
has progressed along them and keeps a folium map of the route up to date on a
fixed refresh cycle.
"""
import importlib.metadata

__version__ = importlib.metadata.version("route-progress")

# Import main classes for public API
from .config import OverlayStyles, PolylineStyle, TrackerConfig
from .formatting import format_duration
from .geometry import Coordinate, haversine_distance
from .osrm import OSRMClient
from .overlay import OverlayArtifact, OverlayManager
from .progress import ProgressState, ProgressSummary, calculate_progress
from .route import RouteResult, TrackingParams
from .scheduler import RefreshScheduler, SchedulerState

__all__ = [
    "Coordinate",
    "OSRMClient",
    "OverlayArtifact",
    "OverlayManager",
    "OverlayStyles",
    "PolylineStyle",
    "ProgressState",
    "ProgressSummary",
    "RefreshScheduler",
    "RouteResult",
    "SchedulerState",
    "TrackerConfig",
    "TrackingParams",
    "calculate_progress",
    "format_duration",
    "haversine_distance",
]
