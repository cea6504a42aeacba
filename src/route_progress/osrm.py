"""
OSRM route fetch adapter.

Talks to an OSRM compatible ``/route/v1`` endpoint and normalizes the answer
into a RouteResult. Every failure degrades to ``RouteResult.zero()``: a routing
failure should degrade the display, not stop the refresh loop.
"""

from typing import Any, Dict, List, Optional
import asyncio
import logging
import math

import requests

from .config import TrackerConfig
from .decoder import decode_route_geometry
from .geometry import Coordinate
from .route import RouteResult

logger = logging.getLogger(__name__)


class OSRMResponseError(Exception):
    """The routing service answered, but not with a usable route."""


def format_coordinates(coords: List[Coordinate]) -> str:
    """Convert (lat, lon) coordinates to OSRM's 'lon,lat;lon,lat' path segment."""
    return ";".join(f"{c.longitude},{c.latitude}" for c in coords)


def build_route_url(
    base_url: str, profile: str, origin: Coordinate, destination: Coordinate
) -> str:
    return (
        f"{base_url.rstrip('/')}/route/v1/{profile}/"
        f"{format_coordinates([origin, destination])}"
    )


def build_route_params(geometries: str) -> Dict[str, str]:
    """Query options: single route, step detail, geometry in the given format."""
    return {
        "alternatives": "false",
        "steps": "true",
        "geometries": geometries,
        # Encoded geometry is taken from the steps, so the overview is not needed
        "overview": "full" if geometries == "geojson" else "false",
    }


def parse_route_response(data: Any, precision: int = 5) -> RouteResult:
    """
    Normalize a decoded OSRM JSON response.

    Args:
        data: Parsed JSON body of a ``/route`` response
        precision: Encoded polyline precision

    Returns:
        RouteResult built from the first route

    Raises:
        OSRMResponseError: If the response carries no usable route
    """
    if not isinstance(data, dict):
        raise OSRMResponseError(f"Unexpected response type {type(data).__name__}")

    code = data.get("code", "Ok")
    if code != "Ok":
        raise OSRMResponseError(f"OSRM error {code}: {data.get('message', 'no message')}")

    routes = data.get("routes")
    if not routes:
        raise OSRMResponseError("OSRM returned no routes")

    route = routes[0]
    if not isinstance(route, dict):
        raise OSRMResponseError("Malformed route object")

    distance = float(route.get("distance") or 0.0)
    duration = float(route.get("duration") or 0.0)
    if not (math.isfinite(distance) and math.isfinite(duration)):
        raise OSRMResponseError(
            f"Route distance and duration must be finite, got {distance}, {duration}"
        )
    geometry = decode_route_geometry(route, precision)

    return RouteResult(
        distance=max(0.0, distance),
        duration=max(0.0, duration),
        geometry=geometry,
    )


class OSRMClient:
    """
    Route fetch adapter for an OSRM routing service.

    The client holds configuration only, so concurrent ``fetch_route`` calls
    share no mutable state.
    """

    def __init__(self, config: Optional[TrackerConfig] = None):
        self.config = config or TrackerConfig()

    def _get_route(self, origin: Coordinate, destination: Coordinate) -> RouteResult:
        url = build_route_url(
            self.config.osrm_base_url, self.config.profile, origin, destination
        )
        params = build_route_params(self.config.geometries)
        logger.debug(f"Requesting OSRM route: {url} {params}")

        response = requests.get(url, params=params, timeout=self.config.request_timeout)
        response.raise_for_status()
        return parse_route_response(response.json(), self.config.polyline_precision)

    async def fetch_route(
        self, origin: Coordinate, destination: Coordinate
    ) -> RouteResult:
        """
        Fetch the route between two coordinates.

        Identical origin and destination short-circuit to the zero result
        without a network call.

        Args:
            origin: Route origin
            destination: Route destination

        Returns:
            RouteResult for the first route, or RouteResult.zero() on any failure
        """
        if origin == destination:
            logger.warning(
                f"Origin and destination are identical ({origin.latitude}, {origin.longitude}); "
                "skipping route request"
            )
            return RouteResult.zero()

        try:
            result = await asyncio.to_thread(self._get_route, origin, destination)
        except requests.exceptions.RequestException as e:
            logger.warning(f"Route request failed: {e}")
            return RouteResult.zero()
        except OSRMResponseError as e:
            logger.warning(f"No usable route: {e}")
            return RouteResult.zero()
        except (
            ValueError,
            TypeError,
            KeyError,
            IndexError,
            AttributeError,
            ArithmeticError,
        ) as e:
            logger.warning(f"Malformed routing response: {e}")
            return RouteResult.zero()

        logger.debug(
            f"Route {origin} -> {destination}: {result.distance:.0f} m, "
            f"{result.duration:.0f} s, {len(result)} points"
        )
        return result
