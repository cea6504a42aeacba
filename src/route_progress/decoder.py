"""
Decoding of OSRM route geometry into (lat, lon) coordinate sequences.

OSRM returns route geometry in one of two shapes depending on the requested
``geometries`` option:

* ``polyline`` / ``polyline6``: every step of every leg carries an encoded
  polyline string in (lat, lon) order.
* ``geojson``: the route carries a GeoJSON LineString whose coordinates are
  [lon, lat] pairs.

Both are normalized here to a tuple of Coordinate in (lat, lon) order so that
nothing downstream ever deals with the provider's axis order.
"""

from typing import Any, Dict, List, Tuple
import logging

import polyline

from .geometry import Coordinate

logger = logging.getLogger(__name__)

DEFAULT_POLYLINE_PRECISION = 5


class GeometryDecoder:
    """Base class for route geometry decoding strategies."""

    def decode(self, route: Dict[str, Any]) -> Tuple[Coordinate, ...]:
        raise NotImplementedError


class StepPolylineDecoder(GeometryDecoder):
    """Concatenates the encoded polylines of every step of every leg."""

    def __init__(self, precision: int = DEFAULT_POLYLINE_PRECISION):
        self.precision = precision

    def decode(self, route: Dict[str, Any]) -> Tuple[Coordinate, ...]:
        points: List[Coordinate] = []
        for leg in route.get("legs") or []:
            for step in leg.get("steps") or []:
                encoded = step.get("geometry")
                if not encoded:
                    continue
                for lat, lon in polyline.decode(encoded, self.precision):
                    points.append(Coordinate(lat, lon))
        return tuple(points)


class GeoJsonDecoder(GeometryDecoder):
    """Swaps GeoJSON [lon, lat] pairs into (lat, lon) coordinates."""

    def decode(self, route: Dict[str, Any]) -> Tuple[Coordinate, ...]:
        geometry = route.get("geometry") or {}
        coordinates = geometry.get("coordinates") or []
        return tuple(Coordinate(pair[1], pair[0]) for pair in coordinates)


class _EmptyDecoder(GeometryDecoder):
    def decode(self, route: Dict[str, Any]) -> Tuple[Coordinate, ...]:
        return ()


def _has_step_polylines(route: Dict[str, Any]) -> bool:
    for leg in route.get("legs") or []:
        for step in leg.get("steps") or []:
            if isinstance(step.get("geometry"), str):
                return True
    return False


def select_decoder(
    route: Dict[str, Any], precision: int = DEFAULT_POLYLINE_PRECISION
) -> GeometryDecoder:
    """
    Pick the decoding strategy matching the shape of an OSRM route object.

    Args:
        route: A single element of an OSRM response's ``routes`` array
        precision: Decimal precision of encoded polylines (5 or 6)

    Returns:
        GeometryDecoder able to decode the route. Routes without any
        recognizable geometry get a decoder that yields no points.
    """
    if _has_step_polylines(route):
        return StepPolylineDecoder(precision)

    geometry = route.get("geometry")
    if isinstance(geometry, dict) and "coordinates" in geometry:
        return GeoJsonDecoder()

    logger.debug("Route has no recognizable geometry")
    return _EmptyDecoder()


def decode_route_geometry(
    route: Dict[str, Any], precision: int = DEFAULT_POLYLINE_PRECISION
) -> Tuple[Coordinate, ...]:
    """Decode an OSRM route object's geometry into (lat, lon) coordinates."""
    decoder = select_decoder(route, precision)
    points = decoder.decode(route)
    logger.debug(f"Decoded {len(points)} points with {type(decoder).__name__}")
    return points
