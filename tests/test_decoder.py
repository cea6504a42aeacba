import polyline
import pytest

from route_progress.decoder import (
    GeoJsonDecoder,
    StepPolylineDecoder,
    decode_route_geometry,
    select_decoder,
)
from route_progress.geometry import Coordinate

# Reference polyline from the encoded polyline algorithm documentation
REFERENCE_POLYLINE = "_p~iF~ps|U_ulLnnqC_mqNvxq`@"
REFERENCE_POINTS = [(38.5, -120.2), (40.7, -120.95), (43.252, -126.453)]


def steps_route(*step_geometries):
    return {
        "distance": 100.0,
        "duration": 10.0,
        "legs": [{"steps": [{"geometry": g} for g in step_geometries]}],
    }


def test_step_decoder_decodes_reference_polyline():
    points = StepPolylineDecoder().decode(steps_route(REFERENCE_POLYLINE))
    assert [(p.latitude, p.longitude) for p in points] == pytest.approx(REFERENCE_POINTS)


def test_step_decoder_concatenates_steps_and_legs_in_order():
    first = [(4.676979, -74.062062), (4.66, -74.07)]
    second = [(4.66, -74.07), (4.64, -74.08)]
    third = [(4.64, -74.08), (4.609288, -74.09927)]
    route = {
        "legs": [
            {"steps": [{"geometry": polyline.encode(first)}, {"geometry": polyline.encode(second)}]},
            {"steps": [{"geometry": polyline.encode(third)}]},
        ]
    }

    points = StepPolylineDecoder().decode(route)

    assert len(points) == 6
    assert points[0] == Coordinate(4.67698, -74.06206)
    assert points[-1] == Coordinate(4.60929, -74.09927)
    assert [round(p.latitude, 2) for p in points] == [4.68, 4.66, 4.66, 4.64, 4.64, 4.61]


def test_step_decoder_skips_empty_and_missing_geometry():
    route = {
        "legs": [
            {"steps": [{"geometry": ""}, {}, {"geometry": REFERENCE_POLYLINE}, {"geometry": None}]},
            {},
        ]
    }
    assert len(StepPolylineDecoder().decode(route)) == 3


def test_step_decoder_precision_six():
    encoded = polyline.encode([(4.676979, -74.062062)], 6)
    points = StepPolylineDecoder(precision=6).decode(steps_route(encoded))
    assert points == (Coordinate(4.676979, -74.062062),)


def test_geojson_decoder_swaps_axis_order():
    route = {"geometry": {"type": "LineString", "coordinates": [[-74.062062, 4.676979], [-74.09927, 4.609288]]}}
    assert GeoJsonDecoder().decode(route) == (
        Coordinate(4.676979, -74.062062),
        Coordinate(4.609288, -74.09927),
    )


def test_select_decoder_by_response_shape():
    assert isinstance(select_decoder(steps_route(REFERENCE_POLYLINE)), StepPolylineDecoder)
    assert isinstance(
        select_decoder({"geometry": {"coordinates": []}, "legs": [{"steps": [{"maneuver": {}}]}]}),
        GeoJsonDecoder,
    )


def test_select_decoder_passes_precision():
    decoder = select_decoder(steps_route(REFERENCE_POLYLINE), precision=6)
    assert decoder.precision == 6


def test_route_without_geometry_decodes_to_nothing():
    assert decode_route_geometry({"distance": 10.0, "legs": [{"steps": []}]}) == ()
    assert decode_route_geometry({}) == ()
