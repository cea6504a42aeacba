import asyncio
import os
from unittest.mock import MagicMock, patch

import polyline
import pytest
import requests

from route_progress.config import TrackerConfig
from route_progress.geometry import Coordinate
from route_progress.osrm import (
    OSRMClient,
    OSRMResponseError,
    build_route_params,
    build_route_url,
    format_coordinates,
    parse_route_response,
)
from route_progress.route import RouteResult

START = Coordinate(4.676979, -74.062062)
END = Coordinate(4.609288, -74.09927)
VEHICLE = Coordinate(4.651721, -74.078671)

STEP_POINTS = [(4.67698, -74.06206), (4.65, -74.08), (4.60929, -74.09927)]


def polyline_response():
    return {
        "code": "Ok",
        "routes": [
            {
                "distance": 11873.4,
                "duration": 1312.6,
                "legs": [
                    {
                        "steps": [
                            {"geometry": polyline.encode(STEP_POINTS[:2])},
                            {"geometry": polyline.encode(STEP_POINTS[1:])},
                        ]
                    }
                ],
            }
        ],
    }


def mock_response(data):
    response = MagicMock()
    response.json.return_value = data
    response.raise_for_status.return_value = None
    return response


def fetch(client, origin, destination):
    return asyncio.run(client.fetch_route(origin, destination))


def test_format_coordinates_uses_lon_lat_order():
    assert format_coordinates([START, END]) == "-74.062062,4.676979;-74.09927,4.609288"


def test_build_route_url():
    url = build_route_url("https://router.example.org/", "driving", START, END)
    assert url == (
        "https://router.example.org/route/v1/driving/"
        "-74.062062,4.676979;-74.09927,4.609288"
    )


def test_build_route_params():
    assert build_route_params("polyline") == {
        "alternatives": "false",
        "steps": "true",
        "geometries": "polyline",
        "overview": "false",
    }
    assert build_route_params("geojson")["overview"] == "full"


@patch("route_progress.osrm.requests.get")
def test_identical_points_skip_the_network(mock_get):
    result = fetch(OSRMClient(), START, Coordinate(START.latitude, START.longitude))

    assert result == RouteResult.zero()
    mock_get.assert_not_called()


@patch("route_progress.osrm.requests.get")
def test_fetch_route_with_step_polylines(mock_get):
    mock_get.return_value = mock_response(polyline_response())
    config = TrackerConfig(osrm_base_url="http://osrm.local:5000", request_timeout=3.0)

    result = fetch(OSRMClient(config), START, END)

    assert result.distance == 11873.4
    assert result.duration == 1312.6
    assert len(result.geometry) == 4
    assert result.geometry[0] == Coordinate(*STEP_POINTS[0])
    assert result.geometry[-1] == Coordinate(*STEP_POINTS[-1])

    mock_get.assert_called_once()
    args, kwargs = mock_get.call_args
    assert args[0] == (
        "http://osrm.local:5000/route/v1/driving/-74.062062,4.676979;-74.09927,4.609288"
    )
    assert kwargs["params"]["steps"] == "true"
    assert kwargs["timeout"] == 3.0


@patch("route_progress.osrm.requests.get")
def test_fetch_route_with_geojson_geometry(mock_get):
    mock_get.return_value = mock_response(
        {
            "code": "Ok",
            "routes": [
                {
                    "distance": 5000,
                    "duration": 600,
                    "geometry": {
                        "type": "LineString",
                        "coordinates": [[-74.078671, 4.651721], [-74.09927, 4.609288]],
                    },
                    "legs": [{"steps": [{"maneuver": {"type": "depart"}}]}],
                }
            ],
        }
    )

    result = fetch(OSRMClient(TrackerConfig(geometries="geojson")), VEHICLE, END)

    assert result == RouteResult(5000.0, 600.0, (VEHICLE, END))
    assert mock_get.call_args[1]["params"]["geometries"] == "geojson"


@patch("route_progress.osrm.requests.get")
def test_empty_route_list_yields_zero_result(mock_get):
    mock_get.return_value = mock_response({"code": "Ok", "routes": []})
    assert fetch(OSRMClient(), START, END) == RouteResult.zero()


@patch("route_progress.osrm.requests.get")
def test_osrm_error_code_yields_zero_result(mock_get):
    mock_get.return_value = mock_response({"code": "NoRoute", "message": "Impossible route"})
    assert fetch(OSRMClient(), START, END) == RouteResult.zero()


@patch("route_progress.osrm.requests.get")
def test_network_error_yields_zero_result(mock_get):
    mock_get.side_effect = requests.exceptions.ConnectionError("unreachable host")
    assert fetch(OSRMClient(), START, END) == RouteResult.zero()


@patch("route_progress.osrm.requests.get")
def test_http_error_yields_zero_result(mock_get):
    response = mock_response({})
    response.raise_for_status.side_effect = requests.exceptions.HTTPError("502 Bad Gateway")
    mock_get.return_value = response
    assert fetch(OSRMClient(), START, END) == RouteResult.zero()


@patch("route_progress.osrm.requests.get")
def test_non_json_body_yields_zero_result(mock_get):
    response = mock_response(None)
    response.json.side_effect = ValueError("Expecting value")
    mock_get.return_value = response
    assert fetch(OSRMClient(), START, END) == RouteResult.zero()


@patch("route_progress.osrm.requests.get")
def test_malformed_route_yields_zero_result(mock_get):
    mock_get.return_value = mock_response({"code": "Ok", "routes": [{"distance": "far"}]})
    assert fetch(OSRMClient(), START, END) == RouteResult.zero()


@patch("route_progress.osrm.requests.get")
def test_distance_too_large_for_a_float_yields_zero_result(mock_get):
    # json.loads keeps "1000...0" as an int that float() cannot convert
    mock_get.return_value = mock_response(
        {"code": "Ok", "routes": [{"distance": 10**400, "duration": 60}]}
    )
    assert fetch(OSRMClient(), START, END) == RouteResult.zero()


@patch("route_progress.osrm.requests.get")
def test_oversized_geojson_coordinate_yields_zero_result(mock_get):
    mock_get.return_value = mock_response(
        {
            "code": "Ok",
            "routes": [
                {
                    "distance": 5000,
                    "duration": 600,
                    "geometry": {
                        "type": "LineString",
                        "coordinates": [[10**400, 4.651721], [-74.09927, 4.609288]],
                    },
                }
            ],
        }
    )
    assert fetch(OSRMClient(TrackerConfig(geometries="geojson")), VEHICLE, END) == RouteResult.zero()


@pytest.mark.parametrize("field", ["distance", "duration"])
@patch("route_progress.osrm.requests.get")
def test_infinite_route_values_yield_zero_result(mock_get, field):
    route = {"distance": 5000.0, "duration": 600.0}
    route[field] = float("inf")  # what json.loads makes of 1e400
    mock_get.return_value = mock_response({"code": "Ok", "routes": [route]})
    assert fetch(OSRMClient(), START, END) == RouteResult.zero()


@pytest.mark.parametrize("value", [float("inf"), float("nan")])
def test_parse_route_response_rejects_non_finite_distance(value):
    with pytest.raises(OSRMResponseError):
        parse_route_response({"routes": [{"distance": value, "duration": 60}]})


@patch("route_progress.osrm.requests.get")
def test_concurrent_fetches_are_independent(mock_get):
    def respond(url, params, timeout):
        distance = 1000.0 if url.endswith("-74.09927,4.609288") else 2000.0
        return mock_response({"code": "Ok", "routes": [{"distance": distance, "duration": 60}]})

    mock_get.side_effect = respond
    client = OSRMClient()

    async def both():
        return await asyncio.gather(
            client.fetch_route(START, END), client.fetch_route(VEHICLE, START)
        )

    to_end, to_start = asyncio.run(both())
    assert to_end.distance == 1000.0
    assert to_start.distance == 2000.0


def test_parse_route_response_rejects_missing_routes():
    with pytest.raises(OSRMResponseError):
        parse_route_response({"code": "Ok"})
    with pytest.raises(OSRMResponseError):
        parse_route_response(["not", "a", "dict"])


def test_parse_route_response_clamps_negative_values():
    result = parse_route_response({"routes": [{"distance": -1, "duration": -2}]})
    assert result == RouteResult.zero()


@pytest.mark.skipif(
    os.environ.get("ROUTE_PROGRESS_LIVE") != "1",
    reason="set ROUTE_PROGRESS_LIVE=1 to query a real OSRM server",
)
def test_live_route_between_bogota_points():
    result = fetch(OSRMClient(TrackerConfig(osrm_base_url=os.environ.get(
        "ROUTE_PROGRESS_OSRM_URL", "https://router.project-osrm.org"))), START, END)
    assert result.distance > 0
    assert len(result.geometry) > 1
