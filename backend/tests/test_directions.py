from unittest.mock import MagicMock

import pytest
import requests

from backend.skyway.directions import MapboxDirectionsClient, parse_walk_response
from backend.skyway.errors import DirectionsError, ExternalProviderUnavailable
from backend.skyway.models import Coordinates

ORIGIN = Coordinates(44.9740, -93.2277)
DEST = Coordinates(44.9727, -93.2354)

PAYLOAD = {
    "code": "Ok",
    "routes": [{
        "distance": 642.3,
        "duration": 461.9,
        "legs": [{
            "steps": [
                {"maneuver": {"location": [-93.2277, 44.9740], "instruction": "Walk west on Washington Avenue SE."},
                 "geometry": {"coordinates": [[-93.2277, 44.9740], [-93.2301, 44.9739]]}},
                {"maneuver": {"location": [-93.2301, 44.9739], "instruction": "Turn left onto Church Street SE."},
                 "geometry": {"coordinates": [[-93.2301, 44.9739], [-93.2354, 44.9728]]}},
                {"maneuver": {"location": [-93.2354, 44.9728], "instruction": "You have arrived at your destination."},
                 "geometry": {"coordinates": [[-93.2354, 44.9728]]}},
            ],
        }],
    }],
}


def _client(response=None, error=None):
    session = MagicMock()
    if error is not None:
        session.get.side_effect = error
    else:
        session.get.return_value = response
    return MapboxDirectionsClient("pk.test", timeout=3.0, session=session), session


def _response(data, status_error=None):
    resp = MagicMock()
    resp.json.return_value = data
    resp.raise_for_status = MagicMock(side_effect=status_error)
    return resp


def test_parse_walk_response():
    walk = parse_walk_response(PAYLOAD)
    assert walk.distance_m == pytest.approx(642.3)
    assert walk.duration_s == pytest.approx(461.9)
    assert len(walk.steps) == 3
    assert walk.steps[1].point == Coordinates(44.9739, -93.2301)
    assert walk.steps[1].maneuver_text == "Turn left onto Church Street SE."


def test_parse_falls_back_to_geometry_start():
    data = {"code": "Ok", "routes": [{"distance": 1, "duration": 1, "legs": [{"steps": [
        {"maneuver": {"instruction": "Head north."}, "geometry": {"coordinates": [[-93.1, 44.9]]}},
    ]}]}]}
    assert parse_walk_response(data).steps[0].point == Coordinates(44.9, -93.1)


@pytest.mark.parametrize("data", [
    {"code": "NoRoute", "message": "No route found"},
    {"code": "Ok", "routes": []},
    {"code": "Ok", "routes": [{"legs": []}]},
    {"code": "Ok", "routes": [{"legs": [{"steps": [{"maneuver": {}}]}]}]},
])
def test_parse_rejects_bad_payloads(data):
    with pytest.raises(DirectionsError):
        parse_walk_response(data)


def test_walk_builds_mapbox_request():
    client, session = _client(_response(PAYLOAD))
    walk = client.walk(ORIGIN, DEST)

    assert len(walk.steps) == 3
    url = session.get.call_args.args[0]
    kwargs = session.get.call_args.kwargs
    assert url == "https://api.mapbox.com/directions/v5/mapbox/walking/-93.2277,44.974;-93.2354,44.9727"
    assert kwargs["timeout"] == 3.0
    assert kwargs["params"]["steps"] == "true"
    assert kwargs["params"]["access_token"] == "pk.test"


def test_walk_timeout_is_directions_error():
    client, _ = _client(error=requests.Timeout("slow"))
    with pytest.raises(DirectionsError, match="timed out"):
        client.walk(ORIGIN, DEST)


def test_walk_http_error_is_provider_unavailable():
    client, _ = _client(_response({}, status_error=requests.HTTPError("401 Unauthorized")))
    with pytest.raises(ExternalProviderUnavailable):
        client.walk(ORIGIN, DEST)


def test_walk_invalid_json():
    resp = _response(None)
    resp.json.side_effect = ValueError("no json")
    client, _ = _client(resp)
    with pytest.raises(DirectionsError):
        client.walk(ORIGIN, DEST)


def test_missing_api_key():
    with pytest.raises(ValueError):
        MapboxDirectionsClient("")
