"""Reverse geocoding and place search against a mocked Nominatim."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import requests

from earthai.models.map_models import Coordinates
from earthai.tools import geocoding_tool
from earthai.tools.geocoding_tool import (
    fallback_location_name,
    reverse_geocode,
    search_place_core,
)

TIMES_SQUARE = Coordinates(lat=40.758, lng=-73.9855)


def fake_response(payload, status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    return response


def test_fallback_name_rounds_to_four_decimals():
    assert fallback_location_name(Coordinates(lat=40.712776, lng=-74.005974)) == "Location (40.7128, -74.0060)"


def test_reverse_geocode_prefers_display_name():
    payload = {"display_name": "Times Square, Manhattan, New York, United States", "address": {"road": "7th Ave"}}

    with patch.object(geocoding_tool.requests, "get", return_value=fake_response(payload)) as get:
        name = reverse_geocode(TIMES_SQUARE)

    assert name == "Times Square, Manhattan, New York, United States"
    _, kwargs = get.call_args
    assert kwargs["params"]["lat"] == 40.758
    assert kwargs["params"]["lon"] == -73.9855
    assert kwargs["headers"]["User-Agent"] == "EarthAI/1.0"
    assert kwargs["headers"]["Accept-Language"] == "en"


def test_reverse_geocode_builds_name_from_address():
    payload = {
        "address": {
            "pedestrian": "Broadway Plaza",
            "town": "Springfield",
            "state": "Illinois",
            "country": "United States",
        }
    }

    with patch.object(geocoding_tool.requests, "get", return_value=fake_response(payload)):
        name = reverse_geocode(TIMES_SQUARE)

    assert name == "Broadway Plaza, Springfield, Illinois, United States"


def test_reverse_geocode_http_error_falls_back():
    with patch.object(geocoding_tool.requests, "get", return_value=fake_response({}, status_code=503)):
        assert reverse_geocode(TIMES_SQUARE) == "Location (40.7580, -73.9855)"


def test_reverse_geocode_network_error_falls_back():
    with patch.object(geocoding_tool.requests, "get", side_effect=requests.ConnectionError("offline")):
        assert reverse_geocode(TIMES_SQUARE) == "Location (40.7580, -73.9855)"


def test_reverse_geocode_bad_json_falls_back():
    response = fake_response(None)
    response.json.side_effect = ValueError("not json")

    with patch.object(geocoding_tool.requests, "get", return_value=response):
        assert reverse_geocode(TIMES_SQUARE) == "Location (40.7580, -73.9855)"


def test_reverse_geocode_empty_payload_falls_back():
    with patch.object(geocoding_tool.requests, "get", return_value=fake_response({"error": "Unable to geocode"})):
        assert reverse_geocode(TIMES_SQUARE) == "Location (40.7580, -73.9855)"


def test_search_place_drops_trailing_words_until_found():
    hit = {"lat": "40.7061", "lon": "-73.9969", "name": "Brooklyn Bridge", "addresstype": "road"}
    responses = [fake_response([]), fake_response([]), fake_response([hit])]

    with patch.object(geocoding_tool.requests, "get", side_effect=responses) as get:
        link = search_place_core("Brooklyn Bridge north walkway")

    queries = [call.kwargs["params"]["q"] for call in get.call_args_list]
    assert queries == ["Brooklyn Bridge north walkway", "Brooklyn Bridge north", "Brooklyn Bridge"]
    assert link.name == "Brooklyn Bridge"
    assert link.coordinates == Coordinates(lat=40.7061, lng=-73.9969)
    assert link.zoom == 16


def test_search_place_uses_zoom_for_address_type():
    hit = {"lat": "48.8566", "lon": "2.3522", "display_name": "Paris, Île-de-France, France", "addresstype": "city"}

    with patch.object(geocoding_tool.requests, "get", return_value=fake_response([hit])):
        link = search_place_core("Paris")

    assert link.name == "Paris"
    assert link.zoom == 12


def test_search_place_not_found():
    with patch.object(geocoding_tool.requests, "get", return_value=fake_response([])) as get:
        assert search_place_core("zzqx") is None

    assert get.call_count == 1


def test_search_place_gives_up_after_retries():
    with patch.object(geocoding_tool.requests, "get", return_value=fake_response([])) as get:
        assert search_place_core("a b c d e f g") is None

    assert get.call_count == 4


def test_search_place_network_error():
    with patch.object(geocoding_tool.requests, "get", side_effect=requests.Timeout("slow")):
        assert search_place_core("Central Park") is None
