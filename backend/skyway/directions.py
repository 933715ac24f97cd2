"""Walking directions from Mapbox.

Talks to the Mapbox Directions API over HTTP and returns a normalized
WalkResult. Knows nothing about indoor routing or instructions.
"""
import logging
from typing import Any, Dict, Optional

import requests

from .errors import DirectionsError
from .models import Coordinates, ProviderStep, WalkResult

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.mapbox.com/directions/v5/mapbox"


class MapboxDirectionsClient:
    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 5.0,
        session: Optional[requests.Session] = None,
    ):
        if not api_key:
            raise ValueError("Mapbox API key not set. Please set MAPBOX_API_KEY in the .env file.")
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout  # seconds to wait on Mapbox before giving up
        self.session = session or requests.Session()

    def format_coordinates(self, origin: Coordinates, destination: Coordinates) -> str:
        """Mapbox wants 'lon,lat;lon,lat'."""
        return f"{origin.longitude},{origin.latitude};{destination.longitude},{destination.latitude}"

    def walk(self, origin: Coordinates, destination: Coordinates) -> WalkResult:
        url = f"{self.base_url}/walking/{self.format_coordinates(origin, destination)}"
        params = {
            "access_token": self.api_key,
            "alternatives": "false",
            "continue_straight": "true",
            "geometries": "geojson",
            "overview": "full",
            "steps": "true",
        }
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.Timeout as exc:
            raise DirectionsError(f"Mapbox timed out after {self.timeout}s") from exc
        except requests.RequestException as exc:
            raise DirectionsError(f"Mapbox request failed: {exc}") from exc
        except ValueError as exc:
            raise DirectionsError("Mapbox returned invalid JSON") from exc

        return parse_walk_response(data)

    def close(self) -> None:
        self.session.close()


def _step_start(step: Dict[str, Any]) -> Coordinates:
    location = (step.get("maneuver") or {}).get("location")
    if not location:
        coords = (step.get("geometry") or {}).get("coordinates") or []
        location = coords[0] if coords else None
    if not location or len(location) < 2:
        raise DirectionsError("Mapbox step has no start location")
    lon, lat = location[0], location[1]
    return Coordinates(float(lat), float(lon))


def parse_walk_response(data: Dict[str, Any]) -> WalkResult:
    if data.get("code") != "Ok":
        raise DirectionsError(f"Mapbox error: {data.get('message', data.get('code', 'Unknown error'))}")
    routes = data.get("routes") or []
    if not routes:
        raise DirectionsError("Mapbox returned no routes")
    route = routes[0]
    legs = route.get("legs") or []
    if not legs:
        raise DirectionsError("Mapbox route has no legs")

    steps = tuple(
        ProviderStep(_step_start(s), (s.get("maneuver") or {}).get("instruction") or "")
        for s in legs[0].get("steps") or []
    )
    return WalkResult(
        steps=steps,
        distance_m=float(route.get("distance", 0.0)),
        duration_s=float(route.get("duration", 0.0)),
    )
