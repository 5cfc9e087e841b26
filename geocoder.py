from typing import Any, Dict, Optional

import requests

from errors import GeocoderError
from logging_setup import get_logger
from settings import GEOCODER_API_KEY, GEOCODER_URL

logger = get_logger(__name__)

REQUEST_TIMEOUT = 10  # seconds


class MapQuestGeocoder:
    """Resolve a free-form address or postal code with the MapQuest geocoding API."""

    def __init__(self, api_key: Optional[str], url: str = GEOCODER_URL):
        self.api_key = api_key
        self.url = url

    def geocode(self, location: str) -> Dict[str, Any]:
        if not self.api_key:
            raise GeocoderError("Geocoder API key is not configured")
        try:
            resp = requests.get(
                self.url,
                params={"key": self.api_key, "location": location, "maxResults": 1},
                timeout=REQUEST_TIMEOUT,
            )
            resp.raise_for_status()
            body = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.error("geocode_request_failed", location=location, error=str(e))
            raise GeocoderError(f"Geocoding failed for '{location}'") from e

        results = body.get("results") or []
        locations = results[0].get("locations") if results else None
        if not locations:
            raise GeocoderError(f"No geocoding result for '{location}'")
        loc = locations[0]
        lat_lng = loc.get("latLng") or {}
        if "lat" not in lat_lng or "lng" not in lat_lng:
            raise GeocoderError(f"No geocoding result for '{location}'")
        parts = [loc.get("street"), loc.get("adminArea5"), loc.get("adminArea3"), loc.get("postalCode"), loc.get("adminArea1")]
        return {
            "latitude": lat_lng["lat"],
            "longitude": lat_lng["lng"],
            "formatted_address": ", ".join(p for p in parts if p),
            "street": loc.get("street") or None,
            "city": loc.get("adminArea5") or None,
            "state": loc.get("adminArea3") or None,
            "zipcode": loc.get("postalCode") or None,
            "country": loc.get("adminArea1") or None,
        }


_geocoder = MapQuestGeocoder(GEOCODER_API_KEY)


def get_geocoder():
    return _geocoder


def to_location(result: Dict[str, Any]) -> Dict[str, Any]:
    """Turn a geocoder result into the stored GeoJSON location."""
    return {
        "type": "Point",
        "coordinates": [result["longitude"], result["latitude"]],
        "formatted_address": result.get("formatted_address"),
        "street": result.get("street"),
        "city": result.get("city"),
        "state": result.get("state"),
        "zipcode": result.get("zipcode"),
        "country": result.get("country"),
    }
