"""Reverse geocoding via Nominatim."""
import logging
import requests

logger = logging.getLogger(__name__)


def format_coordinates(lat: float, lng: float) -> str:
    return f"{lat}, {lng}"


class Geocoder:
    """Coordinates to a human-readable address, best effort."""

    def __init__(self, url: str, timeout: float = 5.0, user_agent: str = "civicfix/1.0"):
        self.url = url
        self.timeout = timeout
        self.user_agent = user_agent

    def reverse(self, lat: float, lng: float) -> str:
        """Return the display name for a point, or the raw coordinates on failure."""
        params = {
            "format": "json",
            "lat": lat,
            "lon": lng
        }

        try:
            response = requests.get(
                self.url,
                params=params,
                headers={"User-Agent": self.user_agent},
                timeout=self.timeout
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Reverse geocoding failed for {lat}, {lng}: {e}")
            return format_coordinates(lat, lng)

        display_name = data.get("display_name") if isinstance(data, dict) else None
        if not display_name:
            logger.info(f"No address found for {lat}, {lng}")
            return format_coordinates(lat, lng)

        return display_name
