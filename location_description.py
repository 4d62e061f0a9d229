"""Free-text description of a location from a pluggable text backend.

The backend is any callable taking a prompt string and returning text, for
example a thin wrapper around a hosted language model. The describer never
raises: a missing backend, a failing backend and an empty answer each map
to a fixed fallback string.
"""

from __future__ import annotations

from typing import Callable, Optional

from coordinates import GeoCoordinate, is_valid_coordinate
from logger import LogCategory, LoggableMixin

UNAVAILABLE_MESSAGE = "AI features are currently unavailable. API key is missing."
EMPTY_RESPONSE_MESSAGE = "The AI returned an empty or invalid response for this location."
ERROR_MESSAGE = "Could not retrieve location information at this time."

DescriptionBackend = Callable[[str], Optional[str]]


def build_location_prompt(coord: GeoCoordinate) -> str:
    return (
        f"Provide a brief, tactical description for the location at latitude {coord.lat} "
        f"and longitude {coord.lng}. Mention potential points of interest or geographical "
        "features. Keep it under 50 words."
    )


class LocationDescriber(LoggableMixin):
    """Ask the backend about a coordinate, falling back to fixed messages."""

    def __init__(self, backend: Optional[DescriptionBackend] = None):
        super().__init__()
        self.backend = backend

    @property
    def available(self) -> bool:
        return self.backend is not None

    def describe(self, coord: GeoCoordinate) -> str:
        if self.backend is None:
            return UNAVAILABLE_MESSAGE
        if not is_valid_coordinate(coord):
            return EMPTY_RESPONSE_MESSAGE
        try:
            text = self.backend(build_location_prompt(coord))
        except Exception as exc:
            self.log_error("Error fetching location description", exception=exc,
                           category=LogCategory.NETWORK, lat=coord.lat, lng=coord.lng)
            return ERROR_MESSAGE
        if not isinstance(text, str) or not text.strip():
            self.log_warning("Location description backend returned nothing",
                             category=LogCategory.NETWORK, lat=coord.lat, lng=coord.lng)
            return EMPTY_RESPONSE_MESSAGE
        return text


__all__ = [
    "EMPTY_RESPONSE_MESSAGE",
    "ERROR_MESSAGE",
    "LocationDescriber",
    "UNAVAILABLE_MESSAGE",
    "build_location_prompt",
]
