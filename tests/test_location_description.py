"""Tests for the location description fallbacks."""

from coordinates import GeoCoordinate
from location_description import (EMPTY_RESPONSE_MESSAGE, ERROR_MESSAGE, UNAVAILABLE_MESSAGE,
                                  LocationDescriber, build_location_prompt)

DELHI = GeoCoordinate(28.6139, 77.209)


def test_prompt_mentions_coordinates():
    prompt = build_location_prompt(DELHI)
    assert "28.6139" in prompt
    assert "77.209" in prompt


def test_missing_backend_reports_unavailable():
    describer = LocationDescriber()
    assert not describer.available
    assert describer.describe(DELHI) == UNAVAILABLE_MESSAGE


def test_backend_answer_is_returned():
    prompts = []

    def backend(prompt):
        prompts.append(prompt)
        return "Dense urban terrain near the Yamuna."

    assert LocationDescriber(backend).describe(DELHI) == "Dense urban terrain near the Yamuna."
    assert prompts == [build_location_prompt(DELHI)]


def test_empty_answer_maps_to_fixed_message():
    assert LocationDescriber(lambda prompt: "  ").describe(DELHI) == EMPTY_RESPONSE_MESSAGE
    assert LocationDescriber(lambda prompt: None).describe(DELHI) == EMPTY_RESPONSE_MESSAGE


def test_backend_errors_are_contained():
    def backend(prompt):
        raise ConnectionError("quota exceeded")

    assert LocationDescriber(backend).describe(DELHI) == ERROR_MESSAGE
