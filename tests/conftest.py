from types import SimpleNamespace

import pytest

from listing_normalizer.processing.gazetteer import build_gazetteer


class FakeGeolocator:
    """Stands in for geopy's Nominatim: answers from a dict keyed by full query."""

    def __init__(self, answers=None, error=None):
        self.answers = answers or {}
        self.error = error
        self.calls = []

    def geocode(self, query, **kwargs):
        self.calls.append((query, kwargs))
        if self.error is not None:
            raise self.error
        raw = self.answers.get(query)
        return SimpleNamespace(raw=raw) if raw is not None else None


class FakeGeocoder:
    """Resolver-level test double for the geocoding port."""

    def __init__(self, result=None):
        self.result = result
        self.queries = []

    def geocode(self, text):
        self.queries.append(text)
        return self.result


@pytest.fixture
def gazetteer():
    return build_gazetteer()


@pytest.fixture
def fake_geolocator():
    return FakeGeolocator


@pytest.fixture
def fake_geocoder():
    return FakeGeocoder
