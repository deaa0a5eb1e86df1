import pytest

from listing_normalizer.processing.geocoder import GeocodeCache, NominatimGeocoder
from listing_normalizer.processing.location import (
    STRATEGIES,
    LocationResolver,
    comma_two_part,
    positional,
    query_parts,
    query_text,
    register_strategy,
)
from listing_normalizer.processing.models import ResolvedLocation

CEDOFEITA = ResolvedLocation(
    district="Porto", municipality="Porto", parish="Cedofeita", lat=41.1523, lng=-8.6254
)


def test_query_shapes():
    assert query_parts("Cedofeita, Porto , Porto") == ["Cedofeita", "Porto", "Porto"]
    assert query_parts({"parts": ["Lumiar", " Lisboa "]}) == ["Lumiar", "Lisboa"]
    assert query_parts({"raw": "Lumiar, Lisboa"}) == ["Lumiar", "Lisboa"]
    assert query_parts(None) == []
    assert query_text(["Lumiar", "", "Lisboa"]) == "Lumiar, Lisboa"
    assert query_text({"parts": ["Lumiar", "Lisboa"]}) == "Lumiar, Lisboa"
    assert query_text(42) == ""


# --- Strategy B (positional) ---

def test_positional_parish_hit_without_geocoding(gazetteer, fake_geocoder):
    geocoder = fake_geocoder()
    resolver = LocationResolver(gazetteer, geocoder=geocoder)

    result = resolver.resolve(["Cedofeita", "Porto", "Porto"], "imovirtual", use_geocoding=True)

    assert result == CEDOFEITA
    assert geocoder.queries == []


def test_positional_accepts_text_and_mappings(gazetteer):
    assert positional("Cedofeita, Porto, Porto", gazetteer) == CEDOFEITA
    assert positional({"parts": ["Cedofeita", "Porto", "Porto"]}, gazetteer) == CEDOFEITA


def test_positional_municipality_hit_keeps_parsed_parish(gazetteer):
    result = positional(["Bonfim", "Porto", "Porto"], gazetteer)
    assert result == ResolvedLocation(
        district="Porto", municipality="Porto", parish="Bonfim", lat=41.1579, lng=-8.6291
    )


def test_positional_district_hit_keeps_parsed_municipality(gazetteer):
    result = positional(["Quinta do Anjo", "Palmela", "Setúbal"], gazetteer)
    assert result.parish == "Quinta do Anjo"
    assert result.municipality == "Palmela"
    assert result.district == "Setúbal"
    assert (result.lat, result.lng) == (38.5208, -9.0114)


def test_positional_uses_last_two_parts_for_longer_addresses(gazetteer):
    result = positional(["Rua Xpto", "Bairro Azul", "Porto", "Porto"], gazetteer)
    assert result.parish == "Rua Xpto"
    assert result.municipality == "Porto"
    assert result.lat == 41.1579


def test_positional_unmatched_returns_raw_names(gazetteer):
    result = positional(["Xpto", "Nenhures", "Atlantida"], gazetteer)
    assert result == ResolvedLocation(district="Atlantida", municipality="Nenhures", parish="Xpto")


def test_positional_two_and_one_parts(gazetteer):
    assert positional(["Xpto", "Nenhures"], gazetteer) == ResolvedLocation(
        municipality="Nenhures", parish="Xpto"
    )
    assert positional("Xpto", gazetteer) == ResolvedLocation(parish="Xpto")
    assert positional("", gazetteer) is None


# --- Strategy A (comma, two parts) ---

def test_two_part_parish_hit(gazetteer):
    result = comma_two_part("Cedofeita, Porto", gazetteer)
    assert result == CEDOFEITA


def test_two_part_falls_back_to_municipality_of_second_part(gazetteer):
    result = comma_two_part("Bonfim, Porto", gazetteer)
    assert result.parish == "Bonfim"
    assert result.municipality == "Porto"
    assert result.lat == 41.1579


def test_single_part_municipality_hit_has_no_parish(gazetteer):
    result = comma_two_part("Mafra", gazetteer)
    assert result == ResolvedLocation(
        district="Lisboa", municipality="Mafra", parish=None, lat=39.0217, lng=-9.4156
    )


def test_two_part_has_no_district_fallback(gazetteer):
    assert comma_two_part("Quinta do Anjo, Setúbal Sul", gazetteer) is None


# --- Geocoding fallback ---

def test_unrecognized_location_with_empty_geocoder_keeps_parsed_names(gazetteer, fake_geocoder):
    geocoder = fake_geocoder(result=None)
    resolver = LocationResolver(gazetteer, geocoder=geocoder)

    result = resolver.resolve(["Xpto", "Nenhures", "Atlantida"], "imovirtual", use_geocoding=True)

    assert result == ResolvedLocation(district="Atlantida", municipality="Nenhures", parish="Xpto")
    assert geocoder.queries == ["Xpto, Nenhures, Atlantida"]


def test_geocoded_coordinates_merge_under_parsed_names(gazetteer, fake_geocoder):
    geocoder = fake_geocoder(ResolvedLocation(
        district="Açores", municipality="Lajes", parish="Outra", lat=38.39, lng=-28.25
    ))
    resolver = LocationResolver(gazetteer, geocoder=geocoder)

    result = resolver.resolve("Xpto, Nenhures", "imovirtual")

    assert result == ResolvedLocation(
        district="Açores", municipality="Nenhures", parish="Xpto", lat=38.39, lng=-28.25
    )


def test_strategy_without_result_geocodes_raw_text(gazetteer, fake_geocoder):
    geocoder = fake_geocoder(CEDOFEITA)
    resolver = LocationResolver(gazetteer, geocoder=geocoder)

    result = resolver.resolve("Xpto , Nenhures", "olx")

    assert geocoder.queries == ["Xpto , Nenhures"]
    assert result == CEDOFEITA


def test_unknown_platform_goes_straight_to_geocoding(gazetteer, fake_geocoder):
    geocoder = fake_geocoder(None)
    resolver = LocationResolver(gazetteer, geocoder=geocoder)

    assert resolver.resolve("Cedofeita, Porto", "remax") == ResolvedLocation()
    assert geocoder.queries == ["Cedofeita, Porto"]


def test_geocoding_disabled(gazetteer, fake_geocoder):
    geocoder = fake_geocoder(CEDOFEITA)
    resolver = LocationResolver(gazetteer, geocoder=geocoder)

    assert resolver.resolve("Xpto", "olx", use_geocoding=False) == ResolvedLocation()
    assert geocoder.queries == []


def test_malformed_query_yields_all_null(gazetteer, fake_geocoder):
    geocoder = fake_geocoder(CEDOFEITA)
    resolver = LocationResolver(gazetteer, geocoder=geocoder)

    assert resolver.resolve(None, "imovirtual") == ResolvedLocation()
    assert resolver.resolve(12345, "olx") == ResolvedLocation()
    assert geocoder.queries == []


def test_resolving_same_text_twice_calls_the_service_once(gazetteer, fake_geolocator):
    geolocator = fake_geolocator({
        "Xpto, Nenhures, Portugal": {"lat": "39.5", "lon": "-8.0", "address": {"state": "Santarém"}},
    })
    geocoder = NominatimGeocoder(cache=GeocodeCache(capacity=8), geolocator=geolocator,
                                 min_delay_seconds=0, country_suffix=", Portugal")
    resolver = LocationResolver(gazetteer, geocoder=geocoder)

    first = resolver.resolve("Xpto, Nenhures", "imovirtual")
    second = resolver.resolve("Xpto, Nenhures", "imovirtual")

    assert first == second
    assert first.district == "Santarém"
    assert first.lat == 39.5
    assert len(geolocator.calls) == 1


def test_register_strategy(gazetteer):
    def always_lisboa(query, gaz):
        entry = gaz.lookup_exact("lisboa")
        return ResolvedLocation(entry.district, entry.municipality, None, entry.lat, entry.lng)

    register_strategy("Remax", always_lisboa)
    try:
        result = LocationResolver(gazetteer).resolve("anything", "remax")
        assert result.municipality == "Lisboa"
    finally:
        STRATEGIES.pop("remax")


def test_resolved_location_requires_both_coordinates():
    with pytest.raises(ValueError):
        ResolvedLocation(lat=41.0)


def test_resolved_location_record_serializes_coordinates_as_text():
    assert CEDOFEITA.to_record() == {
        "district": "Porto",
        "municipality": "Porto",
        "parish": "Cedofeita",
        "lat": "41.1523",
        "lng": "-8.6254",
    }
    assert ResolvedLocation().to_record()["lat"] is None


def test_idealista_uses_positional_parsing(gazetteer, fake_geocoder):
    geocoder = fake_geocoder()
    resolver = LocationResolver(gazetteer, geocoder=geocoder)

    assert resolver.resolve("Cedofeita, Porto, Porto", "idealista") == CEDOFEITA
    assert resolver.resolve("Quinta do Anjo, Palmela, Setúbal", "Idealista").municipality == "Palmela"
    assert geocoder.queries == []
