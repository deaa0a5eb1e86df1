import json

import pandas as pd

from listing_normalizer.processing.location import LocationResolver
from listing_normalizer.processing.models import ResolvedLocation
from listing_normalizer.processing.pipeline import main, normalize_listing, process_listings

LISTINGS = [
    {
        "id": "a1",
        "platform": "imovirtual",
        "title": "Apartamento T2 em Cedofeita",
        "location": "Cedofeita, Porto, Porto",
        "features": {"_raw": {"Área útil": "72 m²", "Casas de banho": "1"}},
        "description": "Apartamento renovado, 2º andar.",
    },
    {
        "id": "b2",
        "title": "Moradia com jardim",
        "location": "Mafra",
        "features": {"Área bruta": "180 m²"},
        "description": "Moradia com 4 quartos e 3 casas de banho.",
    },
]


def write_jsonl(path, listings):
    path.write_text("\n".join(json.dumps(item, ensure_ascii=False) for item in listings), encoding="utf-8")


def test_normalize_listing_geocodes_and_extracts(gazetteer, fake_geocoder):
    geocoder = fake_geocoder(ResolvedLocation(district="Porto", lat=41.1523, lng=-8.6254))
    resolver = LocationResolver(gazetteer, geocoder=geocoder)

    result = normalize_listing(
        {
            "location": "Xpto, Nenhures",
            "title": "Moradia T3",
            "features": {"_raw": {"Ano de construção": "1998"}},
            "description": "Moradia T3 com garagem.",
        },
        "imovirtual",
        resolver,
    )

    assert result["location"] == {
        "district": "Porto",
        "municipality": "Nenhures",
        "parish": "Xpto",
        "lat": "41.1523",
        "lng": "-8.6254",
    }
    assert result["property"]["type"] == "moradia"
    assert result["property"]["tipology"] == "T3"
    assert result["property"]["year"] == "1998"


def test_normalize_listing_malformed_input(gazetteer):
    result = normalize_listing(["not", "a", "listing"], "olx", LocationResolver(gazetteer))
    assert set(result) == {"location", "property"}
    assert all(value is None for value in result["location"].values())
    assert all(value is None for value in result["property"].values())


def test_process_listings_writes_flat_csv(tmp_path, gazetteer):
    source = tmp_path / "listings.jsonl"
    output = tmp_path / "out" / "listings.csv"
    write_jsonl(source, LISTINGS)

    df = process_listings(source, output, platform="olx", use_geocoding=False,
                          resolver=LocationResolver(gazetteer))

    assert output.exists()
    assert len(df) == 2
    assert "features" not in df.columns
    assert "location" not in df.columns

    first, second = df.iloc[0], df.iloc[1]
    assert first["location_raw"] == "Cedofeita, Porto, Porto"
    assert first["location_parish"] == "Cedofeita"
    assert first["location_lat"] == "41.1523"
    assert first["property_area_useful"] == "72"
    assert first["property_condition"] == "renovado"
    assert first["property_floor"] == "2º andar"

    # No platform column value: falls back to the olx strategy
    assert second["location_municipality"] == "Mafra"
    assert second["location_lat"] == "39.0217"
    assert second["property_type"] == "moradia"
    assert second["property_tipology"] == "T4"
    assert second["property_bathrooms"] == "3"

    written = pd.read_csv(output, dtype=str)
    assert list(written["id"]) == ["a1", "b2"]
    assert list(written["location_district"]) == ["Porto", "Lisboa"]


def test_process_listings_missing_file(tmp_path):
    assert process_listings(tmp_path / "missing.json", tmp_path / "out.csv", use_geocoding=False) is None


def test_main_without_geocoding(tmp_path):
    source = tmp_path / "listings.json"
    output = tmp_path / "listings.csv"
    source.write_text(json.dumps(LISTINGS, ensure_ascii=False), encoding="utf-8")

    assert main([str(source), str(output), "--platform", "imovirtual", "--no-geocoding"]) == 0
    assert output.exists()


def test_main_reports_failure_for_missing_input(tmp_path):
    assert main([str(tmp_path / "nope.jsonl"), str(tmp_path / "out.csv"), "--no-geocoding"]) == 1
