import pytest

from listing_normalizer.utils.clean_text import (
    AddressCleaner,
    clean_text,
    extract_number,
    format_number,
    normalize_name,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Évora", "evora"),
        ("  PORTO ", "porto"),
        ("Cedofeita, Santo Ildefonso e Sé", "cedofeita santo ildefonso e se"),
        ("Azeitão (São Lourenço e São Simão)", "azeitao sao lourenco e sao simao"),
        ("Paços-de-Ferreira", "pacos de ferreira"),
        ("Câmara  de\tLobos", "camara de lobos"),
    ],
)
def test_normalize_name(raw, expected):
    assert normalize_name(raw) == expected


@pytest.mark.parametrize(
    "raw",
    ["Évora", "Cedofeita, Santo Ildefonso e Sé", "  R/C  Esq.  ", "Guimarães!!", "", "İstanbul"],
)
def test_normalize_name_is_idempotent(raw):
    once = normalize_name(raw)
    assert normalize_name(once) == once


def test_normalize_name_rejects_non_strings():
    assert normalize_name(None) == ""
    assert normalize_name(42) == ""


def test_split_parts_drops_empty_fragments():
    assert AddressCleaner.split_parts(" Cedofeita , Porto,, ") == ["Cedofeita", "Porto"]
    assert AddressCleaner.split_parts(None) == []


def test_clean_text_collapses_whitespace():
    assert clean_text("  3º   andar \n") == "3º andar"
    assert clean_text(None) == ""


def test_extract_number_reads_portuguese_notation():
    assert extract_number("1.250,5 m²") == 1250.5
    assert extract_number("80") == 80.0
    assert extract_number("") is None
    assert extract_number("m²") is None


def test_format_number_drops_integral_decimals():
    assert format_number(80.0) == "80"
    assert format_number(80.5) == "80.5"
    assert format_number(None) is None
