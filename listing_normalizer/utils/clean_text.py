import re
import unicodedata
from typing import List, Optional


class AddressCleaner:
    """
    Service class for normalizing Portuguese place names and address fragments.
    Produces the lookup keys shared by the gazetteer and the geocoding cache,
    and splits comma-delimited location strings into ordered parts.
    """

    # Everything that is not an ASCII word character or whitespace
    PUNCTUATION = re.compile(r'[^\w\s]', flags=re.ASCII)
    WHITESPACE = re.compile(r'\s+')

    @staticmethod
    def normalize_name(raw_name) -> str:
        """
        Lowercases, strips diacritics, turns punctuation into spaces and
        collapses whitespace. Idempotent: normalizing a key returns it unchanged.

        Example: "Cedofeita, Santo Ildefonso e Sé" -> "cedofeita santo ildefonso e se"
        """
        if not isinstance(raw_name, str):
            return ""

        cleaned = raw_name.lower().strip()

        # 1. Decompose accented characters and drop the combining marks
        cleaned = unicodedata.normalize('NFD', cleaned)
        cleaned = ''.join(ch for ch in cleaned if not unicodedata.combining(ch))

        # 2. Punctuation becomes a separator
        cleaned = AddressCleaner.PUNCTUATION.sub(' ', cleaned)

        # 3. Final Formatting
        return AddressCleaner.WHITESPACE.sub(' ', cleaned).strip()

    @staticmethod
    def split_parts(raw_location) -> List[str]:
        """Splits "Cedofeita, Porto, Porto" into trimmed, non-empty parts."""
        if not isinstance(raw_location, str):
            return []
        return [part.strip() for part in raw_location.split(',') if part.strip()]


def normalize_name(raw_name) -> str:
    return AddressCleaner.normalize_name(raw_name)


def clean_text(text) -> str:
    """Trims and collapses internal whitespace. Non-strings become ''."""
    if not isinstance(text, str):
        return ""
    return AddressCleaner.WHITESPACE.sub(' ', text.strip())


def extract_number(text) -> Optional[float]:
    """
    Extracts a number written in Portuguese notation ("1.250,5" -> 1250.5).
    Dots are thousands separators and the first comma is the decimal mark.
    """
    if not text:
        return None
    cleaned = re.sub(r'[^\d.,]', '', str(text)).replace('.', '').replace(',', '.', 1)
    try:
        return float(cleaned)
    except ValueError:
        return None


def format_number(value: Optional[float]) -> Optional[str]:
    """Renders 80.0 as "80" and 80.5 as "80.5"; None stays None."""
    if value is None:
        return None
    if float(value).is_integer():
        return str(int(value))
    return str(value)
