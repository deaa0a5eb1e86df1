"""
Description:
    Static Gazetteer of Portuguese places.

    Maps normalized parish / neighbourhood names to their municipality
    (concelho), district (distrito) and a representative coordinate.

    Lookup order matters: entries are kept as an explicit ordered list of
    (key, entry) pairs and every scan (fuzzy, municipality, district) walks
    that list from the top and returns the FIRST hit. Overlapping names such as
    "cedofeita" and "cedofeita, santo ildefonso e sé" therefore resolve to
    whichever was registered first.

    Municipality and district lookups return the first registered entry of that
    municipality / district, i.e. a coarse representative point, not a centroid.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Union

from listing_normalizer.utils.clean_text import normalize_name
from listing_normalizer.utils.geo_tools import load_gazetteer_records

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GazetteerEntry:
    key: str
    municipality: str
    district: str
    lat: float
    lng: float


# --- BUILT-IN DATASET ---
# (name, municipality, district, lat, lng). Registration order is part of the
# lookup contract: do not sort or regroup.
DEFAULT_PLACES: Tuple[Tuple[str, str, str, float, float], ...] = (
    # Porto
    ("freamunde", "Paços de Ferreira", "Porto", 41.28882, -8.37901),
    ("paços de ferreira", "Paços de Ferreira", "Porto", 41.2775, -8.3761),
    ("porto", "Porto", "Porto", 41.1579, -8.6291),
    ("cedofeita", "Porto", "Porto", 41.1523, -8.6254),
    ("cedofeita, santo ildefonso e sé", "Porto", "Porto", 41.1523, -8.6254),
    ("santo ildefonso", "Porto", "Porto", 41.1523, -8.6254),
    ("sé", "Porto", "Porto", 41.1425, -8.6167),
    ("lumiar", "Lisboa", "Lisboa", 38.7706, -9.1603),
    ("campo de ourique", "Lisboa", "Lisboa", 38.7144, -9.1608),
    ("azeitão", "Setúbal", "Setúbal", 38.5208, -9.0114),
    ("azeitão (são lourenço e são simão)", "Setúbal", "Setúbal", 38.5208, -9.0114),
    ("são lourenço", "Setúbal", "Setúbal", 38.5208, -9.0114),
    ("ericeira", "Mafra", "Lisboa", 39.0217, -9.4156),
    ("vila nova de gaia", "Vila Nova de Gaia", "Porto", 41.1239, -8.6118),
    ("gaia", "Vila Nova de Gaia", "Porto", 41.1239, -8.6118),
    # Viana do Castelo
    ("viana do castelo", "Viana do Castelo", "Viana do Castelo", 41.6918, -8.8347),
    ("meadela", "Viana do Castelo", "Viana do Castelo", 41.7052, -8.8437),
    ("santa maria maior e monserrate e meadela", "Viana do Castelo", "Viana do Castelo", 41.7052, -8.8437),
    ("beco da fonte do branco", "Viana do Castelo", "Viana do Castelo", 41.7052, -8.8437),
    # Lisboa
    ("lisboa", "Lisboa", "Lisboa", 38.7223, -9.1393),
    ("carnide", "Lisboa", "Lisboa", 38.7606, -9.1925),
    ("amadora", "Amadora", "Lisboa", 38.7538, -9.2308),
    ("sintra", "Sintra", "Lisboa", 38.8029, -9.3817),
    ("cascais", "Cascais", "Lisboa", 38.6979, -9.4215),
    ("oeiras", "Oeiras", "Lisboa", 38.6910, -9.3107),
    # Setúbal
    ("setúbal", "Setúbal", "Setúbal", 38.5244, -8.8882),
    ("almada", "Almada", "Setúbal", 38.6790, -9.1567),
    ("seixal", "Seixal", "Setúbal", 38.6400, -9.1011),
    ("barreiro", "Barreiro", "Setúbal", 38.6609, -9.0724),
    # Braga
    ("braga", "Braga", "Braga", 41.5518, -8.4229),
    ("guimarães", "Guimarães", "Braga", 41.4444, -8.2962),
    ("famalicão", "Vila Nova de Famalicão", "Braga", 41.4081, -8.5198),
    ("vila nova de famalicão", "Vila Nova de Famalicão", "Braga", 41.4081, -8.5198),
    # Aveiro
    ("aveiro", "Aveiro", "Aveiro", 40.6405, -8.6538),
    ("oliveira do bairro", "Oliveira do Bairro", "Aveiro", 40.5147, -8.4936),
    # Coimbra
    ("coimbra", "Coimbra", "Coimbra", 40.2033, -8.4103),
    # Leiria
    ("leiria", "Leiria", "Leiria", 39.7436, -8.8071),
    ("marinha grande", "Marinha Grande", "Leiria", 39.7472, -8.9322),
    # Santarém
    ("santarém", "Santarém", "Santarém", 39.2362, -8.6860),
    # Évora
    ("évora", "Évora", "Évora", 38.5665, -7.9132),
    ("evora", "Évora", "Évora", 38.5665, -7.9132),
    # Faro
    ("faro", "Faro", "Faro", 37.0194, -7.9322),
    ("portimão", "Portimão", "Faro", 37.1386, -8.5378),
    ("lagos", "Lagos", "Faro", 37.1020, -8.6756),
    ("tavira", "Tavira", "Faro", 37.1266, -7.6484),
    # Madeira
    ("funchal", "Funchal", "Ilha da Madeira", 32.6497, -16.9084),
    ("câmara de lobos", "Câmara de Lobos", "Ilha da Madeira", 32.6500, -16.9767),
    ("camara de lobos", "Câmara de Lobos", "Ilha da Madeira", 32.6500, -16.9767),
    # Açores
    ("ponta delgada", "Ponta Delgada", "Ilha de São Miguel", 37.7394, -25.6687),
    ("angra do heroísmo", "Angra do Heroísmo", "Ilha Terceira", 38.6583, -27.2208),
    ("angra do heroismo", "Angra do Heroísmo", "Ilha Terceira", 38.6583, -27.2208),
)


class Gazetteer:
    """
    Read-only, ordered place table.

    Entries are registered once (constructor / `register`) and never mutated.
    `lookup_exact` uses a dict index; all other lookups scan `self.entries`
    in registration order.
    """

    def __init__(self, entries: Iterable[GazetteerEntry] = ()):
        self.entries: List[Tuple[str, GazetteerEntry]] = []
        self._index: Dict[str, GazetteerEntry] = {}
        for entry in entries:
            self.register(entry)

    def register(self, entry: GazetteerEntry) -> None:
        key = normalize_name(entry.key)
        if not key:
            logger.warning(f"Skipping gazetteer entry with empty name: {entry!r}")
            return
        if key != entry.key:
            entry = GazetteerEntry(key, entry.municipality, entry.district, entry.lat, entry.lng)
        self.entries.append((key, entry))
        # First registration wins for exact lookups ("évora" / "evora")
        self._index.setdefault(key, entry)

    @classmethod
    def from_places(cls, places: Iterable[Tuple[str, str, str, float, float]]) -> "Gazetteer":
        return cls(GazetteerEntry(name, municipality, district, lat, lng)
                   for name, municipality, district, lat, lng in places)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "Gazetteer":
        """Builds a gazetteer from a JSON / JSONL dataset (see geo_tools)."""
        return cls(GazetteerEntry(**record) for record in load_gazetteer_records(path))

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[GazetteerEntry]:
        return (entry for _, entry in self.entries)

    # --- LOOKUPS ---

    def lookup_exact(self, name: str) -> Optional[GazetteerEntry]:
        return self._index.get(normalize_name(name))

    def lookup_fuzzy(self, name: str) -> Optional[GazetteerEntry]:
        """First entry whose key contains the query, or is contained in it."""
        query = normalize_name(name)
        if not query:
            return None
        for key, entry in self.entries:
            if key in query or query in key:
                return entry
        return None

    def find(self, name: str) -> Optional[GazetteerEntry]:
        """Parish lookup used by the resolver: exact match, then fuzzy."""
        return self.lookup_exact(name) or self.lookup_fuzzy(name)

    def lookup_by_municipality(self, name: str) -> Optional[GazetteerEntry]:
        query = normalize_name(name)
        if not query:
            return None
        for _, entry in self.entries:
            if normalize_name(entry.municipality) == query:
                return entry
        return None

    def lookup_by_district(self, name: str) -> Optional[GazetteerEntry]:
        query = normalize_name(name)
        if not query:
            return None
        for _, entry in self.entries:
            if normalize_name(entry.district) == query:
                return entry
        return None


def build_gazetteer(path: Optional[Union[str, Path]] = None) -> Gazetteer:
    """Gazetteer from an external dataset when a path is given, built-in table otherwise."""
    if path:
        logger.info(f"Loading gazetteer from {path}...")
        return Gazetteer.from_file(path)
    return Gazetteer.from_places(DEFAULT_PLACES)
