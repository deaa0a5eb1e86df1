"""Result types shared by the location resolver and the feature extractor."""

from dataclasses import asdict, dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class ResolvedLocation:
    district: Optional[str] = None
    municipality: Optional[str] = None
    parish: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None

    def __post_init__(self):
        if (self.lat is None) != (self.lng is None):
            raise ValueError("lat and lng must be both set or both None")

    @property
    def has_coordinates(self) -> bool:
        return self.lat is not None

    def to_record(self) -> Dict[str, Optional[str]]:
        """Record shape for the final listing: coordinates as decimal strings."""
        return {
            'district': self.district or None,
            'municipality': self.municipality or None,
            'parish': self.parish or None,
            'lat': str(self.lat) if self.lat is not None else None,
            'lng': str(self.lng) if self.lng is not None else None,
        }


@dataclass(frozen=True)
class NormalizedProperty:
    type: Optional[str] = None
    tipology: Optional[str] = None
    area_total: Optional[str] = None
    area_useful: Optional[str] = None
    year: Optional[str] = None
    floor: Optional[str] = None
    condition: Optional[str] = None
    bathrooms: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return asdict(self)
