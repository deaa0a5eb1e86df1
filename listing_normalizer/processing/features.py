"""
Description:
    Property Feature Extraction Module.

    Responsibilities:
    1. Haystack building: flattens the raw feature bag scraped from a listing
       ("key: value" fragments) and appends the description prose.
    2. Field extraction: runs one ordered pattern battery per field
       (areas, year, floor, bathrooms, condition, type, tipology).
       See `processing/patterns.py` for the rule tables and their precedence.
    3. Batch enrichment: `transform` applies the extraction to a DataFrame.

    Every field is optional. Nothing here raises on malformed input: unknown
    shapes degrade to empty text and the fields come back as None.
"""

import logging
from typing import Any, Dict, Mapping, Optional

import pandas as pd

from listing_normalizer.processing import patterns
from listing_normalizer.processing.models import NormalizedProperty

logger = logging.getLogger(__name__)

RAW_BAG_KEY = '_raw'
RAW_ITEMS_KEY = '_rawItems'


def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def flatten_features(raw_features: Any) -> str:
    """
    Turns a feature bag into searchable text.

    {"Área útil": "80 m²", "Casas de banho": 2} -> "Área útil: 80 m² Casas de banho: 2"

    A nested "_raw" bag is unwrapped; "_rawItems" (unmapped fragments) are
    appended as-is. Strings pass through, anything else becomes ''.
    """
    if isinstance(raw_features, str):
        return raw_features
    if not isinstance(raw_features, Mapping):
        return ""

    if isinstance(raw_features.get(RAW_BAG_KEY), Mapping):
        raw_features = raw_features[RAW_BAG_KEY]

    fragments = []
    for key, value in raw_features.items():
        if key == RAW_ITEMS_KEY or value is None:
            continue
        if isinstance(value, (list, tuple)):
            value = ', '.join(str(item) for item in value if item is not None)
        fragments.append(f"{key}: {value}")

    raw_items = raw_features.get(RAW_ITEMS_KEY)
    if isinstance(raw_items, (list, tuple)):
        fragments.extend(str(item) for item in raw_items if isinstance(item, str) and item.strip())

    return ' '.join(fragments)


def _haystack(features_text: Any, description: Any = '') -> str:
    return f"{_as_text(features_text)} {_as_text(description)}"


# --- SINGLE FIELD EXTRACTORS ---

def extract_areas(features_text: Any, description: Any = '') -> Dict[str, Optional[str]]:
    """
    Useful-area rules first, total-area rules second.
    A lone total figure is reported as the useful area (the figure most listings quote).
    """
    combined = _haystack(features_text, description).lower()
    area_useful = patterns.first_match(patterns.USEFUL_AREA_RULES, combined)
    area_total = patterns.first_match(patterns.TOTAL_AREA_RULES, combined)

    if area_useful is None:
        area_useful, area_total = area_total, None

    return {'area_useful': area_useful, 'area_total': area_total}


def extract_year(features_text: Any, description: Any = '') -> Optional[str]:
    return patterns.first_match(patterns.YEAR_RULES, _haystack(features_text, description))


def extract_floor(features_text: Any, description: Any = '') -> Optional[str]:
    return patterns.first_match(patterns.FLOOR_RULES, _haystack(features_text, description).lower())


def extract_bathrooms(features_text: Any, description: Any = '') -> Optional[str]:
    return patterns.first_match(patterns.BATHROOM_RULES, _haystack(features_text, description).lower())


def extract_condition(features_text: Any, description: Any = '') -> Optional[str]:
    combined = _haystack(features_text, description).lower()
    return (patterns.phrase_lookup(patterns.CONDITION_PHRASES, combined, whole_words=True)
            or patterns.first_match(patterns.CONDITION_RULES, combined))


def extract_property_type(title: Any = '', features_text: Any = '', description: Any = '') -> Optional[str]:
    # Source priority: title, then features, then description
    for source in (title, features_text, description):
        label = patterns.phrase_lookup(patterns.TYPE_PHRASES, _as_text(source).lower())
        if label:
            return label
    return None


def extract_tipology(features_text: Any, description: Any = '') -> Optional[str]:
    return patterns.first_match(patterns.TIPOLOGY_RULES, _haystack(features_text, description))


class PropertyFeatureExtractor:
    """
    Central class for turning raw listing features into a NormalizedProperty.
    """

    def __init__(self, features_col='features', title_col='title', text_col='description'):
        # Configuration for column names (used by `transform`)
        self.features_col = features_col
        self.title_col = title_col
        self.text_col = text_col

    def extract(self, raw_features: Any, title: Any = '', description: Any = '') -> NormalizedProperty:
        features_text = flatten_features(raw_features)
        areas = extract_areas(features_text, description)

        result = NormalizedProperty(
            type=extract_property_type(title, features_text, description),
            tipology=extract_tipology(features_text, description),
            area_total=areas['area_total'],
            area_useful=areas['area_useful'],
            year=extract_year(features_text, description),
            floor=extract_floor(features_text, description),
            condition=extract_condition(features_text, description),
            bathrooms=extract_bathrooms(features_text, description),
        )
        logger.debug(f"Extracted property fields: {result}")
        return result

    def transform(self, df: pd.DataFrame, prefix: str = 'property_') -> pd.DataFrame:
        """
        Main batch method. Adds one `<prefix><field>` column per NormalizedProperty field.
        """
        logger.info(f"Starting Feature Extraction on {len(df)} records...")
        df_out = df.copy()

        missing = [col for col in (self.features_col, self.title_col, self.text_col) if col not in df_out.columns]
        if missing:
            logger.warning(f"Columns {missing} not found. Extracting from the remaining ones.")

        records = [
            self.extract(
                row.get(self.features_col),
                row.get(self.title_col, ''),
                row.get(self.text_col, ''),
            ).to_dict()
            for row in df_out.to_dict(orient='records')
        ]
        extracted = pd.DataFrame(records, index=df_out.index, columns=list(NormalizedProperty().to_dict()))

        for field in extracted.columns:
            df_out[f"{prefix}{field}"] = extracted[field]
            logger.info(f"  > {field}: found in {extracted[field].notna().sum()} rows")

        return df_out
