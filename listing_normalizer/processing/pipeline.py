"""
Description:
    Listing Normalization Pipeline.

    Glues the LocationResolver and the PropertyFeatureExtractor together for
    parsed listings coming out of the site scrapers, and runs them in batch over
    a JSON / JSONL export.

    A parsed listing is a mapping with:
        location     -> str, list of parts, or {"raw": ..} / {"parts": [..]}
        features     -> raw feature bag (optionally nested under "_raw")
        title        -> str
        description  -> str
        platform     -> optional, overrides the --platform default per row

Usage:
    python -m listing_normalizer.processing.pipeline data/raw/olx.jsonl data/processed/olx.csv --platform olx
"""

import argparse
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import pandas as pd
from tqdm import tqdm

from listing_normalizer.processing.features import PropertyFeatureExtractor
from listing_normalizer.processing.gazetteer import build_gazetteer
from listing_normalizer.processing.geocoder import NominatimGeocoder
from listing_normalizer.processing.location import LocationResolver, query_text
from listing_normalizer.processing.models import NormalizedProperty, ResolvedLocation
from listing_normalizer.settings import settings

logger = logging.getLogger(__name__)

DEFAULT_PLATFORM = 'olx'


def build_resolver(use_geocoding: bool = True, gazetteer_path: Optional[str] = None) -> LocationResolver:
    """Resolver over the configured gazetteer, with a Nominatim geocoder when enabled."""
    gazetteer = build_gazetteer(gazetteer_path or settings.GAZETTEER_PATH)
    geocoder = NominatimGeocoder() if use_geocoding else None
    return LocationResolver(gazetteer, geocoder=geocoder)


def normalize_listing(parsed: Any, platform: str, resolver: LocationResolver,
                      extractor: Optional[PropertyFeatureExtractor] = None,
                      use_geocoding: bool = True) -> Dict[str, Dict[str, Optional[str]]]:
    """
    Returns {"location": {...}, "property": {...}} for one parsed listing.
    Coordinates come back as decimal strings; missing values are None.
    """
    if not isinstance(parsed, Mapping):
        logger.warning(f"Skipping malformed listing of type {type(parsed).__name__}")
        return {'location': ResolvedLocation().to_record(), 'property': NormalizedProperty().to_dict()}

    extractor = extractor or PropertyFeatureExtractor()
    features = parsed.get('features')
    if isinstance(features, Mapping) and isinstance(features.get('_raw'), Mapping):
        features = features['_raw']

    location = resolver.resolve(parsed.get('location'), platform, use_geocoding)
    prop = extractor.extract(features, parsed.get('title') or '', parsed.get('description') or '')

    return {'location': location.to_record(), 'property': prop.to_dict()}


def _load_listings(input_path: Path) -> pd.DataFrame:
    return pd.read_json(input_path, lines=input_path.suffix == '.jsonl', orient='records', dtype=False)


def process_listings(input_path: Union[str, Path], output_path: Union[str, Path],
                     platform: str = DEFAULT_PLATFORM, use_geocoding: bool = True,
                     resolver: Optional[LocationResolver] = None) -> Optional[pd.DataFrame]:
    logger.info("--- STARTING LISTING NORMALIZATION ---")
    input_path = Path(input_path)
    output_path = Path(output_path)

    # 1. LOAD
    logger.info(f"Loading parsed listings from {input_path}...")
    if not input_path.exists():
        logger.error(f"File not found at {input_path}")
        return None
    try:
        df = _load_listings(input_path)
    except ValueError as e:
        logger.error(f"Could not read listings from {input_path}: {e}")
        return None

    resolver = resolver or build_resolver(use_geocoding)
    extractor = PropertyFeatureExtractor()

    # 2. NORMALIZE
    rows = []
    for listing in tqdm(df.to_dict(orient='records'), desc="Normalizing"):
        row_platform = listing.get('platform') if isinstance(listing.get('platform'), str) else platform
        normalized = normalize_listing(listing, row_platform, resolver, extractor, use_geocoding)

        row = {key: value for key, value in listing.items() if key not in ('features', 'location')}
        row['location_raw'] = query_text(listing.get('location'))
        row.update({f"location_{k}": v for k, v in normalized['location'].items()})
        row.update({f"property_{k}": v for k, v in normalized['property'].items()})
        rows.append(row)

    df_final = pd.DataFrame(rows)

    # 3. EXPORT (flat table)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df_final.to_csv(output_path, index=False)

    hit_rate = df_final['location_lat'].notnull().mean() * 100 if len(df_final) else 0.0
    logger.info("--- SUCCESS ---")
    logger.info(f"Normalized listings: {len(df_final)} -> {output_path}")
    logger.info(f"Coordinate Success Rate: {hit_rate:.2f}%")

    cache = getattr(resolver.geocoder, 'cache', None)
    if cache is not None:
        logger.info(f"Geocode cache: {cache.stats()}")

    return df_final


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Normalize parsed Portuguese real-estate listings.")
    parser.add_argument('input', type=Path, help="JSON or JSONL file of parsed listings")
    parser.add_argument('output', type=Path, help="CSV file to write")
    parser.add_argument('--platform', default=DEFAULT_PLATFORM,
                        help="Location strategy (olx, custojusto, casasapo, imovirtual, idealista)")
    parser.add_argument('--no-geocoding', action='store_true', help="Gazetteer only, no Nominatim calls")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    use_geocoding = settings.USE_GEOCODING and not args.no_geocoding
    try:
        result = process_listings(args.input, args.output, args.platform, use_geocoding)
    except Exception as e:
        logger.critical(f"Normalization Pipeline Failed: {e}")
        raise

    return 0 if result is not None else 1


if __name__ == "__main__":
    raise SystemExit(main())
