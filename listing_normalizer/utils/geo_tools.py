"""
Description:
    Gazetteer Dataset Utilities.

    Loads place datasets used to build a Gazetteer and exports a gazetteer as
    Newline Delimited JSON (JSONL), one place per line.

    Accepted input shapes:
      - JSON object keyed by place name (the layout of the built-in table):
            {"cedofeita": {"municipality": "Porto", "district": "Porto", "lat": .., "lng": ..}}
      - JSON array of objects carrying a "name" (or "key") field.
      - JSONL, one such object per line.

    Place order in the file is preserved (lookup order depends on it).
"""

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ('municipality', 'district', 'lat', 'lng')


def _to_record(name: Any, payload: Any, position: int) -> Optional[Dict[str, Any]]:
    """Validates one raw place and returns the GazetteerEntry kwargs, or None."""
    if not isinstance(payload, dict):
        logger.warning(f"Skipping place #{position}: expected an object, got {type(payload).__name__}.")
        return None

    name = name if name is not None else payload.get('name', payload.get('key'))
    if not isinstance(name, str) or not name.strip():
        logger.warning(f"Skipping place #{position}: missing name.")
        return None

    missing = [field for field in REQUIRED_FIELDS if payload.get(field) in (None, '')]
    if missing:
        logger.warning(f"Skipping place '{name}': missing {', '.join(missing)}.")
        return None

    try:
        return {
            'key': name,
            'municipality': str(payload['municipality']),
            'district': str(payload['district']),
            'lat': float(payload['lat']),
            'lng': float(payload['lng']),
        }
    except (TypeError, ValueError):
        logger.warning(f"Skipping place '{name}': invalid coordinates.")
        return None


def load_gazetteer_records(input_path: Union[str, Path]) -> List[Dict[str, Any]]:
    """
    Reads a place dataset and returns validated records in file order.

    Args:
        input_path (Path): .json or .jsonl dataset.

    Returns:
        list[dict]: kwargs for GazetteerEntry. Empty if the file is missing or unreadable.
    """
    input_path = Path(input_path)

    if not input_path.exists():
        logger.error(f"Gazetteer file not found: {input_path}")
        return []

    records = []
    try:
        with open(input_path, 'r', encoding='utf-8') as f:
            if input_path.suffix == '.jsonl':
                raw_places = [(None, json.loads(line)) for line in f if line.strip()]
            else:
                data = json.load(f)
                if isinstance(data, dict):
                    raw_places = list(data.items())
                elif isinstance(data, list):
                    raw_places = [(None, item) for item in data]
                else:
                    logger.error("Invalid gazetteer: root must be an object or an array.")
                    return []
    except json.JSONDecodeError:
        logger.error(f"Failed to decode JSON from {input_path}. The file might be corrupted.")
        return []

    for position, (name, payload) in enumerate(raw_places):
        record = _to_record(name, payload, position)
        if record:
            records.append(record)

    logger.info(f"Loaded {len(records)} of {len(raw_places)} places from {input_path.name}.")
    return records


def export_gazetteer_jsonl(entries: Iterable[Any], output_path: Union[str, Path]) -> int:
    """
    Writes each gazetteer entry (a dataclass) as a separate line in a JSONL file.

    Returns:
        int: number of lines written.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    written = 0
    with open(output_path, 'w', encoding='utf-8') as f_out:
        for entry in entries:
            record = asdict(entry)
            record['name'] = record.pop('key')
            json.dump(record, f_out, ensure_ascii=False)
            f_out.write('\n')
            written += 1

    logger.info(f"Exported {written} places to: {output_path}")
    return written
