"""
Canonical benchmark dataset.

Every benchmark page generates the same rows from the row index, so the
three UI stacks render identical workloads.
"""

import csv
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List

logger = logging.getLogger(__name__)

# Row counts swept by the render test, ascending
RENDER_SIZES = [10, 100, 1000, 50000]

ROW_FIELDS = ["a", "b", "c", "heavy"]


def make_row(i: int) -> Dict[str, Any]:
    """
    Generate the row for index ``i``.

    Returns:
        {"a": i, "b": 2i, "c": "<i>-<31i mod 97>", "heavy": ((9301i + 49297) mod 233280) / 233280}
    """
    return {
        "a": i,
        "b": i * 2,
        "c": f"{i}-{(i * 31) % 97}",
        "heavy": ((i * 9301 + 49297) % 233280) / 233280,
    }


def iter_rows(count: int) -> Iterator[Dict[str, Any]]:
    """Yield the first ``count`` rows."""
    for i in range(count):
        yield make_row(i)


def make_rows(count: int) -> List[Dict[str, Any]]:
    """Generate the first ``count`` rows."""
    return list(iter_rows(count))


def write_dataset(output_path: str, count: int = 100, format: str = "json") -> Path:
    """
    Write the canonical dataset for reference.

    Args:
        output_path: Path to save the dataset
        count: Number of rows
        format: Output format ('json' or 'csv')

    Returns:
        Path of the written file
    """
    if count < 0:
        raise ValueError("count must not be negative")

    output_file = Path(output_path)

    if format == "json":
        with open(output_file, "w", encoding="utf-8") as f:
            json.dump(make_rows(count), f, indent=2)
    elif format == "csv":
        with open(output_file, "w", encoding="utf-8", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=ROW_FIELDS)
            writer.writeheader()
            writer.writerows(iter_rows(count))
    else:
        raise ValueError(f"Unsupported format: {format}")

    logger.info(f"Dataset created: {output_path} ({count} rows)")
    return output_file
