"""
Tests for the canonical benchmark rows.
"""

import csv
import json

import pytest

from uibench.data import RENDER_SIZES, make_row, make_rows, write_dataset


def test_make_row_fields():
    assert make_row(0) == {"a": 0, "b": 0, "c": "0-0", "heavy": 49297 / 233280}
    assert make_row(5) == {"a": 5, "b": 10, "c": "5-58", "heavy": ((5 * 9301 + 49297) % 233280) / 233280}


def test_heavy_stays_in_unit_interval():
    assert all(0 <= row["heavy"] < 1 for row in make_rows(500))


def test_render_sizes_ascending():
    assert RENDER_SIZES == sorted(RENDER_SIZES)
    assert RENDER_SIZES[-1] == 50000


def test_write_json(tmp_path):
    path = write_dataset(str(tmp_path / "rows.json"), count=3)
    rows = json.loads(path.read_text(encoding="utf-8"))
    assert [r["a"] for r in rows] == [0, 1, 2]
    assert rows[2]["c"] == "2-62"


def test_write_csv(tmp_path):
    path = write_dataset(str(tmp_path / "rows.csv"), count=2, format="csv")
    with open(path, newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert rows[1]["b"] == "2"
    assert list(rows[0]) == ["a", "b", "c", "heavy"]


def test_write_rejects_unknown_format(tmp_path):
    with pytest.raises(ValueError):
        write_dataset(str(tmp_path / "rows.xml"), count=1, format="xml")
