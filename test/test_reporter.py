"""
Tests for CSV / Markdown report building and chart series.
"""

import csv
import io

from uibench.benchmark.metrics import TargetStats, summarize
from uibench.benchmark.reporter import (
    BULK_CHART,
    CHURN_CHART,
    CSV_HEADER,
    RENDER_CHART,
    ReportBuilder,
    collect_sizes,
)
from uibench.benchmark.runner import TargetReport


def _report(name, render=None, bulk=None, churn=None):
    return TargetReport(
        target=name,
        iterations=3,
        timestamp="2026-01-01T00:00:00+00:00",
        stats=TargetStats(
            render_by_size={size: summarize(values) for size, values in (render or {}).items()},
            bulk=summarize(bulk or []),
            churn=summarize(churn or []),
        ),
    )


def _rows(csv_text):
    return list(csv.reader(io.StringIO(csv_text)))


def test_csv_header():
    rows = _rows(ReportBuilder().to_csv([]))
    assert rows == [CSV_HEADER]
    assert ",".join(rows[0]) == "framework,test,detail1,detail2,stat,value"


def test_csv_render_rows():
    report = _report("react", render={100: [20, 20, 20], 10: [5, 4, 6]})
    rows = _rows(ReportBuilder().to_csv([report]))

    assert ["react", "render", "rows=10", "-", "median", "5"] in rows
    assert ["react", "render", "rows=100", "-", "mean", "20"] in rows
    assert ["react", "render", "rows=10", "-", "min", "4"] in rows
    assert ["react", "render", "rows=10", "-", "max", "6"] in rows


def test_csv_absent_bulk_and_churn_are_na():
    report = _report("react", render={10: [1.5]})
    rows = _rows(ReportBuilder().to_csv([report]))

    bulk = [r for r in rows if r[1] == "bulk"]
    churn = [r for r in rows if r[1] == "churn"]
    assert len(bulk) == 4
    assert len(churn) == 4
    assert all(r[5] == "N/A" for r in bulk + churn)
    assert bulk[0][2:4] == ["rows=10000", "updates=1000"]
    assert churn[0][2:4] == ["components=1000", "cycles=100"]
    assert all(r[5] not in ("", "nan", "NaN") for r in rows[1:])


def test_csv_unavailable_target_is_na_for_every_size():
    ok = _report("react", render={10: [1], 100: [2]}, bulk=[3], churn=[4])
    failed = TargetReport.unavailable("vue", 3, "build exited with code 1")
    rows = _rows(ReportBuilder().to_csv([ok, failed]))

    vue = [r for r in rows if r[0] == "vue"]
    assert len(vue) == 2 * 4 + 4 + 4
    assert all(r[5] == "N/A" for r in vue)


def test_csv_uses_configured_parameters():
    builder = ReportBuilder(bulk_rows=50, bulk_updates=5, churn_components=7, churn_cycles=2)
    rows = _rows(builder.to_csv([_report("react", bulk=[1.25])]))
    assert ["react", "bulk", "rows=50", "updates=5", "median", "1.25"] in rows
    assert ["react", "churn", "components=7", "cycles=2", "median", "N/A"] in rows


def test_markdown_tables_have_one_column_per_target():
    reports = [
        _report("react", render={10: [5.0], 100: [20.0]}, bulk=[100.0], churn=[40.0]),
        TargetReport.unavailable("angular", 3, "timeout"),
    ]
    markdown = ReportBuilder().to_markdown(reports, generated_at="now")

    assert "_Generated: now_" in markdown
    assert "| Rows | REACT | ANGULAR |" in markdown
    assert "| 10 | 5.00 | N/A |" in markdown
    assert "| 100 | 20.00 | N/A |" in markdown
    assert "| median | 100.00 | N/A |" in markdown
    assert "| median | 40.00 | N/A |" in markdown
    assert "![Render Comparison](plots/render_comparison.png)" in markdown
    assert "![Bulk Comparison](plots/bulk_comparison.png)" in markdown
    assert "![Churn Comparison](plots/churn_comparison.png)" in markdown
    assert "- **angular**: timeout" in markdown


def test_markdown_environment_section():
    markdown = ReportBuilder().to_markdown([], generated_at="now", environment={"hostname": "bench-1"})
    assert "## Test environment" in markdown
    assert "| hostname | bench-1 |" in markdown


def test_markdown_without_sizes_still_lists_targets():
    markdown = ReportBuilder().to_markdown([TargetReport.unavailable("vue", 1, "x")], generated_at="now")
    assert "| Rows | VUE |" in markdown
    assert "| - | N/A |" in markdown
    assert RENDER_CHART not in markdown
    assert f"plots/{BULK_CHART}" in markdown


def test_collect_sizes_is_sorted_union():
    reports = [_report("a", render={1000: [1]}), _report("b", render={10: [1], 100: [2]})]
    assert collect_sizes(reports) == [10, 100, 1000]


def test_chart_series():
    reports = [
        _report("react", render={10: [5.0], 100: [20.0]}, bulk=[100.0]),
        _report("vue", render={10: [6.0]}, churn=[30.0]),
    ]
    charts = ReportBuilder().chart_series(reports)

    assert set(charts) == {RENDER_CHART, BULK_CHART, CHURN_CHART}
    render = charts[RENDER_CHART]
    assert render.categories == ["10", "100"]
    assert render.series == {"react": [5.0, 20.0], "vue": [6.0, None]}

    bulk = charts[BULK_CHART]
    assert bulk.categories == ["react", "vue"]
    assert list(bulk.series.values()) == [[100.0, None]]


def test_no_render_chart_without_sizes():
    charts = ReportBuilder().chart_series([TargetReport.unavailable("vue", 1, "x")])
    assert RENDER_CHART not in charts
    assert set(charts) == {BULK_CHART, CHURN_CHART}
