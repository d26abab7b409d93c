"""Tests for the comparison table."""
import math

from visualization import (
    INDEX_LABEL,
    THROUGHPUT_COLUMN,
    build_results_table,
    render_table,
    summarize_servers,
)

RESULTS = {
    "Random": {"values": {100: 550.0, 1000: 5480.5}, "throughput": 0.02},
    "Round-Robin": {"values": {100: 550.0, 1000: 5480.5}, "throughput": float("nan")},
}


class TestResultsTable:

    def test_shape_and_order(self):
        df = build_results_table(RESULTS, [100, 1000], "Total Load")
        assert list(df.index) == ["Random", "Round-Robin"]
        assert list(df.columns) == ["Num Tasks: 100", "Num Tasks: 1000", THROUGHPUT_COLUMN]
        assert df.index.name == INDEX_LABEL
        assert df.loc["Random", "Num Tasks: 1000"] == 5480.5

    def test_missing_count_is_nan(self):
        df = build_results_table(RESULTS, [100, 50], "Total Load")
        assert math.isnan(df.loc["Random", "Num Tasks: 50"])

    def test_render_fixed_columns(self):
        text = render_table(build_results_table(RESULTS, [100, 1000], "Total Load"), width=20)
        lines = text.splitlines()
        assert lines[0].startswith(INDEX_LABEL[:20])
        assert "Total Load" in lines[1]
        assert lines[3].startswith("Random")
        assert len(lines[3]) == 20 * 4
        assert "5480.5" in lines[3]

    def test_render_undefined_throughput(self):
        text = render_table(build_results_table(RESULTS, [100], "Total Load"))
        assert text.splitlines()[-1].rstrip().endswith("undefined")

    def test_summarize_servers(self):
        df = summarize_servers({"Random": {"mean_load": 2.0, "max_load": 3.0}})
        assert df.loc["Random", "max_load"] == 3.0
