import pytest

from portfolio_bi.nlp import config
from portfolio_bi.services import summarizer
from portfolio_bi.services.formatting import format_currency, format_number, rows_to_markdown_table
from portfolio_bi.sql.runner import QueryResult


def _result(rows):
    return QueryResult(success=True, data=rows, sql="SELECT 1", row_count=len(rows))


def test_top_country_by_revenue():
    text = summarizer.summarize(
        "which country generates the most revenue",
        _result([{"country": "India", "total_revenue": 500000}]),
    )
    assert "India" in text
    assert "500,000" in text
    assert "$" in text


def test_how_many_uses_count_phrasing():
    text = summarizer.summarize("How many apps do we have?", _result([{"app_count": 12.0}]))
    assert text == "There are 12 apps."


def test_generic_single_row():
    text = summarizer.summarize("installs for paint pro", _result([{"app_name": "Paint Pro", "total_installs": 1234.0}]))
    assert text == "Paint Pro has 1,234 in total installs."


def test_single_scalar_without_name():
    text = summarizer.summarize("total revenue", _result([{"total_revenue": 320.5}]))
    assert text == "The total revenue is $320.50."


def test_measure_falls_back_to_first_number():
    text = summarizer.summarize("net margin", _result([{"platform": "iOS", "margin": 0.25}]))
    assert text == "iOS has 0.25 in margin."


def test_many_rows_lists_first_three():
    rows = [
        {"country": "US", "total_revenue": 300.0},
        {"country": "IN", "total_revenue": 200.0},
        {"country": "DE", "total_revenue": 100.0},
        {"country": "FR", "total_revenue": 50.0},
    ]
    text = summarizer.summarize("revenue by country", _result(rows))
    assert text == "Found 4 results. Top entries: US ($300), IN ($200), DE ($100)."


def test_no_rows():
    assert summarizer.summarize("anything", _result([])) == summarizer.NO_RESULTS


def test_formatting_error_falls_back_to_initial_response(monkeypatch):
    def boom(*args, **kwargs):
        raise ValueError("bad row")

    monkeypatch.setattr(summarizer, "_single_row", boom)
    text = summarizer.summarize("q", _result([{"a": 1.0}]), initial_response="Let me check.")
    assert text == "Let me check."


def test_abbreviation_is_configurable(monkeypatch):
    assert format_currency(2_500_000.0) == "$2,500,000"
    monkeypatch.setattr(config, "SUMMARY_ABBREVIATE", True)
    assert format_currency(2_500_000.0) == "$2.5M"
    assert format_number(25_000.0) == "25.0K"
    assert format_number(999.0) == "999"


def test_markdown_table():
    table = rows_to_markdown_table([{"app_name": "A", "installs": 1200.0, "pct_change": 0.125}])
    lines = table.split("\n")
    assert lines[0] == "| app_name | installs | pct_change |"
    assert lines[2] == "| A | 1,200 | 12.5% |"
