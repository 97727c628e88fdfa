import pytest

from chart_advisor.config import Settings
from chart_advisor.models.suggestion import ChartSuggestion, ChartType
from chart_advisor.models.tabular import Column, Table


def make_table(columns, rows):
    """Build a Table from (name, type) pairs and row lists."""
    return Table(
        columns=[Column(name=name, type=col_type) for name, col_type in columns],
        rows=rows,
    )


def make_suggestion(chart_type, **kwargs):
    defaults = {"title": f"{ChartType(chart_type).value} chart", "confidence": 50}
    defaults.update(kwargs)
    return ChartSuggestion(type=chart_type, **defaults)


@pytest.fixture
def sales_table():
    """Product/Sales table with one string and one numeric column."""
    return make_table(
        [("Product", "string"), ("Sales", "number")],
        [["A", 10], ["B", 20]],
    )


@pytest.fixture
def metrics_table():
    """Team table with three numeric metrics."""
    return make_table(
        [("Team", "string"), ("Speed", "number"), ("Quality", "number"), ("Cost", "number")],
        [
            ["Red", 7, 9, 120],
            ["Blue", 8, 6, 95],
            ["Green", 5, 8, 110],
            ["Gold", 9, 7, 130],
            ["Gray", 6, 5, 80],
            ["Pink", 4, 9, 70],
            ["Teal", 8, 8, 100],
        ],
    )


@pytest.fixture
def string_table():
    """Table without numeric or date columns."""
    return make_table(
        [("City", "string"), ("Country", "string")],
        [["Paris", "France"], ["Lyon", "France"], ["Berlin", "Germany"]],
    )


@pytest.fixture
def dated_table():
    """Monthly revenue table."""
    return make_table(
        [("Month", "date"), ("Revenue", "number")],
        [["2024-01-01", 100], ["2024-02-01", 140], ["2024-03-01", 120]],
    )


@pytest.fixture
def local_settings():
    """Settings with the enhancement service disabled and no cache."""
    return Settings(
        environment="testing",
        enhancement_enabled=False,
        suggestion_cache_enabled=False,
    )
