"""
Integration tests of `citycases.io`
"""

from __future__ import annotations

import datetime as dt
import io
import logging
import re
from unittest.mock import MagicMock, patch

import pytest
import requests

from citycases.aggregation import Aggregator
from citycases.chart_state import ChartState, build_chart_data, toggle_mode
from citycases.exceptions import FetchError, MissingColumnsError
from citycases.io import (
    DEFAULT_DATA_URL,
    fetch_case_csv,
    load_aggregated_cases,
    parse_case_csv,
    read_case_rows,
)


def counts_of(series_or_delta):
    return [count for _, count in series_or_delta.points]


def test_read_case_rows_from_path(sample_csv_path):
    res = read_case_rows(sample_csv_path)

    assert len(res) == 16
    assert res[0] == {
        "Datum": "2020-03-13",
        "Gemeentenaam": "Amsterdam",
        "Gemeentecode": "363",
        "Provincienaam": "Noord-Holland",
        "Aantal": "10",
    }
    # Empty cells stay empty strings rather than becoming NaN
    assert res[3]["Gemeentenaam"] == ""
    assert res[3]["Provincienaam"] == ""


def test_read_case_rows_from_str_path(sample_csv_path):
    assert read_case_rows(str(sample_csv_path)) == read_case_rows(sample_csv_path)


def test_read_case_rows_from_buffer(sample_csv_path):
    text = sample_csv_path.read_text()

    assert read_case_rows(io.StringIO(text)) == read_case_rows(sample_csv_path)


def test_parse_case_csv(sample_csv_path):
    text = sample_csv_path.read_text()

    assert parse_case_csv(text) == read_case_rows(sample_csv_path)


def test_read_case_rows_missing_columns():
    text = "Datum,Gemeentenaam,Aantal\n2020-03-13,Utrecht,10\n"

    with pytest.raises(
        MissingColumnsError,
        match=re.escape("missing=['Gemeentecode', 'Provincienaam']"),
    ) as exc_info:
        parse_case_csv(text)

    assert exc_info.value.missing_columns == ["Gemeentecode", "Provincienaam"]
    assert exc_info.value.available_columns == ["Aantal", "Datum", "Gemeentenaam"]


def test_read_case_rows_too_many_fields(caplog):
    text = "\n".join(
        (
            "Datum,Gemeentenaam,Gemeentecode,Provincienaam,Aantal",
            "2020-03-13,Utrecht,344,Utrecht,10",
            "2020-03-14,Utrecht,344,Utrecht,15,oops",
            "2020-03-15,Utrecht,344,Utrecht,20",
        )
    )

    with caplog.at_level(logging.DEBUG, logger="citycases.io"):
        rows = parse_case_csv(text)

    assert [r["Aantal"] for r in rows] == ["10", "20"]
    assert "Skipped 1 CSV lines with too many fields" in caplog.text

    res = Aggregator()(rows)

    assert counts_of(res.series["Utrecht"]) == [10, 20]


@pytest.mark.parametrize(
    "text",
    (
        pytest.param(
            "Datum,Gemeentenaam,Gemeentecode,Provincienaam,Aantal",
            id="no-trailing-newline",
        ),
        pytest.param(
            "Datum,Gemeentenaam,Gemeentecode,Provincienaam,Aantal\n",
            id="trailing-newline",
        ),
    ),
)
def test_parse_case_csv_header_only(text):
    assert parse_case_csv(text) == []


@pytest.mark.parametrize("text", ("", "\n"))
def test_parse_case_csv_empty(text):
    assert parse_case_csv(text) == []


def test_aggregate_sample(sample_csv_path):
    res = Aggregator()(read_case_rows(sample_csv_path))

    assert res.ranking == ("'s-Hertogenbosch", "Amsterdam", "Utrecht", "Tilburg")
    assert res.default_visible == res.ranking
    assert counts_of(res.series["Utrecht"]) == [10, 15, 13, 20]
    assert counts_of(res.deltas["Utrecht"]) == [10, 5, 0, 7]
    assert counts_of(res.deltas["Amsterdam"]) == [10, 4, 11, 15]
    # The row with an unparseable count is dropped
    assert res.series["Tilburg"].points == ((dt.date(2020, 3, 16), 3),)
    assert res.max_cumulative == 52
    assert res.max_new == 20
    assert res.date_range == (dt.date(2020, 3, 13), dt.date(2020, 3, 16))

    chart_data = build_chart_data(res, toggle_mode(ChartState.initial(res)))
    assert chart_data.columns.tolist() == list(res.ranking)
    assert chart_data["'s-Hertogenbosch"].tolist() == [20, 11, 9, 12]


def _mock_response(text="", error=None):
    response = MagicMock()
    response.text = text
    if error is not None:
        response.raise_for_status.side_effect = error

    return response


@patch("citycases.io.requests.get")
def test_fetch_case_csv(mock_get, sample_csv_path):
    text = sample_csv_path.read_text()
    mock_get.return_value = _mock_response(text)

    res = fetch_case_csv(timeout=5)

    assert res == text
    mock_get.assert_called_once_with(DEFAULT_DATA_URL, timeout=5)


@pytest.mark.parametrize(
    "get_kwargs, exp_reason",
    (
        pytest.param(
            dict(
                return_value=_mock_response(
                    error=requests.HTTPError("404 Client Error: Not Found")
                )
            ),
            "HTTPError: 404 Client Error: Not Found",
            id="http-error",
        ),
        pytest.param(
            dict(side_effect=requests.ConnectionError("Connection refused")),
            "ConnectionError: Connection refused",
            id="connection-error",
        ),
        pytest.param(
            dict(side_effect=requests.Timeout("Read timed out")),
            "Timeout: Read timed out",
            id="timeout",
        ),
    ),
)
def test_fetch_case_csv_error(get_kwargs, exp_reason):
    url = "https://example.com/cases.csv"

    with patch("citycases.io.requests.get", **get_kwargs) as mock_get:
        with pytest.raises(
            FetchError,
            match=re.escape(f"Failed to fetch case data from {url!r}. {exp_reason}"),
        ) as exc_info:
            fetch_case_csv(url)

    # No retrying
    mock_get.assert_called_once()
    assert isinstance(exc_info.value.__cause__, requests.RequestException)


@patch("citycases.io.requests.get")
def test_load_aggregated_cases(mock_get, sample_csv_path):
    mock_get.return_value = _mock_response(sample_csv_path.read_text())

    res = load_aggregated_cases(aggregator=Aggregator(n_default_visible=2))

    assert res.default_visible == ("'s-Hertogenbosch", "Amsterdam")
    assert len(res.series) == 4


@patch("citycases.io.requests.get")
def test_load_aggregated_cases_empty_body(mock_get):
    mock_get.return_value = _mock_response("")

    res = load_aggregated_cases()

    assert res.ranking == ()
    assert res.default_visible == ()
    assert res.series == {}
    assert res.date_range is None


@patch("citycases.io.requests.get")
def test_load_aggregated_cases_fetch_error(mock_get):
    mock_get.side_effect = requests.ConnectionError("Connection refused")

    with pytest.raises(FetchError):
        load_aggregated_cases()
