"""
Input/output i.e. getting the case CSV and turning it into raw rows
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import IO, Union

import pandas as pd
import requests

from citycases.aggregation import AggregatedCases, Aggregator
from citycases.exceptions import FetchError, MissingColumnsError
from citycases.records import CsvColumns

logger = logging.getLogger(__name__)

DEFAULT_DATA_URL: str = (
    "https://raw.githubusercontent.com/J535D165/CoronaWatchNL/master/"
    "data/rivm_NL_covid19_total_municipality.csv"
)
"""
Default location of the per-municipality case CSV
"""

DEFAULT_TIMEOUT: float = 30.0
"""
Default timeout for fetching, in seconds
"""


def fetch_case_csv(
    url: str = DEFAULT_DATA_URL, timeout: float = DEFAULT_TIMEOUT
) -> str:
    """
    Fetch the case CSV

    This makes a single request, there is no retrying.

    Parameters
    ----------
    url
        URL from which to fetch

    timeout
        Timeout for the request, in seconds

    Returns
    -------
    :
        Contents of the CSV

    Raises
    ------
    FetchError
        The request failed or the server did not respond with success
    """
    logger.info("Fetching case data from %s", url)
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise FetchError(url=url, reason=f"{type(exc).__name__}: {exc}") from exc

    text = response.text
    logger.info("Fetched %d characters of case data", len(text))

    return text


def read_case_rows(
    source: Union[str, Path, IO[str]], columns: CsvColumns = CsvColumns()
) -> list[dict[str, str]]:
    """
    Read raw rows from the case CSV

    Every cell is read as a string, without any conversion of missing values,
    so that all parsing decisions are left to [citycases.records][].

    Lines with more fields than the header are skipped,
    like any other malformed row.
    An empty file gives no rows.

    Parameters
    ----------
    source
        Path to the CSV or a file-like object holding its contents.
        To read CSV contents you already have as a string,
        use [parse_case_csv][(m).].

    columns
        Names of the columns we need

    Returns
    -------
    :
        One mapping of column name to cell contents per row

    Raises
    ------
    MissingColumnsError
        The CSV does not contain all of the required columns
    """
    n_skipped = 0

    def skip_bad_line(line: list[str]) -> None:
        nonlocal n_skipped
        n_skipped += 1

    try:
        df = pd.read_csv(
            source,
            dtype=str,
            keep_default_na=False,
            engine="python",
            on_bad_lines=skip_bad_line,
        )
    except pd.errors.EmptyDataError:
        logger.warning("The case CSV is empty")
        return []

    if n_skipped:
        logger.debug("Skipped %d CSV lines with too many fields", n_skipped)

    missing = [c for c in columns.required if c not in df.columns]
    if missing:
        raise MissingColumnsError(
            missing_columns=missing, available_columns=df.columns.tolist()
        )

    return df.to_dict(orient="records")  # type: ignore # pandas-stubs confused


def parse_case_csv(
    text: str, columns: CsvColumns = CsvColumns()
) -> list[dict[str, str]]:
    """
    Read raw rows from the contents of the case CSV

    Parameters
    ----------
    text
        Contents of the CSV

    columns
        Names of the columns we need

    Returns
    -------
    :
        One mapping of column name to cell contents per row

    Raises
    ------
    MissingColumnsError
        The CSV does not contain all of the required columns
    """
    return read_case_rows(io.StringIO(text), columns=columns)


def load_aggregated_cases(
    url: str = DEFAULT_DATA_URL,
    aggregator: Aggregator | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> AggregatedCases:
    """
    Fetch the case CSV and aggregate it

    Parameters
    ----------
    url
        URL from which to fetch

    aggregator
        Aggregator to use.
        If not supplied, we use [Aggregator][citycases.aggregation.] with defaults.

    timeout
        Timeout for the request, in seconds

    Returns
    -------
    :
        Aggregated cases

    Raises
    ------
    FetchError
        The data could not be fetched
    """
    if aggregator is None:
        aggregator = Aggregator()

    raw = fetch_case_csv(url, timeout=timeout)
    rows = parse_case_csv(raw, columns=aggregator.columns)

    return aggregator(rows)
