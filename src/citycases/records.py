"""
Parsing of raw case rows into [CaseRecord][(m).]s

The feed is the per-municipality file published by CoronaWatchNL
(derived from the RIVM daily reports).
Each row holds the cumulative number of reported cases
for one municipality on one day.
Rows without a municipality name are the feed's way of reporting
cases which could not be assigned to a municipality,
so we drop them rather than invent a city for them.
"""

from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Iterable
from typing import Any

import attr
from attrs import define, field

from citycases.typing import RawRow

logger = logging.getLogger(__name__)

DATE_FORMAT: str = "%Y-%m-%d"
"""
Format of the dates in the feed
"""

UNKNOWN_CITY_CODE: int = -1
"""
City code used when the feed's city code is missing or not an integer
"""


@define(frozen=True)
class CsvColumns:
    """
    Names of the columns in the case CSV
    """

    date: str = "Datum"
    """
    Column holding the date of the report
    """

    city: str = "Gemeentenaam"
    """
    Column holding the municipality (city) name
    """

    city_code: str = "Gemeentecode"
    """
    Column holding the municipality (city) code
    """

    province: str = "Provincienaam"
    """
    Column holding the province name
    """

    cumulative_count: str = "Aantal"
    """
    Column holding the cumulative number of reported cases
    """

    @property
    def required(self) -> tuple[str, ...]:
        """
        All the columns we need, in the order they appear in the feed
        """
        return (
            self.date,
            self.city,
            self.city_code,
            self.province,
            self.cumulative_count,
        )


@define(frozen=True)
class CaseRecord:
    """
    Cumulative case count for a single city on a single date
    """

    date: dt.date
    """
    Date of the report
    """

    city: str = field()
    """
    City (municipality) name
    """

    city_code: int
    """
    City (municipality) code
    """

    province: str
    """
    Province name
    """

    cumulative_count: int = field()
    """
    Total reported cases for the city as of `date`
    """

    @city.validator
    def _city_not_empty(self, attribute: attr.Attribute[Any], value: str) -> None:
        if not value:
            msg = f"{attribute.name} must not be empty"
            raise ValueError(msg)

    @cumulative_count.validator
    def _count_not_negative(self, attribute: attr.Attribute[Any], value: int) -> None:
        if value < 0:
            msg = f"{attribute.name} must not be negative. Received {value=}"
            raise ValueError(msg)


def parse_date(value: str) -> dt.date:
    """
    Parse a date from the feed

    Parameters
    ----------
    value
        Raw value

    Returns
    -------
    :
        Parsed date

    Raises
    ------
    ValueError
        `value` is not in [`DATE_FORMAT`][(m).]
    """
    return dt.datetime.strptime(value.strip(), DATE_FORMAT).date()


def parse_count(value: str) -> int:
    """
    Parse a case count from the feed

    Whole numbers written as floats (e.g. `"12.0"`) are accepted,
    because that is what you get if the feed has passed through a spreadsheet.

    Raises
    ------
    ValueError
        `value` is not a whole number
    """
    value = value.strip()
    try:
        return int(value)
    except ValueError:
        as_float = float(value)
        if not as_float.is_integer():
            msg = f"Not a whole number: {value=}"
            raise ValueError(msg) from None

        return int(as_float)


def parse_city_code(value: str) -> int:
    """
    Parse a municipality code from the feed

    The code is informational only, so this never raises.

    Parameters
    ----------
    value
        Value to parse

    Returns
    -------
    :
        Parsed code, [`UNKNOWN_CITY_CODE`][(m).] if `value` is missing
        or not a whole number
    """
    try:
        return parse_count(value)
    except (ValueError, AttributeError, TypeError):
        return UNKNOWN_CITY_CODE


def parse_row(row: RawRow, columns: CsvColumns = CsvColumns()) -> CaseRecord | None:
    """
    Parse a single row

    Parameters
    ----------
    row
        Row to parse

    columns
        Names of the columns in `row`

    Returns
    -------
    :
        Parsed record.
        `None` if the row is missing its city,
        has a date or count we can't parse
        or is missing any required column.
    """
    try:
        city = row[columns.city].strip()
        if not city:
            return None

        return CaseRecord(
            date=parse_date(row[columns.date]),
            city=city,
            city_code=parse_city_code(row[columns.city_code]),
            province=row[columns.province].strip(),
            cumulative_count=parse_count(row[columns.cumulative_count]),
        )

    except (KeyError, ValueError, AttributeError, TypeError):
        # Missing column, unparseable value or a non-string cell
        return None


def parse(
    raw_rows: Iterable[RawRow], columns: CsvColumns = CsvColumns()
) -> tuple[CaseRecord, ...]:
    """
    Parse raw rows into case records

    Malformed rows are skipped, this never raises because of an individual row.
    The order of the input is kept.

    Parameters
    ----------
    raw_rows
        Rows to parse

    columns
        Names of the columns in each row

    Returns
    -------
    :
        Parsed records
    """
    res = []
    n_dropped = 0
    for row in raw_rows:
        record = parse_row(row, columns=columns)
        if record is None:
            n_dropped += 1
            continue

        res.append(record)

    if n_dropped:
        logger.debug("Dropped %d malformed or city-less rows", n_dropped)

    return tuple(res)
