"""
Code to support our tests

This is here, rather than in our `tests` directory
because of the issues that come
when you turn your tests into a package using `__init__.py` files
(for details, see https://docs.pytest.org/en/7.1.x/explanation/goodpractices.html#choosing-an-import-mode).
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Mapping, Sequence

from citycases.records import DATE_FORMAT, CsvColumns

DEFAULT_START_DATE = dt.date(2020, 3, 13)


def create_raw_rows(
    counts: Mapping[str, Sequence[int]],
    start: dt.date = DEFAULT_START_DATE,
    province: str = "Utrecht",
    columns: CsvColumns = CsvColumns(),
) -> list[dict[str, str]]:
    """
    Create raw rows like those in the case CSV

    Rows are in date order, and within each date in the order of `counts`,
    which is how the feed is laid out.

    Parameters
    ----------
    counts
        Cumulative counts for each city, one per day starting at `start`

    start
        Date of the first count

    province
        Province to give every city

    columns
        Column names to use

    Returns
    -------
    :
        Raw rows
    """
    n_days = max((len(v) for v in counts.values()), default=0)

    res = []
    for day in range(n_days):
        date = (start + dt.timedelta(days=day)).strftime(DATE_FORMAT)
        for city_code, (city, city_counts) in enumerate(counts.items()):
            if day >= len(city_counts):
                continue

            res.append(
                {
                    columns.date: date,
                    columns.city: city,
                    columns.city_code: str(city_code),
                    columns.province: province,
                    columns.cumulative_count: str(city_counts[day]),
                }
            )

    return res
