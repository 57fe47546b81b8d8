"""
Aggregation of case records into per-city timeseries

The pipeline is

1. group the records by city ([group_by_city][(m).])
1. derive the daily new cases for each city ([compute_deltas][(m).])
1. rank the cities by their peak cumulative count ([rank_cities][(m).])
1. pick the cities to show by default ([select_default_visible][(m).])

[Aggregator][(m).] runs all of these in one go.
Everything here is a pure function of its input,
so running it twice on the same data gives the same answer.
"""

from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Iterable, Mapping
from typing import Any, Union

import attr
import numpy as np
import pandas as pd
from attrs import define, field

from citycases.assertions import (
    assert_default_visible_consistent_with_ranking,
    assert_deltas_not_negative,
    assert_no_empty_cities,
    assert_ranking_is_sorted,
)
from citycases.records import CaseRecord, CsvColumns, parse
from citycases.typing import CityRanking, RawRow, SeriesPoint

logger = logging.getLogger(__name__)

DEFAULT_N_VISIBLE: int = 5
"""
Default number of cities to show

More than this and the chart gets too cluttered to read.
"""

MEAN_SERIES_NAME: str = "Mean"
"""
Name given to the mean across cities
"""


def _points_to_series(city: str, points: tuple[SeriesPoint, ...]) -> pd.Series[int]:  # type: ignore # pandas-stubs not up to date
    return pd.Series(
        [count for _, count in points],
        index=pd.DatetimeIndex([date for date, _ in points], name="date"),
        name=city,
        dtype="int64",
    )


@define(frozen=True)
class CitySeries:
    """
    Cumulative case counts over time for a single city
    """

    city: str
    """
    City (municipality) name
    """

    points: tuple[SeriesPoint, ...] = field(converter=tuple)
    """
    `(date, cumulative count)` pairs, in the order they appeared in the feed
    """

    @property
    def max_count(self) -> int:
        """
        Maximum observed cumulative count (0 if there are no points)
        """
        return max((count for _, count in self.points), default=0)

    def to_series(self) -> pd.Series[int]:  # type: ignore # pandas-stubs not up to date
        """
        Convert to a [pd.Series][pandas.Series] indexed by date
        """
        return _points_to_series(self.city, self.points)


@define(frozen=True)
class CityDailyDelta:
    """
    New cases per day for a single city
    """

    city: str
    """
    City (municipality) name
    """

    points: tuple[SeriesPoint, ...] = field(converter=tuple)
    """
    `(date, new cases)` pairs
    """

    @property
    def max_count(self) -> int:
        """
        Maximum number of new cases on a single day (0 if there are no points)
        """
        return max((count for _, count in self.points), default=0)

    def to_series(self) -> pd.Series[int]:  # type: ignore # pandas-stubs not up to date
        """
        Convert to a [pd.Series][pandas.Series] indexed by date
        """
        return _points_to_series(self.city, self.points)


def group_by_city(records: Iterable[CaseRecord]) -> dict[str, CitySeries]:
    """
    Group records by city

    The points of each city keep the order of `records`.
    We don't re-sort by date, the feed is already in date order.

    Parameters
    ----------
    records
        Records to group

    Returns
    -------
    :
        Timeseries for each city, keyed by city in the order cities were first seen
    """
    points: dict[str, list[SeriesPoint]] = {}
    for record in records:
        points.setdefault(record.city, []).append(
            (record.date, record.cumulative_count)
        )

    return {city: CitySeries(city=city, points=p) for city, p in points.items()}


def compute_deltas(series: CitySeries) -> CityDailyDelta:
    """
    Compute the new cases per day from a city's cumulative counts

    The first day's new cases are its cumulative count.
    After that, new cases are the difference to the day before,
    clamped at zero.
    The feed sometimes revises counts downwards,
    which would otherwise show up as negative new cases.

    Parameters
    ----------
    series
        Cumulative counts

    Returns
    -------
    :
        New cases per day
    """
    cumulative = np.array([count for _, count in series.points], dtype=np.int64)
    new = np.maximum(np.diff(cumulative, prepend=0), 0)

    return CityDailyDelta(
        city=series.city,
        points=[
            (date, count)
            for (date, _), count in zip(series.points, new.tolist())
        ],
    )


def rank_cities(series_map: Mapping[str, CitySeries]) -> CityRanking:
    """
    Rank cities by their maximum cumulative count, highest first

    Ties keep the order of `series_map`.

    Parameters
    ----------
    series_map
        Timeseries for each city

    Returns
    -------
    :
        Ranked cities
    """
    # Stable sort, ties keep encounter order
    return tuple(
        sorted(series_map, key=lambda city: series_map[city].max_count, reverse=True)
    )


def select_default_visible(
    ranking: CityRanking, n: int = DEFAULT_N_VISIBLE
) -> tuple[str, ...]:
    """
    Select the cities to show by default

    Parameters
    ----------
    ranking
        Ranked cities

    n
        Number of cities to select

    Returns
    -------
    :
        The first `n` cities of `ranking`, in ranking order.
        If there are fewer than `n` cities, all of them.

    Raises
    ------
    ValueError
        `n` is negative
    """
    if n < 0:
        msg = f"n must not be negative. Received {n=}"
        raise ValueError(msg)

    return tuple(ranking[:n])


def to_wide_frame(
    series_map: Mapping[str, Union[CitySeries, CityDailyDelta]],
    cities: Iterable[str] | None = None,
) -> pd.DataFrame:
    """
    Combine per-city timeseries into a single [pd.DataFrame][pandas.DataFrame]

    Parameters
    ----------
    series_map
        Timeseries for each city

    cities
        Cities to include, in the order they should appear as columns.
        If not supplied, all cities in `series_map` are included.

    Returns
    -------
    :
        Combined data.
        The index is the date (sorted), there is one column per city.
        Dates on which a city has no report are `NaN`.
        If a city reports a date more than once, the last value is kept.

    Raises
    ------
    KeyError
        A city in `cities` is not in `series_map`
    """
    if cities is None:
        cities = list(series_map)

    to_combine = {}
    for city in cities:
        city_series = series_map[city].to_series()
        to_combine[city] = city_series[
            ~city_series.index.duplicated(keep="last")  # type: ignore # pandas-stubs confused
        ]

    if not to_combine:
        res = pd.DataFrame(index=pd.DatetimeIndex([], name="date"))
    else:
        res = pd.concat(to_combine, axis="columns", sort=True).sort_index()
        res.index.name = "date"

    res.columns.name = "city"

    return res


def compute_mean_series(
    series_map: Mapping[str, Union[CitySeries, CityDailyDelta]],
) -> pd.Series[float]:  # type: ignore # pandas-stubs not up to date
    """
    Compute the mean across cities for each date

    Cities which have no value for a given date are ignored for that date.

    Parameters
    ----------
    series_map
        Timeseries for each city.
        Pass cumulative series for the mean cumulative count,
        daily deltas for the mean new cases.

    Returns
    -------
    :
        Mean for each date, sorted by date
    """
    res = to_wide_frame(series_map).mean(axis="columns").astype("float64")
    res.name = MEAN_SERIES_NAME

    return res


@define(frozen=True)
class AggregatedCases:
    """
    Everything the chart needs, derived from a single set of records
    """

    series: dict[str, CitySeries]
    """
    Cumulative counts for each city
    """

    deltas: dict[str, CityDailyDelta]
    """
    New cases per day for each city
    """

    ranking: CityRanking
    """
    Cities ranked by their peak cumulative count
    """

    default_visible: tuple[str, ...]
    """
    Cities to show by default, in ranking order
    """

    @property
    def max_cumulative(self) -> int:
        """
        Maximum cumulative count across all cities
        """
        return max((s.max_count for s in self.series.values()), default=0)

    @property
    def max_new(self) -> int:
        """
        Maximum new cases on a single day across all cities
        """
        return max((d.max_count for d in self.deltas.values()), default=0)

    @property
    def date_range(self) -> tuple[dt.date, dt.date] | None:
        """
        Earliest and latest date in the data

        `None` if there is no data.
        """
        dates = [date for s in self.series.values() for date, _ in s.points]
        if not dates:
            return None

        return min(dates), max(dates)


def aggregate_records(
    records: Iterable[CaseRecord], n_default_visible: int = DEFAULT_N_VISIBLE
) -> AggregatedCases:
    """
    Aggregate records

    Parameters
    ----------
    records
        Records to aggregate

    n_default_visible
        Number of cities to show by default

    Returns
    -------
    :
        Aggregated cases
    """
    series = group_by_city(records)
    deltas = {city: compute_deltas(s) for city, s in series.items()}
    ranking = rank_cities(series)

    return AggregatedCases(
        series=series,
        deltas=deltas,
        ranking=ranking,
        default_visible=select_default_visible(ranking, n=n_default_visible),
    )


@define
class Aggregator:
    """
    Turns raw rows of the case CSV into [AggregatedCases][(m).]
    """

    n_default_visible: int = field(default=DEFAULT_N_VISIBLE)
    """
    Number of cities to show by default
    """

    columns: CsvColumns = field(factory=CsvColumns)
    """
    Names of the columns in the raw rows
    """

    run_checks: bool = True
    """
    If `True`, run checks on the output data

    If you are sure about your workflow,
    you can disable the checks to speed things up.
    """

    @n_default_visible.validator
    def validate_n_default_visible(
        self, attribute: attr.Attribute[Any], value: int
    ) -> None:
        """
        Validate the number of cities to show by default
        """
        if value < 0:
            msg = f"n_default_visible must not be negative. Received {value=}"
            raise ValueError(msg)

    def __call__(self, raw_rows: Iterable[RawRow]) -> AggregatedCases:
        """
        Aggregate

        Parameters
        ----------
        raw_rows
            Rows of the case CSV

        Returns
        -------
        :
            Aggregated cases
        """
        records = parse(raw_rows, columns=self.columns)
        res = aggregate_records(records, n_default_visible=self.n_default_visible)

        logger.info(
            "Aggregated %d records into %d cities", len(records), len(res.ranking)
        )

        if self.run_checks:
            assert_no_empty_cities(records)
            assert_deltas_not_negative(res.deltas)
            assert_ranking_is_sorted(
                res.ranking,
                max_counts={city: s.max_count for city, s in res.series.items()},
            )
            assert_default_visible_consistent_with_ranking(
                res.default_visible, ranking=res.ranking, n=self.n_default_visible
            )

        return res
