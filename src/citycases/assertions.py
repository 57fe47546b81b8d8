"""
Useful assertions
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

from citycases.typing import CityRanking

if TYPE_CHECKING:
    from citycases.aggregation import CityDailyDelta
    from citycases.records import CaseRecord


def assert_no_empty_cities(records: Iterable[CaseRecord]) -> None:
    """
    Assert that no record has an empty city

    Parameters
    ----------
    records
        Records to verify

    Raises
    ------
    AssertionError
        At least one record has an empty city
    """
    empty_city_records = [r for r in records if not r.city]
    if empty_city_records:
        msg = f"Records with an empty city: {empty_city_records=}"
        raise AssertionError(msg)


def assert_deltas_not_negative(deltas: Mapping[str, CityDailyDelta]) -> None:
    """
    Assert that no city has negative new cases

    Parameters
    ----------
    deltas
        New cases per day for each city

    Raises
    ------
    AssertionError
        At least one city has negative new cases on at least one day
    """
    negative = {
        city: [(date, count) for date, count in delta.points if count < 0]
        for city, delta in deltas.items()
    }
    negative = {city: points for city, points in negative.items() if points}
    if negative:
        msg = f"The following cities have negative new cases: {negative=}"
        raise AssertionError(msg)


def assert_ranking_is_sorted(
    ranking: CityRanking, max_counts: Mapping[str, int]
) -> None:
    """
    Assert that a ranking is sorted by maximum count, highest first

    Parameters
    ----------
    ranking
        Ranking to verify

    max_counts
        Maximum count of each city

    Raises
    ------
    AssertionError
        `ranking` doesn't contain exactly the cities in `max_counts`
        or isn't in descending order of maximum count
    """
    if sorted(ranking) != sorted(max_counts):
        msg = (
            "The ranking does not match the cities. "
            f"{sorted(ranking)=} {sorted(max_counts)=}"
        )
        raise AssertionError(msg)

    out_of_order = [
        (above, below)
        for above, below in zip(ranking[:-1], ranking[1:])
        if max_counts[above] < max_counts[below]
    ]
    if out_of_order:
        msg = f"The ranking is not sorted. {out_of_order=}"
        raise AssertionError(msg)


def assert_default_visible_consistent_with_ranking(
    default_visible: tuple[str, ...], ranking: CityRanking, n: int
) -> None:
    """
    Assert that the default visible cities are the top of the ranking

    Parameters
    ----------
    default_visible
        Default visible cities to verify

    ranking
        Ranking from which `default_visible` should have been selected

    n
        Number of cities that should have been selected

    Raises
    ------
    AssertionError
        `default_visible` is not the first `min(n, len(ranking))` cities of `ranking`
    """
    exp = tuple(ranking[:n])
    if default_visible != exp:
        msg = (
            "The default visible cities are not the top of the ranking. "
            f"{default_visible=} {exp=}"
        )
        raise AssertionError(msg)
