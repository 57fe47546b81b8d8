"""
State of the chart, kept separate from any drawing

The chart itself is drawn by whatever rendering surface you like.
This module holds what that surface needs to know:
which cities are visible, which metric is shown,
what the legend search currently is and which colour each city gets.
The state is immutable, every change returns a new [ChartState][(m).].
"""

from __future__ import annotations

import re
import sys
from collections.abc import Iterable, Mapping, Sequence
from typing import Union

import pandas as pd
from attrs import define, evolve, field

from citycases.aggregation import (
    AggregatedCases,
    CityDailyDelta,
    CitySeries,
    to_wide_frame,
)
from citycases.exceptions import UnknownCityError
from citycases.typing import CityRanking

if sys.version_info >= (3, 11):
    from enum import StrEnum
else:
    from backports.strenum import StrEnum

PAIRED: tuple[str, ...] = (
    "#a6cee3",
    "#1f78b4",
    "#b2df8a",
    "#33a02c",
    "#fb9a99",
    "#e31a1c",
    "#fdbf6f",
    "#ff7f00",
    "#cab2d6",
    "#6a3d9a",
    "#ffff99",
    "#b15928",
)
"""
Twelve colour 'Paired' palette (ColorBrewer)
"""

SET2: tuple[str, ...] = (
    "#66c2a5",
    "#fc8d62",
    "#8da0cb",
    "#e78ac3",
    "#a6d854",
    "#ffd92f",
    "#e5c494",
    "#b3b3b3",
)
"""
Eight colour 'Set2' palette (ColorBrewer)
"""


class MetricMode(StrEnum):
    """Metric shown on the chart"""

    CUMULATIVE = "cumulative"
    """Cumulative number of cases"""

    DAILY = "daily"
    """New cases per day"""

    @property
    def y_label(self) -> str:
        """
        Label for the y-axis when showing this metric
        """
        if self is MetricMode.CUMULATIVE:
            return "Number of instances"

        return "New cases"


@define(frozen=True)
class ChartState:
    """
    State of the chart
    """

    visible: tuple[str, ...] = field(converter=tuple)
    """
    Cities currently shown, in ranking order
    """

    mode: MetricMode = MetricMode.CUMULATIVE
    """
    Metric currently shown
    """

    search: str = ""
    """
    Current text in the legend search box
    """

    @classmethod
    def initial(cls, aggregated: AggregatedCases) -> ChartState:
        """
        Get the state the chart starts in

        Parameters
        ----------
        aggregated
            Aggregated cases being shown

        Returns
        -------
        :
            Default visible cities, cumulative counts, no search
        """
        return cls(visible=aggregated.default_visible)


def toggle_city(state: ChartState, city: str, ranking: CityRanking) -> ChartState:
    """
    Show a city if it is hidden, hide it if it is shown

    Parameters
    ----------
    state
        Current state

    city
        City to toggle

    ranking
        Ranking of all cities, used to keep the visible cities in order

    Returns
    -------
    :
        New state

    Raises
    ------
    UnknownCityError
        `city` is not in `ranking`
    """
    if city not in ranking:
        raise UnknownCityError(city=city, known_cities=ranking)

    if city in state.visible:
        visible = [c for c in state.visible if c != city]
    else:
        visible = [*state.visible, city]

    ranking_index = {c: i for i, c in enumerate(ranking)}

    return evolve(state, visible=sorted(visible, key=ranking_index.__getitem__))


def toggle_mode(state: ChartState) -> ChartState:
    """
    Switch between cumulative counts and new cases per day
    """
    if state.mode is MetricMode.CUMULATIVE:
        return evolve(state, mode=MetricMode.DAILY)

    return evolve(state, mode=MetricMode.CUMULATIVE)


def with_search(state: ChartState, search: str) -> ChartState:
    """
    Update the legend search text
    """
    return evolve(state, search=search)


def filter_cities(cities: Iterable[str], search: str) -> list[str]:
    """
    Filter cities by a search string

    Matching is a case-insensitive substring match.

    Parameters
    ----------
    cities
        Cities to filter

    search
        Search string.
        An empty string matches everything.

    Returns
    -------
    :
        Cities that match `search`, in the order of `cities`
    """
    key = search.upper()

    return [c for c in cities if key in c.upper()]


def assign_colours(
    cities: Sequence[str], palette: Sequence[str] = PAIRED
) -> dict[str, str]:
    """
    Assign a colour to each city

    Colours are handed out in the order of `cities`,
    starting again at the beginning of `palette` once it runs out.
    Pass the full ranking so a city keeps its colour
    whichever other cities are visible.

    Parameters
    ----------
    cities
        Cities to colour

    palette
        Colours to use

    Returns
    -------
    :
        Colour for each city

    Raises
    ------
    ValueError
        `palette` is empty
    """
    if not palette:
        msg = "palette must not be empty"
        raise ValueError(msg)

    return {city: palette[i % len(palette)] for i, city in enumerate(cities)}


def clean_city_id(city: str) -> str:
    """
    Convert a city name into something that can be used as an element ID

    Apostrophes and commas are removed,
    runs of whitespace are replaced with underscores.

    Parameters
    ----------
    city
        City name

    Returns
    -------
    :
        Cleaned name e.g. `"'s-Hertogenbosch"` becomes `"s-Hertogenbosch"`
        and `"Bergen (NH.)"` becomes `"Bergen_(NH.)"`
    """
    return re.sub(r"\s+", "_", city.replace("'", "").replace(",", ""))


def y_axis_max(aggregated: AggregatedCases, mode: MetricMode) -> int:
    """
    Get the top of the y-axis for a given metric

    This covers all cities, not just the visible ones,
    so the axis doesn't jump around as cities are toggled.
    """
    if mode is MetricMode.CUMULATIVE:
        return aggregated.max_cumulative

    return aggregated.max_new


def build_chart_data(aggregated: AggregatedCases, state: ChartState) -> pd.DataFrame:
    """
    Build the data to draw for a given state

    Parameters
    ----------
    aggregated
        Aggregated cases

    state
        State of the chart

    Returns
    -------
    :
        Data to draw.
        The index is the date, there is one column per visible city
        (in the order of `state.visible`).
        Dates on which a city has no report are `NaN`.

    Raises
    ------
    UnknownCityError
        A visible city is not in `aggregated`
    """
    source: Mapping[str, Union[CitySeries, CityDailyDelta]]
    if state.mode is MetricMode.CUMULATIVE:
        source = aggregated.series
    else:
        source = aggregated.deltas

    unknown = [c for c in state.visible if c not in source]
    if unknown:
        raise UnknownCityError(city=unknown[0], known_cities=aggregated.ranking)

    return to_wide_frame(source, cities=state.visible)
