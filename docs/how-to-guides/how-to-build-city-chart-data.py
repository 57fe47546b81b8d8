# ---
# jupyter:
#   jupytext:
#     text_representation:
#       extension: .py
#       format_name: percent
#       format_version: '1.3'
#       jupytext_version: 1.16.6
#   kernelspec:
#     display_name: Python 3 (ipykernel)
#     language: python
#     name: python3
# ---

# %% [markdown]
# # How to build the data for a city chart
#
# Here we demonstrate how to go from the raw per-municipality case CSV
# to the data that a line chart of cases per city needs.
# Drawing the chart is up to you,
# the output is a plain `pandas.DataFrame` that any plotting library can use.

# %% [markdown]
# ## Imports

# %%
from citycases.aggregation import Aggregator, compute_mean_series
from citycases.chart_state import (
    ChartState,
    assign_colours,
    build_chart_data,
    filter_cities,
    toggle_city,
    toggle_mode,
    with_search,
    y_axis_max,
)
from citycases.testing import create_raw_rows

# %% [markdown]
# ## Starting point
#
# Normally, you would fetch the data with `citycases.io.load_aggregated_cases`
# (or `fetch_case_csv` and `parse_case_csv` if you want to do the steps yourself).
# To keep this demo independent of the network,
# we make up some rows in the same format as the feed instead.
# Rows without a city are part of the feed, they are dropped when parsing.

# %%
raw_rows = create_raw_rows(
    {
        "Amsterdam": [30, 60, 90, 100, 130],
        "Rotterdam": [20, 45, 50, 80, 95],
        "Utrecht": [10, 15, 13, 20, 26],
        "'s-Hertogenbosch": [25, 31, 40, 52, 60],
        "Tilburg": [12, 14, 21, 30, 33],
        "Zeist": [1, 2, 3, 4, 8],
    }
)
raw_rows.append({**raw_rows[0], "Gemeentenaam": ""})
raw_rows[:3]

# %% [markdown]
# ## Aggregating
#
# The aggregator parses the rows, groups them by city,
# works out the new cases per day and ranks the cities.

# %%
aggregated = Aggregator()(raw_rows)
aggregated.ranking

# %% [markdown]
# Utrecht's data was revised down on the third day.
# Rather than showing negative new cases, the new cases are clamped to zero.

# %%
aggregated.deltas["Utrecht"].to_series()

# %% [markdown]
# ## The chart's state
#
# The chart starts by showing the top five cities, in cumulative mode.

# %%
state = ChartState.initial(aggregated)
state

# %%
build_chart_data(aggregated, state)

# %% [markdown]
# Toggling cities and the metric returns a new state.

# %%
state = toggle_city(state, "Zeist", ranking=aggregated.ranking)
state = toggle_city(state, "Amsterdam", ranking=aggregated.ranking)
state = toggle_mode(state)
state

# %%
chart_data = build_chart_data(aggregated, state)
chart_data

# %% [markdown]
# The y-axis label and limit follow the metric.

# %%
state.mode.y_label, y_axis_max(aggregated, state.mode)

# %% [markdown]
# Colours are assigned over the full ranking,
# so a city keeps its colour whichever other cities are shown.

# %%
colours = assign_colours(aggregated.ranking)
{city: colours[city] for city in state.visible}

# %% [markdown]
# The legend search narrows down the cities on offer.

# %%
state = with_search(state, "ter")
filter_cities(aggregated.ranking, state.search)

# %% [markdown]
# Finally, the mean across all cities can be shown as an extra line.

# %%
compute_mean_series(aggregated.deltas)
