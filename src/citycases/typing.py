"""
Type hints that are used throughout
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Mapping
from typing import Tuple

from typing_extensions import TypeAlias

RawRow: TypeAlias = Mapping[str, str]
"""
Type alias for a single row of the case CSV, before any parsing

Keys are the column names of the feed, values are the raw cell contents.
"""

SeriesPoint: TypeAlias = Tuple[dt.date, int]
"""
Type alias for a single point of a city's timeseries i.e. `(date, count)`
"""

CityRanking: TypeAlias = Tuple[str, ...]
"""
Type alias for an ordering of cities, highest peak cumulative count first
"""
