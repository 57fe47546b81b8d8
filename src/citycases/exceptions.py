"""
Exceptions that are used throughout
"""

from __future__ import annotations

from collections.abc import Collection


class FetchError(RuntimeError):
    """
    Raised when the case data could not be retrieved
    """

    def __init__(self, url: str, reason: str) -> None:
        """
        Initialise the error

        Parameters
        ----------
        url
            URL we tried to retrieve

        reason
            Why the retrieval failed
        """
        error_msg = f"Failed to fetch case data from {url!r}. {reason}"
        super().__init__(error_msg)


class MissingColumnsError(ValueError):
    """
    Raised when the case CSV does not have the columns we need
    """

    def __init__(
        self, missing_columns: Collection[str], available_columns: Collection[str]
    ) -> None:
        """
        Initialise the error

        Parameters
        ----------
        missing_columns
            Required columns which are not in the data

        available_columns
            Columns which are in the data
        """
        # Sort to make the error message deterministic
        missing = sorted(missing_columns)
        available = sorted(available_columns)
        error_msg = (
            "The case data is missing required columns. "
            f"{missing=}. {available=}"
        )
        super().__init__(error_msg)

        self.missing_columns = missing
        self.available_columns = available


class UnknownCityError(ValueError):
    """
    Raised when a city is requested that is not in the data
    """

    def __init__(self, city: str, known_cities: Collection[str]) -> None:
        """
        Initialise the error

        Parameters
        ----------
        city
            The city that was requested

        known_cities
            The cities that are in the data
        """
        n_known = len(known_cities)
        error_msg = f"{city=} is not one of the {n_known} known cities"
        if n_known:
            error_msg = f"{error_msg}. First few known cities: {list(known_cities)[:5]}"

        super().__init__(error_msg)
