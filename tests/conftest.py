"""
Re-useable fixtures etc. for tests

See https://docs.pytest.org/en/7.1.x/reference/fixtures.html#conftest-py-sharing-fixtures-across-multiple-files
"""

from pathlib import Path

import pandas as pd
import pytest

TEST_DATA_DIR = Path(__file__).parent / "test-data"


@pytest.fixture(scope="session", autouse=True)
def pandas_terminal_width():
    # Keep frames printed in assertion failures the same whatever the terminal.
    pd.set_option("display.width", 120)

    # Display as many columns as you want (i.e. let the display width do the
    # truncation)
    pd.set_option("display.max_columns", 1000)


@pytest.fixture(scope="session")
def sample_csv_path() -> Path:
    return TEST_DATA_DIR / "rivm_NL_covid19_total_municipality_sample.csv"
