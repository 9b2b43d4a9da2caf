"""
Shared pytest fixtures for pyrecurrent tests

This module provides reusable test fixtures for:
- Small hand built detection tables on a numeric time axis
- Camera trap style detection tables with datetime stamps
- Simulated multi site detection tables
- Static site covariates
"""

import pytest
import pandas as pd
import numpy as np


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests of a single component")
    config.addinivalue_line("markers", "smoke: minimal checks that the package works at all")
    config.addinivalue_line("markers", "integration: end to end formatting runs")


@pytest.fixture
def species_sets():
    """
    Category sets used throughout the tests

    Returns:
        dict: primary / secondary keyword arguments
    """
    return {'primary': {'Red Fox'}, 'secondary': {'Badger'}}


@pytest.fixture
def make_detections():
    """
    Factory for single or multi site detection tables

    Returns:
        function: (site, [(time, species), ...]) pairs -> pd.DataFrame
    """
    def _make(*sites):
        rows = []
        for site, detections in sites:
            for time_stamp, species in detections:
                rows.append({'Site': site, 'DateTime': time_stamp, 'Species': species})
        return pd.DataFrame(rows, columns = ['Site', 'DateTime', 'Species'])
    return _make


@pytest.fixture
def camera_detections():
    """
    Camera trap detections with datetime stamps at three sites

    Site C never records the primary species.

    Returns:
        pd.DataFrame: Raw detection records
    """
    return pd.DataFrame({
        'Site': ['A', 'A', 'A', 'A', 'B', 'B', 'B', 'C', 'C'],
        'DateTime': pd.to_datetime([
            '2023-06-01 00:00:00',
            '2023-06-02 12:00:00',
            '2023-06-04 00:00:00',
            '2023-06-05 06:00:00',
            '2023-06-03 00:00:00',
            '2023-06-03 18:00:00',
            '2023-06-20 00:00:00',
            '2023-06-01 08:00:00',
            '2023-06-02 08:00:00',
        ]),
        'Species': ['Red Fox', 'Badger', 'Badger', 'Domestic Dog',
                    'Red Fox', 'Badger', 'Roe Deer',
                    'Badger', 'Roe Deer']
    })


@pytest.fixture
def site_covariates():
    """
    Static site covariates for the camera trap fixture

    Returns:
        pd.DataFrame: One row per site
    """
    return pd.DataFrame({
        'Site': ['A', 'B', 'C'],
        'habitat': ['forest', 'grassland', 'forest'],
        'elevation': [420.0, 310.0, 515.0]
    })


@pytest.fixture
def simulated_detections():
    """
    Simulated detections at six sites on a numeric time axis (days)

    Timestamps are continuous draws so ties do not occur.

    Returns:
        pd.DataFrame: 240 detection records in random row order
    """
    rng = np.random.default_rng(42)
    n = 240
    return pd.DataFrame({
        'Site': rng.choice(['S1', 'S2', 'S3', 'S4', 'S5', 'S6'], n),
        'DateTime': rng.uniform(0.0, 120.0, n),
        'Species': rng.choice(['Red Fox', 'Badger', 'Domestic Dog', 'Roe Deer'],
                              n,
                              p = [0.25, 0.55, 0.1, 0.1])
    })


@pytest.fixture
def assert_dataframe_equal():
    """
    Helper fixture for DataFrame comparison

    Returns:
        function: Assertion function for DataFrames
    """
    def _assert_equal(df1, df2, **kwargs):
        """Compare DataFrames with useful error messages"""
        pd.testing.assert_frame_equal(
            df1, df2,
            check_dtype=True,
            check_index_type=True,
            **kwargs
        )
    return _assert_equal
