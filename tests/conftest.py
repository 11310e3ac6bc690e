import numpy as np
import pandas as pd
import pytest

from aqi_report.config import CityModelSpec, ProjectConfig
from synthetic import raw_table


@pytest.fixture
def config(tmp_path):
    specs = [
        CityModelSpec('Chennai', (0, 1, 0), (0, 0, 0, 12), include_constant=True),
        CityModelSpec('Delhi', (1, 0, 1), (1, 1, 1, 12)),
        CityModelSpec('Lucknow', (1, 0, 1), (0, 1, 1, 12)),
    ]
    return ProjectConfig(data_dir=tmp_path / 'data',
                         output_dir=tmp_path / 'output',
                         viz_dir=tmp_path / 'viz',
                         city_specs=specs)


@pytest.fixture
def raw_frame():
    """Three cities; Lucknow starts late so its training window is short."""
    df = raw_table({
        'Chennai': ('2015-01-01', 90, 25, 1),
        'Delhi': ('2015-01-01', 250, 120, 2),
        'Lucknow': ('2018-06-01', 200, 90, 3),
    })
    df['Date'] = df['Date'].dt.strftime('%Y-%m-%d')
    return df


@pytest.fixture
def raw_csv(tmp_path, raw_frame):
    """Raw CSV with blank AQI cells, a leading gap and an extra city and column."""
    df = raw_frame.copy()
    df['PM2.5'] = 1.0

    chennai = df.index[df['City'] == 'Chennai']
    df.loc[chennai[:10], 'AQI'] = np.nan
    delhi = df.index[df['City'] == 'Delhi']
    df.loc[delhi[100:105], 'AQI'] = np.nan

    extra = pd.DataFrame({'City': ['Mumbai'] * 3,
                          'Date': ['2016-01-01', '2016-01-02', 'not a date'],
                          'AQI': [100.0, 110.0, 120.0],
                          'PM2.5': [1.0, 1.0, 1.0]})
    df = pd.concat([df, extra], ignore_index=True)

    path = tmp_path / 'city_day_raw.csv'
    df.to_csv(path, index=False)
    return path
