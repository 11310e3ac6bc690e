import numpy as np
import pytest

from aqi_report.exceptions import DataValidationError
from aqi_report.loader import DataLoader
from synthetic import write_csv


def test_loads_target_cities_and_ignores_extra_columns(config, raw_csv):
    df = DataLoader(config).process(raw_csv)

    assert list(df.columns) == ['City', 'Date', 'AQI']
    assert set(df['City']) == {'Chennai', 'Delhi', 'Lucknow'}
    assert str(df['Date'].dtype).startswith('datetime64')
    assert df['AQI'].dtype == float


def test_blank_aqi_cells_become_missing(config, raw_csv):
    df = DataLoader(config).process(raw_csv)

    chennai = df[df['City'] == 'Chennai']
    assert chennai['AQI'].head(10).isna().all()
    assert chennai['AQI'].iloc[10:].notna().all()


def test_rows_are_sorted_by_city_and_date(config, raw_csv):
    df = DataLoader(config).process(raw_csv)

    for _, group in df.groupby('City'):
        assert group['Date'].is_monotonic_increasing
    assert df['City'].is_monotonic_increasing


def test_missing_required_column_aborts(config, tmp_path):
    path = write_csv(tmp_path, {'City': ['Delhi'], 'Date': ['2019-01-01']})

    with pytest.raises(DataValidationError, match='AQI'):
        DataLoader(config).process(path)


def test_unparseable_date_aborts(config, tmp_path):
    path = write_csv(tmp_path, {
        'City': ['Delhi', 'Delhi'],
        'Date': ['2019-01-01', '01/02/2019'],
        'AQI': [100.0, 120.0],
    })

    with pytest.raises(DataValidationError, match='unparseable dates'):
        DataLoader(config).process(path)


def test_non_numeric_aqi_aborts(config, tmp_path):
    path = write_csv(tmp_path, {
        'City': ['Delhi', 'Delhi'],
        'Date': ['2019-01-01', '2019-01-02'],
        'AQI': ['100', 'high'],
    })

    with pytest.raises(DataValidationError, match='non-numeric'):
        DataLoader(config).process(path)


def test_negative_aqi_aborts(config, tmp_path):
    path = write_csv(tmp_path, {
        'City': ['Delhi', 'Delhi'],
        'Date': ['2019-01-01', '2019-01-02'],
        'AQI': [100.0, -5.0],
    })

    with pytest.raises(DataValidationError, match='negative'):
        DataLoader(config).process(path)


def test_duplicate_city_day_aborts(config, tmp_path):
    path = write_csv(tmp_path, {
        'City': ['Delhi', 'Delhi'],
        'Date': ['2019-01-01', '2019-01-01'],
        'AQI': [100.0, 101.0],
    })

    with pytest.raises(DataValidationError, match='duplicate'):
        DataLoader(config).process(path)


def test_file_without_target_cities_aborts(config, tmp_path):
    path = write_csv(tmp_path, {
        'City': ['Mumbai'],
        'Date': ['2019-01-01'],
        'AQI': [100.0],
    })

    with pytest.raises(DataValidationError, match='None of the target cities'):
        DataLoader(config).process(path)


def test_absent_city_is_recorded(config, tmp_path):
    path = write_csv(tmp_path, {
        'City': ['Delhi', 'Chennai'],
        'Date': ['2019-01-01', '2019-01-01'],
        'AQI': [100.0, np.nan],
    })

    loader = DataLoader(config)
    loader.process(path)

    assert loader.missing_cities == ['Lucknow']


def test_missing_file_raises(config, tmp_path):
    with pytest.raises(FileNotFoundError):
        DataLoader(config).process(tmp_path / 'absent.csv')


def test_row_without_city_aborts(config, tmp_path):
    path = write_csv(tmp_path, {
        'City': ['Delhi', None, 'Delhi'],
        'Date': ['2019-01-01', '2019-01-02', '2019-01-03'],
        'AQI': [100.0, 999.0, 120.0],
    })

    with pytest.raises(DataValidationError, match=r'1 row\(s\) have no City.*\[3\]'):
        DataLoader(config).process(path)


def test_whitespace_city_aborts(config, tmp_path):
    path = write_csv(tmp_path, {
        'City': ['Delhi', '   '],
        'Date': ['2019-01-01', '2019-01-02'],
        'AQI': [100.0, 120.0],
    })

    with pytest.raises(DataValidationError, match='no City'):
        DataLoader(config).process(path)
