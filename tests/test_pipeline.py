import pandas as pd
import pytest

from aqi_report.config import CityModelSpec, ProjectConfig
from aqi_report.output import MONTHLY_FILE, WEEKLY_FILE
from aqi_report.report import ReportGenerator
from aqi_report.run_model import AQIAnalysisSystem
from aqi_report.visualizer import Visualizer
from synthetic import raw_table


@pytest.fixture(scope='module')
def completed(tmp_path_factory):
    """One full run shared by the end-to-end checks."""
    root = tmp_path_factory.mktemp('run')
    config = ProjectConfig(
        data_dir=root / 'data', output_dir=root / 'output', viz_dir=root / 'viz',
        city_specs=[
            CityModelSpec('Chennai', (0, 1, 0), (0, 0, 0, 12), include_constant=True),
            CityModelSpec('Delhi', (1, 0, 1), (1, 1, 1, 12)),
            CityModelSpec('Lucknow', (1, 0, 1), (0, 1, 1, 12)),
        ])

    df = raw_table({
        'Chennai': ('2015-01-01', 90, 25, 1),
        'Delhi': ('2015-01-01', 250, 120, 2),
        'Lucknow': ('2018-06-01', 200, 90, 3),
    })
    df['Date'] = df['Date'].dt.strftime('%Y-%m-%d')
    df.loc[df.index[:10], 'AQI'] = None
    config.data_dir.mkdir(parents=True)
    df.to_csv(config.raw_file, index=False)

    system = AQIAnalysisSystem(config)
    success, elapsed = system.run_complete_analysis()
    return system, success, elapsed


def test_run_succeeds(completed):
    system, success, elapsed = completed

    assert success
    assert elapsed > 0


def test_aggregated_tables_are_written(completed):
    system, _, _ = completed

    monthly = pd.read_csv(system.config.output_dir / MONTHLY_FILE)
    weekly = pd.read_csv(system.config.output_dir / WEEKLY_FILE)

    for table in (monthly, weekly):
        assert list(table.columns) == ['City', 'Date', 'AQI']
        assert set(table['City']) == {'Chennai', 'Delhi', 'Lucknow'}
        assert table['AQI'].notna().all()
    assert monthly['Date'].str.fullmatch(r'\d{4}-\d{2}').all()
    assert weekly['Date'].str.fullmatch(r'\d{4}-\d{2}-\d{2}').all()


def test_chennai_drift_model_is_scored(completed):
    system, _, _ = completed
    chennai = system.city_results['Chennai']

    assert chennai['status'] == 'analyzed'
    manual = chennai['models']['manual']
    assert manual['status'] == 'fitted'
    assert manual['fit'].include_constant
    assert manual['forecast'].index.equals(chennai['test'].index)
    assert ('Chennai', 'manual') in system.accuracy.index


def test_short_city_is_reported_not_fatal(completed):
    system, _, _ = completed
    lucknow = system.city_results['Lucknow']

    # twelve training months cannot support a seasonal fit
    assert len(lucknow['train']) == 12
    assert lucknow['status'] == 'fit_failed'
    assert lucknow['models']['manual']['status'] == 'insufficient_data'
    assert 'Lucknow' in lucknow['models']['manual']['error']
    assert lucknow['errors']


def test_every_city_uses_the_same_cutoff(completed):
    system, _, _ = completed
    cutoff = system.config.cutoff

    for results in system.city_results.values():
        assert results['train'].index.max() < cutoff
        assert results['test'].index.min() == cutoff


def test_plots_are_written(completed):
    system, _, _ = completed
    names = {p.name for p in system.config.viz_dir.glob('*.png')}

    assert 'daily_series.png' in names
    assert 'forecast_chennai.png' in names
    assert 'residuals_chennai_manual.png' in names
    assert 'spectrum_delhi_daily.png' in names


def test_missing_input_fails_cleanly(config):
    success, _ = AQIAnalysisSystem(config).run_complete_analysis(config.data_dir / 'absent.csv')

    assert not success


def test_cutoff_after_the_data_skips_city(config, raw_csv):
    config.cutoff = pd.Timestamp('2030-01-01')
    system = AQIAnalysisSystem(config)
    raw = system.data_loader.process(raw_csv)
    daily, _, monthly = system.cleaner.process(raw)

    results = system.city_analyzer.analyze_city(config.spec_for('Chennai'), daily, monthly)

    assert results['status'] == 'insufficient_data'
    assert '0 test months' in results['error']


def test_report_section_for_skipped_city(config):
    spec = config.spec_for('Delhi')
    section = ReportGenerator(config).city_section(
        {'status': 'no_data', 'city': 'Delhi', 'spec': spec})

    assert 'DELHI' in section
    assert 'Skipped' in section


def test_empty_accuracy_table_keeps_columns(config):
    table = ReportGenerator(config).accuracy_table({})

    assert table.empty
    assert 'MASE' in table.columns


def test_flat_city_does_not_stop_the_run(tmp_path, capsys):
    config = ProjectConfig(
        data_dir=tmp_path / 'data', output_dir=tmp_path / 'output', viz_dir=tmp_path / 'viz',
        city_specs=[
            CityModelSpec('Chennai', (0, 1, 0), (0, 0, 0, 12), include_constant=True),
            CityModelSpec('Delhi', (1, 0, 1), (1, 1, 1, 12)),
        ])
    df = raw_table({
        'Chennai': ('2015-01-01', 90, 25, 1),
        'Delhi': ('2015-01-01', 250, 120, 2),
    })
    df.loc[df['City'] == 'Chennai', 'AQI'] = 100.0
    df['Date'] = df['Date'].dt.strftime('%Y-%m-%d')
    path = tmp_path / 'raw.csv'
    df.to_csv(path, index=False)

    system = AQIAnalysisSystem(config)
    success, _ = system.run_complete_analysis(path)
    out = capsys.readouterr().out

    assert success
    assert 'DELHI' in out
    assert 'FORECAST ACCURACY' in out
    assert set(system.city_results) == {'Chennai', 'Delhi'}


def test_evaluation_failure_is_recorded_per_model(config, raw_csv, monkeypatch):
    system = AQIAnalysisSystem(config)
    raw = system.data_loader.process(raw_csv)
    daily, _, monthly = system.cleaner.process(raw)

    def broken(*args, **kwargs):
        raise ValueError('forecast exploded')

    monkeypatch.setattr(system.evaluator, 'process', broken)
    results = system.city_analyzer.analyze_city(config.spec_for('Chennai'), daily, monthly)

    manual = results['models']['manual']
    assert manual['status'] == 'evaluation_failed'
    assert 'forecast exploded' in manual['error']
    assert manual['fit'] is not None
    assert results['status'] == 'analyzed'
    assert ReportGenerator(config).accuracy_table({'Chennai': results}).empty


def test_plotting_failure_is_isolated_per_city(config, monkeypatch):
    def plot_city(self, results):
        if results['city'] == 'Chennai':
            raise ValueError('singular matrix')
        return []

    monkeypatch.setattr(Visualizer, 'plot_city', plot_city)
    city_results = {
        city: {'status': 'analyzed', 'city': city, 'errors': []}
        for city in ('Chennai', 'Delhi')
    }
    empty = pd.DataFrame({'City': pd.Series(dtype=object),
                          'Date': pd.Series(dtype='datetime64[ns]'),
                          'AQI': pd.Series(dtype=float)})

    Visualizer(config).process(empty, empty, city_results)

    assert city_results['Chennai']['errors'] == ['Chennai: plotting failed: singular matrix']
    assert city_results['Delhi']['errors'] == []


def test_report_continues_after_a_broken_section(config, monkeypatch, capsys):
    original = ReportGenerator.city_section

    def city_section(self, results):
        if results['city'] == 'Chennai':
            raise KeyError('models')
        return original(self, results)

    monkeypatch.setattr(ReportGenerator, 'city_section', city_section)
    city_results = {
        city: {'status': 'no_data', 'city': city, 'spec': config.spec_for(city)}
        for city in ('Chennai', 'Delhi')
    }

    ReportGenerator(config).process(city_results, 1.0)
    out = capsys.readouterr().out

    assert 'could not be rendered' in out
    assert 'DELHI' in out


def test_unexpected_city_error_marks_only_that_city(config, monkeypatch):
    system = AQIAnalysisSystem(config)

    def analyze_city(spec, daily, monthly):
        if spec.city == 'Delhi':
            raise RuntimeError('index out of bounds')
        return {'status': 'no_data', 'city': spec.city, 'spec': spec}

    monkeypatch.setattr(system.city_analyzer, 'analyze_city', analyze_city)
    city_results = system.city_analyzer.process(None, None)

    assert city_results['Delhi']['status'] == 'failed'
    assert 'index out of bounds' in city_results['Delhi']['error']
    assert city_results['Chennai']['status'] == 'no_data'
    assert 'Skipped' in ReportGenerator(config).city_section(city_results['Delhi'])
