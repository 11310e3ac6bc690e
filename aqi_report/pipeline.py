"""Per-city analysis pipeline: split, analyze, fit, forecast."""

from typing import Any, Dict

import pandas as pd

from .analyzer import SeasonalityAnalyzer
from .cleaner import SeriesCleaner
from .config import BaseAnalyzer, CityModelSpec, ProjectConfig
from .evaluator import ForecastEvaluator, split_at
from .exceptions import InsufficientDataError
from .fitter import ModelFitter


class CityAnalyzer(BaseAnalyzer):
    """
    Runs the same parametrized pipeline for every configured city.

    Responsibilities:
    - Split each monthly series at the shared cutoff
    - Spectral pass on the daily series, full analysis on the monthly one
    - Fit the manual and automatic models and evaluate whichever succeeded
    """

    def __init__(self, config: ProjectConfig, cleaner: SeriesCleaner,
                 analyzer: SeasonalityAnalyzer, fitter: ModelFitter,
                 evaluator: ForecastEvaluator):
        super().__init__(config)
        self.cleaner = cleaner
        self.analyzer = analyzer
        self.fitter = fitter
        self.evaluator = evaluator

    def analyze_city(self, spec: CityModelSpec, daily: pd.DataFrame,
                     monthly: pd.DataFrame) -> Dict[str, Any]:
        """
        Complete analysis of one city.

        Args:
            spec: City model configuration
            daily: Cleaned daily table for all cities
            monthly: Monthly table for all cities

        Returns:
            Dictionary with split, analysis, model and evaluation results
        """
        series = self.cleaner.city_series(monthly, spec.city, 'month')
        if series.empty:
            return {'status': 'no_data', 'city': spec.city, 'spec': spec}

        train, test = split_at(series, self.config.cutoff)
        if train.empty or test.empty:
            return {
                'status': 'insufficient_data',
                'city': spec.city,
                'spec': spec,
                'error': (f"{spec.city}: cutoff {self.config.cutoff.date()} leaves "
                          f"{len(train)} training and {len(test)} test months"),
            }

        results: Dict[str, Any] = {
            'status': 'analyzed',
            'city': spec.city,
            'spec': spec,
            'series': series,
            'train': train,
            'test': test,
            'daily_spectral': None,
            'analysis': None,
            'errors': [],
        }

        daily_series = self.cleaner.city_series(daily, spec.city, 'day')
        try:
            results['daily_spectral'] = self.analyzer.spectral_pass(
                daily_series, spec.daily_peak_threshold)
        except InsufficientDataError as e:
            results['errors'].append(str(e))

        try:
            results['analysis'] = self.analyzer.process(
                train, spec.seasonal_period, spec.monthly_peak_threshold)
        except InsufficientDataError as e:
            results['errors'].append(str(e))

        models = self.fitter.process(train, spec)
        for label, outcome in models.items():
            if outcome['status'] != 'fitted':
                continue
            try:
                outcome.update(self.evaluator.process(outcome['fit'], train, test))
            except Exception as e:
                print(f"   ✗ {label}: evaluation failed: {e}")
                outcome['status'] = 'evaluation_failed'
                outcome['error'] = f"{spec.city}: {outcome['fit'].name} evaluation failed: {e}"
        results['models'] = models

        if all(o['fit'] is None for o in models.values()):
            results['status'] = 'fit_failed'
        return results

    def process(self, daily: pd.DataFrame, monthly: pd.DataFrame) -> Dict[str, Dict[str, Any]]:
        """
        Analyze all configured cities.

        Args:
            daily: Cleaned daily table
            monthly: Monthly table

        Returns:
            Dictionary with results for each city
        """
        print("🔍 Analyzing individual cities...")

        city_results = {}
        analyzed_count = 0

        for city in self.config.cities:
            print(f"   Analyzing {city}...")
            spec = self.config.spec_for(city)
            try:
                results = self.analyze_city(spec, daily, monthly)
            except Exception as e:
                results = {'status': 'failed', 'city': city, 'spec': spec,
                           'error': f"{city}: analysis failed: {e}"}
            city_results[city] = results

            if results['status'] == 'analyzed':
                analyzed_count += 1
            elif 'error' in results:
                print(f"   ⚠️  {results['error']}")

        print(f"   ✓ Analyzed {analyzed_count} cities successfully")
        self.log_time("City Analysis Complete")

        return city_results
