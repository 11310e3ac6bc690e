"""Report plots: series, spectra, ACF/PACF, residuals and forecasts."""

from pathlib import Path
from typing import Any, Dict, List, Optional

import matplotlib.pyplot as plt
import pandas as pd
from statsmodels.graphics.tsaplots import plot_acf, plot_pacf

from .config import BaseAnalyzer
from .fitter import ModelFit

plt.switch_backend('Agg')

MODEL_COLORS = {'manual': 'tab:red', 'auto': 'tab:blue'}


def _slug(text: str) -> str:
    return text.lower().replace(' ', '_')


class Visualizer(BaseAnalyzer):
    """
    Generates all visualizations and charts.

    Responsibilities:
    - Raw vs cleaned daily series for every city
    - Daily and monthly spectral densities with the peak threshold
    - ACF/PACF of the differenced training series
    - Residual diagnostics and forecast vs actual for every fitted model
    """

    def _save(self, fig, filename: str) -> Path:
        output_path = self.config.viz_dir / filename
        fig.tight_layout()
        fig.savefig(output_path, dpi=150, bbox_inches='tight')
        plt.close(fig)
        return output_path

    def plot_series(self, raw: pd.DataFrame, daily: pd.DataFrame) -> Optional[Path]:
        """
        Raw and cleaned daily AQI, one panel per city.

        Args:
            raw: Validated raw table
            daily: Cleaned daily table
        """
        cities = [c for c in self.config.cities if c in set(raw['City'])]
        if not cities:
            return None

        fig, axes = plt.subplots(len(cities), 1, figsize=(12, 3 * len(cities)), sharex=True,
                                 squeeze=False)
        for ax, city in zip(axes[:, 0], cities):
            raw_city = raw[raw['City'] == city]
            clean_city = daily[daily['City'] == city]
            ax.plot(clean_city['Date'], clean_city['AQI'], color='tab:orange', linewidth=1,
                    label='Cleaned')
            ax.plot(raw_city['Date'], raw_city['AQI'], color='tab:blue', linewidth=0.8,
                    alpha=0.7, label='Raw')
            ax.set_title(f'{city} daily AQI', fontsize=12, fontweight='bold')
            ax.set_ylabel('AQI')
            ax.grid(True, alpha=0.3)
            ax.legend(loc='upper right')

        return self._save(fig, 'daily_series.png')

    def plot_spectrum(self, city: str, spectral: Dict[str, Any], label: str) -> Path:
        """
        Smoothed spectral density with the peak threshold and detected peaks.

        Args:
            city: City name
            spectral: Result of SeasonalityAnalyzer.spectral_pass
            label: Granularity label used in the title and file name
        """
        spectrum = spectral['spectrum']
        peaks = spectral['dominant_periods']

        fig, ax = plt.subplots(figsize=(10, 5))
        ax.plot(spectrum['frequency'], spectrum['power'], color='navy', linewidth=1)
        ax.axhline(spectral['threshold'], color='red', linestyle='--', alpha=0.7,
                   label=f"Threshold {spectral['threshold']:,.0f}")
        ax.scatter(peaks['frequency'], peaks['power'], color='red', s=15, zorder=3,
                   label='Dominant frequencies')
        ax.set_title(f'{city} spectral density ({label})', fontsize=14, fontweight='bold')
        ax.set_xlabel('Frequency (cycles per observation)')
        ax.set_ylabel('Spectral power')
        ax.grid(True, alpha=0.3)
        ax.legend()

        return self._save(fig, f'spectrum_{_slug(city)}_{label}.png')

    def plot_acf_pacf(self, city: str, series: pd.Series, lags: int) -> Path:
        fig, (ax1, ax2) = plt.subplots(2, 1, figsize=(10, 8))
        lags = min(lags, len(series) // 2 - 1)
        plot_acf(series, lags=lags, ax=ax1, alpha=self.config.significance_level)
        plot_pacf(series, lags=lags, ax=ax2, alpha=self.config.significance_level, method='ywm')
        ax1.set_title(f'{city} ACF (differenced)', fontsize=12, fontweight='bold')
        ax2.set_title(f'{city} PACF (differenced)', fontsize=12, fontweight='bold')
        return self._save(fig, f'acf_pacf_{_slug(city)}.png')

    def plot_residuals(self, model_fit: ModelFit) -> Path:
        """Residual series, histogram, Q-Q plot and correlogram of a fitted model."""
        lags = max(1, min(self.config.residual_lags, len(model_fit.residuals) - 1))
        fig = model_fit.result.plot_diagnostics(figsize=(12, 8), lags=lags)
        fig.suptitle(f'{model_fit.city} {model_fit.label}: {model_fit.name}',
                     fontsize=14, fontweight='bold')
        return self._save(fig, f'residuals_{_slug(model_fit.city)}_{model_fit.label}.png')

    def plot_forecasts(self, city: str, train: pd.Series, test: pd.Series,
                       models: Dict[str, Dict[str, Any]]) -> Optional[Path]:
        """
        Training series, held-out actuals and every successful forecast.

        Args:
            city: City name
            train: Training series
            test: Held-out actuals
            models: Model outcomes from CityAnalyzer
        """
        fitted = {label: m for label, m in models.items() if m['status'] == 'fitted'}
        if not fitted:
            return None

        widest = max(self.config.interval_levels)
        fig, ax = plt.subplots(figsize=(12, 6))
        ax.plot(train.index, train.values, color='black', linewidth=1.5, label='Train')
        ax.plot(test.index, test.values, color='green', linewidth=2, label='Actual')

        for label, outcome in fitted.items():
            fc = outcome['forecast']
            color = MODEL_COLORS.get(label, 'gray')
            ax.plot(fc.index, fc['forecast'], linestyle='--', color=color, linewidth=1.5,
                    label=f"{label}: {outcome['fit'].name}")
            ax.fill_between(fc.index, fc[f'lower_{widest}'], fc[f'upper_{widest}'],
                            color=color, alpha=0.15)

        ax.axvline(self.config.cutoff, color='gray', linestyle=':', alpha=0.8)
        ax.set_title(f'{city} monthly AQI forecast vs actual', fontsize=14, fontweight='bold')
        ax.set_xlabel('Date')
        ax.set_ylabel('AQI')
        ax.grid(True, alpha=0.3)
        ax.legend()

        return self._save(fig, f'forecast_{_slug(city)}.png')

    def plot_city(self, results: Dict[str, Any]) -> List[Path]:
        """Every plot for one analyzed city."""
        city = results['city']
        paths = []

        if results['daily_spectral'] is not None:
            paths.append(self.plot_spectrum(city, results['daily_spectral'], 'daily'))

        analysis = results['analysis']
        if analysis is not None:
            paths.append(self.plot_spectrum(city, analysis, 'monthly'))
            differenced = analysis['differenced']
            if len(differenced) >= 8:
                paths.append(self.plot_acf_pacf(city, differenced, self.config.acf_lags))

        for outcome in results['models'].values():
            if outcome['status'] == 'fitted':
                paths.append(self.plot_residuals(outcome['fit']))

        forecast_path = self.plot_forecasts(city, results['train'], results['test'], results['models'])
        if forecast_path is not None:
            paths.append(forecast_path)
        return paths

    def process(self, raw: pd.DataFrame, daily: pd.DataFrame,
                city_results: Dict[str, Dict[str, Any]]) -> List[Path]:
        """
        Generate all visualizations.

        Args:
            raw: Validated raw table
            daily: Cleaned daily table
            city_results: Results from CityAnalyzer

        Returns:
            Paths of the written images
        """
        print("📈 Generating visualizations...")

        paths = []
        series_path = self.plot_series(raw, daily)
        if series_path is not None:
            paths.append(series_path)

        for results in city_results.values():
            if results['status'] not in ('analyzed', 'fit_failed'):
                continue
            try:
                paths.extend(self.plot_city(results))
            except Exception as e:
                plt.close('all')
                print(f"   ✗ {results['city']}: plotting failed: {e}")
                results['errors'].append(f"{results['city']}: plotting failed: {e}")

        print(f"   ✓ Saved {len(paths)} plots to {self.config.viz_dir}")
        self.log_time("Visualization Generation Complete")
        return paths
