"""Printed summary of the analysis."""

from typing import Any, Dict, List

import pandas as pd

from .config import BaseAnalyzer

METRIC_COLUMNS = ['ME', 'RMSE', 'MAE', 'MPE', 'MAPE', 'MASE', 'ACF1']


class ReportGenerator(BaseAnalyzer):
    """
    Generates the console report.

    Responsibilities:
    - Per-city stationarity and seasonality findings
    - Coefficient tables and information criteria of each fitted model
    - Manual vs automatic forecast accuracy comparison
    """

    def format_periods(self, peaks: pd.DataFrame, limit: int = 5) -> str:
        if peaks is None or peaks.empty:
            return 'none above threshold'
        top = peaks.head(limit)
        return ', '.join(f"{row.period:.1f} (power {row.power:,.0f})" for row in top.itertuples())

    def city_section(self, results: Dict[str, Any]) -> str:
        """
        Text block for one city.

        Args:
            results: City results from CityAnalyzer

        Returns:
            Multi-line report section
        """
        city = results['city']
        spec = results['spec']
        lines = [f"\n🏙️  {city.upper()}", "-" * 60]

        if results['status'] in ('no_data', 'insufficient_data', 'failed'):
            lines.append(f"• Skipped: {results.get('error', 'no data in input')}")
            return '\n'.join(lines)

        train, test = results['train'], results['test']
        lines.append(f"• Train: {train.index.min():%Y-%m} to {train.index.max():%Y-%m} "
                     f"({len(train)} months), test: {len(test)} months")

        if results['daily_spectral'] is not None:
            lines.append(f"• Daily dominant periods (days): "
                         f"{self.format_periods(results['daily_spectral']['dominant_periods'])}")

        analysis = results['analysis']
        if analysis is not None:
            acf_summary = analysis['autocorrelation']
            lines.extend([
                f"• Monthly dominant periods (months): "
                f"{self.format_periods(analysis['dominant_periods'])}",
                f"• Differencing: d={analysis['differencing_order']}, "
                f"D={analysis['seasonal_differencing_order']} at period {spec.seasonal_period}",
                f"• KPSS p-value before/after differencing: "
                f"{analysis['stationarity']['p_value']:.3f} / "
                f"{analysis['differenced_stationarity']['p_value']:.3f}",
                f"• Significant ACF lags: {acf_summary['significant_acf_lags']}, "
                f"PACF lags: {acf_summary['significant_pacf_lags']}",
                f"• Suggested (p, q): ({acf_summary['suggested_p']}, {acf_summary['suggested_q']}), "
                f"configured: {spec.order} x {spec.seasonal_order}",
            ])

        for error in results.get('errors', []):
            lines.append(f"• ⚠️  {error}")

        for label, outcome in results['models'].items():
            lines.append(f"\n  [{label}]")
            if outcome['status'] != 'fitted':
                lines.append(f"  ✗ {outcome['status']}: {outcome['error']}")
                continue

            model_fit = outcome['fit']
            residuals = outcome['residuals']
            lines.append(f"  {model_fit.name}  AIC={model_fit.aic:.2f}  "
                         f"AICc={model_fit.aicc:.2f}  BIC={model_fit.bic:.2f}")
            lines.append(model_fit.coefficients().round(4).to_string())
            verdict = 'white noise' if residuals['white_noise'] else f"spikes at {residuals['spike_lags']}"
            lines.append(f"  Residuals: {verdict}; Ljung-Box p={residuals['ljung_box_pvalue']:.3f}")

        return '\n'.join(lines)

    def accuracy_table(self, city_results: Dict[str, Dict[str, Any]]) -> pd.DataFrame:
        """
        Accuracy of every evaluated model.

        Args:
            city_results: Results from CityAnalyzer

        Returns:
            DataFrame indexed by (city, model) with the metric columns
        """
        rows: List[Dict[str, Any]] = []
        for city, results in city_results.items():
            for label, outcome in results.get('models', {}).items():
                if outcome['status'] != 'fitted':
                    continue
                rows.append({
                    'city': city,
                    'model': label,
                    'orders': outcome['fit'].name,
                    **outcome['accuracy'],
                })
        if not rows:
            return pd.DataFrame(columns=['city', 'model', 'orders'] + METRIC_COLUMNS)
        return pd.DataFrame(rows).set_index(['city', 'model'])

    def process(self, city_results: Dict[str, Dict[str, Any]], execution_time: float) -> pd.DataFrame:
        """
        Print the complete report.

        Args:
            city_results: Results from CityAnalyzer
            execution_time: Total execution time

        Returns:
            The accuracy table that was printed
        """
        print("📋 Generating analysis report...")

        print("\n" + "=" * 80)
        print("🌫️  AQI SEASONALITY & FORECAST REPORT")
        print("=" * 80)
        print(f"Cutoff: {self.config.cutoff:%Y-%m} (train < cutoff <= test)")

        for results in city_results.values():
            try:
                print(self.city_section(results))
            except Exception as e:
                print(f"\n🏙️  {results['city'].upper()}\n  ✗ section could not be rendered: {e}")

        table = self.accuracy_table(city_results)
        print("\n📊 FORECAST ACCURACY (test period)")
        print("-" * 80)
        if table.empty:
            print("No model produced a forecast.")
        else:
            print(table.round(3).to_string())

        print(f"\n⚡ Execution Time: {execution_time:.2f} seconds")
        print("=" * 80)

        self.log_time("Report Generation Complete")
        return table
