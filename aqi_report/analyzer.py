"""Stationarity tests, spectral analysis and autocorrelation diagnostics."""

from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd
from pmdarima.arima import ndiffs, nsdiffs
from pmdarima.arima.stationarity import KPSSTest
from scipy import signal
from scipy.stats import norm
from statsmodels.tsa.stattools import acf, pacf

from .config import BaseAnalyzer
from .exceptions import InsufficientDataError

# ACF/PACF lags considered when proposing p and q
MAX_SUGGESTED_LAG = 3


def daniell_kernel(span: int) -> np.ndarray:
    """Weights of the modified Daniell kernel covering `span` ordinates."""
    m = span // 2
    if m < 1:
        return np.ones(1)
    weights = np.full(2 * m + 1, 1.0 / (2 * m))
    weights[0] = weights[-1] = 1.0 / (4 * m)
    return weights


def difference(series: pd.Series, d: int = 0, D: int = 0, period: int = 1) -> pd.Series:
    """Apply d ordinary and D seasonal differences, dropping the undefined head."""
    out = series
    for _ in range(D):
        out = out.diff(period)
    for _ in range(d):
        out = out.diff()
    return out.dropna()


class SeasonalityAnalyzer(BaseAnalyzer):
    """
    Stationarity and seasonality analysis of a single series.

    Responsibilities:
    - Unit-root / stationarity tests to pick differencing orders
    - Smoothed periodogram and dominant period detection
    - ACF/PACF summaries used to propose candidate model orders
    """

    def differencing_order(self, series: pd.Series) -> int:
        """
        Number of ordinary differences needed for stationarity (KPSS).

        Args:
            series: Time series data

        Returns:
            Differencing order d, at most config.max_differences
        """
        values = series.dropna().to_numpy(dtype=float)
        if len(values) < 3:
            raise InsufficientDataError(
                f"{series.name}: {len(values)} observations are too few for a unit-root test")
        return int(ndiffs(values, alpha=self.config.significance_level,
                          test='kpss', max_d=self.config.max_differences))

    def seasonal_differencing_order(self, series: pd.Series, period: int) -> int:
        """
        Number of seasonal differences needed at the given period (OCSB).

        Args:
            series: Time series data
            period: Seasonal period in observations

        Returns:
            Seasonal differencing order D
        """
        values = series.dropna().to_numpy(dtype=float)
        if period < 2:
            return 0
        if len(values) < 3 * period:
            raise InsufficientDataError(
                f"{series.name}: {len(values)} observations are too few to test "
                f"seasonal differencing at period {period} (need {3 * period})")
        try:
            return int(nsdiffs(values, m=period, test='ocsb',
                               max_D=self.config.max_seasonal_differences))
        except ValueError as e:
            raise InsufficientDataError(
                f"{series.name}: seasonal differencing test at period {period} failed: {e}") from e

    def stationarity_test(self, series: pd.Series) -> Dict[str, Any]:
        """KPSS level-stationarity test; the null hypothesis is stationarity."""
        values = series.dropna().to_numpy(dtype=float)
        p_value, should_diff = KPSSTest(alpha=self.config.significance_level).should_diff(values)
        return {'p_value': float(p_value), 'stationary': not bool(should_diff)}

    def is_stationary(self, series: pd.Series) -> bool:
        return self.stationarity_test(series)['stationary']

    def spectral_density(self, series: pd.Series, smoothing_span: Optional[int] = None) -> pd.DataFrame:
        """
        Smoothed periodogram of a series.

        The series is linearly detrended and tapered with a 10% split cosine
        bell before the periodogram is taken; ordinates are then smoothed with
        a modified Daniell kernel. Frequencies are in cycles per observation.

        Args:
            series: Time series data
            smoothing_span: Kernel span; defaults to config.smoothing_span

        Returns:
            DataFrame with frequency, period and power columns (zero frequency excluded)
        """
        span = self.config.smoothing_span if smoothing_span is None else smoothing_span
        values = series.dropna().to_numpy(dtype=float)
        if len(values) < 8:
            raise InsufficientDataError(
                f"{series.name}: {len(values)} observations are too few for a periodogram")

        freqs, power = signal.periodogram(values, fs=1.0, window=('tukey', 0.2),
                                          detrend='linear', scaling='density')
        freqs, power = freqs[1:], power[1:]

        weights = daniell_kernel(span)
        m = len(weights) // 2
        if m and len(power) > m:
            padded = np.pad(power, m, mode='reflect')
            power = np.convolve(padded, weights, mode='valid')

        return pd.DataFrame({'frequency': freqs, 'period': 1.0 / freqs, 'power': power})

    def dominant_periods(self, series: pd.Series, smoothing_span: Optional[int] = None,
                         threshold: Optional[float] = None) -> pd.DataFrame:
        """
        Frequencies whose smoothed spectral power exceeds a threshold.

        Args:
            series: Time series data
            smoothing_span: Kernel span; defaults to config.smoothing_span
            threshold: Absolute power threshold for this series; when None,
                config.relative_peak_threshold times the maximum power is used

        Returns:
            DataFrame of frequency, period, power sorted by descending power
        """
        spectrum = self.spectral_density(series, smoothing_span)
        return self._peaks(spectrum, self._effective_threshold(spectrum, threshold))

    def _effective_threshold(self, spectrum: pd.DataFrame, threshold: Optional[float]) -> float:
        if threshold is None:
            return self.config.relative_peak_threshold * float(spectrum['power'].max())
        return float(threshold)

    @staticmethod
    def _peaks(spectrum: pd.DataFrame, threshold: float) -> pd.DataFrame:
        peaks = spectrum[spectrum['power'] > threshold]
        return peaks.sort_values('power', ascending=False).reset_index(drop=True)

    def autocorrelation_summary(self, series: pd.Series, nlags: Optional[int] = None) -> Dict[str, Any]:
        """
        ACF/PACF values, significant lags and a suggested (p, q).

        p is the last significant PACF lag and q the last significant ACF lag
        among the first few lags.

        Args:
            series: Time series data, usually already differenced
            nlags: Number of lags; defaults to config.acf_lags

        Returns:
            Dictionary with acf, pacf, bound, significant lags and suggestion
        """
        values = series.dropna()
        n = len(values)
        nlags = self.config.acf_lags if nlags is None else nlags
        nlags = min(nlags, n // 2 - 1)
        if nlags < 1:
            raise InsufficientDataError(
                f"{series.name}: {n} observations are too few for autocorrelation analysis")

        acf_values = acf(values, nlags=nlags, fft=True)
        pacf_values = pacf(values, nlags=nlags, method='ywm')
        bound = float(norm.ppf(1 - self.config.significance_level / 2) / np.sqrt(n))

        significant_acf = [lag for lag in range(1, nlags + 1) if abs(acf_values[lag]) > bound]
        significant_pacf = [lag for lag in range(1, nlags + 1) if abs(pacf_values[lag]) > bound]

        return {
            'acf': acf_values,
            'pacf': pacf_values,
            'bound': bound,
            'significant_acf_lags': significant_acf,
            'significant_pacf_lags': significant_pacf,
            'suggested_p': self._last_low_lag(significant_pacf),
            'suggested_q': self._last_low_lag(significant_acf),
        }

    @staticmethod
    def _last_low_lag(lags: List[int]) -> int:
        low = [lag for lag in lags if lag <= MAX_SUGGESTED_LAG]
        return max(low) if low else 0

    def spectral_pass(self, series: pd.Series, threshold: Optional[float] = None) -> Dict[str, Any]:
        """Spectrum and dominant periods of one series."""
        spectrum = self.spectral_density(series)
        threshold = self._effective_threshold(spectrum, threshold)
        return {
            'spectrum': spectrum,
            'dominant_periods': self._peaks(spectrum, threshold),
            'threshold': threshold,
        }

    def process(self, series: pd.Series, period: int, threshold: Optional[float] = None) -> Dict[str, Any]:
        """
        Complete stationarity and seasonality analysis of one series.

        Args:
            series: Aggregated time series data
            period: Candidate seasonal period
            threshold: Spectral peak threshold for this series

        Returns:
            Dictionary with all analysis results
        """
        d = self.differencing_order(series)
        D = self.seasonal_differencing_order(series, period)
        differenced = difference(series, d=d, D=D, period=period)

        results = self.spectral_pass(series, threshold)
        results.update({
            'differencing_order': d,
            'seasonal_differencing_order': D,
            'stationarity': self.stationarity_test(series),
            'differenced_stationarity': self.stationarity_test(differenced),
            'autocorrelation': self.autocorrelation_summary(differenced),
            'differenced': differenced,
        })
        return results
