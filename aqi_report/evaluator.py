"""Forecasting over the held-out period and accuracy scoring."""

from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from scipy.stats import norm
from sklearn.metrics import mean_absolute_error, mean_squared_error
from statsmodels.stats.diagnostic import acorr_ljungbox
from statsmodels.tsa.stattools import acf

from .config import BaseAnalyzer
from .fitter import ModelFit


def split_at(series: pd.Series, cutoff: pd.Timestamp) -> Tuple[pd.Series, pd.Series]:
    """Train is every observation before the cutoff, test everything from it on."""
    # positional slices keep the index frequency
    position = series.index.searchsorted(pd.Timestamp(cutoff), side='left')
    return series.iloc[:position], series.iloc[position:]


class ForecastEvaluator(BaseAnalyzer):
    """
    Produces forecasts and scores them against the held-out actuals.

    Responsibilities:
    - Point forecasts with prediction intervals over the test horizon
    - Point-forecast error metrics
    - Residual whiteness checks of fitted models
    """

    def forecast(self, model_fit: ModelFit, horizon: int,
                 levels: Optional[Sequence[int]] = None) -> pd.DataFrame:
        """
        Forecast the next `horizon` periods after the training sample.

        Args:
            model_fit: Fitted model
            horizon: Number of periods
            levels: Interval coverage levels in percent; defaults to config.interval_levels

        Returns:
            DataFrame indexed by date with 'forecast' and lower_/upper_ columns per level
        """
        if horizon < 1:
            raise ValueError(f"Forecast horizon must be positive, got {horizon}")
        levels = self.config.interval_levels if levels is None else levels

        prediction = model_fit.result.get_forecast(steps=horizon)
        out = pd.DataFrame({'forecast': prediction.predicted_mean})
        for level in levels:
            bounds = prediction.conf_int(alpha=1 - level / 100.0)
            out[f'lower_{level}'] = bounds.iloc[:, 0].to_numpy()
            out[f'upper_{level}'] = bounds.iloc[:, 1].to_numpy()
        out.index.name = 'Date'
        return out

    def accuracy(self, forecast: pd.Series, actual: pd.Series,
                 train: Optional[pd.Series] = None, seasonal_period: int = 1) -> Dict[str, float]:
        """
        Point-forecast error metrics.

        Errors are actual minus forecast. MASE scales the test MAE by the
        in-sample MAE of the seasonal naive forecast and is NaN without a
        training series. Percentage metrics skip zero actuals.

        Args:
            forecast: Point forecasts
            actual: Observed values, same length as forecast
            train: Training series for MASE
            seasonal_period: Lag of the naive forecast used by MASE

        Returns:
            Dictionary with ME, RMSE, MAE, MPE, MAPE, MASE and ACF1
        """
        y_pred = np.asarray(forecast, dtype=float)
        y_true = np.asarray(actual, dtype=float)
        if y_pred.shape != y_true.shape:
            raise ValueError(f"Forecast length {len(y_pred)} does not match actual length {len(y_true)}")
        if len(y_true) == 0:
            raise ValueError("Cannot score an empty forecast")

        errors = y_true - y_pred
        nonzero = y_true != 0
        pct = 100.0 * errors[nonzero] / y_true[nonzero]

        mase = np.nan
        if train is not None:
            history = np.asarray(train, dtype=float)
            if len(history) > seasonal_period:
                scale = np.mean(np.abs(history[seasonal_period:] - history[:-seasonal_period]))
                if scale > 0:
                    mase = mean_absolute_error(y_true, y_pred) / scale

        acf1 = np.nan
        if len(errors) > 2 and np.std(errors) > 0:
            acf1 = float(acf(errors, nlags=1, fft=False)[1])

        return {
            'ME': float(np.mean(errors)),
            'RMSE': float(np.sqrt(mean_squared_error(y_true, y_pred))),
            'MAE': float(mean_absolute_error(y_true, y_pred)),
            'MPE': float(np.mean(pct)) if len(pct) else np.nan,
            'MAPE': float(np.mean(np.abs(pct))) if len(pct) else np.nan,
            'MASE': float(mase),
            'ACF1': acf1,
        }

    def residual_diagnostics(self, model_fit: ModelFit, nlags: Optional[int] = None,
                             alpha: Optional[float] = None) -> Dict[str, Any]:
        """
        Residual autocorrelation check.

        Args:
            model_fit: Fitted model
            nlags: Highest lag inspected; defaults to config.residual_lags
            alpha: Significance level of the ACF bound; defaults to config.significance_level

        Returns:
            Dictionary with residual ACF, bound, spiking lags, Ljung-Box result
            and a white_noise verdict
        """
        nlags = self.config.residual_lags if nlags is None else nlags
        alpha = self.config.significance_level if alpha is None else alpha

        residuals = model_fit.residuals.dropna()
        n = len(residuals)
        nlags = min(nlags, n - 1)
        if nlags < 1:
            raise ValueError(f"{model_fit.city}: too few residuals ({n}) for diagnostics")

        values = acf(residuals, nlags=nlags, fft=True)
        bound = float(norm.ppf(1 - alpha / 2) / np.sqrt(n))
        spikes = [lag for lag in range(1, nlags + 1) if abs(values[lag]) > bound]

        ljung_box = acorr_ljungbox(residuals, lags=[nlags], return_df=True)

        return {
            'acf': values,
            'bound': bound,
            'spike_lags': spikes,
            'ljung_box_stat': float(ljung_box['lb_stat'].iloc[0]),
            'ljung_box_pvalue': float(ljung_box['lb_pvalue'].iloc[0]),
            'white_noise': not spikes,
        }

    def process(self, model_fit: ModelFit, train: pd.Series, test: pd.Series) -> Dict[str, Any]:
        """
        Forecast the test period of one fitted model and score it.

        Args:
            model_fit: Fitted model
            train: Training series the model was fitted on
            test: Held-out actuals

        Returns:
            Dictionary with forecast table, accuracy metrics and residual diagnostics
        """
        forecast = self.forecast(model_fit, len(test))
        forecast.index = test.index

        metrics = self.accuracy(forecast['forecast'], test, train=train,
                                seasonal_period=max(1, model_fit.seasonal_order[3]))
        return {
            'forecast': forecast,
            'accuracy': metrics,
            'residuals': self.residual_diagnostics(model_fit),
        }
