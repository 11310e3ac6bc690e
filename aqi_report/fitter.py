"""Seasonal ARIMA fitting: manually chosen orders and automatic order search."""

from typing import Any, Dict, Optional, Tuple

import numpy as np
import pandas as pd
import pmdarima as pm
from statsmodels.tsa.statespace.sarimax import SARIMAX

from .config import BaseAnalyzer, CityModelSpec
from .exceptions import InsufficientDataError, ModelFitError


def describe_orders(order: Tuple[int, ...], seasonal_order: Tuple[int, ...]) -> str:
    p, d, q = order
    P, D, Q, s = seasonal_order
    return f"SARIMA({p},{d},{q})({P},{D},{Q})[{s}]"


class ModelFit:
    """
    A fitted seasonal ARIMA model for one city.

    Wraps the statsmodels results object together with the configuration
    that produced it.
    """

    def __init__(self, city: str, label: str,
                 order: Tuple[int, int, int],
                 seasonal_order: Tuple[int, int, int, int],
                 include_constant: bool, result: Any):
        self.city = city
        self.label = label
        self.order = tuple(order)
        self.seasonal_order = tuple(seasonal_order)
        self.include_constant = include_constant
        self.result = result

    @property
    def name(self) -> str:
        return describe_orders(self.order, self.seasonal_order)

    @property
    def residuals(self) -> pd.Series:
        """Residuals after the burn-in of the differenced initial observations."""
        burn = int(getattr(self.result, 'loglikelihood_burn', 0))
        return self.result.resid.iloc[burn:]

    @property
    def aic(self) -> float:
        return float(self.result.aic)

    @property
    def aicc(self) -> float:
        return float(self.result.aicc)

    @property
    def bic(self) -> float:
        return float(self.result.bic)

    @property
    def nobs(self) -> int:
        return int(self.result.nobs)

    def coefficients(self) -> pd.DataFrame:
        """Estimate, standard error, z statistic and p-value for each parameter."""
        return pd.DataFrame({
            'estimate': self.result.params,
            'std_error': self.result.bse,
            'z': self.result.zvalues,
            'p_value': self.result.pvalues,
        })

    def __repr__(self) -> str:
        return f"ModelFit({self.city!r}, {self.label!r}, {self.name})"


class ModelFitter(BaseAnalyzer):
    """
    Fits seasonal ARIMA models to a city's training series.

    Responsibilities:
    - Fit the manually chosen SARIMA specification
    - Run an automatic stepwise order search as a baseline
    - Turn short series and failed optimisations into descriptive errors
    """

    @staticmethod
    def min_observations(order: Tuple[int, int, int],
                         seasonal_order: Tuple[int, int, int, int],
                         include_constant: bool) -> int:
        """Smallest training length accepted for the given orders."""
        p, d, q = order
        P, D, Q, s = seasonal_order
        n_params = p + q + P + Q + int(include_constant) + 1
        return d + D * s + max(p + P * s, q + Q * s) + n_params + 1

    def fit(self, train: pd.Series,
            order: Tuple[int, int, int],
            seasonal_order: Tuple[int, int, int, int],
            city: Optional[str] = None,
            include_constant: Optional[bool] = None,
            label: str = 'manual') -> ModelFit:
        """
        Fit one SARIMA specification.

        Args:
            train: Training series with a regular DatetimeIndex
            order: Non-seasonal (p, d, q)
            seasonal_order: Seasonal (P, D, Q, s)
            city: City name used in messages; defaults to the series name
            include_constant: Mean (undifferenced) or drift (differenced) term;
                defaults to a mean only when there is no differencing
            label: Tag stored on the result ('manual' or 'auto')

        Returns:
            ModelFit wrapping the statsmodels results
        """
        city = city or str(train.name)
        order = tuple(int(v) for v in order)
        seasonal_order = tuple(int(v) for v in seasonal_order)
        name = describe_orders(order, seasonal_order)

        if include_constant is None:
            include_constant = order[1] + seasonal_order[1] == 0

        values = train.dropna()
        needed = self.min_observations(order, seasonal_order, include_constant)
        if len(values) < needed:
            raise InsufficientDataError(
                f"{city}: {name} needs at least {needed} training observations, got {len(values)}")

        # statsmodels rejects a seasonal period without seasonal terms
        P, D, Q, s = seasonal_order
        model_seasonal = seasonal_order if (P or D or Q) else (0, 0, 0, 0)

        try:
            model = SARIMAX(values,
                            order=order,
                            seasonal_order=model_seasonal,
                            trend='c' if include_constant else None,
                            enforce_stationarity=True,
                            enforce_invertibility=True)
            result = model.fit(disp=False, maxiter=200)
        except (ValueError, np.linalg.LinAlgError) as e:
            raise ModelFitError(f"{city}: {name} failed to fit: {e}") from e

        retvals = getattr(result, 'mle_retvals', None) or {}
        if not retvals.get('converged', True):
            raise ModelFitError(
                f"{city}: {name} did not converge "
                f"(warnflag={retvals.get('warnflag')}, iterations={retvals.get('iterations')})")

        return ModelFit(city, label, order, seasonal_order, include_constant, result)

    def auto_fit(self, train: pd.Series, seasonal_period: int,
                 city: Optional[str] = None) -> ModelFit:
        """
        Automatic stepwise order search, refit through `fit`.

        The search may settle on a model without seasonal terms even when
        the periodogram shows a seasonal peak; that outcome is kept as is.

        Args:
            train: Training series with a regular DatetimeIndex
            seasonal_period: Seasonal period m offered to the search
            city: City name used in messages

        Returns:
            ModelFit of the selected orders
        """
        city = city or str(train.name)
        values = train.dropna()
        if len(values) < 2 * seasonal_period:
            raise InsufficientDataError(
                f"{city}: automatic search at period {seasonal_period} needs at least "
                f"{2 * seasonal_period} training observations, got {len(values)}")

        try:
            search = pm.auto_arima(
                values.to_numpy(dtype=float),
                seasonal=seasonal_period > 1, m=seasonal_period,
                information_criterion='aicc',
                stepwise=True, suppress_warnings=True, error_action='ignore',
                max_p=self.config.auto_max_p, max_q=self.config.auto_max_q,
                max_P=self.config.auto_max_P, max_Q=self.config.auto_max_Q,
                max_d=self.config.max_differences,
                max_D=self.config.max_seasonal_differences,
            )
        except (ValueError, np.linalg.LinAlgError) as e:
            raise ModelFitError(f"{city}: automatic order search failed: {e}") from e

        order = tuple(search.order)
        seasonal_order = tuple(search.seasonal_order)
        if seasonal_order[3] == 0:
            seasonal_order = (0, 0, 0, seasonal_period)

        with_intercept = search.with_intercept
        if not isinstance(with_intercept, bool):
            with_intercept = order[1] + seasonal_order[1] == 0

        return self.fit(values, order, seasonal_order, city=city,
                        include_constant=with_intercept, label='auto')

    def process(self, train: pd.Series, spec: CityModelSpec) -> Dict[str, Dict[str, Any]]:
        """
        Fit the manual and automatic models for one city.

        Failures are recorded per model so the other model still runs.

        Args:
            train: Training series
            spec: City model configuration

        Returns:
            Dictionary keyed by 'manual' and 'auto' with status, fit and error
        """
        outcomes = {}
        attempts = [
            ('manual', lambda: self.fit(train, spec.order, spec.seasonal_order, city=spec.city,
                                        include_constant=spec.include_constant)),
            ('auto', lambda: self.auto_fit(train, spec.seasonal_period, city=spec.city)),
        ]
        for label, attempt in attempts:
            try:
                model_fit = attempt()
            except InsufficientDataError as e:
                print(f"   ✗ {label}: {e}")
                outcomes[label] = {'status': 'insufficient_data', 'fit': None, 'error': str(e)}
            except ModelFitError as e:
                print(f"   ✗ {label}: {e}")
                outcomes[label] = {'status': 'fit_failed', 'fit': None, 'error': str(e)}
            else:
                print(f"   ✓ {label}: {model_fit.name}, AICc={model_fit.aicc:.2f}")
                outcomes[label] = {'status': 'fitted', 'fit': model_fit, 'error': None}
        return outcomes
