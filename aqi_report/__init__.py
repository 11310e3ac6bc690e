"""AQI seasonality analysis and SARIMA forecast report for five Indian cities."""

__version__ = "1.0.0"
