#!/usr/bin/env python3
"""
AQI Seasonality & Forecast Report
=================================

Main execution script for the five-city air-quality analysis.
Loads the daily AQI file, cleans and aggregates it, explores seasonality
with spectral and autocorrelation analysis, fits seasonal ARIMA models per
city and scores their forecasts on a held-out period.

Usage:
    python -m aqi_report.run_model

Output:
    - city_month_cleaned.csv and city_week_cleaned.csv in output/
    - Plots in visualizations/
    - Printed model summaries and accuracy tables
"""

import sys
import time
import traceback
import warnings
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import pandas as pd

from .analyzer import SeasonalityAnalyzer
from .cleaner import SeriesCleaner
from .config import ProjectConfig
from .evaluator import ForecastEvaluator
from .fitter import ModelFitter
from .loader import DataLoader
from .output import OutputManager
from .pipeline import CityAnalyzer
from .report import ReportGenerator
from .visualizer import Visualizer

warnings.filterwarnings('ignore')


class AQIAnalysisSystem:
    """
    Main orchestrator class that coordinates all analysis components.

    This is the central controller that manages the entire analysis pipeline
    and ensures proper coordination between all subsystems.
    """

    def __init__(self, config: Optional[ProjectConfig] = None):
        """Initialize the analysis system with all components."""
        self.config = config or ProjectConfig()
        self.start_time = time.time()

        # Initialize all analysis components
        self.data_loader = DataLoader(self.config)
        self.cleaner = SeriesCleaner(self.config)
        self.analyzer = SeasonalityAnalyzer(self.config)
        self.fitter = ModelFitter(self.config)
        self.evaluator = ForecastEvaluator(self.config)
        self.city_analyzer = CityAnalyzer(self.config, self.cleaner, self.analyzer,
                                          self.fitter, self.evaluator)
        self.output_manager = OutputManager(self.config)
        self.visualizer = Visualizer(self.config)
        self.report_generator = ReportGenerator(self.config)

        # Data storage
        self.raw: Optional[pd.DataFrame] = None
        self.daily: Optional[pd.DataFrame] = None
        self.weekly: Optional[pd.DataFrame] = None
        self.monthly: Optional[pd.DataFrame] = None
        self.city_results: Optional[Dict[str, Dict[str, Any]]] = None
        self.accuracy: Optional[pd.DataFrame] = None

    def run_complete_analysis(self, path: Optional[Path] = None) -> Tuple[bool, float]:
        """
        Execute the complete analysis pipeline.

        Args:
            path: Raw CSV path; defaults to the configured raw file

        Returns:
            Tuple of (success, execution_time)
        """
        try:
            print("🚀 AQI Analysis System - Starting Complete Analysis")
            print("=" * 60)

            # Step 1: Load data
            self.raw = self.data_loader.process(path)

            # Step 2: Clean and aggregate
            self.daily, self.weekly, self.monthly = self.cleaner.process(self.raw)

            # Step 3: Persist the aggregated tables
            self.output_manager.process(self.weekly, self.monthly)

            # Step 4: Per-city analysis, fitting and evaluation
            self.city_results = self.city_analyzer.process(self.daily, self.monthly)

            # Step 5: Create visualizations
            self.visualizer.process(self.raw, self.daily, self.city_results)

            # Step 6: Generate final report
            final_time = time.time() - self.start_time
            self.accuracy = self.report_generator.process(self.city_results, final_time)

            return True, final_time

        except Exception as e:
            print(f"\n❌ ANALYSIS FAILED: {e}")
            traceback.print_exc()
            return False, time.time() - self.start_time


def main() -> int:
    """
    Main execution function for the AQI report.

    This function serves as the entry point for the entire analysis system.
    """
    analysis_system = AQIAnalysisSystem()

    print("🌫️  AQI Seasonality & Forecast Report")
    print("=" * 60)
    print(f"Cities: {', '.join(analysis_system.config.cities)}")
    print("Method: Spectral analysis with seasonal ARIMA forecasting")
    print("=" * 60)

    success, execution_time = analysis_system.run_complete_analysis()

    if success:
        print(f"\n🎉 SUCCESS! Analysis completed in {execution_time:.2f} seconds")
        return 0
    else:
        print(f"\n💥 FAILED after {execution_time:.2f} seconds")
        return 1


if __name__ == "__main__":
    exit_code = main()
    sys.exit(exit_code)
