"""Persistence of the cleaned weekly and monthly tables."""

from pathlib import Path

import pandas as pd

from .config import BaseAnalyzer

MONTHLY_FILE = 'city_month_cleaned.csv'
WEEKLY_FILE = 'city_week_cleaned.csv'


class OutputManager(BaseAnalyzer):
    """
    Manages the data artifacts of the report.

    Only the aggregated tables are written; plots are handled by the
    Visualizer and everything else is printed.
    """

    def save_table(self, df: pd.DataFrame, filename: str) -> Path:
        output_path = self.config.output_dir / filename
        df[['City', 'Date', 'AQI']].to_csv(output_path, index=False)
        print(f"   ✓ Saved {len(df)} rows to {output_path}")
        return output_path

    def process(self, weekly: pd.DataFrame, monthly: pd.DataFrame) -> None:
        """
        Write the cleaned weekly and monthly tables.

        Args:
            weekly: Table returned by SeriesCleaner.resample(..., 'week')
            monthly: Table returned by SeriesCleaner.resample(..., 'month')
        """
        print("💾 Generating output files...")

        self.save_table(monthly, MONTHLY_FILE)
        self.save_table(weekly, WEEKLY_FILE)

        self.log_time("Output Generation Complete")
