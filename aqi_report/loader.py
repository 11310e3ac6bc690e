"""Raw AQI data loading and validation."""

from pathlib import Path
from typing import List, Optional

import pandas as pd

from .config import BaseAnalyzer, ProjectConfig
from .exceptions import DataValidationError


class DataLoader(BaseAnalyzer):
    """
    Handles loading and validation of the raw daily AQI file.

    Responsibilities:
    - Load the raw CSV from the data directory
    - Reject malformed input instead of silently dropping rows
    - Restrict the table to the configured cities
    - Parse dates and AQI values
    """

    def __init__(self, config: ProjectConfig):
        super().__init__(config)
        self.missing_cities: List[str] = []

    def read_raw(self, path: Path) -> pd.DataFrame:
        """
        Read the raw CSV and check the required columns.

        Args:
            path: Path to the raw CSV file

        Returns:
            DataFrame with the required columns as read from disk
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Raw AQI file not found: {path}")

        df = pd.read_csv(path, dtype={'City': str, 'Date': str})

        missing = [c for c in self.config.required_columns if c not in df.columns]
        if missing:
            raise DataValidationError(
                f"{path.name} is missing required column(s): {', '.join(missing)}")

        return df[self.config.required_columns].copy()

    def parse_dates(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Parse the Date column, failing on any value that is not YYYY-MM-DD.

        Args:
            df: Table with a string Date column

        Returns:
            Table with Date converted to datetime64
        """
        parsed = pd.to_datetime(df['Date'], format=self.config.date_format, errors='coerce')
        bad = parsed.isna()
        if bad.any():
            examples = df.loc[bad, 'Date'].head(5).tolist()
            raise DataValidationError(
                f"{int(bad.sum())} row(s) have unparseable dates, e.g. {examples}")
        df['Date'] = parsed
        return df

    def parse_aqi(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Convert AQI to float; empty cells become NaN, anything else invalid aborts.

        Args:
            df: Table with a raw AQI column

        Returns:
            Table with AQI converted to float
        """
        raw = df['AQI']
        values = pd.to_numeric(raw, errors='coerce')
        bad = values.isna() & raw.notna() & (raw.astype(str).str.strip() != '')
        if bad.any():
            examples = raw[bad].head(5).tolist()
            raise DataValidationError(
                f"{int(bad.sum())} row(s) have non-numeric AQI values, e.g. {examples}")

        negative = values < 0
        if negative.any():
            raise DataValidationError(
                f"{int(negative.sum())} row(s) have negative AQI values")

        df['AQI'] = values.astype(float)
        return df

    def filter_cities(self, df: pd.DataFrame) -> pd.DataFrame:
        """Keep the configured cities only and record the ones absent from the file."""
        blank = df['City'].isna() | (df['City'].astype(str).str.strip() == '')
        if blank.any():
            rows = (df.index[blank][:5] + 2).tolist()
            raise DataValidationError(
                f"{int(blank.sum())} row(s) have no City, e.g. file line(s) {rows}")

        df = df[df['City'].isin(self.config.cities)].copy()

        present = set(df['City'].unique())
        self.missing_cities = [c for c in self.config.cities if c not in present]
        if not present:
            raise DataValidationError(
                f"None of the target cities {self.config.cities} appear in the input")
        return df

    def check_duplicates(self, df: pd.DataFrame) -> None:
        dup = df.duplicated(subset=['City', 'Date'], keep=False)
        if dup.any():
            first = df.loc[dup].iloc[0]
            raise DataValidationError(
                f"{int(dup.sum())} duplicate (City, Date) rows, "
                f"e.g. {first['City']} on {first['Date'].date()}")

    def summarize(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Per-city summary of the raw table.

        Args:
            df: Loaded raw table

        Returns:
            DataFrame indexed by city with row, missing and date range columns
        """
        grouped = df.groupby('City')
        return pd.DataFrame({
            'rows': grouped.size(),
            'missing_aqi': grouped['AQI'].apply(lambda s: int(s.isna().sum())),
            'first_date': grouped['Date'].min(),
            'last_date': grouped['Date'].max(),
        })

    def process(self, path: Optional[Path] = None) -> pd.DataFrame:
        """
        Main data loading pipeline.

        Args:
            path: Raw CSV path; defaults to the configured raw file

        Returns:
            Validated table of (City, Date, AQI) sorted by city and date
        """
        path = Path(path) if path is not None else self.config.raw_file
        print("🚀 Loading raw AQI data...")
        print(f"   Source: {path}")

        df = self.read_raw(path)
        df = self.filter_cities(df)
        df = self.parse_dates(df)
        df = self.parse_aqi(df)
        self.check_duplicates(df)

        df = df.sort_values(['City', 'Date']).reset_index(drop=True)

        for city, row in self.summarize(df).iterrows():
            print(f"   ✓ {city}: {row['rows']} days, {row['missing_aqi']} missing AQI, "
                  f"{row['first_date'].date()} to {row['last_date'].date()}")
        for city in self.missing_cities:
            print(f"   ⚠️  {city}: no rows in input")

        self.log_time("Data Loading Complete")
        return df
