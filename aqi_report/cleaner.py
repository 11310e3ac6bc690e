"""Missing-value handling and calendar aggregation of the AQI table."""

from typing import Dict, Tuple

import pandas as pd

from .config import BaseAnalyzer

# granularity -> (period alias used for grouping, index frequency of the model series)
GRANULARITIES: Dict[str, Tuple[str, str]] = {
    'day': ('D', 'D'),
    'week': ('W-SUN', 'W-MON'),
    'month': ('M', 'MS'),
}


def _empty_table() -> pd.DataFrame:
    return pd.DataFrame({
        'City': pd.Series(dtype=object),
        'Date': pd.Series(dtype='datetime64[ns]'),
        'AQI': pd.Series(dtype=float),
    })


class SeriesCleaner(BaseAnalyzer):
    """
    Cleans each city's series and builds the weekly and monthly tables.

    Responsibilities:
    - Carry the last observation forward over interior gaps
    - Drop the leading run of days recorded before the city had any AQI
    - Aggregate daily values to weekly and monthly means
    - Hand out single-city series with a regular frequency for modelling
    """

    def fill_and_trim(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Forward-fill gaps per city and drop leading missing rows.

        Each city is first put on a contiguous daily calendar so that absent
        days count as gaps too. A gap with no earlier observation stays
        missing and is then trimmed with the rest of the leading run.

        Args:
            df: Table of (City, Date, AQI)

        Returns:
            Table of (City, Date, AQI) with no missing AQI values
        """
        frames = []
        for city, group in df.groupby('City', sort=True):
            series = group.set_index('Date')['AQI'].sort_index()
            series = series.asfreq('D').ffill()

            first = series.first_valid_index()
            if first is None:
                continue
            series = series.loc[first:]

            frames.append(pd.DataFrame({
                'City': city,
                'Date': series.index,
                'AQI': series.to_numpy(dtype=float),
            }))

        if not frames:
            return _empty_table()
        return pd.concat(frames, ignore_index=True)

    def resample(self, df: pd.DataFrame, granularity: str) -> pd.DataFrame:
        """
        Average AQI per city over weekly or monthly calendar buckets.

        Weeks run Monday to Sunday and are labelled by their Monday as
        YYYY-MM-DD; months are labelled YYYY-MM.

        Args:
            df: Cleaned daily table of (City, Date, AQI)
            granularity: 'week' or 'month'

        Returns:
            Table of (City, Date, AQI), one row per city per bucket
        """
        if granularity not in ('week', 'month'):
            raise ValueError(f"Unknown granularity {granularity!r}; expected 'week' or 'month'")

        period_alias, _ = GRANULARITIES[granularity]
        buckets = df['Date'].dt.to_period(period_alias).rename('Date')
        out = df.groupby([df['City'], buckets])['AQI'].mean().reset_index()

        if granularity == 'month':
            out['Date'] = out['Date'].dt.strftime('%Y-%m')
        else:
            out['Date'] = out['Date'].dt.start_time.dt.strftime('%Y-%m-%d')

        return out[['City', 'Date', 'AQI']]

    def city_series(self, df: pd.DataFrame, city: str, granularity: str = 'month') -> pd.Series:
        """
        Extract one city as a frequency-aware series.

        Args:
            df: Daily table (for 'day') or a table returned by resample
            city: City name
            granularity: 'day', 'week' or 'month'

        Returns:
            AQI series indexed by a DatetimeIndex with an explicit frequency
        """
        if granularity not in GRANULARITIES:
            raise ValueError(f"Unknown granularity {granularity!r}")
        _, index_freq = GRANULARITIES[granularity]

        rows = df[df['City'] == city]
        if granularity == 'month':
            index = pd.to_datetime(rows['Date'], format='%Y-%m')
        else:
            index = pd.to_datetime(rows['Date'])

        series = pd.Series(rows['AQI'].to_numpy(dtype=float), index=pd.DatetimeIndex(index), name=city)
        series = series.sort_index()
        series.index.name = 'Date'
        return series.asfreq(index_freq)

    def process(self, df: pd.DataFrame) -> Tuple[pd.DataFrame, pd.DataFrame, pd.DataFrame]:
        """
        Run the cleaning and aggregation steps.

        Args:
            df: Validated raw table

        Returns:
            Tuple of (daily, weekly, monthly) tables
        """
        print("🧹 Cleaning series...")
        daily = self.fill_and_trim(df)

        before = df.groupby('City').size()
        after = daily.groupby('City').size()
        for city in before.index:
            kept = int(after.get(city, 0))
            print(f"   ✓ {city}: {kept} clean days (from {int(before[city])} raw rows)")

        weekly = self.resample(daily, 'week')
        monthly = self.resample(daily, 'month')
        print(f"   Weekly buckets: {len(weekly)}, monthly buckets: {len(monthly)}")

        self.log_time("Cleaning Complete")
        return daily, weekly, monthly
