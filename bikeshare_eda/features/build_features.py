"""
MISSION: The Feature Layer.
Derives per-ride metrics from the normalized trip table: duration, distance,
weekday, month and season. Every step returns a new frame.
"""
import pandas as pd
from bikeshare_eda.config import Config
from bikeshare_eda.features.geo import compute_distances

MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

MONTH_TO_SEASON = {month: season for season, months in Config.SEASONS.items() for month in months}


def season_for_month(month: str) -> str:
    """Fixed lookup, e.g. "Jan" -> "Winter". Unknown abbreviations raise KeyError."""
    return MONTH_TO_SEASON[month]


class FeatureBuilder:
    def __init__(self, n_jobs=None):
        """n_jobs: worker count for the distance step (default: cores - 1)."""
        self.n_jobs = n_jobs

    def add_durations(self, rides: pd.DataFrame) -> pd.DataFrame:
        minutes = (rides["ended_at"] - rides["started_at"]).dt.total_seconds() / 60.0
        return rides.assign(duration_min=minutes.astype(float))

    def add_distances(self, rides: pd.DataFrame) -> pd.DataFrame:
        return compute_distances(rides, n_jobs=self.n_jobs)

    def add_temporal_features(self, rides: pd.DataFrame) -> pd.DataFrame:
        started = rides["started_at"]
        month = started.dt.month.map(lambda m: MONTHS[int(m) - 1] if pd.notna(m) else None)
        weekday = started.dt.weekday.map(lambda d: WEEKDAYS[int(d)] if pd.notna(d) else None)
        season = month.map(MONTH_TO_SEASON)

        return rides.assign(
            weekday=pd.Categorical(weekday, categories=WEEKDAYS, ordered=True),
            month=pd.Categorical(month, categories=MONTHS, ordered=True),
            season=pd.Categorical(season, categories=list(Config.SEASONS), ordered=True),
        )

    def build(self, rides: pd.DataFrame) -> pd.DataFrame:
        print("    Deriving durations, distances and calendar features...", flush=True)
        rides = self.add_durations(rides)
        rides = self.add_distances(rides)
        return self.add_temporal_features(rides)
