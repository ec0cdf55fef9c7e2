"""
Admissibility filters. Each one is an independent predicate; NaN durations,
distances or coordinates fail every comparison, so malformed rows fall out
here without a separate validation pass.
"""
from dataclasses import dataclass, field

import pandas as pd
from bikeshare_eda.config import Config
from bikeshare_eda.features.geo import BoundingBox, within_bounding_box


def duration_in_range(rides, min_minutes=None, max_minutes=None):
    min_minutes = Config.MIN_DURATION_MIN if min_minutes is None else min_minutes
    max_minutes = Config.MAX_DURATION_MIN if max_minutes is None else max_minutes
    return (rides["duration_min"] > min_minutes) & (rides["duration_min"] < max_minutes)


def distance_in_range(rides, min_km=None):
    """Round trips (exactly 0 km) or rides longer than `min_km`."""
    min_km = Config.MIN_NONZERO_DISTANCE_KM if min_km is None else min_km
    return (rides["distance_km"] == 0) | (rides["distance_km"] > min_km)


def not_short_round_trip(rides, min_minutes=None):
    """Drops 0 km rides shorter than `min_minutes`: most likely undone rentals."""
    min_minutes = Config.ZERO_DISTANCE_MIN_DURATION if min_minutes is None else min_minutes
    return ~((rides["distance_km"] == 0) & (rides["duration_min"] < min_minutes))


@dataclass
class FilterReport:
    initial: int
    steps: list = field(default_factory=list)

    def record(self, name, before, after):
        self.steps.append((name, before - after, after))

    @property
    def remaining(self):
        return self.steps[-1][2] if self.steps else self.initial

    def to_frame(self):
        return pd.DataFrame(self.steps, columns=["filter", "dropped", "remaining"])


def apply_admissibility_filters(rides: pd.DataFrame, box: BoundingBox):
    """
    Duration range -> bounding box -> distance range -> zero-distance rides.

    Returns (cleaned rides, FilterReport). The input frame is left untouched.
    """
    report = FilterReport(initial=len(rides))
    steps = [
        ("duration", duration_in_range),
        ("bounding_box", lambda df: within_bounding_box(df, box)),
        ("distance", distance_in_range),
        ("short_round_trip", not_short_round_trip),
    ]

    cleaned = rides
    for name, predicate in steps:
        before = len(cleaned)
        cleaned = cleaned[predicate(cleaned).to_numpy(dtype=bool)]
        report.record(name, before, len(cleaned))
        print(f"    Filtered by {name}: dropped {before - len(cleaned):,}. Remaining: {len(cleaned):,}", flush=True)

    return cleaned.reset_index(drop=True), report
