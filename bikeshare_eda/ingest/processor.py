"""
MISSION: The Ingest Layer.
Loads the semicolon-delimited trip file through DuckDB and turns the raw
text columns into typed ride records.
"""
import os
import re
import numpy as np
import pandas as pd
from bikeshare_eda.config import Config

COORDINATE_PATTERN = re.compile(r"\d{3,}")
# Trailing UTC offset after a clock time: "10:00:00+02:00", "10:00Z", "10:00:00.0 +0100"
UTC_OFFSET_PATTERN = r"(\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?)\s*(?:Z|[+-]\d{2}(?::?\d{2})?)$"

# Target name -> header in the raw file (matched case-insensitively, trimmed)
COLUMN_MAPPING = {
    "started_at": "STARTTIME",
    "ended_at": "ENDTIME",
    "start_lat": "STARTLAT",
    "start_lon": "STARTLON",
    "end_lat": "ENDLAT",
    "end_lon": "ENDLON",
    "rental_is_station": "RENTAL_IS_STATION",
    "rental_station_name": "RENTAL_STATION_NAME",
    "return_is_station": "RETURN_IS_STATION",
    "return_station_name": "RETURN_STATION_NAME",
}

REQUIRED_COLUMNS = ["started_at", "ended_at", "start_lat", "start_lon", "end_lat", "end_lon"]
COORDINATE_COLUMNS = ["start_lat", "start_lon", "end_lat", "end_lon"]

TRUE_VALUES = {"1", "true", "t", "yes", "y"}
FALSE_VALUES = {"0", "false", "f", "no", "n"}


def normalize_coordinate(raw):
    """
    Repairs one coordinate exported without its decimal point.

    "4815577" -> 48.15577. Anything that is not a run of at least three digits
    (after trimming whitespace) gives NaN, which the range filters drop later.
    """
    if raw is None:
        return np.nan
    text = str(raw).strip()
    if not COORDINATE_PATTERN.fullmatch(text):
        return np.nan
    return float(f"{text[:2]}.{text[2:]}")


def normalize_coordinates(series: pd.Series) -> pd.Series:
    """Vectorized `normalize_coordinate` for a whole column."""
    # Nulls become "None"/"nan"/"<NA>" here and fail the digit match
    text = series.astype(str).str.strip()
    valid = text.str.fullmatch(COORDINATE_PATTERN.pattern)
    repaired = text.str[:2] + "." + text.str[2:]

    coords = pd.Series(np.nan, index=series.index, dtype=float)
    coords[valid] = repaired[valid].astype(float)
    return coords


def parse_timestamps(series: pd.Series) -> pd.Series:
    """
    Naive local wall-clock timestamps. A trailing UTC offset is dropped, so a
    year that switches between +01:00 and +02:00 parses like one without
    offsets; unparseable values become NaT.
    """
    text = series.astype("string").str.strip().str.replace(UTC_OFFSET_PATTERN, r"\1", regex=True)
    return pd.to_datetime(text, format="mixed", errors="coerce")


def parse_station_flag(series: pd.Series) -> pd.Series:
    text = series.astype(str).str.strip().str.lower()
    flags = pd.Series(pd.NA, index=series.index, dtype="boolean")
    flags[text.isin(TRUE_VALUES)] = True
    flags[text.isin(FALSE_VALUES)] = False
    return flags


class TripProcessor:
    def __init__(self, db_conn, delimiter=None):
        self.db = db_conn
        self.delimiter = delimiter or Config.CSV_DELIMITER

    def load_raw(self, csv_path):
        """Reads the file as text only, so the coordinate digits survive untouched."""
        if not os.path.exists(csv_path):
            raise FileNotFoundError(f"Trip file not found: {csv_path}")

        print(f"Loading {os.path.basename(csv_path)} via DuckDB...", flush=True)
        df = self.db.read_csv(
            str(csv_path), delimiter=self.delimiter, header=True, all_varchar=True
        ).df()
        df.columns = [c.strip().upper() for c in df.columns]
        print(f"    Read {len(df):,} raw rows.", flush=True)
        return df

    def normalize(self, raw: pd.DataFrame) -> pd.DataFrame:
        """Renames the raw headers and types every column. Returns a new frame."""
        missing = [target for target in REQUIRED_COLUMNS if COLUMN_MAPPING[target] not in raw.columns]
        if missing:
            raise ValueError(f"Trip file is missing required columns: {', '.join(COLUMN_MAPPING[m] for m in missing)}")

        rides = pd.DataFrame(index=raw.index)
        for target, source in COLUMN_MAPPING.items():
            column = raw[source] if source in raw.columns else pd.Series(pd.NA, index=raw.index, dtype="string")

            if target in ("started_at", "ended_at"):
                rides[target] = parse_timestamps(column)
            elif target in COORDINATE_COLUMNS:
                rides[target] = normalize_coordinates(column)
            elif target.endswith("_is_station"):
                rides[target] = parse_station_flag(column)
            else:
                names = column.astype("string").str.strip()
                rides[target] = names.replace("", pd.NA)

        bad_coords = int(rides[COORDINATE_COLUMNS].isna().any(axis=1).sum())
        bad_times = int(rides[["started_at", "ended_at"]].isna().any(axis=1).sum())
        print(f"    Normalized {len(rides):,} rides "
              f"({bad_coords:,} with invalid coordinates, {bad_times:,} with invalid timestamps).", flush=True)
        return rides.reset_index(drop=True)

    def load_rides(self, csv_path):
        return self.normalize(self.load_raw(csv_path))
