import matplotlib
matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

# 4 x 5 grid of stations, ~2.8 km apart north-south
STATIONS = [
    (f"Station {i * 5 + j:02d}", round(48.10 + 0.025 * i, 5), round(11.45 + 0.05 * j, 5))
    for i in range(4) for j in range(5)
]

HEADER = ["Row", "STARTTIME", "ENDTIME", "STARTLAT", "STARTLON", "ENDLAT", "ENDLON",
          "RENTAL_IS_STATION", "RENTAL_STATION_NAME", "RETURN_IS_STATION", "RETURN_STATION_NAME"]


def _ride(start, end, started_at, minutes):
    return {
        "started_at": started_at,
        "ended_at": started_at + pd.Timedelta(minutes=minutes),
        "start_lat": start[1], "start_lon": start[2],
        "end_lat": end[1], "end_lon": end[2],
        "rental_is_station": True, "rental_station_name": start[0],
        "return_is_station": True, "return_station_name": end[0],
    }


def make_good_rides(n=240, seed=7):
    """Rides between distinct stations plus 45 min round trips; all admissible."""
    rng = np.random.default_rng(seed)
    base = pd.Timestamp("2022-01-01 06:00:00")
    rows = []
    for k in range(n):
        a, b = rng.choice(len(STATIONS), size=2, replace=False)
        started_at = base + pd.Timedelta(hours=int(rng.integers(0, 364 * 24)))
        if k % 20 == 0:
            rows.append(_ride(STATIONS[a], STATIONS[a], started_at, 45))
        else:
            rows.append(_ride(STATIONS[a], STATIONS[b], started_at, int(rng.integers(5, 90))))
    return rows


def make_bad_rides():
    """One row per rejection reason."""
    base = pd.Timestamp("2022-03-15 12:00:00")
    s, t = STATIONS[0], STATIONS[7]
    too_short = _ride(s, t, base, 1)
    too_long = _ride(s, t, base, 400)
    quick_round_trip = _ride(s, s, base, 10)
    outside = _ride(s, t, base, 20)
    outside.update(end_lat=50.5, end_lon=13.5, return_station_name=None, return_is_station=False)
    nan_coords = _ride(s, t, base, 20)
    nan_coords.update(start_lat=np.nan)
    # 0.0001 deg lat is ~11 m: neither zero nor a real trip
    tiny_hop = _ride(s, (s[0], s[1] + 0.0001, s[2]), base, 20)
    tiny_hop.update(return_station_name=None, return_is_station=False)
    return [too_short, too_long, quick_round_trip, outside, nan_coords, tiny_hop]


def rides_frame(rows):
    df = pd.DataFrame(rows)
    df["rental_is_station"] = df["rental_is_station"].astype("boolean")
    df["return_is_station"] = df["return_is_station"].astype("boolean")
    df["rental_station_name"] = df["rental_station_name"].astype("string")
    df["return_station_name"] = df["return_station_name"].astype("string")
    return df


def _digits(value):
    return "" if pd.isna(value) else f"{value:.5f}".replace(".", "")


def write_trip_csv(path, rows):
    lines = [";".join(HEADER)]
    for i, r in enumerate(rows):
        fields = [
            str(i),
            r["started_at"].strftime("%Y-%m-%d %H:%M:%S"),
            r["ended_at"].strftime("%Y-%m-%d %H:%M:%S"),
            _digits(r["start_lat"]), _digits(r["start_lon"]),
            _digits(r["end_lat"]), _digits(r["end_lon"]),
            "1" if r["rental_is_station"] else "0",
            r["rental_station_name"] or "",
            "1" if r["return_is_station"] else "0",
            r["return_station_name"] or "",
        ]
        lines.append(";".join(fields))
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def good_rows():
    return make_good_rides()


@pytest.fixture
def bad_rows():
    return make_bad_rides()


@pytest.fixture
def rides(good_rows, bad_rows):
    return rides_frame(good_rows + bad_rows)


@pytest.fixture
def trip_csv(tmp_path, good_rows, bad_rows):
    return write_trip_csv(tmp_path / "trips.csv", good_rows + bad_rows)
