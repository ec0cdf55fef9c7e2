import pandas as pd

from bikeshare_eda.features.stations import extract_stations
from conftest import rides_frame, _ride, STATIONS


def test_extract_stations_deduplicates_by_name(rides):
    stations = extract_stations(rides)

    assert stations["name"].is_unique
    assert list(stations.columns) == ["name", "lat", "lon"]
    assert not stations[["lat", "lon"]].isna().any().any()
    assert set(stations["name"]) <= {name for name, _, _ in STATIONS}


def test_extract_stations_is_idempotent(rides):
    pd.testing.assert_frame_equal(extract_stations(rides), extract_stations(rides))
    pd.testing.assert_frame_equal(extract_stations(rides), extract_stations(rides.copy()))


def test_rental_point_wins_over_return_point():
    t = pd.Timestamp("2022-06-01 08:00")
    a, b = STATIONS[0], STATIONS[1]
    moved = (a[0], a[1] + 0.001, a[2])
    rides = rides_frame([_ride(b, moved, t, 10), _ride(a, b, t, 10)])

    stations = extract_stations(rides).set_index("name")
    assert stations.loc[a[0], "lat"] == a[1]
    assert len(stations) == 2


def test_rows_without_names_are_excluded():
    t = pd.Timestamp("2022-06-01 08:00")
    ride = _ride(STATIONS[0], STATIONS[1], t, 10)
    ride.update(rental_station_name="  ", return_station_name=None)
    assert extract_stations(rides_frame([ride])).empty
