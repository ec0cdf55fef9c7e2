import pandas as pd


def _endpoints(rides, name_col, lat_col, lon_col):
    points = rides[[name_col, lat_col, lon_col]].rename(
        columns={name_col: "name", lat_col: "lat", lon_col: "lon"}
    )
    names = points["name"].astype("string").str.strip()
    named = (names.notna() & (names != "")).fillna(False).astype(bool)
    located = points["lat"].notna() & points["lon"].notna()
    return points.assign(name=names)[named & located]


def extract_stations(rides: pd.DataFrame) -> pd.DataFrame:
    """
    Distinct stations seen in the rides, one row per name.

    Rental points come first; return points only add names not already seen.
    """
    starts = _endpoints(rides, "rental_station_name", "start_lat", "start_lon")
    ends = _endpoints(rides, "return_station_name", "end_lat", "end_lon")
    ends = ends[~ends["name"].isin(starts["name"])]

    stations = (
        pd.concat([starts, ends], ignore_index=True)
        .drop_duplicates(subset="name", keep="first")
        .sort_values("name")
        .reset_index(drop=True)
    )
    return stations.astype({"name": "string", "lat": float, "lon": float})
