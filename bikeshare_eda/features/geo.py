"""
Geometry helpers: haversine distances and station-derived bounding boxes.
"""
from dataclasses import dataclass

import numpy as np
import pandas as pd
from joblib import Parallel, delayed, cpu_count, effective_n_jobs

EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class BoundingBox:
    lat_min: float
    lat_max: float
    lon_min: float
    lon_max: float

    def contains(self, lat, lon):
        """Strictly inside on both axes. NaN coordinates are never inside."""
        return (lat > self.lat_min) & (lat < self.lat_max) & (lon > self.lon_min) & (lon < self.lon_max)

    @property
    def extent(self):
        """(xmin, xmax, ymin, ymax) as matplotlib expects it."""
        return (self.lon_min, self.lon_max, self.lat_min, self.lat_max)


def bounding_box_from_stations(stations: pd.DataFrame, padding: tuple[float, float]) -> BoundingBox:
    """
    Station extent widened by `padding` = (lat_fraction, lon_fraction) of the
    extent on each side.
    """
    if stations.empty:
        raise ValueError("Cannot compute a bounding box without stations.")

    lat_pad, lon_pad = padding
    lat_min, lat_max = stations["lat"].min(), stations["lat"].max()
    lon_min, lon_max = stations["lon"].min(), stations["lon"].max()
    lat_span = lat_max - lat_min
    lon_span = lon_max - lon_min

    return BoundingBox(
        lat_min=float(lat_min - lat_pad * lat_span),
        lat_max=float(lat_max + lat_pad * lat_span),
        lon_min=float(lon_min - lon_pad * lon_span),
        lon_max=float(lon_max + lon_pad * lon_span),
    )


def within_bounding_box(rides: pd.DataFrame, box: BoundingBox) -> pd.Series:
    """True where both the start and the end of a ride lie inside `box`."""
    return (
        box.contains(rides["start_lat"], rides["start_lon"])
        & box.contains(rides["end_lat"], rides["end_lon"])
    )


def haversine_km(lat1, lon1, lat2, lon2):
    lat1, lon1, lat2, lon2 = map(np.radians, [lat1, lon1, lat2, lon2])
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = np.sin(dlat/2.0)**2 + np.cos(lat1) * np.cos(lat2) * np.sin(dlon/2.0)**2
    return 2 * EARTH_RADIUS_KM * np.arcsin(np.sqrt(a))


def _distance_chunk(coords: np.ndarray) -> np.ndarray:
    return haversine_km(coords[:, 0], coords[:, 1], coords[:, 2], coords[:, 3])


def default_n_jobs():
    return max(1, cpu_count() - 1)


def compute_distances(rides: pd.DataFrame, n_jobs=None) -> pd.DataFrame:
    """
    Adds `distance_km` (start -> end, great circle) and returns a new frame.

    Rows are split into contiguous chunks, one batch per worker; joblib hands
    the results back in submission order so concatenating them restores the
    original row order.
    """
    # Negative counts follow joblib: -1 means all cores
    n_jobs = default_n_jobs() if n_jobs is None else effective_n_jobs(n_jobs)
    coords = rides[["start_lat", "start_lon", "end_lat", "end_lon"]].to_numpy(dtype=float)

    if len(coords) == 0:
        return rides.assign(distance_km=pd.Series(dtype=float, index=rides.index))

    chunks = np.array_split(coords, min(n_jobs, len(coords)))
    if n_jobs == 1:
        results = [_distance_chunk(chunk) for chunk in chunks]
    else:
        results = Parallel(n_jobs=n_jobs)(delayed(_distance_chunk)(chunk) for chunk in chunks)

    return rides.assign(distance_km=np.concatenate(results))
