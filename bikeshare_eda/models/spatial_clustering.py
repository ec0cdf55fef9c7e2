"""
MISSION: The Spatial Layer.
Partitions ride start points into a fixed number of K-Means clusters and
builds one convex hull per cluster for map overlays.
"""
import geopandas as gpd
import pandas as pd
from shapely.geometry import MultiPoint
from sklearn.cluster import KMeans
from bikeshare_eda.config import Config

FEATURES = ["start_lat", "start_lon"]


class RideClusterer:
    """
    K-Means over raw start coordinates. k and the seed are fixed so identical
    input always gives identical labels.
    """
    def __init__(self, n_clusters=None, random_state=None, n_init=10):
        self.n_clusters = n_clusters or Config.N_CLUSTERS
        self.random_state = Config.RANDOM_STATE if random_state is None else random_state
        self.n_init = n_init
        self.model = None

    def fit_predict(self, rides: pd.DataFrame) -> pd.DataFrame:
        """Returns a copy of `rides` with a `cluster` column."""
        points = rides[FEATURES]
        if points.isna().any().any():
            raise ValueError("Start coordinates contain NaN; filter the rides before clustering.")
        if len(points) < self.n_clusters:
            raise ValueError(f"Need at least {self.n_clusters} rides to build {self.n_clusters} clusters, got {len(points)}.")

        print(f"Clustering {len(points):,} ride starts into {self.n_clusters} zones...", flush=True)
        self.model = KMeans(n_clusters=self.n_clusters, random_state=self.random_state, n_init=self.n_init)
        labels = self.model.fit_predict(points.to_numpy(dtype=float))
        return rides.assign(cluster=labels.astype(int))

    def hulls(self, clustered: pd.DataFrame) -> gpd.GeoDataFrame:
        """
        Convex hull of each cluster's start points (lon/lat, EPSG:4326).

        Clusters with fewer than three distinct points degenerate to a line or a
        point; they are kept so every label has an entry.
        """
        rows = []
        for cluster_id, group in clustered.groupby("cluster", sort=True):
            hull = MultiPoint(list(zip(group["start_lon"], group["start_lat"]))).convex_hull
            rows.append({"cluster": int(cluster_id), "rides": len(group), "geometry": hull})

        if not rows:
            return gpd.GeoDataFrame({"cluster": [], "rides": []}, geometry=[], crs="EPSG:4326")
        return gpd.GeoDataFrame(rows, geometry="geometry", crs="EPSG:4326")


def cluster_ride_starts(rides, n_clusters=None, random_state=None):
    return RideClusterer(n_clusters=n_clusters, random_state=random_state).fit_predict(rides)


def cluster_hulls(clustered):
    return RideClusterer().hulls(clustered)
