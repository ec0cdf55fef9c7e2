"""
Wires the stages together. Every stage hands a new frame to the next one,
so any intermediate result can be inspected or tested on its own.
"""
from dataclasses import dataclass

import geopandas as gpd
import pandas as pd
from bikeshare_eda.config import Config
from bikeshare_eda.features.build_features import FeatureBuilder
from bikeshare_eda.features.filters import FilterReport, apply_admissibility_filters
from bikeshare_eda.features.geo import BoundingBox, bounding_box_from_stations
from bikeshare_eda.features.stations import extract_stations
from bikeshare_eda.models.spatial_clustering import RideClusterer


@dataclass
class CleaningResult:
    rides: pd.DataFrame
    stations: pd.DataFrame
    map_box: BoundingBox
    filter_box: BoundingBox
    report: FilterReport


@dataclass
class ClusteringResult:
    rides: pd.DataFrame
    hulls: gpd.GeoDataFrame


def clean_rides(rides: pd.DataFrame, n_jobs=None) -> CleaningResult:
    """Normalized rides -> derived metrics -> admissible rides."""
    stations = extract_stations(rides)
    print(f"    Extracted {len(stations):,} stations.", flush=True)

    # Both boxes come from the unfiltered station set
    map_box = bounding_box_from_stations(stations, Config.MAP_PADDING)
    filter_box = bounding_box_from_stations(stations, Config.FILTER_PADDING)

    derived = FeatureBuilder(n_jobs=n_jobs).build(rides)
    cleaned, report = apply_admissibility_filters(derived, filter_box)
    return CleaningResult(cleaned, stations, map_box, filter_box, report)


def cluster_rides(rides: pd.DataFrame, n_clusters=None, random_state=None) -> ClusteringResult:
    clusterer = RideClusterer(n_clusters=n_clusters, random_state=random_state)
    clustered = clusterer.fit_predict(rides)
    return ClusteringResult(clustered, clusterer.hulls(clustered))
