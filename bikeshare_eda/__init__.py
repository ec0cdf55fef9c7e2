"""
Bike-Share Trip Exploration
---------------------------
This package implements the cleaning and exploration pipeline for one year
of bike-share trip records: load, normalize, filter, aggregate, cluster, plot.

Module Hierarchy:
- `ingest`: Downloads the yearly trip file and loads it through DuckDB,
  repairing the digit-string coordinate encoding.
- `features`: Station extraction, bounding boxes, haversine distances,
  temporal features and the admissibility filters.
- `models`: K-Means clustering of ride start points with convex hulls.
- `utils`: Database connectivity.
- `exploration`: Aggregations and visualization.

Pipeline (each stage returns a new frame):
1. Load & Normalize
2. Derive (duration, distance, weekday, month, season)
3. Filter (duration -> bounding box -> distance -> zero-distance rides)
4. Aggregate & Cluster
5. Plot
"""
