import duckdb
from bikeshare_eda.config import Config
from bikeshare_eda.features.build_features import MONTHS, WEEKDAYS
import seaborn as sns
import matplotlib.pyplot as plt
import matplotlib.ticker as ticker
import pandas as pd
import os
import contextily as cx
import geopandas as gpd

import matplotlib as mpl
# Set global formatting: No scientific notation
mpl.rcParams['axes.formatter.useoffset'] = False
mpl.rcParams['axes.formatter.limits'] = [-20, 20]

SEASON_ORDER = list(Config.SEASONS)


class TripAnalyzer:
    """
    Aggregates the cleaned rides (SQL through DuckDB) and renders the
    exploration plots. Use as a context manager so the connection is closed.
    """
    def __init__(self, rides, db_path=None, output_dir=None, basemap=True):
        self.rides = rides
        self.db_path = db_path or Config.DB_PATH
        self.output_dir = Config.OUTPUT_DIR if output_dir is None else output_dir
        self.basemap = basemap
        os.makedirs(self.output_dir, exist_ok=True)
        self.con = None

    def __enter__(self):
        self.con = duckdb.connect(self.db_path)
        # DuckDB sees plain text labels; ordering is restored on the way out
        table = pd.DataFrame({c: self.rides[c].astype(str) for c in ("weekday", "month", "season")})
        table["duration_min"] = self.rides["duration_min"].astype(float)
        table["distance_km"] = self.rides["distance_km"].astype(float)
        self.con.register("rides", table)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.con: self.con.close()

    def q_to_df(self, sql):
        """Standardizes DuckDB output to lowercase for Seaborn/Pandas compatibility."""
        df = self.con.execute(sql).df()
        df.columns = [c.lower() for c in df.columns]
        return df

    def _order_calendar(self, df):
        ordered = {}
        if "weekday" in df:
            ordered["weekday"] = pd.Categorical(df["weekday"], categories=WEEKDAYS, ordered=True)
        if "month" in df:
            ordered["month"] = pd.Categorical(df["month"], categories=MONTHS, ordered=True)
        if "season" in df:
            ordered["season"] = pd.Categorical(df["season"], categories=SEASON_ORDER, ordered=True)
        keys = [c for c in ("month", "weekday") if c in df]
        return df.assign(**ordered).sort_values(keys).reset_index(drop=True)

    def aggregate_by_weekday_month(self):
        """Ride count and mean duration per (weekday, month), season attached."""
        df = self.q_to_df("""
            SELECT weekday, month, season,
                   count(*) AS rides,
                   avg(duration_min) AS mean_duration_min
            FROM rides
            GROUP BY 1, 2, 3
        """)
        return self._order_calendar(df)

    def aggregate_by_month(self):
        df = self.q_to_df("""
            SELECT month, season,
                   count(*) AS rides,
                   avg(duration_min) AS mean_duration_min
            FROM rides
            GROUP BY 1, 2
        """)
        return self._order_calendar(df)

    def _save_plot(self, filename: str, fig=None):
        """Internal helper to standardize how plots are saved."""
        if filename:
            if not filename.endswith(('.png', '.jpg', '.pdf')):
                filename += '.png'

            save_path = os.path.join(self.output_dir, filename)
            fig = fig or plt.gcf()
            fig.tight_layout()
            fig.savefig(save_path, dpi=300, bbox_inches='tight')
            plt.close(fig)
            print("Plot saved!")
            return save_path

    def _add_basemap(self, ax):
        if not self.basemap:
            return
        try:
            cx.add_basemap(ax, crs='EPSG:4326', source=cx.providers.CartoDB.Positron)
        except Exception as e:
            print(f"Could not add basemap: {e}")

    def export_csv(self, df, filename):
        path = os.path.join(self.output_dir, f"{filename}.csv")
        df.to_csv(path, index=False)
        print(f"Saved {path}")
        return path

    def plot_station_map(self, stations, box, filename="plot_station_map"):
        fig, ax = plt.subplots(figsize=(14, 10))
        stations_to_geodataframe(stations).plot(ax=ax, markersize=12, color='#e74c3c',
                                                edgecolor='white', linewidth=0.3, zorder=3)

        ax.set_xlim(box.lon_min, box.lon_max)
        ax.set_ylim(box.lat_min, box.lat_max)
        self._add_basemap(ax)

        ax.set_title(f"Station Network: {len(stations):,} Stations", fontsize=16, fontweight='bold', loc='left')
        ax.set_axis_off()
        return self._save_plot(filename, fig)

    def plot_weekday_trends(self, weekday_month, metric="rides", filename=None):
        """One line per month across the week, one panel per season."""
        labels = {"rides": "Ride Count", "mean_duration_min": "Mean Duration (min)"}
        filename = filename or f"plot_weekday_{metric}_by_season"

        g = sns.relplot(
            data=weekday_month, x='weekday', y=metric, hue='month',
            col='season', col_order=SEASON_ORDER, col_wrap=2,
            kind='line', marker='o', palette='tab20', height=4, aspect=1.6,
        )
        g.set_axis_labels("", labels.get(metric, metric))
        g.set_titles("{col_name}")
        for ax in g.axes.flat:
            ax.tick_params(axis='x', rotation=45)
            ax.yaxis.set_major_formatter(ticker.StrMethodFormatter('{x:,.0f}'))
        g.figure.suptitle(f"Weekly Pattern by Season: {labels.get(metric, metric)}", fontsize=15, fontweight='bold', y=1.02)
        return self._save_plot(filename, g.figure)

    def plot_monthly_trend(self, monthly, filename="plot_monthly_trend"):
        fig, ax = plt.subplots(figsize=(12, 6))
        ax.fill_between(monthly['month'].astype(str), monthly['rides'], color="skyblue", alpha=0.3)
        ax.plot(monthly['month'].astype(str), monthly['rides'], color="navy", marker='o', linewidth=2, markersize=4)
        ax.yaxis.set_major_formatter(ticker.StrMethodFormatter('{x:,.0f}'))
        ax.set_ylabel("Trip Count")

        ax2 = ax.twinx()
        ax2.plot(monthly['month'].astype(str), monthly['mean_duration_min'], color="#e67e22",
                 linestyle='--', marker='s', markersize=4, label='Mean Duration')
        ax2.set_ylabel("Mean Duration (min)")

        ax.set_title("Monthly Volume and Mean Ride Duration", fontsize=15, fontweight='bold', loc='left')
        ax.grid(axis='y', linestyle='--', alpha=0.3)
        sns.despine(right=False)
        return self._save_plot(filename, fig)

    def plot_cluster_overlay(self, clustered, hulls, box, filename="plot_cluster_overlay", sample=50000, n_clusters=None):
        """Ride starts coloured by cluster with each cluster's convex hull on top."""
        points = clustered.sample(min(sample, len(clustered)), random_state=Config.RANDOM_STATE)

        fig, ax = plt.subplots(figsize=(14, 10))
        ax.scatter(points['start_lon'], points['start_lat'], c=points['cluster'],
                   cmap='tab20', s=2, alpha=0.4, zorder=2)

        polygons = hulls[hulls.geom_type == 'Polygon']
        if not polygons.empty:
            polygons.plot(ax=ax, facecolor='none', edgecolor='black', linewidth=1.2, zorder=3)
            for _, row in polygons.iterrows():
                c = row.geometry.centroid
                ax.annotate(str(row['cluster']), (c.x, c.y), ha='center', va='center',
                            fontsize=9, fontweight='bold', zorder=4)

        ax.set_xlim(box.lon_min, box.lon_max)
        ax.set_ylim(box.lat_min, box.lat_max)
        self._add_basemap(ax)

        ax.set_title(f"Spatial Usage Zones: K-Means (k={n_clusters or Config.N_CLUSTERS}) on Ride Starts", fontsize=16, fontweight='bold', loc='left')
        ax.set_axis_off()
        return self._save_plot(filename, fig)

    def plot_duration_distance_distribution(self, filename="plot_duration_distance_distribution"):
        fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(14, 5))
        sns.histplot(self.rides['duration_min'], bins=60, color='orange', edgecolor='white', ax=ax1)
        ax1.axvline(30, color='red', linestyle='--', label='30 min')
        ax1.set_xlabel("Minutes per Trip")
        ax1.legend()

        sns.histplot(self.rides['distance_km'], bins=60, color='steelblue', edgecolor='white', ax=ax2)
        ax2.set_xlabel("Distance (km, great circle)")

        for ax in (ax1, ax2):
            ax.yaxis.set_major_formatter(ticker.StrMethodFormatter('{x:,.0f}'))
        fig.suptitle("Ride Duration and Distance Distribution", fontsize=15, fontweight='bold')
        sns.despine()
        return self._save_plot(filename, fig)


def stations_to_geodataframe(stations):
    return gpd.GeoDataFrame(stations, geometry=gpd.points_from_xy(stations['lon'], stations['lat']), crs="EPSG:4326")
