import os
import sys
from dotenv import load_dotenv
from bikeshare_eda.config import Config
from bikeshare_eda.utils.db import DatabaseManager
from bikeshare_eda.ingest.processor import TripProcessor
from bikeshare_eda.pipeline import clean_rides, cluster_rides
from bikeshare_eda.exploration.trip_analysis import TripAnalyzer

def main():
    load_dotenv()

    # Configuration
    CSV_PATH = sys.argv[1] if len(sys.argv) > 1 else os.getenv("TRIPS_CSV_PATH")
    if not CSV_PATH:
        print("No trip file given. Pass a path or set TRIPS_CSV_PATH.")
        sys.exit(1)

    Config.initialize_folders()

    print("=" * 80)
    print("  BIKE-SHARE TRIP EXPLORATION")
    print("=" * 80)

    # --- STAGE 1: LOAD ---
    print("\n→ Step 1: Loading & normalizing trip records")
    db_mgr = DatabaseManager(Config.DB_PATH)
    conn = db_mgr.connect()
    try:
        rides = TripProcessor(conn).load_rides(CSV_PATH)
    finally:
        db_mgr.close()

    # --- STAGE 2: CLEAN ---
    print("\n→ Step 2: Stations, bounding boxes & admissibility filters")
    cleaning = clean_rides(rides)
    print(cleaning.report.to_frame().to_string(index=False))

    # --- STAGE 3: CLUSTER ---
    print(f"\n→ Step 3: K-Means spatial zones (k={Config.N_CLUSTERS})")
    clustering = cluster_rides(cleaning.rides)

    # --- STAGE 4: AGGREGATE & PLOT ---
    print("\n→ Step 4: Temporal aggregation & plots")
    with TripAnalyzer(clustering.rides) as analyzer:
        weekday_month = analyzer.aggregate_by_weekday_month()
        monthly = analyzer.aggregate_by_month()
        analyzer.export_csv(weekday_month, "rides_by_weekday_month")
        analyzer.export_csv(monthly, "rides_by_month")

        analyzer.plot_station_map(cleaning.stations, cleaning.map_box)
        analyzer.plot_weekday_trends(weekday_month, metric="rides")
        analyzer.plot_weekday_trends(weekday_month, metric="mean_duration_min")
        analyzer.plot_monthly_trend(monthly)
        analyzer.plot_cluster_overlay(clustering.rides, clustering.hulls, cleaning.map_box, n_clusters=Config.N_CLUSTERS)
        analyzer.plot_duration_distance_distribution()

    print("\n" + "=" * 80)
    print("  ANALYSIS COMPLETE")
    print(f"  All outputs saved to: {Config.OUTPUT_DIR}")
    print("=" * 80)

if __name__ == "__main__":
    main()
