import os
from dotenv import load_dotenv
from bikeshare_eda.utils.db import DatabaseManager
from bikeshare_eda.ingest.fetcher import TripFileFetcher
from bikeshare_eda.ingest.processor import TripProcessor

def main():
    load_dotenv()

    # Configuration
    DATA_DIR = os.getenv("TRIPS_DATA_DIR", "trip_data")
    DB_PATH = os.getenv("TRIPS_DB_PATH", ":memory:")

    # 1. Download
    fetcher = TripFileFetcher(DATA_DIR)
    local_path = fetcher.download_file()

    # 2. Sanity-load so a broken download shows up now rather than mid-analysis
    with DatabaseManager(DB_PATH) as conn:
        rides = TripProcessor(conn).load_rides(local_path)

    print(f"Trip file ready: {local_path} ({len(rides):,} rides).")
    print(f"Run: python run_analysis.py {local_path}")

if __name__ == "__main__":
    main()
