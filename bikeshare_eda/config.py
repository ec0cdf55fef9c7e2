import os
from dotenv import load_dotenv
from pathlib import Path

root_dir = Path(__file__).resolve().parent.parent
env_path = root_dir / ".env"

load_dotenv(env_path)

class Config:
    DB_PATH = os.getenv("TRIPS_DB_PATH", ":memory:")

    TRIPS_URL = os.getenv("TRIPS_URL")
    TRIPS_CSV_PATH = os.getenv("TRIPS_CSV_PATH")
    DATA_DIR = os.getenv("TRIPS_DATA_DIR", "trip_data")
    CSV_DELIMITER = os.getenv("TRIPS_CSV_DELIMITER", ";")

    OUTPUT_DIR = Path(os.getenv("OUTPUT_DIR_TRIPS", "./outputs/trips"))

    # Admissibility policy (minutes / km)
    MIN_DURATION_MIN = 3
    MAX_DURATION_MIN = 300
    MIN_NONZERO_DISTANCE_KM = 0.3
    ZERO_DISTANCE_MIN_DURATION = 30

    # Fractions of the station extent added on each side: (lat, lon).
    # The city is much wider than it is tall, so longitude gets more room.
    MAP_PADDING = (0.05, 0.3)
    FILTER_PADDING = (0.1, 0.5)

    N_CLUSTERS = 15
    RANDOM_STATE = 42

    SEASONS = {
        "Winter": ("Dec", "Jan", "Feb"),
        "Spring": ("Mar", "Apr", "May"),
        "Summer": ("Jun", "Jul", "Aug"),
        "Fall": ("Sep", "Oct", "Nov"),
    }

    @classmethod
    def initialize_folders(cls):
        cls.OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
