import os
import requests
from urllib.parse import urlparse
from bikeshare_eda.config import Config

class TripFileFetcher:
    BASE_URL = Config.TRIPS_URL

    def __init__(self, data_dir, url=None):
        self.data_dir = data_dir
        self.url = url or self.BASE_URL
        os.makedirs(data_dir, exist_ok=True)

    def local_path_for(self, url):
        filename = os.path.basename(urlparse(url).path) or "trips.csv"
        return os.path.join(self.data_dir, filename)

    def download_file(self, url=None, max_retries=3):
        """Downloads the yearly trip file with a basic retry mechanism."""
        url = url or self.url
        if not url:
            raise ValueError("No trip file URL configured (set TRIPS_URL).")

        local_path = self.local_path_for(url)
        filename = os.path.basename(local_path)

        if os.path.exists(local_path) and os.path.getsize(local_path) > 0:
            print(f"  ↪ {filename} already exists. Skipping download.")
            return local_path

        for attempt in range(max_retries):
            try:
                print(f"Downloading {filename} (Attempt {attempt+1})...")
                with requests.get(url, stream=True, timeout=60) as r:
                    r.raise_for_status()
                    with open(local_path, "wb") as f:
                        for chunk in r.iter_content(chunk_size=1024*1024):
                            f.write(chunk)
                return local_path
            except requests.RequestException as e:
                print(f"Download failed: {e}")
                if os.path.exists(local_path):
                    os.remove(local_path)
                if attempt == max_retries - 1: raise
        return None
