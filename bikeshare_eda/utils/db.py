import duckdb

class DatabaseManager:
    def __init__(self, db_path: str = ":memory:", memory_limit: str = "4GB"):
        self.db_path = db_path
        self.memory_limit = memory_limit
        self.conn = None

    def connect(self):
        if not self.conn:
            self.conn = duckdb.connect(self.db_path)
            self.conn.execute(f"SET memory_limit = '{self.memory_limit}'")
        return self.conn

    def close(self):
        if self.conn:
            self.conn.close()
            self.conn = None

    def __enter__(self):
        return self.connect()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
