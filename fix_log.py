"""JSONL log of location fixes and failures, one record per line."""
import json
import os
import time
from datetime import datetime

# Order: Time, Event, Position, Failure
FIELD_ORDER = ["epoch", "timestamp", "event", "latitude", "longitude", "error_domain"]


class FixLog:
    def __init__(self, log_dir):
        if not os.path.exists(log_dir):
            os.makedirs(log_dir)

        self.log_dir = log_dir
        self.start_epoch = int(time.time())
        self.path = os.path.join(log_dir, f"fixes_{self.start_epoch}_running.jsonl")
        self._file = open(self.path, "a")

    def record_fix(self, coordinate):
        self._write({
            "event": "fix",
            "latitude": coordinate.latitude,
            "longitude": coordinate.longitude,
        })

    def record_error(self, error):
        self._write({"event": "error", "error_domain": str(getattr(error, "domain", error))})

    def _write(self, fields):
        ts = int(time.time())
        record = dict(fields)
        record["epoch"] = ts
        record["timestamp"] = datetime.fromtimestamp(ts).strftime('%Y-%m-%d %H:%M:%S')

        final_record = {k: record.get(k) for k in FIELD_ORDER}
        self._file.write(json.dumps(final_record) + "\n")
        self._file.flush()

    def close(self):
        """Close the log and rename it with the final epoch. Returns the path it ended up at."""
        if self._file.closed:
            return self.path
        self._file.close()

        end_epoch = int(time.time())
        final_path = os.path.join(self.log_dir, f"fixes_{self.start_epoch}-{end_epoch}.jsonl")
        try:
            os.rename(self.path, final_path)
        except OSError as e:
            print(f"Error handling log file: {e}")
            return self.path

        self.path = final_path
        return final_path
