from __future__ import annotations
"""
Daily Cache
Single JSON file holding the aggregate array. Fresh when the file was last
written on the current calendar day (clock's zone), stale otherwise.
"""

import json
import os
import tempfile
from typing import List, Optional

from pydantic import TypeAdapter, ValidationError

from sessions_radar.models import PropertyRecord
from sessions_radar.utils.windows import Clock

_records_adapter = TypeAdapter(List[PropertyRecord])

# mkstemp creates 0600 files; the cache is meant to be readable by other users
CACHE_FILE_MODE = 0o644


class DailyCacheStore:
    """One-slot cache file, refreshed at most once per calendar day"""

    def __init__(self, path: str, clock: Clock):
        self.path = path
        self.clock = clock

    def is_fresh(self) -> bool:
        try:
            mtime = os.path.getmtime(self.path)
        except OSError:
            return False
        return self.clock.local_date(mtime) == self.clock.today()

    def load(self) -> Optional[List[PropertyRecord]]:
        """
        Read the persisted aggregate.
        Any read or parse failure is reported as a miss (None) so the caller regenerates.
        """
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
            records = _records_adapter.validate_python(raw)
        except (OSError, ValueError, ValidationError) as e:
            print(f"[CACHE] Unreadable cache at {self.path}, treating as miss: {e}")
            return None

        print(f"[CACHE] Loaded {len(records)} records from {self.path}")
        return records

    def store(self, aggregate: List[PropertyRecord]) -> bool:
        """Replace the cache slot. Write failures are logged, never raised."""
        payload = _records_adapter.dump_json(aggregate)
        directory = os.path.dirname(os.path.abspath(self.path))
        tmp_path = None

        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".cache-", suffix=".json")
            with os.fdopen(fd, "wb") as f:
                f.write(payload)
            os.chmod(tmp_path, CACHE_FILE_MODE)
            os.replace(tmp_path, self.path)
        except OSError as e:
            print(f"[CACHE ERROR] Failed to write {self.path}: {e}")
            if tmp_path and os.path.exists(tmp_path):
                try:
                    os.remove(tmp_path)
                except OSError as cleanup_err:
                    print(f"[CACHE ERROR] Failed to remove temp file {tmp_path}: {cleanup_err}")
            return False

        print(f"[CACHE] Stored {len(aggregate)} records to {self.path}")
        return True
