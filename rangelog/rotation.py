"""
rotation.py – выбор файла для записи.

The bucket key is a pure function of the timestamp; ``RotationState`` only
remembers the last key so the writer knows when to switch files.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .enums import Rotation

FILENAME_PREFIX = "sensor_data_"


@dataclass
class RotationState:
    current_bucket_key: Optional[str] = None
    last_rotation_instant: Optional[datetime] = None


class RotationPolicy:
    def __init__(self, kind: Rotation = Rotation.DAILY, bucket_minutes: int = 10):
        if not 1 <= bucket_minutes <= 60 or 60 % bucket_minutes:
            raise ValueError(f"bucket_minutes must divide 60, got {bucket_minutes}")
        self.kind = kind
        self.bucket_minutes = bucket_minutes
        self.state = RotationState()

    def bucket_key(self, ts: datetime) -> str:
        if self.kind is Rotation.DAILY:
            return ts.strftime("%Y-%m-%d")
        bucket = (ts.minute // self.bucket_minutes) * self.bucket_minutes
        return f"{ts:%Y-%m-%d_%H}-{bucket:02d}"

    @staticmethod
    def filename_for(key: str) -> str:
        return f"{FILENAME_PREFIX}{key}.json"

    def target(self, ts: datetime) -> str:
        """Key for ``ts``; records a rotation when the bucket changed."""
        key = self.bucket_key(ts)
        if key != self.state.current_bucket_key:
            self.state.current_bucket_key = key
            self.state.last_rotation_instant = ts
        return key
