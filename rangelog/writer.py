import logging
from datetime import datetime
from pathlib import Path
from typing import IO, Optional

from .models import CycleRecord
from .rotation import RotationPolicy

log = logging.getLogger("rangelog.writer")


class JsonLinesWriter:
    """
    Append-only writer: одна запись – одна строка JSON.
    The open handle follows the rotation policy; files are never truncated.
    """

    def __init__(self, directory: Path, policy: RotationPolicy):
        self.directory = Path(directory)
        self.policy = policy
        self._fh: Optional[IO[str]] = None
        self._key: Optional[str] = None
        self.written = 0
        self.failures = 0

    @property
    def current_path(self) -> Optional[Path]:
        if self._key is None:
            return None
        return self.directory / self.policy.filename_for(self._key)

    def append(self, record: CycleRecord, now: Optional[datetime] = None) -> bool:
        key = self.policy.target(now or datetime.now())
        try:
            if self._fh is None or key != self._key:
                self._switch(key)
            self._fh.write(record.to_line() + "\n")
            self._fh.flush()
        except OSError as e:
            log.error("Error saving to JSON (%s): %s", self.current_path, e)
            self.failures += 1
            self._drop()
            return False
        self.written += 1
        return True

    def _switch(self, key: str) -> None:
        self._drop()
        self._key = key
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.current_path
        self._fh = open(path, "a", encoding="utf-8")
        log.info("Writing records to %s", path)

    def _drop(self) -> None:
        fh, self._fh = self._fh, None
        if fh is not None:
            try:
                fh.close()
            except OSError as e:
                log.warning("Error closing %s: %s", self.current_path, e)

    def close(self) -> None:
        self._drop()
