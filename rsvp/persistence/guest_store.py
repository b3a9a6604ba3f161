"""Workbook-backed guest store.

Single writer boundary: every mutation goes through ``GuestStore.append``,
which holds a per-path thread lock and an exclusive ``portalocker`` lock on
``<store>.lock`` for the whole read, append, write cycle. Writes go to a temp
file that is fsynced and then moved over the store with ``os.replace``.
"""

import errno
import os
import threading
import time
from collections.abc import Callable
from dataclasses import asdict
from pathlib import Path

import pandas as pd
import portalocker

from rsvp.logging.logger import Log
from rsvp.persistence.exceptions import StoreReadError, StoreWriteError
from rsvp.persistence.models import PersistedGuestRow

COLUMNS: list[str] = [
    "guest_id",
    "main_email",
    "guest_index",
    "first_name",
    "middle_name",
    "last_name",
    "guest_email",
    "age_group",
    "attendance",
    "allergies",
    "other_allergy",
    "passport",
]

_TRANSIENT_ERRNOS = frozenset({errno.EBUSY, errno.EACCES, errno.EAGAIN, errno.EPERM})

_path_locks: dict[Path, threading.Lock] = {}
_path_locks_guard = threading.Lock()


def _thread_lock_for(path: Path) -> threading.Lock:
    key = path.resolve()
    with _path_locks_guard:
        return _path_locks.setdefault(key, threading.Lock())


def _is_transient(exc: OSError) -> bool:
    return isinstance(exc, PermissionError) or exc.errno in _TRANSIENT_ERRNOS


class GuestStore:
    """Append-only table of guest rows kept in a single-sheet xlsx file."""

    def __init__(
        self,
        path: Path,
        sheet_name: str = "RSVP",
        write_retries: int = 5,
        retry_delay_seconds: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._path = path
        self._sheet_name = sheet_name
        self._write_retries = write_retries
        self._retry_delay_seconds = retry_delay_seconds
        self._sleep = sleep
        self._lock_path = path.with_suffix(".lock")
        self._temp_path = path.with_suffix(".tmp.xlsx")

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> pd.DataFrame:
        """Read every row. A missing store is an empty table with the fixed columns.

        Raises:
            StoreReadError: if the file exists but cannot be parsed.
        """
        if not self._path.exists():
            return pd.DataFrame(columns=COLUMNS)
        try:
            frame = pd.read_excel(
                self._path,
                sheet_name=0,
                dtype=object,
                na_filter=False,
                engine="openpyxl",
            )
        except Exception as exc:
            raise StoreReadError(f"Failed to read guest store {self._path}: {exc}") from exc
        return frame

    def count(self) -> int:
        return len(self.load())

    def append(self, rows: list[PersistedGuestRow]) -> int:
        """Append rows after all existing rows and rewrite the store.

        Returns:
            Total row count after the append.

        Raises:
            StoreReadError: if the existing store cannot be read.
            StoreWriteError: if the write fails or the store stays locked.
        """
        if not rows:
            return self.count()

        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._lock_path.touch(exist_ok=True)

        with _thread_lock_for(self._path), open(self._lock_path, "r+") as lock_file:
            portalocker.lock(lock_file, portalocker.LOCK_EX)
            try:
                before = self.load()
                combined = self._combine(before, rows)
                self._write(combined)
            finally:
                portalocker.unlock(lock_file)

        Log.info(
            f"Appended {len(rows)} rows to {self._path.name} "
            f"({len(before)} before, {len(combined)} after)"
        )
        return len(combined)

    @staticmethod
    def _combine(before: pd.DataFrame, rows: list[PersistedGuestRow]) -> pd.DataFrame:
        new_rows = pd.DataFrame([asdict(row) for row in rows], columns=COLUMNS)
        if before.empty:
            combined = new_rows
        else:
            combined = pd.concat([before, new_rows], ignore_index=True)
        extras = [c for c in combined.columns if c not in COLUMNS]
        return combined[COLUMNS + extras]

    def _write(self, frame: pd.DataFrame) -> None:
        try:
            with pd.ExcelWriter(self._temp_path, engine="openpyxl") as writer:
                frame.to_excel(writer, sheet_name=self._sheet_name, index=False, na_rep="")
            with open(self._temp_path, "rb") as f:
                os.fsync(f.fileno())
        except Exception as exc:
            self._temp_path.unlink(missing_ok=True)
            raise StoreWriteError(f"Failed to write guest store: {exc}") from exc

        self._replace_with_retry()

    def _replace_with_retry(self) -> None:
        attempt = 0
        while True:
            try:
                os.replace(self._temp_path, self._path)
                return
            except OSError as exc:
                if not _is_transient(exc) or attempt >= self._write_retries:
                    self._temp_path.unlink(missing_ok=True)
                    Log.error(f"Guest store write failed after {attempt + 1} attempts: {exc}")
                    raise StoreWriteError(f"Failed to replace guest store: {exc}") from exc
                attempt += 1
                Log.warning(f"Guest store busy, retry {attempt}/{self._write_retries}")
                self._sleep(self._retry_delay_seconds)
