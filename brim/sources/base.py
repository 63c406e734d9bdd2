"""
Base class for browser profile sources.

A source reads one profile's foreign files and converts each row into a
canonical record through one explicit adapter function per category.
Subclasses supply the SQL and the adapters for their storage family.
"""
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, List, Optional, TypeVar

from brim.records import (
    BookmarkRecord, Category, CookieRecord, HistoryRecord, ImportProfile, LoginRecord,
)
from brim.snapshot import open_snapshot

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Same numbering in Chromium (cookies.samesite) and Gecko (moz_cookies.sameSite);
# Chromium uses -1 for "unspecified".
SAME_SITE = {0: "none", 1: "lax", 2: "strict"}


class SourceUnavailable(Exception):
    """The profile has no file for the requested category."""


def column(row: Any, *names: str, default: Any = None) -> Any:
    """First present, non-null column among ``names`` (schemas drift between versions)."""
    keys = row.keys()
    for name in names:
        if name in keys and row[name] is not None:
            return row[name]
    return default


def as_bytes(value: Any) -> bytes:
    if value is None:
        return b""
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


def same_site(value: Any) -> Optional[str]:
    try:
        return SAME_SITE.get(int(value))
    except (TypeError, ValueError):
        return None


class ProfileSource(ABC):
    """Category readers for one browser profile."""

    family: str = "unknown"

    def __init__(self, profile: ImportProfile, temp_dir: Optional[str] = None):
        self.profile = profile
        self.temp_dir = temp_dir

    @property
    def source_name(self) -> str:
        return self.profile.browser_kind.value

    def count(self, category: Category) -> int:
        """Number of rows available for ``category``."""
        counters = {
            Category.HISTORY: self.count_history,
            Category.BOOKMARKS: self.count_bookmarks,
            Category.COOKIES: self.count_cookies,
            Category.PASSWORDS: self.count_logins,
        }
        return counters[category]()

    def read(self, category: Category, limit: Optional[int] = None) -> List[Any]:
        """Canonical records for ``category``, newest first."""
        readers = {
            Category.HISTORY: self.read_history,
            Category.BOOKMARKS: self.read_bookmarks,
            Category.COOKIES: self.read_cookies,
            Category.PASSWORDS: self.read_logins,
        }
        return readers[category](limit)

    @abstractmethod
    def count_history(self) -> int:
        pass

    @abstractmethod
    def read_history(self, limit: Optional[int] = None) -> List[HistoryRecord]:
        pass

    @abstractmethod
    def count_bookmarks(self) -> int:
        pass

    @abstractmethod
    def read_bookmarks(self, limit: Optional[int] = None) -> List[BookmarkRecord]:
        pass

    @abstractmethod
    def count_cookies(self) -> int:
        pass

    @abstractmethod
    def read_cookies(self, limit: Optional[int] = None) -> List[CookieRecord]:
        pass

    @abstractmethod
    def count_logins(self) -> int:
        pass

    @abstractmethod
    def read_logins(self, limit: Optional[int] = None) -> List[LoginRecord]:
        pass

    # --- Helpers ---

    def _require(self, artifact: str) -> Path:
        path = self.profile.path(artifact)
        if path is None or not path.exists():
            raise SourceUnavailable(f"{self.profile.id} has no {artifact} file")
        return path

    def _count_rows(self, artifact: str, sql: str) -> int:
        with open_snapshot(self._require(artifact), self.temp_dir) as conn:
            row = conn.execute(sql).fetchone()
            return int(row[0] or 0) if row else 0

    def _read_rows(self, artifact: str, sql: str,
                   adapter: Callable[[Any], Optional[T]],
                   limit: Optional[int] = None) -> List[T]:
        """Run ``sql`` (ordered newest first) on a snapshot and adapt every row."""
        records = []
        skipped = 0
        with open_snapshot(self._require(artifact), self.temp_dir) as conn:
            # LIMIT -1 is unbounded in SQLite
            for row in conn.execute(f"{sql} LIMIT ?", (limit or -1,)):
                record = adapter(row)
                if record is None:
                    skipped += 1
                    continue
                records.append(record)
        if skipped:
            logger.debug(f"Skipped {skipped} unusable rows from {artifact} of {self.profile.id}")
        return records

    def _load_json(self, artifact: str) -> Any:
        with open(self._require(artifact), "r", encoding="utf-8") as f:
            return json.load(f)
