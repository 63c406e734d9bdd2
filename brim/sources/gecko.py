"""
Gecko-family profile source (Firefox).

``places.sqlite`` holds both history (``moz_places``) and bookmarks
(``moz_bookmarks`` rows of type 1 pointing at ``moz_places``). Cookies live
in ``cookies.sqlite`` as plaintext. Saved logins in ``logins.json`` are
NSS-encrypted with a key in ``key4.db`` that we don't unwrap, so usernames
and passwords come through as empty placeholders.
"""
import logging
from typing import Any, Dict, List, Optional

from brim.records import (
    COOKIES, LOGINS, PLACES_DB,
    BookmarkRecord, CookieRecord, HistoryRecord, LoginRecord,
)
from brim.sources.base import ProfileSource, as_bytes, column, same_site
from brim.timestamps import expiry_to_unix_ms, gecko_to_unix_ms, unix_ms

logger = logging.getLogger(__name__)

# moz_bookmarks.type
TYPE_BOOKMARK = 1

_PLACES_FILTER = "url IS NOT NULL AND url NOT LIKE 'place:%'"

_BOOKMARKS_FROM = f"""
    FROM moz_bookmarks b
    JOIN moz_places p ON b.fk = p.id
    WHERE b.type = {TYPE_BOOKMARK}
        AND p.url IS NOT NULL
        AND p.url NOT LIKE 'place:%'
"""


def history_row(row: Any) -> Optional[HistoryRecord]:
    url = row["url"]
    if not url:
        return None
    return HistoryRecord(
        url=url,
        title=row["title"] or url,
        visit_at=gecko_to_unix_ms(row["last_visit_date"]),
        visit_count=max(1, int(row["visit_count"] or 1)),
    )


def bookmark_row(row: Any) -> Optional[BookmarkRecord]:
    url = row["url"]
    if not url:
        return None
    return BookmarkRecord(
        url=url,
        title=row["title"] or url,
        created_at=gecko_to_unix_ms(row["date_added"]),
    )


def cookie_row(row: Any, source: str) -> Optional[CookieRecord]:
    host = column(row, "host")
    if not host:
        return None
    return CookieRecord(
        host=str(host),
        name=str(column(row, "name", default="")),
        path=str(column(row, "path", default="/")),
        value=as_bytes(column(row, "value")),
        encrypted_value=b"",
        created_at=gecko_to_unix_ms(column(row, "creationTime")),
        expires_at=expiry_to_unix_ms(column(row, "expiry"), "gecko"),
        last_accessed_at=gecko_to_unix_ms(column(row, "lastAccessed")),
        secure=bool(column(row, "isSecure", default=0)),
        http_only=bool(column(row, "isHttpOnly", default=0)),
        same_site=same_site(column(row, "sameSite")),
        source=source,
    )


def login_entry(entry: Dict[str, Any], source: str) -> Optional[LoginRecord]:
    origin = entry.get("hostname") if isinstance(entry, dict) else None
    if not origin:
        return None
    changed = entry.get("timePasswordChanged") or 0
    return LoginRecord(
        origin=str(origin),
        username=None,
        password=None,
        realm=entry.get("httpRealm"),
        form_action_origin=entry.get("formSubmitURL") or entry.get("formActionOrigin"),
        times_used=int(entry.get("timesUsed") or 0),
        created_at=unix_ms(entry.get("timeCreated")),
        updated_at=unix_ms(changed) if changed else None,
        source=source,
    )


class GeckoSource(ProfileSource):
    """Reads a Firefox profile directory."""

    family = "gecko"

    def count_history(self) -> int:
        return self._count_rows(PLACES_DB, f"SELECT COUNT(1) FROM moz_places WHERE {_PLACES_FILTER}")

    def read_history(self, limit: Optional[int] = None) -> List[HistoryRecord]:
        return self._read_rows(
            PLACES_DB,
            f"""
                SELECT url, title, last_visit_date, visit_count
                FROM moz_places
                WHERE {_PLACES_FILTER}
                ORDER BY last_visit_date DESC
            """,
            history_row,
            limit,
        )

    def count_bookmarks(self) -> int:
        return self._count_rows(PLACES_DB, f"SELECT COUNT(1) {_BOOKMARKS_FROM}")

    def read_bookmarks(self, limit: Optional[int] = None) -> List[BookmarkRecord]:
        return self._read_rows(
            PLACES_DB,
            f"""
                SELECT COALESCE(b.title, p.title, p.url) AS title,
                       p.url AS url,
                       b.dateAdded AS date_added
                {_BOOKMARKS_FROM}
                ORDER BY b.dateAdded DESC
            """,
            bookmark_row,
            limit,
        )

    def count_cookies(self) -> int:
        return self._count_rows(COOKIES, "SELECT COUNT(1) FROM moz_cookies")

    def read_cookies(self, limit: Optional[int] = None) -> List[CookieRecord]:
        return self._read_rows(
            COOKIES,
            "SELECT * FROM moz_cookies ORDER BY creationTime DESC",
            lambda row: cookie_row(row, self.source_name),
            limit,
        )

    def _logins(self) -> List[Dict[str, Any]]:
        data = self._load_json(LOGINS)
        logins = data.get("logins") if isinstance(data, dict) else None
        if not isinstance(logins, list):
            raise ValueError("logins.json has no 'logins' list")
        return logins

    def count_logins(self) -> int:
        return len(self._logins())

    def read_logins(self, limit: Optional[int] = None) -> List[LoginRecord]:
        entries = sorted(
            (e for e in self._logins() if isinstance(e, dict)),
            key=lambda e: e.get("timeCreated") or 0,
            reverse=True,
        )
        if limit:
            entries = entries[:limit]
        records = (login_entry(e, self.source_name) for e in entries)
        return [r for r in records if r is not None]
