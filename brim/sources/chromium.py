"""
Chromium-family profile source (Chrome, Brave, Chromium, Edge).

Relational files: ``History`` (``urls``), ``Cookies`` (``cookies``),
``Login Data`` (``logins``). Bookmarks are a JSON tree. All timestamps are
microseconds since 1601-01-01.
"""
import logging
from typing import Any, List, Optional

from brim import bookmark_tree
from brim.records import (
    BOOKMARKS, COOKIES, HISTORY, LOGINS,
    BookmarkRecord, CookieRecord, HistoryRecord, LoginRecord,
)
from brim.sources.base import ProfileSource, as_bytes, column, same_site
from brim.timestamps import chromium_to_unix_ms, expiry_to_unix_ms

logger = logging.getLogger(__name__)


def history_row(row: Any) -> Optional[HistoryRecord]:
    url = row["url"]
    if not url:
        return None
    return HistoryRecord(
        url=url,
        title=row["title"] or url,
        visit_at=chromium_to_unix_ms(row["last_visit_time"]),
        visit_count=max(1, int(row["visit_count"] or 1)),
    )


def bookmark_leaf(leaf: bookmark_tree.UrlLeaf) -> BookmarkRecord:
    return BookmarkRecord(
        url=leaf.url,
        title=leaf.title,
        created_at=chromium_to_unix_ms(leaf.date_added),
    )


def cookie_row(row: Any, source: str) -> Optional[CookieRecord]:
    host = column(row, "host_key")
    if not host:
        return None
    return CookieRecord(
        host=str(host),
        name=str(column(row, "name", default="")),
        path=str(column(row, "path", default="/")),
        value=as_bytes(column(row, "value")),
        encrypted_value=as_bytes(column(row, "encrypted_value")),
        created_at=chromium_to_unix_ms(column(row, "creation_utc")),
        expires_at=expiry_to_unix_ms(column(row, "expires_utc"), "chromium"),
        last_accessed_at=chromium_to_unix_ms(column(row, "last_access_utc")),
        secure=bool(column(row, "is_secure", "secure", default=0)),
        http_only=bool(column(row, "is_httponly", "httponly", default=0)),
        same_site=same_site(column(row, "samesite")),
        source=source,
    )


def login_row(row: Any, source: str) -> Optional[LoginRecord]:
    origin = column(row, "origin_url")
    if not origin:
        return None
    username = column(row, "username_value")
    modified = column(row, "date_password_modified", "date_last_used", default=0)
    return LoginRecord(
        origin=str(origin),
        username=str(username) if username is not None else None,
        password=as_bytes(column(row, "password_value")),
        realm=column(row, "signon_realm"),
        form_action_origin=column(row, "action_url", "form_action_origin"),
        times_used=int(column(row, "times_used", default=0) or 0),
        created_at=chromium_to_unix_ms(column(row, "date_created")),
        updated_at=chromium_to_unix_ms(modified) if modified and int(modified) > 0 else None,
        source=source,
    )


class ChromiumSource(ProfileSource):
    """Reads a Chromium-family profile directory."""

    family = "chromium"

    def count_history(self) -> int:
        return self._count_rows(HISTORY, "SELECT COUNT(1) FROM urls")

    def read_history(self, limit: Optional[int] = None) -> List[HistoryRecord]:
        return self._read_rows(
            HISTORY,
            "SELECT url, title, last_visit_time, visit_count FROM urls ORDER BY last_visit_time DESC",
            history_row,
            limit,
        )

    def count_bookmarks(self) -> int:
        return bookmark_tree.count(self._load_json(BOOKMARKS))

    def read_bookmarks(self, limit: Optional[int] = None) -> List[BookmarkRecord]:
        leaves = list(bookmark_tree.walk(self._load_json(BOOKMARKS)))
        if limit:
            leaves = sorted(leaves, key=lambda leaf: leaf.date_added, reverse=True)[:limit]
        return [bookmark_leaf(leaf) for leaf in leaves]

    def count_cookies(self) -> int:
        return self._count_rows(COOKIES, "SELECT COUNT(1) FROM cookies")

    def read_cookies(self, limit: Optional[int] = None) -> List[CookieRecord]:
        # SELECT *: column names drift across Chromium versions
        return self._read_rows(
            COOKIES,
            "SELECT * FROM cookies ORDER BY creation_utc DESC",
            lambda row: cookie_row(row, self.source_name),
            limit,
        )

    def count_logins(self) -> int:
        return self._count_rows(LOGINS, "SELECT COUNT(1) FROM logins")

    def read_logins(self, limit: Optional[int] = None) -> List[LoginRecord]:
        return self._read_rows(
            LOGINS,
            "SELECT * FROM logins ORDER BY date_created DESC",
            lambda row: login_row(row, self.source_name),
            limit,
        )
