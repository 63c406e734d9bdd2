import pytest
import base64
import json
import os
import sqlite3
from pathlib import Path

from brim.crypto import encrypt_value

# Fixed AES-256 key and nonce so fixture blobs are reproducible
MASTER_KEY = bytes(range(32))
NONCE = b"\x01" * 12

# 2024-01-17 21:20 UTC in each store's native unit
CHROMIUM_TIME = 13_350_000_000_000_000
GECKO_TIME = 1_705_526_400_000_000
UNIX_MS = 1_705_526_400_000

# One second in Chromium/Gecko microseconds
SECOND_US = 1_000_000


# ============ Environment ============

@pytest.fixture(autouse=True)
def clean_brim_env(monkeypatch, tmp_path):
    """
    Run every test without the user's real config, database or browsers.

    Removes BRIM_ environment variables, points HOME at an empty directory
    and resets the config and database singletons.
    """
    for key in list(os.environ.keys()):
        if key.startswith("BRIM_"):
            monkeypatch.delenv(key, raising=False)

    mock_home = tmp_path / "home"
    mock_home.mkdir()
    monkeypatch.setenv("HOME", str(mock_home))
    monkeypatch.chdir(tmp_path)

    monkeypatch.setattr("brim.config._config", None)
    monkeypatch.setattr("brim.db._db", None)

    return tmp_path


@pytest.fixture
def temp_db(tmp_path):
    """An empty canonical store in a temp file."""
    from brim.db import Database
    return Database(str(tmp_path / "store.db"))


# ============ Chromium profile builders ============

def write_local_state(root: Path, key=MASTER_KEY, names=None):
    state = {"profile": {"info_cache": {d: {"name": n} for d, n in (names or {}).items()}}}
    if key is not None:
        state["os_crypt"] = {"encrypted_key": base64.b64encode(key).decode("ascii")}
    (root / "Local State").write_text(json.dumps(state), encoding="utf-8")


def write_chromium_history(path: Path, rows):
    conn = sqlite3.connect(path)
    conn.execute("""
        CREATE TABLE urls (
            id INTEGER PRIMARY KEY,
            url LONGVARCHAR,
            title LONGVARCHAR,
            visit_count INTEGER DEFAULT 0 NOT NULL,
            typed_count INTEGER DEFAULT 0 NOT NULL,
            last_visit_time INTEGER NOT NULL,
            hidden INTEGER DEFAULT 0 NOT NULL
        )
    """)
    conn.executemany(
        "INSERT INTO urls (url, title, visit_count, last_visit_time) VALUES (?, ?, ?, ?)",
        rows,
    )
    conn.commit()
    conn.close()


def write_chromium_cookies(path: Path, rows):
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path)
    conn.execute("""
        CREATE TABLE cookies (
            creation_utc INTEGER NOT NULL,
            host_key TEXT NOT NULL,
            top_frame_site_key TEXT NOT NULL DEFAULT '',
            name TEXT NOT NULL,
            value TEXT NOT NULL,
            encrypted_value BLOB NOT NULL DEFAULT '',
            path TEXT NOT NULL,
            expires_utc INTEGER NOT NULL,
            is_secure INTEGER NOT NULL,
            is_httponly INTEGER NOT NULL,
            last_access_utc INTEGER NOT NULL,
            samesite INTEGER NOT NULL DEFAULT -1
        )
    """)
    conn.executemany("""
        INSERT INTO cookies (creation_utc, host_key, name, value, encrypted_value, path,
                             expires_utc, is_secure, is_httponly, last_access_utc, samesite)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
    """, rows)
    conn.commit()
    conn.close()


def write_chromium_logins(path: Path, rows):
    conn = sqlite3.connect(path)
    conn.execute("""
        CREATE TABLE logins (
            origin_url VARCHAR NOT NULL,
            action_url VARCHAR,
            username_element VARCHAR,
            username_value VARCHAR,
            password_element VARCHAR,
            password_value BLOB,
            signon_realm VARCHAR NOT NULL,
            date_created INTEGER NOT NULL,
            times_used INTEGER,
            date_password_modified INTEGER NOT NULL DEFAULT 0
        )
    """)
    conn.executemany("""
        INSERT INTO logins (origin_url, action_url, username_value, password_value,
                            signon_realm, date_created, times_used, date_password_modified)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
    """, rows)
    conn.commit()
    conn.close()


SAMPLE_BOOKMARKS = {
    "checksum": "0",
    "roots": {
        "bookmark_bar": {
            "type": "folder",
            "name": "Bookmarks bar",
            "children": [
                {
                    "type": "folder",
                    "name": "Work",
                    "children": [
                        {
                            "type": "url",
                            "name": "Python Docs",
                            "url": "https://docs.python.org/",
                            "date_added": str(CHROMIUM_TIME),
                        }
                    ],
                }
            ],
        },
        "other": {
            "type": "folder",
            "name": "Other bookmarks",
            "children": [
                {
                    "type": "url",
                    "name": "Hacker News",
                    "url": "https://news.ycombinator.com/",
                    "date_added": str(CHROMIUM_TIME - 60 * SECOND_US),
                }
            ],
        },
        "synced": {"type": "folder", "name": "Mobile bookmarks", "children": []},
    },
    "version": 1,
}

SAMPLE_HISTORY = [
    ("https://python.org/", "Python", 5, CHROMIUM_TIME),
    ("https://example.com/", "Example", 1, CHROMIUM_TIME - 1000 * SECOND_US),
    ("https://github.com/", "", 2, CHROMIUM_TIME - 2000 * SECOND_US),
]


@pytest.fixture
def make_chrome_profile(tmp_path):
    """
    Factory building a Chromium-family install root in tmp_path.

    Usage:
        root = make_chrome_profile()                      # Default profile
        root = make_chrome_profile(name="Profile 1", logins=True)

    Returns:
        The install root (the directory holding ``Local State``)
    """
    def _make(name="Default", root=None, history=True, bookmarks=True, cookies=True,
              logins=False, key=MASTER_KEY, friendly_name=None):
        root = Path(root) if root else tmp_path / "chrome"
        profile_dir = root / name
        profile_dir.mkdir(parents=True, exist_ok=True)
        write_local_state(root, key=key, names={name: friendly_name} if friendly_name else None)

        if history:
            write_chromium_history(profile_dir / "History", SAMPLE_HISTORY)
        if bookmarks:
            (profile_dir / "Bookmarks").write_text(json.dumps(SAMPLE_BOOKMARKS), encoding="utf-8")
        if cookies:
            write_chromium_cookies(profile_dir / "Network" / "Cookies", [(
                CHROMIUM_TIME, ".example.com", "session", "",
                encrypt_value(b"s3cr3t", MASTER_KEY, NONCE), "/",
                CHROMIUM_TIME + 3600 * SECOND_US, 1, 1, CHROMIUM_TIME, 1,
            )])
        if logins:
            write_chromium_logins(profile_dir / "Login Data", [(
                "https://accounts.example.com/", "https://accounts.example.com/login",
                "alice", encrypt_value(b"hunter2", MASTER_KEY, NONCE),
                "https://accounts.example.com/", CHROMIUM_TIME, 3, 0,
            )])
        return root
    return _make


# ============ Firefox profile builders ============

def write_places(path: Path):
    conn = sqlite3.connect(path)
    conn.executescript("""
        CREATE TABLE moz_places (
            id INTEGER PRIMARY KEY,
            url LONGVARCHAR,
            title LONGVARCHAR,
            visit_count INTEGER DEFAULT 0,
            hidden INTEGER DEFAULT 0 NOT NULL,
            last_visit_date INTEGER
        );
        CREATE TABLE moz_bookmarks (
            id INTEGER PRIMARY KEY,
            type INTEGER,
            fk INTEGER DEFAULT NULL,
            parent INTEGER,
            title LONGVARCHAR,
            dateAdded INTEGER
        );
    """)
    conn.executemany(
        "INSERT INTO moz_places (id, url, title, visit_count, last_visit_date) VALUES (?, ?, ?, ?, ?)",
        [
            (1, "https://www.mozilla.org/", "Mozilla", 3, GECKO_TIME),
            (2, "https://python.org/", None, 1, GECKO_TIME - 10 * SECOND_US),
            (3, "place:sort=8&maxResults=10", "Recent Tags", 0, None),
        ],
    )
    conn.executemany(
        "INSERT INTO moz_bookmarks (id, type, fk, parent, title, dateAdded) VALUES (?, ?, ?, ?, ?, ?)",
        [
            (1, 2, None, 0, "menu", GECKO_TIME),
            (2, 1, 1, 1, "Mozilla Home", GECKO_TIME),
            (3, 1, 3, 1, "Recent Tags", GECKO_TIME),
        ],
    )
    conn.commit()
    conn.close()


def write_moz_cookies(path: Path):
    conn = sqlite3.connect(path)
    conn.execute("""
        CREATE TABLE moz_cookies (
            id INTEGER PRIMARY KEY,
            originAttributes TEXT NOT NULL DEFAULT '',
            name TEXT,
            value TEXT,
            host TEXT,
            path TEXT,
            expiry INTEGER,
            lastAccessed INTEGER,
            creationTime INTEGER,
            isSecure INTEGER,
            isHttpOnly INTEGER,
            sameSite INTEGER DEFAULT 0
        )
    """)
    conn.execute("""
        INSERT INTO moz_cookies (name, value, host, path, expiry, lastAccessed, creationTime,
                                 isSecure, isHttpOnly, sameSite)
        VALUES ('theme', 'dark', '.mozilla.org', '/', 1900000000, ?, ?, 1, 0, 1)
    """, (GECKO_TIME, GECKO_TIME))
    conn.commit()
    conn.close()


SAMPLE_LOGINS_JSON = {
    "nextId": 2,
    "logins": [
        {
            "id": 1,
            "hostname": "https://accounts.example.com",
            "httpRealm": None,
            "formSubmitURL": "https://accounts.example.com",
            "encryptedUsername": "MDIEEPgAAAAAAAAAAAAAAAAAAAEwFAYIKoZIhvcNAwcECA==",
            "encryptedPassword": "MDoEEPgAAAAAAAAAAAAAAAAAAAEwFAYIKoZIhvcNAwcECA==",
            "timeCreated": 1700000000000,
            "timeLastUsed": 1705000000000,
            "timePasswordChanged": 1701000000000,
            "timesUsed": 4,
        }
    ],
    "version": 3,
}


@pytest.fixture
def make_firefox_profile(tmp_path):
    """
    Factory building a Firefox root with a profiles.ini and one profile.

    Returns:
        The Firefox root (the directory holding ``profiles.ini``)
    """
    def _make(root=None, dirname="abcd1234.default-release", places=True, cookies=True,
              logins=True, ini=True):
        root = Path(root) if root else tmp_path / "firefox"
        profile_dir = root / dirname
        profile_dir.mkdir(parents=True, exist_ok=True)

        if ini:
            (root / "profiles.ini").write_text(
                "[Install4F96D1932A9F858E]\n"
                f"Default={dirname}\n"
                "Locked=1\n"
                "\n"
                "[Profile0]\n"
                "Name=default-release\n"
                "IsRelative=1\n"
                f"Path={dirname}\n"
                "Default=1\n"
                "\n"
                "[General]\n"
                "StartWithLastProfile=1\n"
                "Version=2\n",
                encoding="utf-8",
            )
        if places:
            write_places(profile_dir / "places.sqlite")
        if cookies:
            write_moz_cookies(profile_dir / "cookies.sqlite")
        if logins:
            (profile_dir / "logins.json").write_text(json.dumps(SAMPLE_LOGINS_JSON), encoding="utf-8")
        return root
    return _make


@pytest.fixture
def chrome_engine(make_chrome_profile, temp_db, tmp_path):
    """ImportEngine over a single Chrome Default profile and an empty store."""
    from brim.engine import ImportEngine
    root = make_chrome_profile()
    return ImportEngine(temp_db, home=tmp_path / "home", system="Linux", roots={"chrome": root})
