"""
brim - Browser profile import

Reads another browser's on-disk profile (Chrome, Brave, Chromium, Edge or
Firefox) and merges its history, bookmarks, cookies and saved logins into
a local SQLAlchemy-backed store.

Example Usage:
    >>> from brim import ImportEngine, ImportRunOptions
    >>> engine = ImportEngine()
    >>> [p.id for p in engine.detect_profiles()]
    ['chrome:Default', 'firefox:abcd1234.default-release']
    >>> engine.preview("chrome:Default").counts
    >>> engine.run("chrome:Default", ImportRunOptions(cookies=True))
"""

__version__ = "0.1.0"
__author__ = "brim Contributors"

# Core database API
from brim.db import Database, get_db

# Configuration
from brim.config import BrimConfig, get_config, init_config

# Import engine
from brim.engine import ImportEngine, ProfileNotFoundError
from brim.locator import detect_profiles
from brim.records import (
    BrowserKind,
    Category,
    ImportPreview,
    ImportProfile,
    ImportRunOptions,
    ImportRunResult,
)

__all__ = [
    "Database",
    "get_db",
    "BrimConfig",
    "get_config",
    "init_config",
    "ImportEngine",
    "ProfileNotFoundError",
    "detect_profiles",
    "BrowserKind",
    "Category",
    "ImportPreview",
    "ImportProfile",
    "ImportRunOptions",
    "ImportRunResult",
]
