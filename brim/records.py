"""
Data types shared by the locator, the source adapters and the engine.

Profiles, previews and run results are plain dataclasses, never persisted.
The ``*Record`` types are the canonical, already-normalized shape every
source adapter produces (timestamps in Unix ms); secrets are still raw
source bytes until the engine decrypts them.
"""
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Mapping, Optional


class BrowserKind(str, Enum):
    """Browsers we know how to read."""
    CHROME = "chrome"
    BRAVE = "brave"
    CHROMIUM = "chromium"
    EDGE = "edge"
    FIREFOX = "firefox"

    @property
    def family(self) -> str:
        """Storage family: 'chromium' or 'gecko'."""
        return "gecko" if self is BrowserKind.FIREFOX else "chromium"

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS = {
    BrowserKind.CHROME: "Chrome",
    BrowserKind.BRAVE: "Brave",
    BrowserKind.CHROMIUM: "Chromium",
    BrowserKind.EDGE: "Microsoft Edge",
    BrowserKind.FIREFOX: "Firefox",
}


class Category(str, Enum):
    """Importable data categories, in processing order."""
    HISTORY = "history"
    BOOKMARKS = "bookmarks"
    COOKIES = "cookies"
    PASSWORDS = "passwords"

    @property
    def label(self) -> str:
        return self.value.capitalize()


# Artifact names used as keys of ImportProfile.paths
HISTORY = "history"
BOOKMARKS = "bookmarks"
COOKIES = "cookies"
LOGINS = "logins"
MASTER_KEY_FILE = "master_key_file"
PLACES_DB = "places_db"


@dataclass(frozen=True)
class ImportProfile:
    """One discoverable browser profile."""
    id: str
    browser_kind: BrowserKind
    display_name: str
    paths: Mapping[str, Path] = field(default_factory=dict)
    root: Optional[Path] = None
    profile_dir: Optional[Path] = None

    def path(self, artifact: str) -> Optional[Path]:
        return self.paths.get(artifact)

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "browser": self.browser_kind.value,
            "name": self.display_name,
            "path": str(self.profile_dir) if self.profile_dir else None,
            "paths": {k: str(v) for k, v in self.paths.items()},
        }


@dataclass
class ImportPreview:
    """What a profile holds, per category. Unreadable categories have no count."""
    profile_id: str
    browser_kind: BrowserKind
    counts: Dict[str, int] = field(default_factory=dict)
    notes: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "profile_id": self.profile_id,
            "browser": self.browser_kind.value,
            "counts": dict(self.counts),
            "notes": list(self.notes),
        }


@dataclass
class ImportRunOptions:
    """Which categories to import, and an optional newest-first row cap."""
    history: bool = True
    bookmarks: bool = True
    cookies: bool = False
    passwords: bool = False
    limit: Optional[int] = None

    def selected(self, category: Category) -> bool:
        return bool(getattr(self, category.value))

    @property
    def row_limit(self) -> Optional[int]:
        return self.limit if self.limit and self.limit > 0 else None


@dataclass
class ImportRunResult:
    """Rows written per category plus category-scoped error messages."""
    profile_id: str
    browser_kind: BrowserKind
    imported: Dict[str, int] = field(
        default_factory=lambda: {c.value: 0 for c in Category}
    )
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict:
        return {
            "profile_id": self.profile_id,
            "browser": self.browser_kind.value,
            "imported": dict(self.imported),
            "errors": list(self.errors),
        }


@dataclass
class HistoryRecord:
    url: str
    title: Optional[str]
    visit_at: int
    visit_count: int = 1


@dataclass
class BookmarkRecord:
    url: str
    title: str
    created_at: int


@dataclass
class CookieRecord:
    """A cookie as read from the source; ``encrypted_value`` is not yet decrypted."""
    host: str
    name: str
    path: str
    value: bytes
    encrypted_value: bytes
    created_at: int
    expires_at: Optional[int]
    last_accessed_at: int
    secure: bool
    http_only: bool
    same_site: Optional[str]
    source: str


@dataclass
class LoginRecord:
    """A saved credential as read from the source; ``password`` is still encrypted."""
    origin: str
    username: Optional[str]
    password: Optional[bytes]
    realm: Optional[str]
    form_action_origin: Optional[str]
    times_used: int
    created_at: int
    updated_at: Optional[int]
    source: str
