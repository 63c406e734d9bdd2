"""
Browser profile migration: detect, preview, run.

The engine ties the locator, the per-family sources, decryption and the
canonical store together. Categories are processed one at a time and a
failure in one is recorded without stopping the others; the only error
raised to callers is an unknown profile id.
"""
import logging
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Union

from brim.config import get_config
from brim.crypto import decrypt_value, unwrap_master_key
from brim.db import Database, get_db
from brim.locator import detect_profiles
from brim.records import (
    MASTER_KEY_FILE, Category, ImportPreview, ImportProfile, ImportRunOptions, ImportRunResult,
)
from brim.sources import ProfileSource, SourceUnavailable, source_for
from brim.timestamps import now_ms

logger = logging.getLogger(__name__)


class ProfileNotFoundError(LookupError):
    """No detected profile has the requested id."""

    def __init__(self, profile_id: str, available: Optional[List[str]] = None):
        self.profile_id = profile_id
        self.available = available or []
        message = f"Profile '{profile_id}' not found"
        if self.available:
            message += f". Available profiles: {', '.join(self.available)}"
        super().__init__(message)


class ImportEngine:
    """
    One-shot import of another browser's data into the canonical store.

    Example:
        >>> engine = ImportEngine(get_db())
        >>> profiles = engine.detect_profiles()
        >>> engine.preview(profiles[0].id).counts
        {'history': 1520, 'bookmarks': 48}
        >>> engine.run(profiles[0].id, ImportRunOptions(cookies=True))
    """

    def __init__(self, db: Optional[Database] = None, home: Optional[Path] = None,
                 system: Optional[str] = None,
                 roots: Optional[Mapping[str, Union[str, Path]]] = None,
                 temp_dir: Optional[str] = None):
        config = get_config()
        self.db = db or get_db()
        self.home = home
        self.system = system
        self.roots = dict(config.browser_roots)
        self.roots.update(roots or {})
        self.temp_dir = temp_dir or config.get_temp_dir()

    def detect_profiles(self) -> List[ImportProfile]:
        """All importable profiles on this machine. Never raises."""
        return detect_profiles(self.home, self.system, self.roots)

    def find_profile(self, profile_id: str) -> ImportProfile:
        profiles = self.detect_profiles()
        for profile in profiles:
            if profile.id == profile_id:
                return profile
        raise ProfileNotFoundError(profile_id, [p.id for p in profiles])

    def preview(self, profile_id: str) -> ImportPreview:
        """
        Count what each category of a profile holds.

        Categories without a source file are left out; categories whose file
        cannot be read are left out and explained in ``notes``.

        Raises:
            ProfileNotFoundError: if no detected profile has this id
        """
        profile = self.find_profile(profile_id)
        source = source_for(profile, self.temp_dir)
        preview = ImportPreview(profile_id=profile.id, browser_kind=profile.browser_kind)

        for category in Category:
            try:
                preview.counts[category.value] = source.count(category)
            except SourceUnavailable:
                continue
            except Exception as e:
                logger.warning(f"{category.label} preview failed for {profile.id}: {e}")
                preview.notes.append(f"{category.label} preview failed: {e}")

        return preview

    def run(self, profile_id: str, options: Optional[ImportRunOptions] = None) -> ImportRunResult:
        """
        Import the selected categories of a profile.

        Each category is written in its own transaction. A category that
        fails is rolled back and reported in ``errors``; the others still run.

        Raises:
            ProfileNotFoundError: if no detected profile has this id
        """
        options = options or ImportRunOptions(limit=get_config().get_limit())
        profile = self.find_profile(profile_id)
        source = source_for(profile, self.temp_dir)
        result = ImportRunResult(profile_id=profile.id, browser_kind=profile.browser_kind)
        started_at = now_ms()

        key = None
        if options.cookies or options.passwords:
            key = unwrap_master_key(profile.path(MASTER_KEY_FILE))
            if key is None and profile.browser_kind.family == "chromium":
                logger.info(f"No master key for {profile.id}; encrypted values will be empty")

        for category in Category:
            if not options.selected(category):
                continue
            try:
                result.imported[category.value] = self._import_category(
                    source, category, options.row_limit, key
                )
            except SourceUnavailable as e:
                logger.debug(str(e))
            except Exception as e:
                logger.error(f"{category.label} import failed for {profile.id}: {e}")
                result.errors.append(f"{category.label} import failed: {e}")

        logger.info(
            f"Imported from {profile.id}: "
            + ", ".join(f"{k}={v}" for k, v in result.imported.items())
            + (f" ({len(result.errors)} error(s))" if result.errors else "")
        )
        self._log_run(result, started_at)
        return result

    def _import_category(self, source: ProfileSource, category: Category,
                         limit: Optional[int], key: Optional[bytes]) -> int:
        records = source.read(category, limit)

        if category is Category.HISTORY:
            return self.db.import_history(records)
        if category is Category.BOOKMARKS:
            return self.db.import_bookmarks(records)
        if category is Category.COOKIES:
            return self.db.import_cookies(
                (record, self._cookie_value(record.encrypted_value, record.value, key))
                for record in records
            )
        return self.db.import_logins(
            (record, decrypt_value(record.password, key) if record.password is not None else None)
            for record in records
        )

    @staticmethod
    def _cookie_value(encrypted: bytes, plain: bytes, key: Optional[bytes]) -> bytes:
        """Decrypted value, else the plaintext column, else empty."""
        if encrypted:
            value = decrypt_value(encrypted, key)
            if value is not None:
                return value
        return plain or b""

    def _log_run(self, result: ImportRunResult, started_at: int) -> None:
        try:
            self.db.log_import(
                result.profile_id, result.browser_kind.value, started_at,
                result.imported, result.errors,
            )
        except Exception as e:
            # Category data is already committed at this point
            logger.warning(f"Could not record import log for {result.profile_id}: {e}")


def preview_profile(profile_id: str, db: Optional[Database] = None) -> ImportPreview:
    """Preview a profile with the default engine."""
    return ImportEngine(db).preview(profile_id)


def run_import(profile_id: str, options: Optional[ImportRunOptions] = None,
               db: Optional[Database] = None) -> ImportRunResult:
    """Run an import with the default engine."""
    return ImportEngine(db).run(profile_id, options)


def summarize(result: ImportRunResult) -> Dict[str, int]:
    """Totals for display: rows per category plus the overall sum."""
    totals = dict(result.imported)
    totals["total"] = sum(result.imported.values())
    return totals
