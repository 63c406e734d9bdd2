"""
Browser profile sources.

One source class per storage family; :func:`source_for` picks the right one
for a detected profile.
"""
from typing import Optional

from brim.records import ImportProfile
from brim.sources.base import ProfileSource, SourceUnavailable
from brim.sources.chromium import ChromiumSource
from brim.sources.gecko import GeckoSource

_SOURCES = {
    "chromium": ChromiumSource,
    "gecko": GeckoSource,
}


def source_for(profile: ImportProfile, temp_dir: Optional[str] = None) -> ProfileSource:
    """Build the source reader for a profile's browser family."""
    return _SOURCES[profile.browser_kind.family](profile, temp_dir)


__all__ = [
    "ProfileSource",
    "SourceUnavailable",
    "ChromiumSource",
    "GeckoSource",
    "source_for",
]
