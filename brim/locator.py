"""
Browser profile discovery.

Finds Chromium-family and Firefox profiles from filesystem conventions and
manifest files. Detection never fails as a whole: a browser or profile that
cannot be read is simply left out.
"""
import configparser
import json
import logging
import os
import platform
import re
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Union

from brim.records import (
    BOOKMARKS, COOKIES, HISTORY, LOGINS, MASTER_KEY_FILE, PLACES_DB,
    BrowserKind, ImportProfile,
)

logger = logging.getLogger(__name__)

_CHROMIUM_PROFILE = re.compile(r"^Profile \d+$")
_GECKO_PROFILE_SECTION = re.compile(r"^Profile\d+$", re.IGNORECASE)

# Relative install roots per OS. Windows roots are relative to
# %LOCALAPPDATA% (Chromium family) or %APPDATA% (Firefox).
_ROOTS = {
    "Linux": {
        BrowserKind.CHROME: ".config/google-chrome",
        BrowserKind.CHROMIUM: ".config/chromium",
        BrowserKind.EDGE: ".config/microsoft-edge",
        BrowserKind.BRAVE: ".config/BraveSoftware/Brave-Browser",
        BrowserKind.FIREFOX: ".mozilla/firefox",
    },
    "Darwin": {
        BrowserKind.CHROME: "Library/Application Support/Google/Chrome",
        BrowserKind.CHROMIUM: "Library/Application Support/Chromium",
        BrowserKind.EDGE: "Library/Application Support/Microsoft Edge",
        BrowserKind.BRAVE: "Library/Application Support/BraveSoftware/Brave-Browser",
        BrowserKind.FIREFOX: "Library/Application Support/Firefox",
    },
    "Windows": {
        BrowserKind.CHROME: "Google/Chrome/User Data",
        BrowserKind.CHROMIUM: "Chromium/User Data",
        BrowserKind.EDGE: "Microsoft/Edge/User Data",
        BrowserKind.BRAVE: "BraveSoftware/Brave-Browser/User Data",
        BrowserKind.FIREFOX: "Mozilla/Firefox",
    },
}


def install_roots(home: Optional[Path] = None, system: Optional[str] = None,
                  overrides: Optional[Mapping[str, Union[str, Path]]] = None) -> Dict[BrowserKind, Path]:
    """
    Resolve the install root of every known browser kind.

    Args:
        home: User home directory (default: current user's)
        system: ``platform.system()`` value (default: this machine's)
        overrides: Explicit roots keyed by kind name, replacing the defaults

    Returns:
        Mapping of kind to root path (roots may not exist)
    """
    home = Path(home) if home else Path.home()
    system = system or platform.system()
    relative = _ROOTS.get(system, {})

    roots: Dict[BrowserKind, Path] = {}
    for kind, rel in relative.items():
        if system == "Windows":
            if kind.family == "gecko":
                base = os.environ.get("APPDATA") or str(home / "AppData" / "Roaming")
            else:
                base = os.environ.get("LOCALAPPDATA") or str(home / "AppData" / "Local")
            roots[kind] = Path(base) / rel
        else:
            roots[kind] = home / rel

    for name, path in (overrides or {}).items():
        try:
            roots[BrowserKind(name)] = Path(path)
        except ValueError:
            logger.warning(f"Ignoring root override for unknown browser '{name}'")
    return roots


def _existing(paths: Mapping[str, Path]) -> Dict[str, Path]:
    return {name: path for name, path in paths.items() if path.is_file()}


def _chromium_profile_names(root: Path) -> Dict[str, str]:
    """Friendly names from Local State (profile.info_cache.<dir>.name)."""
    try:
        with open(root / "Local State", "r", encoding="utf-8") as f:
            state = json.load(f)
        cache = state["profile"]["info_cache"]
        return {d: str(info["name"]) for d, info in cache.items() if info.get("name")}
    except (OSError, ValueError, KeyError, TypeError, AttributeError):
        return {}


def find_chromium_profiles(kind: BrowserKind, root: Path) -> List[ImportProfile]:
    """Default plus every 'Profile N' directory under a Chromium-family root."""
    if not root.is_dir():
        return []

    dirs = []
    if (root / "Default").is_dir():
        dirs.append("Default")
    dirs.extend(sorted(
        (d.name for d in root.iterdir() if d.is_dir() and _CHROMIUM_PROFILE.match(d.name)),
        key=lambda name: int(name.split()[1]),
    ))

    friendly = _chromium_profile_names(root)
    profiles = []
    for name in dirs:
        profile_dir = root / name
        cookies = profile_dir / "Network" / "Cookies"
        if not cookies.is_file():
            cookies = profile_dir / "Cookies"
        paths = _existing({
            HISTORY: profile_dir / "History",
            BOOKMARKS: profile_dir / "Bookmarks",
            COOKIES: cookies,
            LOGINS: profile_dir / "Login Data",
            MASTER_KEY_FILE: root / "Local State",
        })
        label = friendly.get(name, name)
        profiles.append(ImportProfile(
            id=f"{kind.value}:{name}",
            browser_kind=kind,
            display_name=f"{kind.label} - {label}",
            paths=paths,
            root=root,
            profile_dir=profile_dir,
        ))
    return profiles


def _gecko_profile(root: Path, profile_dir: Path, name: Optional[str] = None,
                   is_default: bool = False) -> ImportProfile:
    label = name or profile_dir.name
    if is_default:
        label = f"{label} (Default)"
    return ImportProfile(
        id=f"{BrowserKind.FIREFOX.value}:{profile_dir.name}",
        browser_kind=BrowserKind.FIREFOX,
        display_name=f"{BrowserKind.FIREFOX.label} - {label}",
        paths=_existing({
            PLACES_DB: profile_dir / "places.sqlite",
            COOKIES: profile_dir / "cookies.sqlite",
            LOGINS: profile_dir / "logins.json",
        }),
        root=root,
        profile_dir=profile_dir,
    )


def parse_profiles_ini(root: Path) -> List[ImportProfile]:
    """Profiles declared in ``<root>/profiles.ini``."""
    ini_path = root / "profiles.ini"
    if not ini_path.is_file():
        return []

    parser = configparser.ConfigParser(interpolation=None, strict=False)
    parser.optionxform = str  # keys are case-sensitive (Path, IsRelative, ...)
    try:
        parser.read(ini_path, encoding="utf-8")
    except (configparser.Error, UnicodeDecodeError) as e:
        logger.debug(f"Cannot parse {ini_path}: {e}")
        return []

    profiles = []
    for section in parser.sections():
        if not _GECKO_PROFILE_SECTION.match(section):
            continue
        data = parser[section]
        raw_path = data.get("Path")
        if not raw_path:
            continue
        profile_dir = root / raw_path if data.get("IsRelative", "1") == "1" else Path(raw_path)
        if not profile_dir.is_dir():
            logger.debug(f"Skipping missing Firefox profile directory {profile_dir}")
            continue
        profiles.append(_gecko_profile(
            root, profile_dir, data.get("Name"), data.get("Default") == "1",
        ))
    return profiles


def scan_default_dirs(root: Path) -> List[ImportProfile]:
    """Fallback: ``*.default*`` directories in the root or its Profiles/ folder."""
    profiles = []
    for base in (root, root / "Profiles"):
        if not base.is_dir():
            continue
        for profile_dir in sorted(base.glob("*.default*")):
            if profile_dir.is_dir():
                profiles.append(_gecko_profile(root, profile_dir))
    return profiles


def find_gecko_profiles(root: Path) -> List[ImportProfile]:
    """Firefox profiles from profiles.ini, or by directory convention."""
    if not root.is_dir():
        return []
    return parse_profiles_ini(root) or scan_default_dirs(root)


def detect_profiles(home: Optional[Path] = None, system: Optional[str] = None,
                    roots: Optional[Mapping[str, Union[str, Path]]] = None) -> List[ImportProfile]:
    """
    Find every importable browser profile on this machine.

    Never raises; unreadable browsers and profiles are omitted.

    Args:
        home: User home directory (default: current user's)
        system: OS name as returned by ``platform.system()``
        roots: Install-root overrides keyed by browser kind name

    Returns:
        Detected profiles, grouped by browser
    """
    profiles: List[ImportProfile] = []
    for kind, root in install_roots(home, system, roots).items():
        try:
            if kind.family == "gecko":
                found = find_gecko_profiles(root)
            else:
                found = find_chromium_profiles(kind, root)
        except OSError as e:
            logger.debug(f"Skipping {kind.label} at {root}: {e}")
            continue
        if found:
            logger.debug(f"Found {len(found)} {kind.label} profile(s) in {root}")
        profiles.extend(found)
    return profiles
