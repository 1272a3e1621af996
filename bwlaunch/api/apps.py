#!/usr/bin/env python3
"""
📱 Installed application discovery from freedesktop ``.desktop`` entries.

Scans ``$XDG_DATA_HOME/applications`` and every ``$XDG_DATA_DIRS/applications``
directory. The desktop file id (``org.gnome.Calculator``) acts as the package
name and the executable as the activity name. Labels and icons are read on
demand so one unreadable file only loses that entry.
"""

from __future__ import annotations

import configparser
import logging
import os
import shlex
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

logger = logging.getLogger("app_discovery")

DESKTOP_SECTION = "Desktop Entry"
DEFAULT_ACTIVITY = "default"


def xdg_application_dirs() -> List[Path]:
    """Application directories in lookup order (user data first)."""
    data_home = os.getenv("XDG_DATA_HOME") or os.path.expanduser("~/.local/share")
    data_dirs = os.getenv("XDG_DATA_DIRS") or "/usr/local/share:/usr/share"
    dirs = [Path(data_home)] + [Path(d) for d in data_dirs.split(":") if d]
    return [d / "applications" for d in dirs]


def desktop_file_id(path: Path, root: Path) -> str:
    """``kde/org.kde.foo.desktop`` -> ``kde-org.kde.foo``."""
    relative = path.relative_to(root).with_suffix("")
    return "-".join(relative.parts)


def _read_entry(path: Path) -> configparser.SectionProxy:
    parser = configparser.ConfigParser(interpolation=None, strict=False)
    parser.optionxform = str  # keys are case-sensitive
    with open(path, "r", encoding="utf-8") as handle:
        parser.read_file(handle)
    return parser[DESKTOP_SECTION]


def _executable_name(exec_line: Optional[str]) -> str:
    if not exec_line:
        return DEFAULT_ACTIVITY
    try:
        parts = shlex.split(exec_line)
    except ValueError:
        parts = exec_line.split()
    # Skip "env VAR=value" wrappers
    for part in parts:
        if part == "env" or "=" in part:
            continue
        return os.path.basename(part)
    return DEFAULT_ACTIVITY


class DesktopApp:
    """One launchable ``.desktop`` entry."""

    def __init__(self, path: Path, package_name: str, activity_name: str):
        self.path = path
        self.package_name = package_name
        self.activity_name = activity_name

    def load_label(self) -> str:
        entry = _read_entry(self.path)
        label = entry.get("Name", "").strip()
        if not label:
            raise ValueError(f"{self.path} has no Name")
        return label

    def load_icon(self) -> Optional[str]:
        """Icon theme name or absolute path, if declared."""
        return _read_entry(self.path).get("Icon") or None

    def __repr__(self) -> str:
        return f"DesktopApp({self.package_name!r}, {self.activity_name!r})"


def _is_launchable(entry: configparser.SectionProxy) -> bool:
    if entry.get("Type", "Application") != "Application":
        return False
    for flag in ("NoDisplay", "Hidden"):
        if entry.get(flag, "false").strip().lower() == "true":
            return False
    return True


class DesktopEntryEnumerator:
    """Lists launchable apps; entries in earlier directories shadow later ones."""

    def __init__(self, directories: Optional[Sequence[Path]] = None):
        self._directories = list(directories) if directories is not None else None

    @property
    def directories(self) -> List[Path]:
        return self._directories if self._directories is not None else xdg_application_dirs()

    def enumerate_launchable_apps(self) -> Iterator[DesktopApp]:
        seen: set[str] = set()
        for root in self.directories:
            if not root.is_dir():
                continue
            for path in sorted(root.rglob("*.desktop")):
                app_id = desktop_file_id(path, root)
                if app_id in seen:
                    continue
                seen.add(app_id)
                try:
                    entry = _read_entry(path)
                except (OSError, UnicodeDecodeError, configparser.Error, KeyError) as exc:
                    # Hand it to the catalog anyway; label loading fails there and it is skipped
                    logger.debug("Unreadable desktop entry %s: %s", path, exc)
                    yield DesktopApp(path, app_id, DEFAULT_ACTIVITY)
                    continue
                if not _is_launchable(entry):
                    continue
                yield DesktopApp(path, app_id, _executable_name(entry.get("Exec")))


__all__ = ["DesktopApp", "DesktopEntryEnumerator", "desktop_file_id", "xdg_application_dirs"]
