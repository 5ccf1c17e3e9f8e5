"""Platform detection and per-platform temporary directory lists."""

from __future__ import annotations

import logging
import ntpath
import os
import posixpath
import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Mapping

from tempsweep.settings import Settings

log = logging.getLogger(__name__)

DEFAULT_LOG_FILE = "temp_deleter.log"


class Platform(str, Enum):
    """Host operating system family."""

    WINDOWS = "windows"
    LINUX = "linux"
    MACOS = "macos"
    OTHER = "other"


def current_platform() -> Platform:
    """Resolve the host platform from ``sys.platform``."""
    if sys.platform.startswith("win"):
        return Platform.WINDOWS
    if sys.platform.startswith("linux"):
        return Platform.LINUX
    if sys.platform == "darwin":
        return Platform.MACOS
    return Platform.OTHER


def _windows_dirs(environ: Mapping[str, str]) -> list[str]:
    profile = environ.get("USERPROFILE") or environ.get("HOMEPATH")
    dirs = [
        r"C:\Windows\Temp",
        r"C:\Windows\Panther",
        r"C:\Windows\SoftwareDistribution\Download",
    ]
    if profile:
        dirs.append(ntpath.join(profile, "AppData", "Local", "Temp"))
        dirs.append(ntpath.join(profile, "AppData", "Local", "Microsoft", "Windows", "Explorer"))
    return dirs


def _linux_dirs(environ: Mapping[str, str]) -> list[str]:
    home = environ.get("HOME")
    dirs = ["/tmp", "/var/tmp", "/var/cache", "/var/cache/apt/archives", "/var/log"]
    if home:
        dirs.append(posixpath.join(home, ".cache"))
        dirs.append(posixpath.join(home, ".config"))
    return dirs


def _macos_dirs(environ: Mapping[str, str]) -> list[str]:
    home = environ.get("HOME")
    dirs = ["/tmp", "/var/tmp", "/var/log"]
    if home:
        dirs.append(posixpath.join(home, "Library", "Caches"))
        dirs.append(posixpath.join(home, "Library", "Logs"))
        dirs.append(posixpath.join(home, ".Trash"))
    return dirs


_DIRECTORY_LISTS: dict[Platform, Callable[[Mapping[str, str]], list[str]]] = {
    Platform.WINDOWS: _windows_dirs,
    Platform.LINUX: _linux_dirs,
    Platform.MACOS: _macos_dirs,
}


def temp_directories(platform: Platform, environ: Mapping[str, str] | None = None) -> list[str]:
    """Return the well-known temp and cache directories for *platform*."""
    builder = _DIRECTORY_LISTS.get(platform)
    if builder is None:
        log.warning("No temporary directories known for platform '%s'", platform.value)
        return []
    return builder(os.environ if environ is None else environ)


@dataclass
class Config:
    """Run configuration resolved once at startup."""

    platform: Platform = field(default_factory=current_platform)
    log_file: str = DEFAULT_LOG_FILE
    sas_url: str = ""
    extra_targets: list[str] = field(default_factory=list)
    excluded_targets: list[str] = field(default_factory=list)
    environ: Mapping[str, str] = field(default_factory=lambda: os.environ, repr=False)

    @classmethod
    def load(cls, settings: Settings | None = None, environ: Mapping[str, str] | None = None) -> Config:
        """Build a config from the settings file and environment.

        ``TEMPSWEEP_SAS_URL`` wins over ``AZURE_SAS_URL``, which wins over
        the ``upload.sas_url`` setting.
        """
        settings = settings or Settings()
        env = os.environ if environ is None else environ
        sas_url = (
            env.get("TEMPSWEEP_SAS_URL")
            or env.get("AZURE_SAS_URL")
            or settings.get("upload.sas_url")
            or ""
        )
        return cls(
            platform=current_platform(),
            log_file=settings.get("log.file") or DEFAULT_LOG_FILE,
            sas_url=sas_url,
            extra_targets=settings.paths("targets.extra"),
            excluded_targets=settings.paths("targets.exclude"),
            environ=env,
        )

    def targets(self) -> list[str]:
        """Platform directories minus exclusions, followed by extra targets.

        Order is preserved and duplicates are kept.
        """
        excluded = set(self.excluded_targets)
        dirs = [d for d in temp_directories(self.platform, self.environ) if d not in excluded]
        dirs.extend(self.extra_targets)
        return dirs
