"""
java_runtime.py
===============
The record describing one discovered Java runtime, plus the helpers that
turn an arbitrary candidate path (install root, ``bin`` directory or the
``java`` executable itself) into such a record.

Two records are the same runtime when they point at the same install
root; that root, normalized, is the dedup key used when merging results
from several sources.
"""

from __future__ import annotations

import logging
import os
import platform
from dataclasses import dataclass
from functools import cached_property, cmp_to_key
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from release_file import read_release_file
from version_key import VersionKey

logger = logging.getLogger(__name__)


def java_executable_name(system: Optional[str] = None) -> str:
    """``java.exe`` on Windows, ``java`` everywhere else."""
    system = system or platform.system()
    return "java.exe" if system == "Windows" else "java"


def runtime_key(path: str | Path) -> str:
    """Dedup key for an install root."""
    return os.path.normcase(os.path.normpath(os.path.abspath(str(path))))


# ──────────────────────────────────────────────
#  JavaRuntime Dataclass
# ──────────────────────────────────────────────

@dataclass(frozen=True, eq=False)
class JavaRuntime:
    """A Java installation found on this machine."""

    path: str                          # Install root (holds bin/)
    version: Optional[str] = None      # e.g. "17.0.9", None if unknown
    is_64bit: bool = True
    bundled: bool = False              # Private copy shipped by a launcher
    vendor: str = "unknown"
    source: str = "system"             # bundled | system | registry | java_home | path | package-db | manual

    # ── Identity ──────────────────────────────

    @cached_property
    def key(self) -> str:
        return runtime_key(self.path)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, JavaRuntime):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    # ── Version ───────────────────────────────

    @cached_property
    def version_key(self) -> Optional[VersionKey]:
        if not self.version:
            return None
        return VersionKey.parse(self.version)

    @property
    def major_version(self) -> Optional[int]:
        """Major version (8, 11, 17, 21) or None when the version is unknown."""
        vk = self.version_key
        return vk.major if vk is not None else None

    # ── Files ─────────────────────────────────

    @property
    def java_binary(self) -> str:
        """Return the full path to the ``java`` executable."""
        return os.path.join(self.path, "bin", java_executable_name())

    # ── Serialization ─────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "version": self.version,
            "major_version": self.major_version,
            "is_64bit": self.is_64bit,
            "bundled": self.bundled,
            "vendor": self.vendor,
            "source": self.source,
            "java_binary": self.java_binary,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "JavaRuntime":
        return cls(
            path=data.get("path", ""),
            version=data.get("version"),
            is_64bit=data.get("is_64bit", True),
            bundled=data.get("bundled", False),
            vendor=data.get("vendor", "unknown"),
            source=data.get("source", "system"),
        )

    def __str__(self) -> str:
        version = self.version or "unknown version"
        bits = "64-bit" if self.is_64bit else "32-bit"
        tag = ", bundled" if self.bundled else ""
        return f"Java {version} ({bits}{tag}) at {self.path}"


# ──────────────────────────────────────────────
#  Path → Runtime
# ──────────────────────────────────────────────

def normalize_runtime_path(target: str | Path) -> Path:
    """
    Walk a candidate path up to the runtime's install root.

    ``<root>/bin/java`` → ``<root>``; ``<root>/bin`` → ``<root>``;
    anything else is returned unchanged.
    """
    target = Path(target)
    try:
        if target.is_file():
            # Probably pointing straight at bin/java
            return target.parent.parent
    except OSError:
        return target
    if target.name.lower() == "bin":
        return target.parent
    return target


def _find_bin_dir(root: Path) -> Optional[Path]:
    for candidate in (root / "bin", root / "jre" / "bin"):
        try:
            if candidate.is_dir():
                return candidate
        except OSError:
            continue
    return None


def runtime_from_path(
    target: str | Path,
    source: str = "system",
    bundled: bool = False,
) -> Optional[JavaRuntime]:
    """
    Build a JavaRuntime for a candidate path.

    Returns None when no ``bin`` directory can be located (not a usable
    install).  A missing release file still yields a runtime, just with
    an unknown version.
    """
    root = normalize_runtime_path(target)
    bin_dir = _find_bin_dir(root)
    if bin_dir is None:
        logger.debug("No bin directory under %s", root)
        return None

    install_root = bin_dir.parent.absolute()
    release = read_release_file(root)
    if release is None:
        return JavaRuntime(
            path=str(install_root),
            version=None,
            is_64bit=True,
            bundled=bundled,
            vendor=guess_vendor(str(install_root)),
            source=source,
        )

    return JavaRuntime(
        path=str(install_root),
        version=release.version,
        is_64bit=release.is_64bit,
        bundled=bundled,
        vendor=release.vendor or guess_vendor(str(install_root)),
        source=source,
    )


def guess_vendor(path: str) -> str:
    """Guess the JDK vendor from the install path."""
    path_lower = path.lower()

    if "adoptium" in path_lower or "temurin" in path_lower:
        return "adoptium"
    if "adoptopen" in path_lower:
        return "adoptopenjdk"
    if "zulu" in path_lower:
        return "azul-zulu"
    if "corretto" in path_lower:
        return "amazon-corretto"
    if "graalvm" in path_lower:
        return "graalvm"
    if "microsoft" in path_lower:
        return "microsoft"
    if "bellsoft" in path_lower:
        return "bellsoft-liberica"
    if "oracle" in path_lower:
        return "oracle"
    if "openjdk" in path_lower:
        return "openjdk"
    if ".sdkman" in path_lower:
        return "sdkman"
    return "unknown"


# ──────────────────────────────────────────────
#  Ordering
# ──────────────────────────────────────────────

def compare_runtimes(a: JavaRuntime, b: JavaRuntime) -> int:
    """
    Newest first; unknown versions after every known one.

    Ties fall back to the install root so the order never depends on
    which source reported a runtime first.
    """
    va, vb = a.version_key, b.version_key
    if va is not None and vb is not None:
        result = vb.compare(va)
        if result != 0:
            return result
    elif va is not None:
        return -1
    elif vb is not None:
        return 1
    return (a.key > b.key) - (a.key < b.key)


def sort_runtimes(runtimes: Iterable[JavaRuntime]) -> List[JavaRuntime]:
    return sorted(runtimes, key=cmp_to_key(compare_runtimes))
