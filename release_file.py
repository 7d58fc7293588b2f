"""
release_file.py
===============
Reader for the ``release`` descriptor shipped at the root of JDK / JRE
installations::

    IMPLEMENTOR="Eclipse Adoptium"
    JAVA_VERSION="17.0.9"
    OS_ARCH="x86_64"
    
Only the version and the architecture matter for ranking runtimes; a
missing or unreadable file means "version unknown", never "no runtime".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)

RELEASE_FILE_NAME = "release"

_ARCH_64 = frozenset({
    "x86_64", "amd64", "x64", "aarch64", "arm64",
    "ppc64", "ppc64le", "s390x", "sparcv9", "riscv64",
})


@dataclass(frozen=True)
class ReleaseInfo:
    """Fields read from a ``release`` file."""

    version: str
    arch: Optional[str] = None
    vendor: Optional[str] = None

    @property
    def is_64bit(self) -> bool:
        if not self.arch:
            return True
        arch = self.arch.lower()
        return arch in _ARCH_64 or "64" in arch


def parse_release_text(text: str) -> Dict[str, str]:
    """Parse ``KEY=value`` lines; quotes around values are stripped."""
    values: Dict[str, str] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1]
        values[key.strip()] = value
    return values


def find_release_file(root: str | Path) -> Optional[Path]:
    """Return ``<root>/release`` or ``<root>/jre/release``, whichever exists."""
    root = Path(root)
    for candidate in (root / RELEASE_FILE_NAME, root / "jre" / RELEASE_FILE_NAME):
        try:
            if candidate.is_file():
                return candidate
        except OSError:
            continue
    return None


def read_release_file(root: str | Path) -> Optional[ReleaseInfo]:
    """
    Read the release descriptor of a runtime.

    Args:
        root: Installation root (the directory holding ``bin/``)

    Returns:
        ReleaseInfo, or None if the file is missing, unreadable, or has
        no JAVA_VERSION entry.
    """
    release_path = find_release_file(root)
    if release_path is None:
        logger.debug("No release file under %s", root)
        return None

    try:
        text = release_path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        logger.debug("Could not read %s: %s", release_path, exc)
        return None

    values = parse_release_text(text)
    version = values.get("JAVA_VERSION", "").strip()
    if not version:
        logger.debug("No JAVA_VERSION in %s", release_path)
        return None

    return ReleaseInfo(
        version=version,
        arch=values.get("OS_ARCH") or None,
        vendor=values.get("IMPLEMENTOR") or None,
    )
