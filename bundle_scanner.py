"""
bundle_scanner.py
=================
Scans the private runtimes the Minecraft Launcher downloads for itself.

Layouts found under ``<launcher>/runtime/``:

  Legacy (flat, bitness in the name)::

      runtime/jre-x64/{bin,release}
      runtime/jre-x32/{bin,release}

  Current (component / platform / component)::

      runtime/java-runtime-gamma/windows-x64/java-runtime-gamma/{bin,release}
      runtime/java-runtime-gamma/mac-os-arm64/java-runtime-gamma/jre.bundle/Contents/Home

Every runtime found here is flagged ``bundled``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional

from java_runtime import JavaRuntime
from release_file import read_release_file

logger = logging.getLogger(__name__)

RUNTIME_DIR_NAME = "runtime"
_MAC_BUNDLE_HOME = Path("jre.bundle") / "Contents" / "Home"


def scan_launcher_directories(launcher_dirs: Iterable[str | Path]) -> List[JavaRuntime]:
    """
    Find launcher-bundled runtimes.

    Args:
        launcher_dirs: Launcher install / data directories

    Returns:
        Runtimes found, in directory order.  Problems with one launcher
        directory or one entry never affect the others.
    """
    found: List[JavaRuntime] = []

    for launcher in launcher_dirs:
        runtimes = Path(launcher) / RUNTIME_DIR_NAME
        try:
            entries = sorted(runtimes.iterdir()) if runtimes.is_dir() else []
        except OSError as exc:
            logger.debug("Cannot list %s: %s", runtimes, exc)
            continue

        for potential in entries:
            try:
                if not potential.is_dir():
                    continue
                runtime = scan_potential_runtime(potential)
            except OSError as exc:
                logger.debug("Skipping %s: %s", potential, exc)
                continue
            if runtime is not None:
                logger.info("Found bundled %s", runtime)
                found.append(runtime)

    return found


def scan_potential_runtime(potential: Path) -> Optional[JavaRuntime]:
    """Turn one ``runtime/<name>`` entry into a runtime, or None."""
    name = potential.name

    if name.startswith("jre-x"):
        release = read_release_file(potential)
        return JavaRuntime(
            path=str(potential.absolute()),
            version=release.version if release else None,
            is_64bit=name == "jre-x64",
            bundled=True,
            vendor=(release.vendor if release and release.vendor else "mojang"),
            source="bundled",
        )

    platforms = [child for child in potential.iterdir() if child.is_dir()]
    if len(platforms) != 1:
        logger.debug(
            "Ambiguous runtime layout in %s (%d platform directories)",
            potential, len(platforms),
        )
        return None

    java_dir = platforms[0] / name
    bundle_home = java_dir / _MAC_BUNDLE_HOME
    if bundle_home.is_dir():
        java_dir = bundle_home

    release = read_release_file(java_dir)
    if release is None:
        logger.debug("No readable release file in %s", java_dir)
        return None

    return JavaRuntime(
        path=str(java_dir.absolute()),
        version=release.version,
        is_64bit=release.is_64bit,
        bundled=True,
        vendor=release.vendor or "mojang",
        source="bundled",
    )
