"""
java_manager.py
===============
Discovery and selection of installed Java runtimes.

Capabilities:
  - Pick the probe for the running platform (Windows / macOS / Linux)
  - Scan launcher-bundled runtimes and system installs concurrently
  - Add runtimes only the platform store knows (registry, java_home, alternatives)
  - Merge everything into one deduplicated list, newest first
  - Resolve the best runtime for a Java major version or a Minecraft version

Nothing here raises to the caller: a source that fails contributes no
runtimes, and a total failure is an empty list.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from bundle_scanner import scan_launcher_directories
from finder_config import FinderConfig
from java_runtime import JavaRuntime, runtime_from_path, sort_runtimes
from platform_probes import PlatformProbe, get_probe
from version_key import VersionKey

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────
#  Constants
# ──────────────────────────────────────────────

# Minecraft version → Java major version, as shipped by the launcher.
# Evaluated top-down; first threshold the version reaches wins.
_MC_JAVA_MAP: List[Tuple[str, int]] = [
    ("1.20.5", 21),
    ("1.18", 17),
    ("1.17", 16),
]
_MC_JAVA_DEFAULT = 8


def required_java_for(minecraft_version: str) -> int:
    """
    Return the Java major version a Minecraft version runs on.

    Mapping:
        MC 1.20.5+      → Java 21
        MC 1.18-1.20.4  → Java 17
        MC 1.17.x       → Java 16
        MC < 1.17       → Java 8
    """
    mc = VersionKey.parse(minecraft_version.strip())
    for threshold, java in _MC_JAVA_MAP:
        if mc >= VersionKey.parse(threshold):
            return java
    return _MC_JAVA_DEFAULT


# ──────────────────────────────────────────────
#  JavaManager
# ──────────────────────────────────────────────

class JavaManager:
    """
    Finds the Java runtimes installed on this machine.

    Args:
        config:       Discovery settings (defaults if omitted)
        probe:        Platform probe; detected from the running OS if omitted
        platform_tag: Force a platform when no probe is given
    """

    def __init__(
        self,
        config: Optional[FinderConfig] = None,
        probe: Optional[PlatformProbe] = None,
        platform_tag: Optional[str] = None,
    ) -> None:
        self.config = config or FinderConfig()
        self.probe = probe if probe is not None else get_probe(platform_tag, self.config)
        self.manual_runtimes: List[JavaRuntime] = []

        logger.debug("JavaManager init: probe=%r workers=%d", self.probe, self.config.max_workers)

    # ================================================================
    #  DISCOVERY
    # ================================================================

    def list_available(self) -> List[JavaRuntime]:
        """
        Every runtime found on this machine, newest first.

        Runtimes without a readable version come last.  Returns an empty
        list if the platform is unsupported or discovery fails.
        """
        probe = self.probe
        if probe is None:
            return []

        try:
            bundled, system = self._scan_concurrently(probe)
            extra = self._collect("platform store", probe.extra_runtimes)
            runtimes = merge_runtimes(bundled, system, extra, self.manual_runtimes)
        except Exception:
            logger.warning("Runtime discovery failed", exc_info=True)
            return []

        logger.info("Total detected: %d Java runtimes", len(runtimes))
        return runtimes

    def _scan_concurrently(
        self, probe: PlatformProbe
    ) -> Tuple[List[JavaRuntime], List[JavaRuntime]]:
        """Run the bundled-runtime scan and the system scan side by side."""
        timeout = self.config.scan_timeout
        deadline = time.monotonic() + timeout
        pool = ThreadPoolExecutor(
            max_workers=max(1, min(2, self.config.max_workers)),
            thread_name_prefix="java-scan",
        )
        try:
            bundled_future = pool.submit(
                lambda: scan_launcher_directories(sorted(probe.launcher_directories()))
            )
            system_future = pool.submit(self._scan_system, probe)

            # One deadline for both sources
            bundled = self._await("bundled runtimes", bundled_future, deadline)
            system = self._await("system runtimes", system_future, deadline)
        finally:
            # Don't block on a source that timed out
            pool.shutdown(wait=False, cancel_futures=True)
        return bundled, system

    @staticmethod
    def _scan_system(probe: PlatformProbe) -> List[JavaRuntime]:
        found: List[JavaRuntime] = []
        for location, source in probe.candidate_locations():
            try:
                runtime = runtime_from_path(location, source=source)
            except OSError as exc:
                logger.debug("Skipping %s: %s", location, exc)
                continue
            if runtime is not None:
                logger.info("Detected %s", runtime)
                found.append(runtime)
        return found

    @staticmethod
    def _await(label: str, future, deadline: float) -> List[JavaRuntime]:
        try:
            return list(future.result(timeout=max(0.0, deadline - time.monotonic())))
        except FutureTimeout:
            logger.warning("Scanning %s timed out", label)
        except Exception as exc:
            logger.warning("Scanning %s failed: %s", label, exc, exc_info=True)
        return []

    @staticmethod
    def _collect(label: str, source: Callable[[], Iterable[JavaRuntime]]) -> List[JavaRuntime]:
        try:
            return list(source())
        except Exception as exc:
            logger.warning("Reading %s failed: %s", label, exc, exc_info=True)
            return []

    # ================================================================
    #  RESOLUTION
    # ================================================================

    def find_best_runtime(self, major_version: int) -> Optional[JavaRuntime]:
        """
        Newest runtime whose major version matches.

        Args:
            major_version: e.g. 17

        Returns:
            JavaRuntime, or None if nothing matches
        """
        for runtime in self.list_available():
            if runtime.major_version == major_version:
                return runtime
        logger.info("No Java %d runtime found", major_version)
        return None

    def find_any_runtime(self) -> Optional[JavaRuntime]:
        """Newest runtime of any version, or None."""
        runtimes = self.list_available()
        return runtimes[0] if runtimes else None

    def find_runtime_for_minecraft(self, minecraft_version: str) -> Optional[JavaRuntime]:
        """Best runtime for the Java version a Minecraft release needs."""
        required = required_java_for(minecraft_version)
        logger.info("Minecraft %s needs Java %d", minecraft_version, required)
        return self.find_best_runtime(required)

    # ================================================================
    #  MANUAL RUNTIMES
    # ================================================================

    def add_manual_runtime(self, path: str | Path) -> Optional[JavaRuntime]:
        """
        Register a runtime the user pointed at.

        ``path`` may be the install root, its ``bin`` directory or the
        java executable.  Returns None if no runtime lives there.
        """
        runtime = runtime_from_path(path, source="manual")
        if runtime is None:
            logger.warning("No Java runtime at %s", path)
            return None
        if runtime not in self.manual_runtimes:
            self.manual_runtimes.append(runtime)
        logger.info("Added %s", runtime)
        return runtime


def merge_runtimes(*sources: Iterable[JavaRuntime]) -> List[JavaRuntime]:
    """
    Union of several runtime lists, deduplicated by install root.

    The first source to report a root keeps it; the result is sorted
    newest first, independent of the order runtimes arrived in.
    """
    merged: Dict[str, JavaRuntime] = {}
    for source in sources:
        for runtime in source:
            merged.setdefault(runtime.key, runtime)
    return sort_runtimes(merged.values())
