"""
platform_probes.py
==================
Per-platform knowledge of where Java runtimes live.

Every probe answers the same three questions:

  launcher_directories()  – where the Minecraft Launcher keeps its own runtimes
  candidate_java_roots()  – parent directories of system JDK / JRE installs
  extra_runtimes()        – runtimes only a platform store knows about
                            (Windows registry, macOS java_home, Linux alternatives)

Cross-platform notes:
  Windows  – %ProgramFiles%\\Java, Adoptium, Zulu, registry JavaSoft keys
  macOS    – /Library/Java/JavaVirtualMachines, /usr/libexec/java_home -X
  Linux    – /usr/lib/jvm, SDKMAN, update-alternatives
"""

from __future__ import annotations

import logging
import os
import platform
import plistlib
import shutil
import subprocess
import threading
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Set, Tuple

from drive_guard import DriveGuard
from finder_config import FinderConfig
from java_runtime import JavaRuntime, java_executable_name, runtime_from_path

try:
    import winreg
except ImportError:  # not on Windows
    winreg = None

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────
#  Platform Detection
# ──────────────────────────────────────────────

class Platform:
    """Supported host platforms."""

    WINDOWS = "windows"
    MACOS = "macos"
    LINUX = "linux"

    _SYSTEM_MAP: Dict[str, str] = {
        "Windows": WINDOWS,
        "Darwin": MACOS,
        "Linux": LINUX,
    }

    @staticmethod
    def detect(system: Optional[str] = None) -> Optional[str]:
        """Map ``platform.system()`` to a platform tag, None if unsupported."""
        return Platform._SYSTEM_MAP.get(system or platform.system())


_64BIT_MACHINES = frozenset({"amd64", "x86_64", "arm64", "aarch64", "ia64"})


# ──────────────────────────────────────────────
#  Windows Registry
# ──────────────────────────────────────────────

class RegistryReader:
    """
    Read-only access to the Windows registry.

    Missing keys and values come back as None / empty lists; any other
    OSError from winreg is left to the caller.
    """

    HKLM = "HKEY_LOCAL_MACHINE"
    HKCU = "HKEY_CURRENT_USER"

    def __init__(self) -> None:
        if winreg is None:
            raise OSError("Windows registry is not available on this platform")

    @staticmethod
    def _hive(name: str):
        return getattr(winreg, name)

    def read_string(self, hive: str, key_path: str, value_name: str) -> Optional[str]:
        try:
            with winreg.OpenKey(self._hive(hive), key_path, 0, winreg.KEY_READ) as key:
                value, _ = winreg.QueryValueEx(key, value_name)
        except FileNotFoundError:
            return None
        return str(value) if value is not None else None

    def sub_keys(self, hive: str, key_path: str) -> List[str]:
        try:
            with winreg.OpenKey(self._hive(hive), key_path, 0, winreg.KEY_READ) as key:
                count = winreg.QueryInfoKey(key)[0]
                return [winreg.EnumKey(key, i) for i in range(count)]
        except FileNotFoundError:
            return []


class RegistryCache:
    """
    Registry lookups memoized per base path.

    Shared by concurrent lookups; writes are idempotent, so one lock
    around the dict is enough.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: Dict[str, List[JavaRuntime]] = {}

    def get(self, base_path: str) -> Optional[List[JavaRuntime]]:
        with self._lock:
            entries = self._entries.get(base_path)
            return list(entries) if entries is not None else None

    def put(self, base_path: str, runtimes: List[JavaRuntime]) -> None:
        with self._lock:
            self._entries[base_path] = list(runtimes)

    def get_or_compute(
        self, base_path: str, compute: Callable[[], List[JavaRuntime]]
    ) -> List[JavaRuntime]:
        cached = self.get(base_path)
        if cached is not None:
            return cached
        runtimes = compute()
        self.put(base_path, runtimes)
        return list(runtimes)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


# ──────────────────────────────────────────────
#  Probe Interface
# ──────────────────────────────────────────────

class PlatformProbe(ABC):
    """
    Where to look for Java on one platform.

    Args:
        config:  Discovery settings
        environ: Environment variables (defaults to os.environ)
        guard:   Slow-mount guard (one is created from config if omitted)
    """

    platform_tag: str = ""
    system_name: str = ""

    def __init__(
        self,
        config: Optional[FinderConfig] = None,
        environ: Optional[Mapping[str, str]] = None,
        guard: Optional[DriveGuard] = None,
    ) -> None:
        self.config = config or FinderConfig()
        self.environ = environ if environ is not None else os.environ
        self.guard = guard or DriveGuard(allow_slow=self.config.scan_slow_drives)

    # ── Interface ─────────────────────────────

    @abstractmethod
    def launcher_directories(self) -> Set[Path]:
        """Existing launcher directories; never raises."""

    @abstractmethod
    def candidate_java_roots(self) -> List[Path]:
        """Parent directories of system Java installs."""

    def extra_runtimes(self) -> List[JavaRuntime]:
        """Runtimes known only to a platform store."""
        return []

    # ── Shared helpers ────────────────────────

    @property
    def java_executable(self) -> str:
        return java_executable_name(self.system_name)

    def home(self) -> Path:
        home = self.environ.get("HOME") or self.environ.get("USERPROFILE")
        return Path(home) if home else Path.home()

    def _env_path(self, name: str, *parts: str) -> Optional[Path]:
        base = self.environ.get(name)
        if not base:
            return None
        return Path(base, *parts)

    def _existing_dirs(self, paths: List[Optional[Path]]) -> Set[Path]:
        found: Set[Path] = set()
        for path in paths:
            if path is None:
                continue
            try:
                if path.is_dir():
                    logger.debug("Found launcher directory: %s", path)
                    found.add(path)
                else:
                    logger.debug("Launcher directory not found: %s", path)
            except OSError as exc:
                logger.debug("Cannot access %s: %s", path, exc)
        return found

    def _configured_launcher_dirs(self) -> List[Optional[Path]]:
        return [Path(p).expanduser() for p in self.config.extra_launcher_dirs]

    def _install_dir_for(self, child: Path) -> Optional[Path]:
        """Child of a candidate root that holds a java binary, or None."""
        if (child / "bin" / self.java_executable).is_file():
            return child
        # macOS bundles: Foo.jdk/Contents/Home/bin/java
        home = child / "Contents" / "Home"
        if (home / "bin" / self.java_executable).is_file():
            return home
        return None

    def scan_java_root(self, root: Path) -> List[Path]:
        """
        Shallow scan: direct children of ``root`` holding a java binary.

        A root that is itself a runtime is returned alone.
        """
        if self.guard.should_skip(root):
            logger.debug("Skipping %s (slow mount)", root)
            return []
        try:
            if not root.is_dir():
                logger.debug("Java root not found: %s", root)
                return []
            own = self._install_dir_for(root)
            if own is not None:
                logger.debug("Found Java installation: %s", own)
                return [own]
            children = sorted(root.iterdir())
        except OSError as exc:
            logger.debug("Cannot list %s: %s", root, exc)
            return []

        installs: List[Path] = []
        for child in children:
            try:
                if not child.is_dir():
                    continue
                install = self._install_dir_for(child)
            except OSError as exc:
                logger.debug("Skipping %s: %s", child, exc)
                continue
            if install is not None:
                logger.debug("Found Java installation: %s", install)
                installs.append(install)
        return installs

    def direct_candidates(self) -> List[Tuple[Path, str]]:
        """JAVA_HOME, java on PATH and configured paths."""
        candidates: List[Tuple[Path, str]] = []

        java_home = self.environ.get("JAVA_HOME")
        if java_home:
            candidates.append((Path(os.path.realpath(java_home)), "java_home"))

        java_in_path = shutil.which(self.java_executable, path=self.environ.get("PATH", ""))
        if java_in_path:
            candidates.append((Path(os.path.realpath(java_in_path)), "path"))

        for extra in self.config.extra_search_paths:
            candidates.append((Path(extra).expanduser(), "manual"))

        return candidates

    def candidate_locations(self) -> List[Tuple[Path, str]]:
        """Every path worth turning into a runtime, with its source label."""
        locations: List[Tuple[Path, str]] = []
        for root in self.candidate_java_roots():
            locations.extend((install, "system") for install in self.scan_java_root(root))
        for path, source in self.direct_candidates():
            if self.guard.should_skip(path):
                logger.debug("Skipping %s (slow mount)", path)
                continue
            locations.append((path, source))
        return locations

    def _run(self, args: List[str]) -> Optional[subprocess.CompletedProcess]:
        try:
            return subprocess.run(
                args,
                capture_output=True,
                timeout=self.config.subprocess_timeout,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            logger.debug("%s failed: %s", args[0], exc)
            return None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.platform_tag}>"


# ──────────────────────────────────────────────
#  Windows
# ──────────────────────────────────────────────

class WindowsProbe(PlatformProbe):
    """Program Files, %APPDATA% and the JavaSoft registry keys."""

    platform_tag = Platform.WINDOWS
    system_name = "Windows"

    LAUNCHER_REGISTRY_KEY = r"SOFTWARE\Mojang\InstalledProducts\Minecraft Launcher"
    STORE_PACKAGE_DIR = r"Packages\Microsoft.4297127D64EC6_8wekyb3d8bbwe\LocalCache\Local"

    JAVA_REGISTRY_PATHS: Tuple[str, ...] = (
        r"SOFTWARE\JavaSoft\Java Runtime Environment",
        r"SOFTWARE\JavaSoft\Java Development Kit",
        r"SOFTWARE\JavaSoft\JDK",
        r"SOFTWARE\Wow6432Node\JavaSoft\Java Runtime Environment",
    )

    VENDOR_DIRS: Tuple[str, ...] = (
        "Java",
        "Eclipse Adoptium",
        "AdoptOpenJDK",
        "Zulu",
        "Microsoft",
        "BellSoft",
        "Amazon Corretto",
    )

    def __init__(
        self,
        config: Optional[FinderConfig] = None,
        environ: Optional[Mapping[str, str]] = None,
        guard: Optional[DriveGuard] = None,
        registry: Optional[RegistryReader] = None,
        cache: Optional[RegistryCache] = None,
    ) -> None:
        super().__init__(config, environ, guard)
        self._registry = registry
        self.cache = cache or RegistryCache()

    @property
    def registry(self) -> Optional[RegistryReader]:
        if self._registry is None and winreg is not None:
            self._registry = RegistryReader()
        return self._registry

    def is_64bit_os(self) -> bool:
        machine = (
            self.environ.get("PROCESSOR_ARCHITEW6432")
            or self.environ.get("PROCESSOR_ARCHITECTURE")
            or platform.machine()
        )
        return machine.lower() in _64BIT_MACHINES

    def private_java_dir(self) -> Optional[Path]:
        """%APPDATA%\\<app>\\java – runtimes this application downloaded."""
        return self._env_path("APPDATA", self.config.app_dir_name, "java")

    # ── Launcher directories ──────────────────

    def launcher_directories(self) -> Set[Path]:
        candidates: List[Optional[Path]] = [self.private_java_dir()]

        location = self._launcher_install_location()
        if location:
            candidates.append(Path(location))

        # Mojang likes to move the runtime directory around
        program_files = "ProgramFiles(x86)" if self.is_64bit_os() else "ProgramFiles"
        candidates.append(self._env_path(program_files, "Minecraft"))
        candidates.append(self._env_path(program_files, "Minecraft Launcher"))
        candidates.append(self._env_path("LOCALAPPDATA", self.STORE_PACKAGE_DIR))
        candidates.extend(self._configured_launcher_dirs())

        return self._existing_dirs(candidates)

    def _launcher_install_location(self) -> Optional[str]:
        registry = self.registry
        if registry is None:
            return None
        try:
            location = registry.read_string(
                RegistryReader.HKCU, self.LAUNCHER_REGISTRY_KEY, "InstallLocation",
            )
        except OSError as exc:
            logger.warning("Failed to read launcher location from registry: %s", exc)
            return None
        if location:
            logger.info("Minecraft Launcher registered at %s", location)
        else:
            logger.debug("Minecraft Launcher not found in the registry")
        return location or None

    # ── Candidate roots ───────────────────────

    def candidate_java_roots(self) -> List[Path]:
        roots: List[Optional[Path]] = [self.private_java_dir()]
        roots.extend(self._env_path("ProgramFiles", name) for name in self.VENDOR_DIRS)
        roots.append(self._env_path("ProgramFiles(x86)", "Java"))
        roots.append(self._env_path("USERPROFILE", ".jdks"))
        return [root for root in roots if root is not None]

    # ── Registry runtimes ─────────────────────

    def extra_runtimes(self) -> List[JavaRuntime]:
        if self.registry is None:
            return []

        runtimes: List[JavaRuntime] = []
        workers = max(1, min(self.config.max_workers, len(self.JAVA_REGISTRY_PATHS)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="registry") as pool:
            futures = [
                pool.submit(self.cache.get_or_compute, base, lambda b=base: self._read_registry_runtimes(b))
                for base in self.JAVA_REGISTRY_PATHS
            ]
            for base, future in zip(self.JAVA_REGISTRY_PATHS, futures):
                try:
                    runtimes.extend(future.result())
                except Exception as exc:
                    logger.warning("Registry lookup failed for %s: %s", base, exc)
        return runtimes

    def _read_registry_runtimes(self, base_path: str) -> List[JavaRuntime]:
        registry = self.registry
        entries: List[JavaRuntime] = []
        try:
            versions = registry.sub_keys(RegistryReader.HKLM, base_path)
        except OSError as exc:
            logger.info("Failed to read Java locations from registry in %s: %s", base_path, exc)
            return entries

        for version in versions:
            try:
                java_home = registry.read_string(
                    RegistryReader.HKLM, base_path + "\\" + version, "JavaHome",
                )
            except OSError as exc:
                logger.debug("Cannot read JavaHome for %s\\%s: %s", base_path, version, exc)
                continue
            if not java_home:
                continue
            home = Path(java_home)
            try:
                if not (home / "bin" / self.java_executable).is_file():
                    continue
            except OSError:
                continue
            entries.append(JavaRuntime(
                path=str(home),
                version=version,
                is_64bit=self._guess_64bit(home),
                source="registry",
            ))
            logger.debug("Registry: Java %s at %s", version, home)
        return entries

    def _guess_64bit(self, path: Path) -> bool:
        program_files_x86 = self.environ.get("ProgramFiles(x86)")
        if not program_files_x86:
            return True
        target = os.path.normcase(os.path.abspath(str(path)))
        x86 = os.path.normcase(os.path.abspath(program_files_x86))
        return not (target == x86 or target.startswith(x86.rstrip("\\/") + os.sep))


# ──────────────────────────────────────────────
#  macOS
# ──────────────────────────────────────────────

class MacProbe(PlatformProbe):
    """JavaVirtualMachines folders and ``/usr/libexec/java_home``."""

    platform_tag = Platform.MACOS
    system_name = "Darwin"

    JAVA_HOME_TOOL = "/usr/libexec/java_home"

    def launcher_directories(self) -> Set[Path]:
        candidates: List[Optional[Path]] = [
            self.home() / "Library" / "Application Support" / "minecraft",
        ]
        candidates.extend(self._configured_launcher_dirs())
        return self._existing_dirs(candidates)

    def candidate_java_roots(self) -> List[Path]:
        home = self.home()
        return [
            Path("/Library/Java/JavaVirtualMachines"),
            home / "Library" / "Java" / "JavaVirtualMachines",
            home / ".sdkman" / "candidates" / "java",
            home / ".jdks",
        ]

    def extra_runtimes(self) -> List[JavaRuntime]:
        """Parse the XML plist printed by ``java_home -X``."""
        result = self._run([self.JAVA_HOME_TOOL, "-X"])
        if result is None or result.returncode != 0 or not result.stdout:
            return []
        try:
            entries = plistlib.loads(result.stdout)
        except (plistlib.InvalidFileException, ValueError) as exc:
            logger.debug("Unreadable java_home output: %s", exc)
            return []
        if not isinstance(entries, list):
            return []

        runtimes: List[JavaRuntime] = []
        for entry in entries:
            if not isinstance(entry, dict) or not entry.get("JVMHomePath"):
                continue
            runtime = runtime_from_path(entry["JVMHomePath"], source="package-db")
            if runtime is None:
                continue
            if runtime.version is None and entry.get("JVMVersion"):
                arch = str(entry.get("JVMArch", ""))
                runtime = replace(
                    runtime,
                    version=str(entry["JVMVersion"]),
                    is_64bit=not arch or "64" in arch,
                )
            runtimes.append(runtime)
        return runtimes


# ──────────────────────────────────────────────
#  Linux
# ──────────────────────────────────────────────

class LinuxProbe(PlatformProbe):
    """/usr/lib/jvm, SDKMAN and the alternatives database."""

    platform_tag = Platform.LINUX
    system_name = "Linux"

    def launcher_directories(self) -> Set[Path]:
        home = self.home()
        data_home = self.environ.get("XDG_DATA_HOME")
        candidates: List[Optional[Path]] = [
            home / ".minecraft",
            Path(data_home) / "minecraft" if data_home else home / ".local" / "share" / "minecraft",
            home / ".var" / "app" / "com.mojang.Minecraft" / ".minecraft",
        ]
        candidates.extend(self._configured_launcher_dirs())
        return self._existing_dirs(candidates)

    def candidate_java_roots(self) -> List[Path]:
        home = self.home()
        return [
            Path("/usr/lib/jvm"),
            Path("/usr/lib64/jvm"),
            Path("/usr/java"),
            Path("/opt/java"),
            Path("/opt/jdk"),
            home / ".sdkman" / "candidates" / "java",
            home / ".jdks",
        ]

    def extra_runtimes(self) -> List[JavaRuntime]:
        """Java executables registered with ``update-alternatives``."""
        result = self._run(["update-alternatives", "--list", "java"])
        if result is None or result.returncode != 0:
            return []

        runtimes: List[JavaRuntime] = []
        output = result.stdout.decode("utf-8", errors="replace")
        for line in output.splitlines():
            line = line.strip()
            if not line:
                continue
            runtime = runtime_from_path(line, source="package-db")
            if runtime is not None:
                runtimes.append(runtime)
        return runtimes


# ──────────────────────────────────────────────
#  Registry of probes
# ──────────────────────────────────────────────

PROBES: Dict[str, type] = {
    Platform.WINDOWS: WindowsProbe,
    Platform.MACOS: MacProbe,
    Platform.LINUX: LinuxProbe,
}


def get_probe(
    platform_tag: Optional[str] = None,
    config: Optional[FinderConfig] = None,
) -> Optional[PlatformProbe]:
    """Probe for ``platform_tag`` (detected when omitted), None if unsupported."""
    tag = platform_tag or Platform.detect()
    probe_cls = PROBES.get(tag) if tag else None
    if probe_cls is None:
        logger.warning("No Java probe for platform %r", tag or platform.system())
        return None
    return probe_cls(config)
