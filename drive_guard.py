"""
drive_guard.py
==============
Keeps discovery away from mounts that can stall a scan: network shares,
optical drives and removable media.  Directory listings on those are
synchronous OS calls that may hang for seconds, so candidate roots living
on them are skipped unless the user opts in.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional, Tuple

import psutil

logger = logging.getLogger(__name__)

# File systems served over the network
_NETWORK_FSTYPES = frozenset({
    "nfs", "nfs4", "cifs", "smbfs", "smb3", "afpfs", "webdav", "davfs",
    "fuse.sshfs", "sshfs", "9p", "ncpfs",
})

# Optical media
_OPTICAL_FSTYPES = frozenset({"iso9660", "udf", "cdfs"})

# Windows reports drive kind in opts
_SLOW_OPTS = ("cdrom", "removable", "remote")


class DriveGuard:
    """
    Decides whether a path sits on a slow mount.

    Partitions are read once per guard; a guard lives for one discovery
    pass.
    """

    def __init__(self, allow_slow: bool = False) -> None:
        self.allow_slow = allow_slow
        self._slow_mounts: Optional[List[Tuple[str, str]]] = None

    def _load_slow_mounts(self) -> List[Tuple[str, str]]:
        mounts: List[Tuple[str, str]] = []
        try:
            partitions = psutil.disk_partitions(all=True)
        except (OSError, RuntimeError) as exc:
            logger.debug("Could not list disk partitions: %s", exc)
            return mounts

        for part in partitions:
            fstype = (part.fstype or "").lower()
            opts = (part.opts or "").lower()
            slow = (
                fstype in _NETWORK_FSTYPES
                or fstype in _OPTICAL_FSTYPES
                or any(flag in opts.split(",") for flag in _SLOW_OPTS)
            )
            if slow and part.mountpoint:
                mountpoint = os.path.normcase(os.path.abspath(part.mountpoint))
                mounts.append((mountpoint, fstype or opts))
        # Longest mountpoint first so nested mounts win
        mounts.sort(key=lambda m: len(m[0]), reverse=True)
        return mounts

    @property
    def slow_mounts(self) -> List[Tuple[str, str]]:
        if self._slow_mounts is None:
            self._slow_mounts = self._load_slow_mounts()
        return self._slow_mounts

    def is_slow(self, path: str | Path) -> bool:
        """Return True if ``path`` lives on a network/optical/removable mount."""
        target = os.path.normcase(os.path.abspath(str(path)))
        for mountpoint, kind in self.slow_mounts:
            if target == mountpoint or target.startswith(mountpoint.rstrip(os.sep) + os.sep):
                logger.debug("%s is on a slow mount (%s at %s)", path, kind, mountpoint)
                return True
        return False

    def should_skip(self, path: str | Path) -> bool:
        return not self.allow_slow and self.is_slow(path)
