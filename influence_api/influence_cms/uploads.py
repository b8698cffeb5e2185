from __future__ import annotations

import logging
import shutil
import threading
import time
from pathlib import Path, PurePosixPath
from typing import BinaryIO

log = logging.getLogger(__name__)


class UploadStore:
    """Writes uploaded files under ``site_root/subdir`` and hands back their public path.

    Files are never removed; deleting an entity leaves its uploads in place.
    """

    def __init__(self, site_root: Path, subdir: str = "img/uploads") -> None:
        self.site_root = Path(site_root)
        self.subdir = subdir.strip("/")
        self._last_ns = 0
        self._lock = threading.Lock()

    @property
    def directory(self) -> Path:
        return self.site_root / self.subdir

    def _next_stamp(self) -> int:
        with self._lock:
            ns = max(time.time_ns(), self._last_ns + 1)
            self._last_ns = ns
            return ns

    def save(self, fileobj: BinaryIO, filename: str) -> str:
        """Persist ``fileobj`` and return a root-relative URL like ``/img/uploads/<name>``."""
        self.directory.mkdir(parents=True, exist_ok=True)
        # Browsers may send a full client path; keep the last component only.
        base = PurePosixPath(filename.replace("\\", "/")).name or "upload"
        name = f"{self._next_stamp()}_{base}"
        dst = self.directory / name
        with open(dst, "wb") as f:
            shutil.copyfileobj(fileobj, f)
        log.info("Saved upload %s (%s bytes)", dst, dst.stat().st_size)
        return f"/{self.subdir}/{name}"
