"""
materials/registry.py -- In-memory catalog of study materials.

The registry is the only writer of the catalog. The upload directory is the
only thing that survives a restart: at startup reconcile_from_directory()
rebuilds the catalog from whatever files are present. Links are never
persisted and are lost on restart.

Id assignment:
  Reconciliation numbers files 1..N in filesystem enumeration order. After
  that a monotonically increasing counter hands out N+1, N+2, ... and ids
  are never reused within the process, even after deletions. Ids are
  therefore NOT stable across restarts if files change on disk between runs.

Deletion:
  Removing the catalog entry is authoritative. Backing-file removal for
  non-link materials is best-effort: failures are logged, never raised, and
  the route runs it as a background task after the response is sent.

Concurrency:
  Route handlers run on FastAPI's thread pool. One lock guards the catalog
  and the id counter; filesystem work happens outside it.

Usage:
    registry = MaterialRegistry(Path("uploads"))
    registry.reconcile_from_directory()
    material = registry.add_link("http://example.com")
    registry.delete(material.id)
"""

from __future__ import annotations

import logging
import os
import secrets
import shutil
import threading
import time
from collections.abc import Callable
from datetime import date, datetime
from pathlib import Path, PurePosixPath
from typing import BinaryIO, Optional

from core.errors import InvalidInput, NotFound
from materials.models import FILE_TYPE, LINK_SIZE, LINK_TYPE, Material

logger = logging.getLogger("studyhub.materials")

URL_PREFIX = "/uploads/"

_MIB = 1024 * 1024

Scheduler = Callable[..., None]


# ---------------------------------------------------------------------------
# Derivation helpers
# ---------------------------------------------------------------------------


def format_size(size_bytes: int) -> str:
    """Render a byte count as mebibytes with two decimals, e.g. '1.50 MB'."""
    return f"{size_bytes / _MIB:.2f} MB"


def type_tag(filename: str) -> str:
    """Uppercased extension without the dot, or 'FILE' when there is none.

    Leading-dot names such as '.bashrc' have no extension.
    """
    suffix = PurePosixPath(filename).suffix
    return suffix[1:].upper() if suffix else FILE_TYPE


def stored_name(original_name: str) -> str:
    """Collision-resistant on-disk name: '<epoch ms>-<9 random digits><ext>'.

    Only the original extension is kept; the user-supplied name itself never
    reaches the filesystem, so it cannot inject path separators.
    """
    ext = PurePosixPath(original_name).suffix
    return f"{int(time.time() * 1000)}-{secrets.randbelow(10**9):09d}{ext}"


def _creation_date(st: os.stat_result) -> date:
    # st_birthtime exists on macOS/BSD and recent Linux builds; st_ctime is
    # the closest substitute elsewhere.
    ts = getattr(st, "st_birthtime", None) or st.st_ctime
    return datetime.fromtimestamp(ts).date()


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class MaterialRegistry:
    """Holds the material catalog and owns the upload directory."""

    def __init__(self, upload_dir: Path, today: Callable[[], date] = date.today) -> None:
        self.upload_dir = Path(upload_dir)
        self._today = today
        self._lock = threading.Lock()
        self._materials: list[Material] = []
        self._next_id = 1

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    def reconcile_from_directory(self, path: Optional[Path] = None) -> int:
        """Rebuild the catalog from files present in the upload directory.

        Startup only. Passing a path makes it the registry's upload directory,
        so synthesized urls and later deletions refer to the scanned files.
        A missing or unreadable directory leaves the catalog empty and is
        logged, never raised. Returns the number of materials synthesized.
        """
        if path is not None:
            self.upload_dir = Path(path)
        directory = self.upload_dir
        if not directory.is_dir():
            logger.warning("Upload directory %s does not exist -- starting with an empty catalog", directory)
            return 0

        synthesized: list[Material] = []
        try:
            with os.scandir(directory) as entries:
                for entry in entries:
                    if not entry.is_file():
                        continue
                    st = entry.stat()
                    synthesized.append(
                        Material(
                            id=len(synthesized) + 1,
                            title=entry.name,
                            type=type_tag(entry.name),
                            date_added=_creation_date(st),
                            size=format_size(st.st_size),
                            url=URL_PREFIX + entry.name,
                        )
                    )
        except OSError:
            logger.exception("Could not read upload directory %s -- starting with an empty catalog", directory)
            return 0

        with self._lock:
            self._materials = synthesized
            self._next_id = len(synthesized) + 1
        logger.info("Reconciled %d material(s) from %s", len(synthesized), directory)
        return len(synthesized)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def add(
        self,
        original_name: Optional[str] = None,
        size_bytes: int = 0,
        stored_filename: Optional[str] = None,
        link: Optional[str] = None,
    ) -> Material:
        """Add a file if one was supplied, otherwise a link.

        Raises InvalidInput if neither a file nor a non-empty link is given.
        """
        if original_name and stored_filename:
            return self.add_file(original_name, size_bytes, stored_filename)
        if link and link.strip():
            return self.add_link(link)
        raise InvalidInput("No file or link provided.")

    def add_file(self, original_name: str, size_bytes: int, stored_filename: str) -> Material:
        if not original_name or not stored_filename:
            raise InvalidInput("No file provided.")
        return self._append(
            title=original_name,
            material_type=type_tag(original_name),
            size=format_size(size_bytes),
            url=URL_PREFIX + stored_filename,
        )

    def add_link(self, link: str) -> Material:
        if not link or not link.strip():
            raise InvalidInput("No file or link provided.")
        return self._append(title=link, material_type=LINK_TYPE, size=LINK_SIZE, url=link)

    def delete(self, material_id: int, schedule: Optional[Scheduler] = None) -> Material:
        """Remove a material from the catalog and return it.

        Raises NotFound for an unknown id. For non-link materials the backing
        file is removed through schedule(fn, material) when a scheduler is
        given (e.g. BackgroundTasks.add_task), otherwise immediately.
        """
        with self._lock:
            for index, material in enumerate(self._materials):
                if material.id == material_id:
                    del self._materials[index]
                    break
            else:
                raise NotFound(f"Material {material_id} not found.")

        logger.info("Deleted material %d (%s)", material.id, material.type)
        if not material.is_link:
            if schedule is not None:
                schedule(self.remove_backing_file, material)
            else:
                self.remove_backing_file(material)
        return material

    def remove_backing_file(self, material: Material) -> bool:
        """Best-effort removal of a file material's backing file.

        Returns True if the file was removed. Never raises.
        """
        if material.is_link:
            return False
        path = self._path_for_url(material.url)
        if path is None:
            logger.warning("Refusing to delete %r: not under %s", material.url, self.upload_dir)
            return False
        try:
            path.unlink()
        except OSError as exc:
            logger.warning("Could not delete backing file %s for material %d: %s", path, material.id, exc)
            return False
        return True

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list(self) -> list[Material]:
        """All materials, oldest first."""
        with self._lock:
            return list(self._materials)

    def get(self, material_id: int) -> Material:
        with self._lock:
            for material in self._materials:
                if material.id == material_id:
                    return material
        raise NotFound(f"Material {material_id} not found.")

    def __len__(self) -> int:
        with self._lock:
            return len(self._materials)

    # ------------------------------------------------------------------
    # Upload directory
    # ------------------------------------------------------------------

    def store_upload(self, fileobj: BinaryIO, original_name: str) -> tuple[str, int]:
        """Write an uploaded stream under a fresh stored name.

        Returns (stored_filename, size_bytes).
        """
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        filename = stored_name(original_name)
        path = self.upload_dir / filename
        with path.open("wb") as buffer:
            shutil.copyfileobj(fileobj, buffer)
        return filename, path.stat().st_size

    def resolve_upload(self, filename: str) -> Path:
        """Path of a stored upload, for serving it back. Raises NotFound."""
        path = self._path_for_url(URL_PREFIX + filename)
        if path is None or not path.is_file():
            raise NotFound("File not found.")
        return path

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _append(self, title: str, material_type: str, size: str, url: str) -> Material:
        with self._lock:
            material = Material(
                id=self._next_id,
                title=title,
                type=material_type,
                date_added=self._today(),
                size=size,
                url=url,
            )
            self._next_id += 1
            self._materials.append(material)
        logger.info("Added material %d (%s)", material.id, material.type)
        return material

    def _path_for_url(self, url: str) -> Optional[Path]:
        """Map '/uploads/<name>' to a path inside upload_dir, or None if it escapes."""
        if not url.startswith(URL_PREFIX):
            return None
        root = self.upload_dir.resolve()
        path = (root / url[len(URL_PREFIX):]).resolve()
        if path == root or root not in path.parents:
            return None
        return path
