"""
Scratch Workspace and Archive

Each bundle request stages its files in its own directory and writes its
own archive, so concurrent requests never touch each other's files.

Layout:
work_dir/
├── downloads/
│   ├── 3f2a9c.../       # one scratch directory per request
│   │   ├── image1.jpg
│   │   └── image2.png
│   └── ...
└── images-3f2a9c....zip  # one archive per request
"""

import logging
import shutil
import uuid
import zipfile
from pathlib import Path
from typing import List, Optional, Union

from server.errors import ArchiveError

logger = logging.getLogger(__name__)

ARCHIVE_PREFIX = "images-"
SCRATCH_DIR_NAME = "downloads"


def build_archive(source_dir: Union[str, Path], zip_path: Union[str, Path]) -> List[str]:
    """
    Zip every file currently in source_dir at maximum compression.

    Entries are stored flat, under their file names, in name order.

    Returns:
        The archive entry names
    """
    source_dir = Path(source_dir)
    zip_path = Path(zip_path)

    try:
        files = sorted(p for p in source_dir.iterdir() if p.is_file())
        with zipfile.ZipFile(zip_path, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=9) as zf:
            for file_path in files:
                zf.write(file_path, arcname=file_path.name)
    except (OSError, zipfile.BadZipFile) as e:
        zip_path.unlink(missing_ok=True)
        raise ArchiveError(f"Failed to build {zip_path.name}: {e}") from e

    logger.info(f"[Archive] Wrote {zip_path.name} with {len(files)} entries")
    return [p.name for p in files]


class ScratchWorkspace:
    """
    Request-scoped scratch directory plus archive path.

    Usage:
        workspace = ScratchWorkspace(work_dir)
        workspace.create()
        try:
            ...
        finally:
            workspace.cleanup()
    """

    def __init__(self, work_dir: Union[str, Path], request_id: Optional[str] = None):
        self.work_dir = Path(work_dir)
        self.request_id = request_id or uuid.uuid4().hex
        self.scratch_dir = self.work_dir / SCRATCH_DIR_NAME / self.request_id
        self.zip_path = self.work_dir / f"{ARCHIVE_PREFIX}{self.request_id}.zip"

    def create(self) -> Path:
        self.scratch_dir.mkdir(parents=True, exist_ok=True)
        logger.debug(f"[Workspace] Created {self.scratch_dir}")
        return self.scratch_dir

    def cleanup(self) -> None:
        """Delete the archive and the scratch directory. Failures are logged."""
        try:
            self.zip_path.unlink(missing_ok=True)
        except OSError as e:
            logger.error(f"[Workspace] Failed to remove {self.zip_path}: {e}")

        if self.scratch_dir.exists():
            try:
                shutil.rmtree(self.scratch_dir)
            except OSError as e:
                logger.error(f"[Workspace] Failed to remove {self.scratch_dir}: {e}")

        logger.debug(f"[Workspace] Cleaned up request {self.request_id}")


def sweep_work_dir(work_dir: Union[str, Path]) -> int:
    """
    Remove scratch directories and archives left by a previous process.

    Returns:
        Number of removed entries
    """
    work_dir = Path(work_dir)
    removed = 0

    scratch_root = work_dir / SCRATCH_DIR_NAME
    if scratch_root.is_dir():
        for entry in scratch_root.iterdir():
            try:
                if entry.is_dir():
                    shutil.rmtree(entry)
                else:
                    entry.unlink()
                removed += 1
            except OSError as e:
                logger.error(f"[Workspace] Failed to sweep {entry}: {e}")

    if work_dir.is_dir():
        for archive in work_dir.glob(f"{ARCHIVE_PREFIX}*.zip"):
            try:
                archive.unlink()
                removed += 1
            except OSError as e:
                logger.error(f"[Workspace] Failed to sweep {archive}: {e}")

    if removed:
        logger.info(f"[Workspace] Swept {removed} stale entries from {work_dir}")
    return removed
