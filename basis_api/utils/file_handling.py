"""
Utilities for upload storage, job directories and scratch housekeeping.

Housekeeping is best effort: failures are logged and never raised.
"""
import os
import time
import random
import shutil
import logging
import uuid
from pathlib import Path
from typing import BinaryIO, Optional

# Set up logging
logger = logging.getLogger(__name__)

COPY_CHUNK_SIZE = 1024 * 1024


def unique_upload_name(original_filename: Optional[str]) -> str:
    """
    Generate a unique stored name keeping the original extension.

    Format: {epoch millis}-{random}{ext}
    """
    suffix = Path(original_filename or "").suffix.lower()
    return f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}{suffix}"


def save_upload(stream: BinaryIO, directory: Path, original_filename: Optional[str]) -> Path:
    """
    Persist an uploaded file stream into the upload directory.

    Args:
        stream: Readable binary stream of the upload
        directory: Upload scratch directory
        original_filename: Client supplied filename, used for its extension

    Returns:
        Path of the stored file
    """
    target = directory / unique_upload_name(original_filename)
    stream.seek(0)
    with open(target, 'wb') as f:
        shutil.copyfileobj(stream, f, COPY_CHUNK_SIZE)
    logger.debug(f"Stored upload {original_filename} as {target.name}")
    return target


def create_job_dir(preview_root: Path) -> Path:
    """Create a fresh, empty working directory for a single request."""
    job_dir = preview_root / uuid.uuid4().hex
    job_dir.mkdir(parents=True, exist_ok=False)
    return job_dir


def remove_file(path: Optional[Path]) -> None:
    """Delete a file, logging instead of raising on failure."""
    if path is None:
        return
    try:
        if path.exists():
            path.unlink()
            logger.debug(f"Deleted file: {path}")
    except OSError as e:
        logger.error(f"Failed to delete file {path}: {e}")


def cleanup_old_files(directory: Path, max_age: float, now: Optional[float] = None) -> int:
    """
    Delete files in a directory whose modification time is older than max_age.

    Files exactly max_age seconds old are kept.

    Args:
        directory: Directory to sweep (not recursive)
        max_age: Age limit in seconds
        now: Reference time, defaults to the current time

    Returns:
        Number of deleted files
    """
    now = time.time() if now is None else now
    deleted = 0
    try:
        entries = list(os.scandir(directory))
    except OSError as e:
        logger.error(f"Error cleaning up old files in {directory}: {e}")
        return 0

    for entry in entries:
        try:
            if not entry.is_file():
                continue
            age = now - entry.stat().st_mtime
            if age > max_age:
                os.unlink(entry.path)
                deleted += 1
                logger.info(f"Deleted old file: {entry.name}")
        except OSError as e:
            logger.error(f"Failed to delete file {entry.name}: {e}")
    return deleted


def cleanup_old_job_dirs(preview_root: Path, max_age: float, now: Optional[float] = None) -> int:
    """
    Remove job directories under the preview root older than max_age.

    Returns:
        Number of removed directories
    """
    now = time.time() if now is None else now
    removed = 0
    try:
        entries = list(os.scandir(preview_root))
    except OSError as e:
        logger.error(f"Failed to clean preview directory {preview_root}: {e}")
        return 0

    for entry in entries:
        try:
            if not entry.is_dir():
                continue
            if now - entry.stat().st_mtime > max_age:
                shutil.rmtree(entry.path)
                removed += 1
                logger.info(f"Deleted preview job directory: {entry.name}")
        except OSError as e:
            logger.error(f"Failed to delete preview job directory {entry.name}: {e}")
    return removed


def clear_directory(directory: Path) -> None:
    """Delete every entry inside a directory, keeping the directory itself."""
    try:
        entries = list(os.scandir(directory))
    except OSError as e:
        logger.error(f"Failed to clear directory {directory}: {e}")
        return

    for entry in entries:
        try:
            if entry.is_dir(follow_symlinks=False):
                shutil.rmtree(entry.path)
            else:
                os.unlink(entry.path)
            logger.debug(f"Deleted preview file: {entry.path}")
        except OSError as e:
            logger.error(f"Failed to delete {entry.path}: {e}")


def find_latest_file(root: Path, suffix: str) -> Optional[Path]:
    """Most recently modified file with the given suffix anywhere below root."""
    latest = None
    latest_mtime = None
    for path in root.rglob(f"*{suffix}"):
        if not path.is_file():
            continue
        mtime = path.stat().st_mtime
        if latest_mtime is None or mtime >= latest_mtime:
            latest, latest_mtime = path, mtime
    return latest


def remove_dir(path: Optional[Path]) -> None:
    """Delete a directory tree, logging instead of raising on failure."""
    if path is None or not path.exists():
        return
    try:
        shutil.rmtree(path)
        logger.debug(f"Deleted directory: {path}")
    except OSError as e:
        logger.error(f"Failed to delete directory {path}: {e}")
