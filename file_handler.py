# Module for file system operations (sanitizing, hashing, staging, reconcile, backups)

import enum
import hashlib
import logging
import os
import re
import shutil
import tempfile
from dataclasses import dataclass, field
from datetime import datetime
from typing import List

import constants # Import constants

logger = logging.getLogger(__name__)


# --- Names and Directories ---
def sanitize_name(name, max_length=constants.FILENAME_MAX_LENGTH):
    """
    Restricts a string to [a-zA-Z0-9._-] for use as a file or directory name.
    Runs of other characters become '-', leading/trailing '-' are trimmed and
    repeated '-' collapsed. May return an empty string; callers pick a fallback.
    """
    if not name:
        return ''
    name = re.sub(r'[^a-zA-Z0-9._-]+', '-', str(name))
    name = re.sub(r'-{2,}', '-', name)
    name = name.strip('-')
    name = name[:max_length]
    return name.rstrip('-')


def ensure_directory(path):
    """Creates `path` (and parents) if needed and returns it."""
    os.makedirs(path, exist_ok=True)
    return path


# --- Hashing ---
def file_hash(path):
    """SHA-256 hex digest of a file's bytes."""
    digest = hashlib.sha256()
    with open(path, 'rb') as f:
        for chunk in iter(lambda: f.read(constants.HASH_CHUNK_SIZE), b''):
            digest.update(chunk)
    return digest.hexdigest()


# --- Backups ---
def backup_timestamp(path):
    """Last-modified time of `path` (local time) formatted for backup names."""
    return datetime.fromtimestamp(os.path.getmtime(path)).strftime(constants.BACKUP_TIMESTAMP_FORMAT)


def backup_path(path, timestamp):
    """'dir/name.md' + '20240102-030405' -> 'dir/name.20240102-030405.bak.md'"""
    stem, ext = os.path.splitext(path)
    return f"{stem}.{timestamp}.{constants.BACKUP_INFIX}{ext}"


def _free_backup_label(paths, timestamp):
    """
    Picks a timestamp label whose backup names are unused for every path.
    Appends '-1', '-2', ... when a backup with the same second already exists.
    """
    label = timestamp
    for counter in range(1, constants.FILENAME_COLLISION_LIMIT + 1):
        if not any(os.path.exists(backup_path(p, label)) for p in paths):
            return label
        label = f"{timestamp}-{counter}"
    raise OSError(
        f"Could not find a free backup name for {paths[0]} after {constants.FILENAME_COLLISION_LIMIT} attempts."
    )


def backup_existing(md_path):
    """
    Copies the current Markdown file and its co-located PDF (same stem) to
    timestamped backups named after the Markdown file's mtime.
    Returns the list of backup paths created.
    """
    pdf_path = os.path.splitext(md_path)[0] + '.pdf'
    originals = [md_path]
    if os.path.exists(pdf_path):
        originals.append(pdf_path)

    label = _free_backup_label(originals, backup_timestamp(md_path))
    created = []
    for original in originals:
        target = backup_path(original, label)
        shutil.copy2(original, target)
        created.append(target)
        logger.info(f"    Backed up: {os.path.basename(target)}")
    return created


# --- Staging and Reconcile ---
class Decision(enum.Enum):
    WRITE = 'write'
    SKIP = 'skip'
    WRITE_WITH_BACKUP = 'write_with_backup'

    @property
    def wrote(self):
        return self is not Decision.SKIP


@dataclass
class ReconcileResult:
    decision: Decision
    path: str
    backups: List[str] = field(default_factory=list)


def write_staging(content, dest_path):
    """Writes `content` to a hidden temp file next to `dest_path` and returns its path."""
    dest_dir = os.path.dirname(os.path.abspath(dest_path))
    ensure_directory(dest_dir)
    fd, staging_path = tempfile.mkstemp(prefix=constants.STAGING_PREFIX, suffix='.md', dir=dest_dir)
    try:
        with os.fdopen(fd, 'w', encoding='utf-8', newline='\n') as f:
            f.write(content)
        os.chmod(staging_path, 0o644) # mkstemp creates 0600
    except BaseException:
        _discard(staging_path)
        raise
    return staging_path


def _discard(path):
    try:
        os.remove(path)
    except FileNotFoundError:
        pass


def reconcile(rendered_content, dest_path, backup_on_change=True):
    """
    Decides whether `rendered_content` replaces the file at `dest_path`.

    - no existing file: WRITE
    - identical SHA-256: SKIP (destination untouched)
    - different: WRITE_WITH_BACKUP (or WRITE when backups are disabled)

    The new content goes through a staging file that is atomically moved onto
    `dest_path`, so a half-written file is never visible. OSError propagates.
    """
    staging_path = write_staging(rendered_content, dest_path)
    try:
        backups = []
        if not os.path.exists(dest_path):
            decision = Decision.WRITE
        elif file_hash(staging_path) == file_hash(dest_path):
            _discard(staging_path)
            logger.info(f"    Unchanged (hash match), skipping: {os.path.basename(dest_path)}")
            return ReconcileResult(Decision.SKIP, dest_path)
        else:
            logger.info(f"    Content changed, updating: {os.path.basename(dest_path)}")
            if backup_on_change:
                backups = backup_existing(dest_path)
                decision = Decision.WRITE_WITH_BACKUP
            else:
                decision = Decision.WRITE

        os.replace(staging_path, dest_path)
        return ReconcileResult(decision, dest_path, backups)
    except BaseException:
        _discard(staging_path)
        raise


def write_bytes(content, dest_path):
    """Writes binary content (downloaded assets) and returns the path."""
    ensure_directory(os.path.dirname(os.path.abspath(dest_path)))
    with open(dest_path, 'wb') as f:
        f.write(content)
    return dest_path
