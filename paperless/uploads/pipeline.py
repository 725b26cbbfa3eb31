"""Upload staging: validate, copy to the upload dir under a fresh name, roll back on failure."""

import logging
import os
import re
import secrets
import time
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from fastapi import UploadFile

from paperless.config import settings
from paperless.errors import NoFileUploaded, PayloadTooLarge, StorageError, UnsupportedType

log = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = frozenset({
    "application/pdf",
    "image/jpeg",
    "image/png",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
})

CHUNK_SIZE = 64 * 1024
_EXT_RE = re.compile(r"^\.[a-z0-9]{1,10}$")


@dataclass
class StagedFile:
    file_name: str
    path: Path
    size: int
    content_type: str
    original_name: str

    def discard(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError:
            log.warning("Could not remove staged file %s", self.path, exc_info=True)


def safe_extension(original_name: str) -> str:
    ext = os.path.splitext(os.path.basename(original_name.replace("\\", "/")))[1].lower()
    return ext if _EXT_RE.match(ext) else ""


def build_stored_name(original_name: str) -> str:
    """``<epoch-ms>-<random><ext>``; nothing but the extension comes from the client."""
    return f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{safe_extension(original_name)}"


def default_title(original_name: str) -> str:
    base = os.path.basename(original_name.replace("\\", "/"))
    stem, _ = os.path.splitext(base)
    return stem or base


def validate_upload(upload: UploadFile | None) -> UploadFile:
    if upload is None or not upload.filename:
        raise NoFileUploaded()
    if upload.content_type not in ALLOWED_MIME_TYPES:
        raise UnsupportedType(
            "File upload error",
            details=f"File type {upload.content_type} is not allowed",
        )
    return upload


def stage_upload(upload: UploadFile | None, upload_dir: str | None = None, max_bytes: int | None = None) -> StagedFile:
    upload = validate_upload(upload)
    max_bytes = settings.max_upload_bytes if max_bytes is None else max_bytes
    directory = Path(upload_dir or settings.upload_dir)

    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise StorageError(details=str(exc)) from exc

    file_name = build_stored_name(upload.filename)
    staged = StagedFile(
        file_name=file_name,
        path=directory / file_name,
        size=0,
        content_type=upload.content_type,
        original_name=upload.filename,
    )

    try:
        with staged.path.open("xb") as out:
            while True:
                chunk = upload.file.read(CHUNK_SIZE)
                if not chunk:
                    break
                staged.size += len(chunk)
                if staged.size > max_bytes:
                    raise PayloadTooLarge(
                        "File upload error",
                        details=f"File too large. Max size: {max_bytes} bytes",
                    )
                out.write(chunk)
    except PayloadTooLarge:
        staged.discard()
        raise
    except OSError as exc:
        staged.discard()
        raise StorageError(details=str(exc)) from exc

    log.info("Staged upload %s (%d bytes, %s)", file_name, staged.size, staged.content_type)
    return staged


@contextmanager
def staged_upload(upload: UploadFile | None, upload_dir: str | None = None, max_bytes: int | None = None):
    """Stage ``upload`` and discard the file if the ``with`` body raises."""
    staged = stage_upload(upload, upload_dir, max_bytes)
    try:
        yield staged
    except BaseException:
        log.warning("Rolling back staged upload %s", staged.file_name)
        staged.discard()
        raise


def remove_stored_file(path: str | os.PathLike) -> bool:
    """Best-effort delete; a missing or locked file is logged, never raised."""
    try:
        Path(path).unlink()
        return True
    except FileNotFoundError:
        return False
    except OSError:
        log.warning("Failed to delete stored file %s", path, exc_info=True)
        return False
