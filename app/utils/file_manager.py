import glob
import os
import re
import time
import pathlib
import logging
from typing import Optional
from fastapi import UploadFile

from app.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024

# <owner>_<unix ts>_<name> for documents, report<order>_<unix ts>_<name> for reports
_STORED_NAME_RE = re.compile(r"^(?:report)?\d+_\d+_(?P<name>.+)$")
_UNSAFE_CHARS_RE = re.compile(r"[^\w.\- ()\[\]]")


def sanitize_filename(filename: str) -> str:
    """Strips directories and characters that do not belong in a stored file name."""
    name = os.path.basename((filename or "").replace("\\", "/")).strip()
    name = _UNSAFE_CHARS_RE.sub("_", name)
    if not name or name in {".", ".."}:
        raise ValidationError("Invalid file name")
    return name


def build_stored_name(owner_id: int, filename: str, prefix: str = "") -> str:
    return f"{prefix}{owner_id}_{int(time.time())}_{sanitize_filename(filename)}"


def display_name(stored_name: str) -> str:
    """Returns the human-readable name hidden behind the internal prefix."""
    base = os.path.basename(stored_name)
    match = _STORED_NAME_RE.match(base)
    return match.group("name") if match else base


async def save_uploaded_file(
    file: UploadFile,
    upload_dir: str,
    stored_name: str,
    max_bytes: Optional[int] = None,
) -> str:
    """
    Saves an uploaded file under upload_dir/stored_name and returns that path.
    Files larger than max_bytes are rejected and nothing is left on disk.
    """
    if not file.filename:
        raise ValidationError("Failed to get file")

    pathlib.Path(upload_dir).mkdir(parents=True, exist_ok=True)
    file_path = os.path.join(upload_dir, stored_name)

    written = 0
    try:
        with open(file_path, "wb") as f:
            while chunk := await file.read(CHUNK_SIZE):
                written += len(chunk)
                if max_bytes is not None and written > max_bytes:
                    raise ValidationError("File too large")
                f.write(chunk)
    except Exception:
        delete_stored_file(file_path)
        raise

    if written == 0:
        delete_stored_file(file_path)
        raise ValidationError("Uploaded file is empty")

    return file_path


def resolve_stored_file(upload_dir: str, filename: str) -> Optional[str]:
    """
    Finds a stored file either by its exact stored name or, for a bare
    original name, by the most recent <owner>_<ts>_<filename> match.
    """
    safe = os.path.basename(filename)
    if not safe or safe in {".", ".."}:
        return None

    direct = os.path.join(upload_dir, safe)
    if os.path.isfile(direct):
        return direct

    matches = glob.glob(os.path.join(upload_dir, f"*_*_{glob.escape(safe)}"))
    if not matches:
        return None
    return max(matches, key=os.path.getmtime)


def delete_stored_file(file_path: Optional[str]):
    """
    Deletes a stored file, logging rather than raising when it is already gone.
    """
    if not file_path:
        return

    if os.path.exists(file_path):
        try:
            os.remove(file_path)
            logger.info(f"Deleted stored file: {file_path}")
        except OSError as e:
            logger.error(f"Failed to delete stored file {file_path}: {e}")
