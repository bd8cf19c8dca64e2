import re
import shutil
from pathlib import Path
from urllib.parse import quote

from fastapi import HTTPException, UploadFile, status

from cardintake.core.config import get_settings
from cardintake.core.security import sign_storage_path

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp"}
CONTENT_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/webp", "application/octet-stream"}

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.\-]")


def ensure_storage_dir() -> Path:
    settings = get_settings()
    root = Path(settings.storage_dir)
    root.mkdir(parents=True, exist_ok=True)
    return root


def build_storage_path(profile_id: str, batch_id: str, filename: str) -> str:
    sanitized = _UNSAFE_CHARS.sub("_", filename)
    return f"{profile_id}/{batch_id}/{sanitized}"


def resolve_storage_path(storage_path: str) -> Path:
    root = ensure_storage_dir().resolve()
    candidate = (root / storage_path).resolve()
    if root not in candidate.parents:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
    return candidate


def validate_image(file: UploadFile) -> None:
    ext = Path(file.filename or "").suffix.lower()
    if ext not in ALLOWED_EXTENSIONS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid file extension: {file.filename}")
    if file.content_type not in CONTENT_TYPES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid content type: {file.content_type}")


async def save_upload_file(file: UploadFile, storage_path: str) -> int:
    settings = get_settings()
    max_bytes = settings.max_upload_size_mb * 1024 * 1024
    final_path = resolve_storage_path(storage_path)
    final_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        handle = final_path.open("xb")
    except FileExistsError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"File {file.filename} collides with another file in the batch",
        ) from exc

    total = 0
    with handle:
        while True:
            chunk = await file.read(1024 * 1024)
            if not chunk:
                break
            total += len(chunk)
            if total > max_bytes:
                handle.close()
                final_path.unlink(missing_ok=True)
                raise HTTPException(
                    status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                    detail=f"File {file.filename} exceeds max size",
                )
            handle.write(chunk)
    await file.close()
    return total


def create_signed_url(storage_path: str, expires_in: int | None = None) -> str:
    settings = get_settings()
    token = sign_storage_path(storage_path, expires_in)
    base = settings.public_base_url.rstrip("/")
    return f"{base}/files/{quote(storage_path)}?token={token}"


def delete_batch_files(profile_id: str, batch_id: str) -> None:
    folder = ensure_storage_dir() / profile_id / batch_id
    if folder.exists():
        shutil.rmtree(folder, ignore_errors=True)
