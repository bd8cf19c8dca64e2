from fastapi import APIRouter, HTTPException, Query, status
from fastapi.responses import FileResponse

from cardintake.core.security import InvalidSignatureError, verify_storage_token
from cardintake.services.storage import resolve_storage_path

router = APIRouter(prefix="/files", tags=["files"])


@router.get("/{storage_path:path}")
def get_file(storage_path: str, token: str = Query(...)) -> FileResponse:
    try:
        verify_storage_token(token, storage_path)
    except InvalidSignatureError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    path = resolve_storage_path(storage_path)
    if not path.is_file():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
    return FileResponse(path)
