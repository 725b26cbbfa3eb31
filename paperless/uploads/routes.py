from pathlib import Path

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session
from paperless.auth.deps import get_db, get_current_user
from paperless.documents.service import get_document_by_file_name
from paperless.errors import NotFound
from paperless.models.user import User


router = APIRouter(prefix="/uploads", tags=["uploads"])


@router.get("/{file_name}")
def serve_upload(
    file_name: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Inline preview of a stored file, re-checking ownership on every fetch."""
    doc = get_document_by_file_name(db, user, file_name)
    path = Path(doc.file_path)
    if not path.is_file():
        raise NotFound("File not found on server")

    return FileResponse(
        path=str(path),
        media_type=doc.file_type,
        filename=doc.file_name,
        content_disposition_type="inline",
    )
