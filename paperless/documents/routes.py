
from pathlib import Path

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session
from paperless.auth.deps import get_db, get_current_user
from paperless.auth.policy import require
from paperless.documents import service
from paperless.errors import NotFound
from paperless.models.document import ApprovalStatus, Category
from paperless.models.user import User
from paperless.schemas.document import (
    ApprovalIn,
    DocumentEnvelope,
    DocumentList,
    DocumentOut,
    DocumentUpdate,
    MessageOut,
    PrintOut,
    UploadOut,
)

router = APIRouter(prefix="/documents", tags=["documents"])

@router.post("/upload", response_model=UploadOut, status_code=status.HTTP_201_CREATED)
def upload_document(
    file: UploadFile | None = File(None),
    title: str | None = Form(None),
    category: str | None = Form(None),
    tags: str | None = Form(None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    doc = service.upload_document(db, user, file, title=title, category=category, tags=tags)
    return UploadOut(document=DocumentOut.model_validate(doc))

@router.get("", response_model=DocumentList)
def list_documents(
    user_id: int | None = Query(None, alias="userId"),
    category: Category | None = None,
    approval_status: ApprovalStatus | None = Query(None, alias="status"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    docs = service.list_documents(
        db,
        user,
        owner_id=user_id,
        category=category.value if category else None,
        status=approval_status.value if approval_status else None,
    )
    return DocumentList(documents=[DocumentOut.model_validate(d) for d in docs])

@router.get("/{doc_id}", response_model=DocumentEnvelope)
def get_document(doc_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    doc = service.get_visible_document(db, user, doc_id)
    return DocumentEnvelope(document=DocumentOut.model_validate(doc))

@router.api_route("/{doc_id}", methods=["PATCH", "PUT"], response_model=DocumentOut)
def update_document(
    doc_id: int,
    body: DocumentUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return service.update_document(
        db,
        user,
        doc_id,
        title=body.title,
        category=body.category.value if body.category else None,
        tags=body.tags,
    )

@router.delete("/{doc_id}", response_model=MessageOut)
def delete_document(doc_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    service.delete_document(db, user, doc_id)
    return MessageOut(message="Document deleted successfully")

@router.get("/{doc_id}/download")
def download_document(doc_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    doc = service.get_visible_document(db, user, doc_id)
    path = Path(doc.file_path)
    if not path.is_file():
        raise NotFound("File not found on server")
    return FileResponse(
        path=str(path),
        media_type=doc.file_type,
        filename=doc.file_name,
        content_disposition_type="attachment",
    )

@router.post("/{doc_id}/approve", response_model=DocumentEnvelope)
def approve_document(
    doc_id: int,
    body: ApprovalIn,
    db: Session = Depends(get_db),
    user: User = Depends(require("documents:approve")),
):
    doc = service.approve_document(db, user, doc_id, body.status, body.comments)
    return DocumentEnvelope(document=DocumentOut.model_validate(doc))

@router.get("/{doc_id}/print", response_model=PrintOut)
def print_document(doc_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    _, url = service.print_document(db, user, doc_id)
    return PrintOut(message="Document printed successfully", url=url)
